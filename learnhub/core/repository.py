"""Base repository pattern implementation.

This module provides a generic repository that domain-specific
repositories build on. Writes go through ``_commit`` so that every
repository reports store failures the same way.
"""

from typing import Generic, TypeVar, cast
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from learnhub.core.exceptions import TransientStoreError

ModelType = TypeVar("ModelType")


class BaseRepository(Generic[ModelType]):
    """Generic repository with common CRUD operations.

    Example:
        ```python
        class UserRepository(BaseRepository[User]):
            def __init__(self, db: Session):
                super().__init__(db, User)

            def find_by_email(self, email: str) -> User | None:
                return self.db.query(self.model).filter(self.model.email == email).first()
        ```
    """

    def __init__(self, db: Session, model: type[ModelType]):
        """Initialize repository with database session and model class.

        Args:
            db: SQLAlchemy session.
            model: The model class this repository operates on.
        """
        self.db = db
        self.model = model

    def get_by_id(self, entity_id: UUID) -> ModelType | None:
        """Get a single entity by ID, or None when absent."""
        result = self.db.query(self.model).filter(self.model.id == entity_id).first()  # type: ignore[attr-defined]
        return cast(ModelType | None, result)

    def count(self) -> int:
        result: int = self.db.query(self.model).count()
        return result

    def add(self, instance: ModelType) -> ModelType:
        """Insert a new entity and commit.

        Raises:
            IntegrityError: A store constraint rejected the row. The session
                has already been rolled back.
            TransientStoreError: The write failed for any other reason.
        """
        self.db.add(instance)
        self._commit()
        self.db.refresh(instance)
        return instance

    def save(self, instance: ModelType) -> ModelType:
        """Commit pending changes on an already-persistent entity."""
        self._commit()
        self.db.refresh(instance)
        return instance

    def delete(self, instance: ModelType) -> None:
        self.db.delete(instance)
        self._commit()

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            raise TransientStoreError() from e
