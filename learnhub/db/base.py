"""
Database base module - imports all models for Alembic migration detection.

While the imports appear unused, they register every table on
``Base.metadata`` before Alembic or the test suite inspects it.
"""

from learnhub.auth.models.user import User
from learnhub.catalog.models.course import Course
from learnhub.db.session import Base
from learnhub.enrollments.models.enrollment import Enrollment

__all__ = [
    "Base",
    "User",
    "Course",
    "Enrollment",
]
