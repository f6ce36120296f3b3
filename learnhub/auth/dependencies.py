from typing import Annotated
from uuid import UUID

from fastapi import Cookie, Depends
from sqlalchemy.orm import Session

from learnhub.auth.models.user import User
from learnhub.core import security
from learnhub.core.exceptions import ForbiddenError, UnauthorizedError
from learnhub.db.session import get_db


async def get_access_token_from_cookie(
    access_token: Annotated[str | None, Cookie()] = None,
) -> str:
    """Extract access token from cookie"""
    if not access_token:
        raise UnauthorizedError("Not authenticated")
    return access_token


async def get_validated_token_payload(token: str, expected_type: str = "access") -> dict:
    """Decode and validate JWT token"""
    payload = security.decode_token(token)

    if payload is None:
        raise UnauthorizedError("Could not validate credentials")

    if payload.get("type") != expected_type:
        raise UnauthorizedError(f"Invalid token type, expected {expected_type}")

    return payload


async def get_current_user(
    access_token: str = Depends(get_access_token_from_cookie),
    db: Session = Depends(get_db),
) -> User:
    """Get current authenticated user from access token"""
    payload = await get_validated_token_payload(access_token, expected_type="access")

    try:
        user_id = UUID(str(payload.get("sub")))
    except ValueError:
        raise UnauthorizedError("Could not validate credentials") from None

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise UnauthorizedError("User not found")

    if not user.is_active:
        raise ForbiddenError("Account is inactive")

    return user


async def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """Require admin role"""
    if not current_user.is_admin:
        raise ForbiddenError("Admin privileges required")
    return current_user
