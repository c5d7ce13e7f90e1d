"""FastAPI dependencies."""

from datetime import datetime
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from fitchallenge.core.clock import utcnow
from fitchallenge.core.security import identity_from_token
from fitchallenge.db.session import get_db
from fitchallenge.models.profile import Profile
from fitchallenge.services.profile_service import get_or_create_profile

security = HTTPBearer(auto_error=False)


def get_current_user(
    db: Annotated[Session, Depends(get_db)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> Profile:
    """Require authenticated user. Raises 401 if not authenticated."""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    identity = identity_from_token(credentials.credentials)
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    # first sight of a user creates their profile
    return get_or_create_profile(db, identity.user_id, display_name=identity.display_name)


def require_admin(current_user: Annotated[Profile, Depends(get_current_user)]) -> Profile:
    """Require current user to be an administrator."""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_user


def get_now() -> datetime:
    """Request time. Overridden in tests to pin the clock."""
    return utcnow()
