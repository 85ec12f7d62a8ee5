"""Authentication dependencies for FastAPI."""

from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.enums import UserRole
from ..db.database import get_db
from ..db.models import User
from ..utils.logging_config import get_logger
from .jwt_auth import jwt_manager

logger = get_logger("auth")

# Missing credentials are reported as 401 by get_current_user
security = HTTPBearer(auto_error=False)


def _sync_user(db: Session, payload: dict) -> User:
    """Upsert the local mirror of the token identity."""
    user_id = payload["user_id"]
    role = payload.get("role") or UserRole.USER.value
    if role not in (UserRole.USER.value, UserRole.ADMIN.value):
        role = UserRole.USER.value

    user = db.get(User, user_id)
    if user is None:
        user = User(
            id=user_id,
            email=payload.get("email"),
            first_name=payload.get("first_name"),
            last_name=payload.get("last_name"),
            role=role,
        )
        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            # Another request registered the same identity first
            db.rollback()
            user = db.get(User, user_id)
            if user is None:
                raise
        else:
            logger.info(f"Registered user {user_id} ({role})")
        return user

    changed = False
    for attr in ("email", "first_name", "last_name"):
        value = payload.get(attr)
        if value is not None and getattr(user, attr) != value:
            setattr(user, attr, value)
            changed = True
    if user.role != role:
        user.role = role
        changed = True
    if changed:
        db.commit()
    return user


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """
    Resolve the caller from the Bearer token.

    The identity itself is issued elsewhere; the first time a subject is seen
    a local User row is created for ownership and statistics.
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = jwt_manager.verify_access_token(credentials.credentials)
    return _sync_user(db, payload)


def require_admin(user: User = Depends(get_current_user)) -> User:
    """Allow only callers whose role claim is admin."""
    if user.role != UserRole.ADMIN.value:
        logger.warning(f"User {user.id} denied access to an admin route")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. Admin only.",
        )
    return user
