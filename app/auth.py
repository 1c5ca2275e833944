import logging
from datetime import datetime

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session, joinedload

from .database import get_db
from .models import User, UserSession

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

ADMIN_ROLES = ("admin", "superadmin", "manager")


def get_active_session(db: Session, token: str) -> UserSession | None:
    """Look up an active, unexpired session by its bearer token"""
    return (
        db.query(UserSession)
        .options(joinedload(UserSession.user))
        .filter(
            UserSession.session_token == token,
            UserSession.is_active.is_(True),
            UserSession.expires_at > datetime.utcnow(),
        )
        .first()
    )


async def get_current_session(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> UserSession:
    if not credentials or not credentials.credentials:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated. Please provide a valid Bearer token in the Authorization header.",
        )

    session = get_active_session(db, credentials.credentials)
    if not session:
        logger.warning("⚠️ Rejected invalid or expired session token")
        raise HTTPException(status_code=401, detail="Invalid or expired session")

    if not session.user or not session.user.is_active:
        raise HTTPException(status_code=403, detail="Account is disabled")

    return session


async def get_current_user(session: UserSession = Depends(get_current_session)) -> User:
    """Get current user from the bearer session token"""
    logger.debug(f"✅ User authenticated: {session.user.email}")
    return session.user


def require_roles(*roles: str):
    """
    Create a dependency that only lets users with one of `roles` through

    Example usage:
        @router.delete("/{booking_id}")
        async def delete_booking(user: User = Depends(require_roles("admin", "superadmin"))):
            ...
    """

    async def role_checker(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            logger.warning(f"⚠️ User {user.email} with role '{user.role}' denied (needs one of {roles})")
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        return user

    return role_checker
