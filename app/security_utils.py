"""
Password hashing and session token helpers
"""

import hashlib
import hmac
import logging
import secrets
from datetime import datetime, timedelta

from passlib.context import CryptContext

from .config import SESSION_TTL_HOURS

logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password_bcrypt(password: str) -> str:
    """Hash password using bcrypt"""
    return pwd_context.hash(password)


def verify_password_bcrypt(plain_password: str, hashed_password: str) -> bool:
    """Verify password against bcrypt hash"""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except Exception as e:
        logger.error(f"Password verification error: {e}")
        return False


def generate_session_token() -> str:
    """64 hex characters from 32 random bytes"""
    return secrets.token_hex(32)


def session_expiry(now: datetime | None = None) -> datetime:
    return (now or datetime.utcnow()) + timedelta(hours=SESSION_TTL_HOURS)


def compute_hmac_sha256(payload: str | bytes, secret: str) -> str:
    """Hex HMAC-SHA256 of payload"""
    if isinstance(payload, str):
        payload = payload.encode("utf-8")
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def md5_hex(payload: str | bytes) -> str:
    if isinstance(payload, str):
        payload = payload.encode("utf-8")
    return hashlib.md5(payload).hexdigest()  # noqa: S324 - Pusher body checksum, not security
