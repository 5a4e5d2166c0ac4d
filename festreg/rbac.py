"""
festreg/rbac.py
Identity resolution for the transport layer.

Turns an `Authorization: Bearer <jwt>` header into the acting User. The
token's `sub` claim carries the user id. A missing, malformed or expired
token resolves to no identity; the services decide whether that is
acceptable and raise Unauthenticated otherwise.
"""
import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from festreg.config import settings
from festreg.database import get_db
from festreg.orm.user import User

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token", auto_error=False)


# ================= TOKEN UTILS =================

def create_access_token(user_id: int, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {
        "sub": str(user_id),
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    """Decode and validate JWT token"""
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None


def user_id_from_token(token: Optional[str]) -> Optional[int]:
    if not token:
        return None
    payload = decode_token(token)
    if not payload or payload.get("type") != "access":
        return None
    try:
        return int(payload.get("sub"))
    except (TypeError, ValueError):
        return None


# ================= AUTH DEPENDENCIES =================

async def get_current_identity(
    token: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """Current user if the bearer token resolves to an active account, otherwise None."""
    user_id = user_id_from_token(token)
    if user_id is None:
        return None

    user = await db.get(User, user_id)
    if user is None or not user.is_active:
        logger.info(f"Token for unknown or inactive user {user_id} ignored")
        return None
    return user
