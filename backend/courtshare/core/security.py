"""
Caller identity.

Sessions are issued by an external identity layer as HS256 JWTs whose `sub`
claim is the user id and whose `email` claim is the verified e-mail. This
module only verifies those tokens and resolves the caller.
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from courtshare.core.config import get_settings
from courtshare.core.errors import UnauthorizedError
from courtshare.core.logging import get_logger
from courtshare.db.session import get_db
from courtshare.models.user import User

logger = get_logger(__name__)
settings = get_settings()

bearer_scheme = HTTPBearer(auto_error=False)


def decode_access_token(token: str) -> dict:
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        logger.warning("token_rejected", error=str(e))
        raise UnauthorizedError("Invalid or expired token", headers={"WWW-Authenticate": "Bearer"})


async def _resolve_user(db: AsyncSession, token: str) -> User:
    payload = decode_access_token(token)
    subject = payload.get("sub")
    if subject is None:
        raise UnauthorizedError("Token missing subject", headers={"WWW-Authenticate": "Bearer"})

    try:
        user_id = int(subject)
    except (TypeError, ValueError):
        raise UnauthorizedError("Malformed token subject", headers={"WWW-Authenticate": "Bearer"})

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise UnauthorizedError("Unknown user", headers={"WWW-Authenticate": "Bearer"})

    email = payload.get("email")
    if email is not None and email.lower() != user.email:
        raise UnauthorizedError("Token identity mismatch", headers={"WWW-Authenticate": "Bearer"})
    return user


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    if credentials is None:
        raise UnauthorizedError("Not authenticated", headers={"WWW-Authenticate": "Bearer"})
    return await _resolve_user(db, credentials.credentials)


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """Caller if a valid token was sent, otherwise None (public endpoints)."""
    if credentials is None:
        return None
    return await _resolve_user(db, credentials.credentials)
