"""
Password hashing and bearer-token helpers.

Passwords are hashed with passlib's bcrypt scheme; access tokens are HS256
JWTs (python-jose) whose ``sub`` claim is the user ID.
"""

import logging
import secrets
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from passlib.context import CryptContext

from mootcourt.core.config import get_settings
from mootcourt.core.exceptions import NotAuthenticatedError

# passlib warns about newer bcrypt builds on import
logging.getLogger("passlib").setLevel(logging.ERROR)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

_BCRYPT_MAX_BYTES = 72


def _truncate(password: str) -> str:
    # bcrypt only considers the first 72 bytes
    encoded = password.encode("utf-8")
    if len(encoded) <= _BCRYPT_MAX_BYTES:
        return password
    return encoded[:_BCRYPT_MAX_BYTES].decode("utf-8", errors="ignore")


def hash_password(password: str) -> str:
    return pwd_context.hash(_truncate(password))


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(_truncate(plain_password), hashed_password)
    except ValueError:
        # Malformed or unknown hash format
        return False


def create_access_token(user_id: int, expires_delta: timedelta | None = None) -> str:
    """Return a signed JWT for *user_id*.

    Args:
        user_id: Stored as the ``sub`` claim.
        expires_delta: Token lifetime; defaults to
            ``settings.access_token_expire_minutes``.
    """
    settings = get_settings()
    delta = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    payload = {"sub": str(user_id), "exp": datetime.now(UTC) + delta}
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> int:
    """Return the user ID carried by *token*.

    Raises:
        NotAuthenticatedError: If the token is malformed, expired, or has no subject.
    """
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise NotAuthenticatedError("Could not validate credentials") from exc

    subject = payload.get("sub")
    if subject is None:
        raise NotAuthenticatedError("Could not validate credentials")
    try:
        return int(subject)
    except (TypeError, ValueError) as exc:
        raise NotAuthenticatedError("Could not validate credentials") from exc


def generate_reset_token() -> str:
    """Return a 64-character hex token (32 random bytes)."""
    return secrets.token_hex(32)
