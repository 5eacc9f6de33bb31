"""Password hashing and session tokens."""

from datetime import datetime, timedelta, timezone

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from medgenius.config import get_settings
from medgenius.core.errors import AuthError


def hash_password(plain: str) -> str:
    """Hash a password with a fresh bcrypt salt."""
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Check a password against its bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


def create_access_token(user_id: str, expires_in: timedelta | None = None) -> str:
    """Sign a token whose subject is the user id."""
    settings = get_settings()
    if expires_in is None:
        expires_in = timedelta(days=settings.jwt_expire_days)
    expire = datetime.now(timezone.utc) + expires_in
    return jwt.encode(
        {"sub": user_id, "exp": expire},
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )


def decode_access_token(token: str) -> str:
    """
    Verify a token and return the user id it was issued for.

    Raises:
        AuthError: token is malformed, tampered with, or expired
    """
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError:
        raise AuthError("Session expired")
    except JWTError:
        raise AuthError()

    user_id = payload.get("sub")
    if not user_id:
        raise AuthError()
    return user_id
