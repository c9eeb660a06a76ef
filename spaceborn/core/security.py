from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from spaceborn.core.config import get_settings


def create_access_token(subject: str, role: str, name: str | None = None) -> str:
    """Create an access token carrying the role claim"""
    settings = get_settings()
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=settings.access_token_expire_minutes
    )
    to_encode = {"sub": subject, "role": role, "exp": expire, "type": "access"}
    if name:
        to_encode["name"] = name
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict | None:
    """Decode a token (with signature and expiry checks)"""
    settings = get_settings()
    try:
        return jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError:
        return None
