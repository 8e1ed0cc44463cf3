from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from fastapi import HTTPException, status
from jose import JWTError
from jose.jwt import encode, decode

from gurmania.config import settings
from gurmania.schemas.auth_schemas import AuthTokenPayload
from gurmania.utils.logger import get_logger

logger = get_logger("auth")


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify a password against its bcrypt hash."""
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        logger.warning("stored password hash is malformed")
        return False


def get_password_hash(password: str) -> str:
    """Hash a password for storing."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def create_access_token(data: AuthTokenPayload) -> str:
    """Create a JWT access token."""
    expires = data.exp or datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)
    claims = {"sub": data.sub, "role": data.role, "exp": expires}
    return encode(claims, settings.secret_key, algorithm=settings.algorithm)


def verify_token(token: Optional[str]) -> AuthTokenPayload:
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token")
    try:
        payload = decode(token, settings.secret_key, algorithms=[settings.algorithm])
        return AuthTokenPayload(**payload)
    except JWTError as e:
        logger.info("rejected access token: %s", e)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")


def create_jitsi_token(
    *,
    room: str,
    domain: str,
    user_name: str,
    user_email: str,
    app_id: str,
    app_secret: str,
    moderator: bool = True,
    ttl_hours: int = 2,
) -> str:
    """Signed room token for a self-hosted Jitsi deployment with JWT auth enabled."""
    now = int(datetime.now(timezone.utc).timestamp())
    claims = {
        "aud": "jitsi",
        "iss": app_id,
        "sub": domain,
        "room": room,
        "exp": now + ttl_hours * 60 * 60,
        "nbf": now - 10,
        "context": {
            "user": {"name": user_name, "email": user_email},
            "features": {"moderator": moderator},
        },
    }
    return encode(claims, app_secret, algorithm="HS256")
