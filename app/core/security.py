"""
JWT access tokens, opaque refresh / reset tokens and password hashing (bcrypt).
"""

from __future__ import annotations

import secrets
import uuid
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import settings

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

_ALGORITHM = settings.ALGORITHM
_SECRET = settings.SECRET_KEY


# ── Passwords ───────────────────────────────────────────────────────
def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def get_password_hash(plain: str) -> str:
    return pwd_context.hash(plain)


# ── Access tokens (JWT) ─────────────────────────────────────────────
def create_access_token(
    user_id: int,
    role: str,
    expires_delta: timedelta | None = None,
) -> str:
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(hours=settings.ACCESS_TOKEN_EXPIRE_HOURS))
    return jwt.encode(
        {
            "userId": user_id,
            "role": role,
            "type": "access",
            "iat": now,
            "exp": expire,
            # two tokens minted in the same second must still differ
            "jti": uuid.uuid4().hex,
        },
        _SECRET,
        algorithm=_ALGORITHM,
    )


def decode_access_token(token: str) -> dict | None:
    """Return payload dict if *access* token is valid, else ``None``."""
    try:
        payload = jwt.decode(token, _SECRET, algorithms=[_ALGORITHM])
    except JWTError:
        return None
    if payload.get("type") != "access":
        return None
    return payload


# ── Opaque tokens ───────────────────────────────────────────────────
def generate_refresh_token() -> str:
    return str(uuid.uuid4())


def generate_reset_token(length: int | None = None) -> str:
    """URL-safe random string of exactly ``length`` characters."""
    length = length or settings.RESET_TOKEN_LENGTH
    return secrets.token_urlsafe(length)[:length]
