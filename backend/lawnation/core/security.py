"""
Law Nation Editorial - Security Module
=====================================
Verification secrets (bcrypt-hashed codes, SHA-256 fingerprinted link
tokens) and JWT handling for the actor identity.
"""

import hashlib
import secrets
import string
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from jose import JWTError, jwt

from lawnation.core.config import get_settings

settings = get_settings()


# ── Verification Secrets ──

def hash_secret(value: str) -> str:
    return bcrypt.hashpw(value.encode(), bcrypt.gensalt()).decode()


def verify_secret(plain_value: str, hashed_value: str) -> bool:
    return bcrypt.checkpw(plain_value.encode(), hashed_value.encode())


def fingerprint_token(token: str) -> str:
    """Link tokens are looked up by digest, so they are hashed deterministically."""
    return hashlib.sha256(token.encode()).hexdigest()


def new_verification_token() -> str:
    return secrets.token_urlsafe(32)


def new_verification_code(length: int = 6) -> str:
    return "".join(secrets.choice(string.digits) for _ in range(length))


# ── JWT ──

def create_access_token(claims: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Sign an access token. Only tooling and tests issue tokens here."""
    lifetime = expires_delta or timedelta(hours=settings.access_token_expire_hours)
    payload = {**claims, "exp": datetime.now(timezone.utc) + lifetime}
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Optional[dict]:
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
