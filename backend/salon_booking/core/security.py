import os
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

JWT_ALGORITHM = "HS256"
JWT_EXPIRATION_HOURS = 24 * 30
ADMIN_ROLE = "admin"

_WEAK_SECRETS = ("dev-jwt-secret-change-me", "secret", "secret123")


def get_jwt_secret_key() -> str:
    """Get JWT secret key with production validation.

    In production (FLASK_ENV=production) the secret must be set, must not be
    one of the known development defaults and must be at least 32
    characters long.

    Raises:
        ValueError: If production deployment uses a weak or missing secret
    """
    secret = os.getenv("JWT_SECRET_KEY", "dev-jwt-secret-change-me")

    if os.getenv("FLASK_ENV") == "production":
        if secret in _WEAK_SECRETS or len(secret) < 32:
            raise ValueError(
                "Production deployment requires strong JWT_SECRET_KEY (min 32 chars). "
                "Set JWT_SECRET_KEY environment variable."
            )

    return secret


def create_access_token(
    data: Dict[str, Any], expires_delta: Optional[timedelta] = None
) -> str:
    """Create a signed JWT carrying `data` plus an `exp` claim."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(hours=JWT_EXPIRATION_HOURS)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, get_jwt_secret_key(), algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Decode and validate a JWT. Returns None when invalid or expired."""
    try:
        return jwt.decode(token, get_jwt_secret_key(), algorithms=[JWT_ALGORITHM])
    except jwt.PyJWTError:
        return None


def create_admin_token(subject: str, hours: Optional[int] = None) -> str:
    """Issue a staff token for the schedule and appointment admin endpoints."""
    expires = timedelta(hours=hours) if hours else None
    return create_access_token({"sub": subject, "role": ADMIN_ROLE}, expires)
