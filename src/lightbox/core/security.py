"""Token helpers for the admin panel."""
from __future__ import annotations

from datetime import timedelta
from typing import Any

from jose import JWTError, jwt

from lightbox.core.settings import settings
from lightbox.db.time import utcnow

ADMIN_SUBJECT = "admin"


def create_access_token(subject: str = ADMIN_SUBJECT, expires_minutes: int | None = None) -> str:
    """Return a signed JWT for ``subject``.

    Args:
        subject: Value stored in the ``sub`` claim.
        expires_minutes: Lifetime override; defaults to the configured expiry.
    """
    minutes = (
        expires_minutes if expires_minutes is not None else settings.access_token_expire_minutes
    )
    payload: dict[str, Any] = {
        "sub": subject,
        "exp": utcnow() + timedelta(minutes=minutes),
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> str | None:
    """Return the ``sub`` claim of a valid token, or None if it cannot be verified."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    subject = payload.get("sub")
    return subject if isinstance(subject, str) else None
