"""Shared API dependencies for authentication and common functionality."""

from typing import Annotated, NoReturn

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from lightbox.core.security import ADMIN_SUBJECT, decode_access_token
from lightbox.core.settings import settings
from lightbox.db.session import get_db
from lightbox.services.ordering import EntityNotFoundError, OrderingError

# Bearer scheme; missing headers are handled below so the stub mode can pass.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def require_admin(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> str:
    """Guard admin routes.

    With ``ADMIN_AUTH_ENABLED`` off every caller is treated as the admin.
    Otherwise a bearer JWT whose subject is the admin is required.

    Returns:
        The authenticated subject.

    Raises:
        HTTPException: 401 if the token is missing, invalid or not an admin token.
    """
    if not settings.admin_auth_enabled:
        return ADMIN_SUBJECT

    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    subject = decode_access_token(credentials.credentials)
    if subject != ADMIN_SUBJECT:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return subject


# Type alias for admin guard dependency
AdminDep = Annotated[str, Depends(require_admin)]


def raise_ordering_error(exc: OrderingError) -> NoReturn:
    """Translate an ordering failure into the matching HTTP error."""
    if isinstance(exc, EntityNotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
