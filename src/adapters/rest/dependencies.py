"""
Shared FastAPI dependencies.

- get_factory(): returns the initialized ServiceFactory (set at startup).
- get_current_user(): JWT bearer token extraction, validation, and lookup
  of the user record (role and timezone come from the DB, not the token).
- require_admin(): same, plus a 403 for non-admins.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from factory import ServiceFactory
from application.context import SessionContext
from domain.exceptions import AuthenticationError

# Module-level reference set by app lifespan
_factory: ServiceFactory | None = None


def set_factory(factory: ServiceFactory | None) -> None:
    global _factory
    _factory = factory


def get_factory() -> ServiceFactory:
    if _factory is None:
        raise RuntimeError("ServiceFactory not initialized.")
    return _factory


# --- JWT Bearer ---

_bearer_scheme = HTTPBearer()
_optional_bearer_scheme = HTTPBearer(auto_error=False)


async def _resolve(token: str, factory: ServiceFactory) -> SessionContext:
    auth_service = factory.create_authentication_service()
    try:
        user = await auth_service.authenticate(token)
    except AuthenticationError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return SessionContext.for_user(user)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(_bearer_scheme),
    factory: ServiceFactory = Depends(get_factory),
) -> SessionContext:
    """Validate JWT and return the caller's SessionContext. Raises 401 on failure."""
    return await _resolve(credentials.credentials, factory)


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_optional_bearer_scheme),
    factory: ServiceFactory = Depends(get_factory),
) -> Optional[SessionContext]:
    """Like get_current_user, but anonymous requests yield None."""
    if credentials is None:
        return None
    return await _resolve(credentials.credentials, factory)


async def require_admin(
    user: SessionContext = Depends(get_current_user),
) -> SessionContext:
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required.",
        )
    return user
