"""FastAPI dependency injection container.

This module provides dependency injection functions for use with FastAPI's
Depends() pattern. Components are built once in the application lifespan
and stored on ``app.state``; the functions here hand them to routes and can
be replaced through ``app.dependency_overrides`` in tests.
"""

import secrets
from typing import Annotated

from fastapi import Depends, Header, Request

from rcgateway.config import Settings
from rcgateway.core.exceptions import InvalidAPIKeyError, MissingAuthorizationError
from rcgateway.services.rc_details import RCDetailsService


# ========================================
# Settings Dependencies
# ========================================
def get_settings_from_request(request: Request) -> Settings:
    """Get settings from request state (set by the app factory).

    Args:
        request: The current request

    Returns:
        Settings: Application settings
    """
    return request.app.state.settings


SettingsDep = Annotated[Settings, Depends(get_settings_from_request)]


# ========================================
# Service Dependencies
# ========================================
def get_rc_details_service(request: Request) -> RCDetailsService:
    """Get the RC details service built during startup.

    Args:
        request: The current request

    Returns:
        RCDetailsService: Read-through cache service
    """
    return request.app.state.rc_details_service


RCDetailsServiceDep = Annotated[RCDetailsService, Depends(get_rc_details_service)]


# ========================================
# Auth Dependencies
# ========================================
async def require_authorization(
    authorization: Annotated[str | None, Header()] = None,
) -> str:
    """Get the caller's Authorization header, to be forwarded upstream.

    The value is not validated here; upstream decides whether it is good.

    Raises:
        MissingAuthorizationError: 401 if the header is absent or empty

    Returns:
        str: Authorization header value
    """
    if not authorization:
        raise MissingAuthorizationError()
    return authorization


async def require_api_key(
    settings: SettingsDep,
    x_api_key: Annotated[str | None, Header()] = None,
) -> None:
    """Check the ``X-API-Key`` header for cache administration routes.

    Raises:
        InvalidAPIKeyError: 401 if the key is missing or does not match
    """
    expected = settings.api_key.get_secret_value()
    if not x_api_key or not secrets.compare_digest(
        x_api_key.encode(), expected.encode()
    ):
        raise InvalidAPIKeyError()


AuthorizationDep = Annotated[str, Depends(require_authorization)]
