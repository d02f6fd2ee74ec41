"""
FastAPI dependencies: backend and data access per request, and the admin
session gate for pages (redirect) and API endpoints (401).
"""
import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request, status

from impressions.auth_gate import LOGIN_PATH, AuthGate, GateState
from impressions.backend.base import Backend, BackendSession
from impressions.config import Settings
from impressions.data_access import DataAccess
from impressions.exceptions import (
    AuthenticationFailure,
    BackendError,
    BackendUnavailable,
    SessionInvalid,
)
from impressions.schemas import AdminUser

logger = logging.getLogger(__name__)


class LoginRequired(Exception):
    """Raised by the page gate; answered with a redirect to the login page."""

    def __init__(self, location: str = LOGIN_PATH):
        super().__init__(location)
        self.location = location


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_backend(request: Request) -> Backend:
    return request.app.state.backend


def get_data_access(
    request: Request,
    backend: Backend = Depends(get_backend),
    settings: Settings = Depends(get_settings),
) -> DataAccess:
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    session = BackendSession(token=token) if token else None
    return DataAccess(backend, session)


def get_public_data_access(backend: Backend = Depends(get_backend)) -> DataAccess:
    """Anonymous data access for the public site. The admin cookie is never sent."""
    return DataAccess(backend)


async def _check_session(data: DataAccess, settings: Settings) -> Optional[AdminUser]:
    gate = AuthGate(timeout=settings.AUTH_CHECK_TIMEOUT_SECONDS)
    state = await gate.run(data.is_authenticated)
    if state != GateState.AUTHENTICATED:
        return None
    return data.get_current_user()


async def require_admin_page(
    data: DataAccess = Depends(get_data_access),
    settings: Settings = Depends(get_settings),
) -> AdminUser:
    """Gate for admin pages: unauthenticated visitors are sent to the login page."""
    user = await _check_session(data, settings)
    if user is None:
        raise LoginRequired()
    return user


async def require_admin_api(
    data: DataAccess = Depends(get_data_access),
    settings: Settings = Depends(get_settings),
) -> AdminUser:
    """Gate for admin API endpoints: unauthenticated calls get 401."""
    user = await _check_session(data, settings)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Not authenticated", "message": "Please login again"},
        )
    return user


def http_error(e: BackendError, action: str) -> HTTPException:
    """
    Translate a backend failure into the HTTP error returned to the caller.

    Args:
        e: Backend failure
        action: What was being done, e.g. "save gallery image"
    """
    if isinstance(e, (SessionInvalid, AuthenticationFailure)):
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Not authenticated", "message": e.message},
        )
    if isinstance(e, BackendUnavailable):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"error": f"Failed to {action}", "detail": "Backend unavailable"},
        )
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail={"error": f"Failed to {action}", "detail": e.message},
    )
