"""
Hosted backend adapter for the Parse REST API (Back4App).
HTTP calls use a requests session and run in a worker thread so the event
loop is never blocked.
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from impressions.backend.base import Backend, BackendSession
from impressions.exceptions import (
    AuthenticationFailure,
    BackendUnavailable,
    QueryError,
    RecordNotFound,
    SessionInvalid,
)
from impressions.schemas import AdminUser

logger = logging.getLogger(__name__)

# Parse error codes
OBJECT_NOT_FOUND = 101
INVALID_SESSION_TOKEN = 209


class ParseBackend(Backend):
    """
    Backend stored in a Parse application.

    Args:
        app_id: Parse application id
        rest_api_key: Client REST key (never the master key)
        server_url: Parse server URL, e.g. https://parseapi.back4app.com
        query_limit: Maximum records returned by one find
        timeout: Optional per-request timeout in seconds
        http: requests session to use (a new one by default)
    """

    def __init__(
        self,
        app_id: str,
        rest_api_key: str,
        server_url: str,
        query_limit: int = 1000,
        timeout: Optional[float] = None,
        http: Optional[requests.Session] = None,
    ):
        self.server_url = server_url.rstrip("/")
        self.query_limit = query_limit
        self.timeout = timeout
        self.http = http or requests.Session()
        self.http.headers.update({
            "X-Parse-Application-Id": app_id,
            "X-Parse-REST-API-Key": rest_api_key,
        })

    def _request(
        self,
        method: str,
        path: str,
        session: Optional[BackendSession] = None,
        headers: Optional[Dict[str, str]] = None,
        **kwargs: Any,
    ) -> Dict[str, Any]:
        request_headers = dict(headers or {})
        if session is not None:
            request_headers["X-Parse-Session-Token"] = session.token

        url = f"{self.server_url}{path}"
        try:
            response = self.http.request(
                method, url, headers=request_headers, timeout=self.timeout, **kwargs
            )
        except requests.RequestException as e:
            logger.error(f"Parse request {method} {path} failed: {str(e)}")
            raise BackendUnavailable(f"Backend unreachable: {str(e)}")

        try:
            body = response.json() if response.content else {}
        except ValueError:
            body = {}

        if response.status_code >= 500:
            raise BackendUnavailable(
                body.get("error") or f"Backend error {response.status_code}",
                code=body.get("code"),
            )

        if response.status_code >= 400:
            code = body.get("code")
            message = body.get("error") or f"Backend rejected {method} {path} ({response.status_code})"
            if code == INVALID_SESSION_TOKEN:
                raise SessionInvalid(message, code=code)
            if code == OBJECT_NOT_FOUND:
                raise RecordNotFound(message, code=code)
            raise QueryError(message, code=code)

        return body

    async def _call(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        return await asyncio.to_thread(self._request, method, path, **kwargs)

    async def find(
        self, class_name: str, order: str, session: Optional[BackendSession] = None
    ) -> List[Dict[str, Any]]:
        body = await self._call(
            "GET",
            f"/classes/{class_name}",
            session=session,
            params={"order": order, "limit": self.query_limit},
        )
        return body.get("results", [])

    async def create(
        self, class_name: str, data: Dict[str, Any], session: Optional[BackendSession] = None
    ) -> str:
        body = await self._call("POST", f"/classes/{class_name}", session=session, json=data)
        logger.info(f"Created {class_name} {body.get('objectId')}")
        return body["objectId"]

    async def update(
        self,
        class_name: str,
        object_id: str,
        data: Dict[str, Any],
        session: Optional[BackendSession] = None,
    ) -> None:
        await self._call(
            "PUT", f"/classes/{class_name}/{quote(object_id, safe='')}", session=session, json=data
        )
        logger.info(f"Updated {class_name} {object_id}")

    async def delete(
        self, class_name: str, object_id: str, session: Optional[BackendSession] = None
    ) -> None:
        await self._call("DELETE", f"/classes/{class_name}/{quote(object_id, safe='')}", session=session)
        logger.info(f"Deleted {class_name} {object_id}")

    async def upload_file(
        self,
        filename: str,
        content: bytes,
        content_type: str,
        session: Optional[BackendSession] = None,
    ) -> str:
        body = await self._call(
            "POST",
            f"/files/{quote(filename)}",
            session=session,
            headers={"Content-Type": content_type},
            data=content,
        )
        url = body.get("url")
        if not url:
            raise QueryError("Failed to get uploaded file URL")
        logger.info(f"Uploaded file {filename}: {url}")
        return url

    async def log_in(self, username: str, password: str) -> BackendSession:
        try:
            body = await self._call(
                "POST",
                "/login",
                headers={"X-Parse-Revocable-Session": "1"},
                json={"username": username, "password": password},
            )
        except RecordNotFound as e:
            # Parse reports a bad username/password as "object not found"
            raise AuthenticationFailure(e.message, code=e.code)
        return BackendSession(token=body["sessionToken"], user=AdminUser.from_backend(body))

    async def log_out(self, session: BackendSession) -> None:
        try:
            await self._call("POST", "/logout", session=session)
        except SessionInvalid:
            logger.debug("Session already invalid at logout")

    async def fetch_current_user(self, session: BackendSession) -> AdminUser:
        body = await self._call("GET", "/users/me", session=session)
        return AdminUser.from_backend(body)

    async def sign_up(self, username: str, password: str, email: Optional[str] = None) -> AdminUser:
        data = {"username": username, "password": password}
        if email:
            data["email"] = email
        body = await self._call("POST", "/users", json=data)
        return AdminUser(id=body["objectId"], username=username)

    async def ping(self) -> None:
        await self._call("GET", "/health")

    async def close(self) -> None:
        self.http.close()
