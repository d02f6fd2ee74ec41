import asyncio
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from impressions.backend.base import USERNAME_TAKEN, Backend, BackendSession
from impressions.config import Settings
from impressions.exceptions import (
    AuthenticationFailure,
    QueryError,
    RecordNotFound,
    SessionInvalid,
)
from impressions.main import create_app
from impressions.schemas import AdminUser
from impressions.utils.rate_limit import limiter


class FakeBackend(Backend):
    """In-memory backend with the same ordering and session rules as the real ones."""

    def __init__(self):
        self.classes: Dict[str, Dict[str, Dict[str, Any]]] = defaultdict(dict)
        self.users: Dict[str, tuple] = {}
        self.sessions: Dict[str, AdminUser] = {}
        self.failing: set = set()
        self.hang_validation = False
        self.calls: List[tuple] = []
        self._counter = 0
        self._clock = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def _next_id(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}{self._counter}"

    def _check(self, class_name: str) -> None:
        if class_name in self.failing:
            raise QueryError(f"{class_name} is unavailable")

    def add_user(self, username: str, password: str) -> AdminUser:
        user = AdminUser(id=self._next_id("user"), username=username)
        self.users[username] = (user, password)
        return user

    def revoke_all_sessions(self) -> None:
        self.sessions.clear()

    async def find(self, class_name, order, session=None):
        self._check(class_name)
        self.calls.append(("find", class_name, session.token if session else None))
        field = order.lstrip("-")
        rows = [dict(row) for row in self.classes[class_name].values()]
        rows.sort(key=lambda row: row.get(field), reverse=order.startswith("-"))
        return rows

    async def create(self, class_name, data, session=None):
        self._check(class_name)
        self.calls.append(("create", class_name, session.token if session else None))
        object_id = self._next_id("obj")
        self._clock += timedelta(minutes=1)
        self.classes[class_name][object_id] = dict(
            data, objectId=object_id, createdAt=self._clock.isoformat()
        )
        return object_id

    async def update(self, class_name, object_id, data, session=None):
        self._check(class_name)
        self.calls.append(("update", class_name, session.token if session else None))
        if object_id not in self.classes[class_name]:
            raise RecordNotFound("Object not found.", code=101)
        self.classes[class_name][object_id].update(data)

    async def delete(self, class_name, object_id, session=None):
        self._check(class_name)
        self.calls.append(("delete", class_name, session.token if session else None))
        if object_id not in self.classes[class_name]:
            raise RecordNotFound("Object not found.", code=101)
        del self.classes[class_name][object_id]

    async def upload_file(self, filename, content, content_type, session=None):
        self.calls.append(("upload", filename, session.token if session else None))
        return f"https://files.example.com/{filename}"

    async def log_in(self, username, password):
        entry = self.users.get(username)
        if entry is None or entry[1] != password:
            raise AuthenticationFailure("Invalid username/password.", code=101)
        token = self._next_id("token")
        self.sessions[token] = entry[0]
        return BackendSession(token=token, user=entry[0])

    async def log_out(self, session):
        self.sessions.pop(session.token, None)

    async def fetch_current_user(self, session):
        if self.hang_validation:
            await asyncio.Event().wait()
        user = self.sessions.get(session.token)
        if user is None:
            raise SessionInvalid("Invalid session token", code=209)
        return user

    async def sign_up(self, username, password, email: Optional[str] = None):
        if username in self.users:
            raise QueryError("Account already exists for this username.", code=USERNAME_TAKEN)
        return self.add_user(username, password)

    async def ping(self):
        return None


@pytest.fixture(autouse=True)
def reset_rate_limits():
    limiter.reset()
    yield


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def settings():
    return Settings(
        ENVIRONMENT="production",
        SESSION_COOKIE_SECURE=False,
        AUTH_CHECK_TIMEOUT_SECONDS=1.0,
    )


@pytest.fixture
def client(settings, backend):
    app = create_app(settings=settings, backend=backend)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_client(client, backend):
    backend.add_user("admin", "s3cret-pass")
    response = client.post("/api/admin/login", json={"username": "admin", "password": "s3cret-pass"})
    assert response.status_code == 200
    return client
