"""
Backend abstraction.
A backend stores records in named classes, authenticates the admin user and
stores uploaded files. Records travel as wire dicts (camelCase keys, objectId,
createdAt); typed conversion happens in the data access layer.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from impressions.schemas import AdminUser

# Order expressions understood by every backend: field name, "-" prefix for descending
ORDER_ASCENDING = "order"
ORDER_NEWEST_FIRST = "-createdAt"

# Error code reported by sign_up when the username already exists
USERNAME_TAKEN = 202


@dataclass
class BackendSession:
    """
    Session handed out by a backend on login.
    user is only known after login or a successful validation round trip.
    """
    token: str
    user: Optional[AdminUser] = None


class Backend(ABC):

    @abstractmethod
    async def find(
        self, class_name: str, order: str, session: Optional[BackendSession] = None
    ) -> List[Dict[str, Any]]:
        """Return every record of a class sorted by the order expression."""

    @abstractmethod
    async def create(
        self, class_name: str, data: Dict[str, Any], session: Optional[BackendSession] = None
    ) -> str:
        """Create a record and return its backend-assigned id."""

    @abstractmethod
    async def update(
        self,
        class_name: str,
        object_id: str,
        data: Dict[str, Any],
        session: Optional[BackendSession] = None,
    ) -> None:
        """Overwrite the given fields of an existing record."""

    @abstractmethod
    async def delete(
        self, class_name: str, object_id: str, session: Optional[BackendSession] = None
    ) -> None:
        """Remove a record by id."""

    @abstractmethod
    async def upload_file(
        self,
        filename: str,
        content: bytes,
        content_type: str,
        session: Optional[BackendSession] = None,
    ) -> str:
        """Store a file and return its public URL."""

    @abstractmethod
    async def log_in(self, username: str, password: str) -> BackendSession:
        """Exchange credentials for a session."""

    @abstractmethod
    async def log_out(self, session: BackendSession) -> None:
        """Invalidate a session on the backend."""

    @abstractmethod
    async def fetch_current_user(self, session: BackendSession) -> AdminUser:
        """Validate the session with the backend and return its user."""

    @abstractmethod
    async def sign_up(self, username: str, password: str, email: Optional[str] = None) -> AdminUser:
        """Create a user account (setup script only)."""

    @abstractmethod
    async def ping(self) -> None:
        """Raise if the backend is unreachable."""

    async def close(self) -> None:
        """Release connections held by the backend."""
