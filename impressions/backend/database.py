"""
Self-hosted backend adapter on SQLAlchemy.
Content lives in relational tables, the admin password is bcrypt-hashed,
sessions are JWTs backed by a revocable session row, and files go to
Cloudinary.

Access rules mirror the hosted backend's class permissions: content classes
are publicly readable, inquiries are publicly creatable, everything else
needs a valid session.
"""
import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type

from sqlalchemy import delete, select, text
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from impressions import models
from impressions.backend.base import USERNAME_TAKEN, Backend, BackendSession
from impressions.database import create_session_factory
from impressions.exceptions import (
    AuthenticationFailure,
    BackendUnavailable,
    QueryError,
    RecordNotFound,
    SessionInvalid,
)
from impressions.schemas import AdminUser
from impressions.services.cloudinary_service import upload_file as cloudinary_upload
from impressions.utils.passwords import hash_password, password_matches
from impressions.utils.session_tokens import issue_session_token, read_session_token

logger = logging.getLogger(__name__)

CLASS_MODELS: Dict[str, Type[models.ContentMixin]] = {
    "GalleryImage": models.GalleryImage,
    "Service": models.Service,
    "Testimonial": models.Testimonial,
    "Inquiry": models.Inquiry,
}

PUBLIC_READ = {"GalleryImage", "Service", "Testimonial"}
PUBLIC_CREATE = {"Inquiry"}

Uploader = Callable[[bytes, str], Awaitable[str]]

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def to_attribute(wire_field: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", wire_field).lower()


def to_wire_field(attribute: str) -> str:
    head, *rest = attribute.split("_")
    return head + "".join(part.title() for part in rest)


def row_to_wire(row: models.ContentMixin) -> Dict[str, Any]:
    data: Dict[str, Any] = {"objectId": row.id}
    for column in row.__mapper__.column_attrs:
        if column.key == "id":
            continue
        value = getattr(row, column.key)
        if isinstance(value, datetime):
            value = value.isoformat()
        data[to_wire_field(column.key)] = value
    return data


class DatabaseBackend(Backend):
    """
    Backend stored in a SQL database.

    Args:
        engine: Async SQLAlchemy engine
        secret_key: JWT signing key
        session_ttl: Lifetime of issued sessions
        uploader: Coroutine storing (content, filename) and returning a URL
    """

    def __init__(
        self,
        engine: AsyncEngine,
        secret_key: str,
        session_ttl: timedelta = timedelta(minutes=60),
        uploader: Optional[Uploader] = None,
    ):
        self.engine = engine
        self.secret_key = secret_key
        self.session_ttl = session_ttl
        self.uploader = uploader or cloudinary_upload
        self.session_factory = create_session_factory(engine)

    @staticmethod
    def _model(class_name: str) -> Type[models.ContentMixin]:
        model = CLASS_MODELS.get(class_name)
        if model is None:
            raise QueryError(f"Unknown class: {class_name}")
        return model

    @staticmethod
    def _attributes(model: Type[models.ContentMixin], data: Dict[str, Any]) -> Dict[str, Any]:
        columns = {column.key for column in model.__mapper__.column_attrs}
        attributes = {}
        for field, value in data.items():
            attribute = to_attribute(field)
            if attribute not in columns or attribute in ("id", "created_at", "updated_at"):
                raise QueryError(f"Invalid field for {model.__name__}: {field}")
            attributes[attribute] = value
        return attributes

    async def _require_session(self, session: Optional[BackendSession]) -> AdminUser:
        if session is None:
            raise SessionInvalid("Authentication required")
        return await self.fetch_current_user(session)

    async def find(
        self, class_name: str, order: str, session: Optional[BackendSession] = None
    ) -> List[Dict[str, Any]]:
        model = self._model(class_name)
        if class_name not in PUBLIC_READ:
            await self._require_session(session)

        descending = order.startswith("-")
        column = getattr(model, to_attribute(order.lstrip("-")), None)
        if column is None:
            raise QueryError(f"Cannot order {class_name} by {order}")

        try:
            async with self.session_factory() as db:
                result = await db.execute(
                    select(model).order_by(column.desc() if descending else column.asc())
                )
                rows = result.scalars().all()
        except OperationalError as e:
            raise BackendUnavailable(f"Database unavailable: {str(e)}")
        except SQLAlchemyError as e:
            raise QueryError(f"Failed to query {class_name}: {str(e)}")

        return [row_to_wire(row) for row in rows]

    async def create(
        self, class_name: str, data: Dict[str, Any], session: Optional[BackendSession] = None
    ) -> str:
        model = self._model(class_name)
        if class_name not in PUBLIC_CREATE:
            await self._require_session(session)

        row = model(**self._attributes(model, data))
        try:
            async with self.session_factory() as db:
                db.add(row)
                await db.commit()
        except OperationalError as e:
            raise BackendUnavailable(f"Database unavailable: {str(e)}")
        except SQLAlchemyError as e:
            raise QueryError(f"Failed to create {class_name}: {str(e)}")

        logger.info(f"Created {class_name} {row.id}")
        return row.id

    async def update(
        self,
        class_name: str,
        object_id: str,
        data: Dict[str, Any],
        session: Optional[BackendSession] = None,
    ) -> None:
        model = self._model(class_name)
        await self._require_session(session)
        attributes = self._attributes(model, data)

        try:
            async with self.session_factory() as db:
                row = await db.get(model, object_id)
                if row is None:
                    raise RecordNotFound(f"{class_name} {object_id} does not exist")
                for attribute, value in attributes.items():
                    setattr(row, attribute, value)
                await db.commit()
        except OperationalError as e:
            raise BackendUnavailable(f"Database unavailable: {str(e)}")
        except SQLAlchemyError as e:
            raise QueryError(f"Failed to update {class_name}: {str(e)}")

        logger.info(f"Updated {class_name} {object_id}")

    async def delete(
        self, class_name: str, object_id: str, session: Optional[BackendSession] = None
    ) -> None:
        model = self._model(class_name)
        await self._require_session(session)

        try:
            async with self.session_factory() as db:
                row = await db.get(model, object_id)
                if row is None:
                    raise RecordNotFound(f"{class_name} {object_id} does not exist")
                await db.delete(row)
                await db.commit()
        except OperationalError as e:
            raise BackendUnavailable(f"Database unavailable: {str(e)}")
        except SQLAlchemyError as e:
            raise QueryError(f"Failed to delete {class_name}: {str(e)}")

        logger.info(f"Deleted {class_name} {object_id}")

    async def upload_file(
        self,
        filename: str,
        content: bytes,
        content_type: str,
        session: Optional[BackendSession] = None,
    ) -> str:
        await self._require_session(session)
        try:
            return await self.uploader(content, filename)
        except Exception as e:
            logger.error(f"Upload of {filename} failed: {str(e)}", exc_info=True)
            raise QueryError(f"Failed to upload {filename}: {str(e)}")

    async def log_in(self, username: str, password: str) -> BackendSession:
        try:
            async with self.session_factory() as db:
                result = await db.execute(
                    select(models.AdminUser).where(models.AdminUser.username == username)
                )
                user = result.scalar_one_or_none()
                if user is None or not password_matches(password, user.password_hash):
                    raise AuthenticationFailure("Invalid username/password.")

                expires_at = datetime.now(timezone.utc) + self.session_ttl
                session_row = models.AdminSession(user_id=user.id, expires_at=expires_at)
                db.add(session_row)
                await db.commit()
        except OperationalError as e:
            raise BackendUnavailable(f"Database unavailable: {str(e)}")
        except SQLAlchemyError as e:
            raise QueryError(f"Login failed: {str(e)}")

        token = issue_session_token(
            user.id, session_row.id, user.username, self.secret_key, self.session_ttl
        )
        logger.info(f"Admin {username} logged in")
        return BackendSession(token=token, user=AdminUser(id=user.id, username=user.username))

    async def log_out(self, session: BackendSession) -> None:
        try:
            payload = read_session_token(session.token, self.secret_key)
        except SessionInvalid:
            logger.debug("Session already invalid at logout")
            return

        try:
            async with self.session_factory() as db:
                await db.execute(
                    delete(models.AdminSession).where(models.AdminSession.id == payload.get("sid"))
                )
                await db.commit()
        except OperationalError as e:
            raise BackendUnavailable(f"Database unavailable: {str(e)}")
        except SQLAlchemyError as e:
            raise QueryError(f"Logout failed: {str(e)}")

    async def fetch_current_user(self, session: BackendSession) -> AdminUser:
        payload = read_session_token(session.token, self.secret_key)

        try:
            async with self.session_factory() as db:
                session_row = await db.get(models.AdminSession, payload["sid"])
                if session_row is None or session_row.user_id != payload.get("sub"):
                    raise SessionInvalid("Session has been revoked")
                user = await db.get(models.AdminUser, session_row.user_id)
        except OperationalError as e:
            raise BackendUnavailable(f"Database unavailable: {str(e)}")
        except SQLAlchemyError as e:
            raise QueryError(f"Session lookup failed: {str(e)}")

        if user is None:
            raise SessionInvalid("Session user no longer exists")
        return AdminUser(id=user.id, username=user.username)

    async def sign_up(self, username: str, password: str, email: Optional[str] = None) -> AdminUser:
        user = models.AdminUser(username=username, email=email, password_hash=hash_password(password))
        try:
            async with self.session_factory() as db:
                db.add(user)
                await db.commit()
        except IntegrityError:
            raise QueryError("Account already exists for this username.", code=USERNAME_TAKEN)
        except OperationalError as e:
            raise BackendUnavailable(f"Database unavailable: {str(e)}")
        except SQLAlchemyError as e:
            raise QueryError(f"Sign up failed: {str(e)}")

        return AdminUser(id=user.id, username=user.username)

    async def ping(self) -> None:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            raise BackendUnavailable(f"Database unavailable: {str(e)}")

    async def close(self) -> None:
        await self.engine.dispose()
        logger.info("Database connections closed")
