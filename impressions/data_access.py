"""
Data access layer.
The only boundary through which pages read and write content. Every entity
collection has the same list/save/delete shape over a named backend class;
the session is an explicit object owned by the DataAccess instance.
"""
import asyncio
import logging
from typing import Any, Awaitable, Dict, Generic, List, Optional, Tuple, Type, TypeVar

from pydantic import ValidationError

from impressions.backend.base import ORDER_ASCENDING, ORDER_NEWEST_FIRST, Backend, BackendSession
from impressions.exceptions import BackendError
from impressions.schemas import (
    AdminUser,
    GalleryImage,
    Inquiry,
    InquiryStatus,
    InquirySubmission,
    Record,
    Service,
    Testimonial,
)

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=Record)


class Collection(Generic[R]):
    """One backend class, read and written as typed records."""

    def __init__(self, data: "DataAccess", record_type: Type[R], order: str):
        self.data = data
        self.record_type = record_type
        self.order = order

    @property
    def class_name(self) -> str:
        return self.record_type.class_name

    async def list(self) -> List[R]:
        """Every record in backend order. Rows that do not decode are logged and left out."""
        rows = await self.data.backend.find(self.class_name, self.order, session=self.data.session)
        records = []
        for row in rows:
            try:
                records.append(self.record_type.from_backend(row))
            except ValidationError as e:
                logger.warning(
                    f"Skipping malformed {self.class_name} {row.get('objectId')}: "
                    f"{e.error_count()} invalid field(s)"
                )
        return records

    async def save(self, record: R) -> str:
        """Update in place when the record has an id, otherwise create it."""
        payload = record.to_backend()
        if record.id:
            await self.data.backend.update(self.class_name, record.id, payload, session=self.data.session)
            return record.id
        return await self.data.backend.create(self.class_name, payload, session=self.data.session)

    async def delete(self, object_id: str) -> None:
        await self.data.backend.delete(self.class_name, object_id, session=self.data.session)


class DataAccess:
    """
    Typed operations over a backend for one caller.

    Args:
        backend: Backend storing the content
        session: Session of the calling admin, or None for anonymous callers
    """

    def __init__(self, backend: Backend, session: Optional[BackendSession] = None):
        self.backend = backend
        self.session = session
        self.gallery = Collection(self, GalleryImage, ORDER_ASCENDING)
        self.services = Collection(self, Service, ORDER_ASCENDING)
        self.testimonials = Collection(self, Testimonial, ORDER_ASCENDING)
        self.inquiries = Collection(self, Inquiry, ORDER_NEWEST_FIRST)

    # Gallery
    async def get_gallery_images(self) -> List[GalleryImage]:
        return await self.gallery.list()

    async def save_gallery_image(self, image: GalleryImage) -> str:
        return await self.gallery.save(image)

    async def delete_gallery_image(self, object_id: str) -> None:
        await self.gallery.delete(object_id)

    # Services
    async def get_services(self) -> List[Service]:
        return await self.services.list()

    async def save_service(self, service: Service) -> str:
        return await self.services.save(service)

    async def delete_service(self, object_id: str) -> None:
        await self.services.delete(object_id)

    # Testimonials
    async def get_testimonials(self) -> List[Testimonial]:
        return await self.testimonials.list()

    async def save_testimonial(self, testimonial: Testimonial) -> str:
        return await self.testimonials.save(testimonial)

    async def delete_testimonial(self, object_id: str) -> None:
        await self.testimonials.delete(object_id)

    # Inquiries
    async def get_inquiries(self) -> List[Inquiry]:
        return await self.inquiries.list()

    async def delete_inquiry(self, object_id: str) -> None:
        await self.inquiries.delete(object_id)

    async def update_inquiry_status(
        self, object_id: str, status: InquiryStatus, notes: Optional[str] = None
    ) -> None:
        """Patch only status, and notes when given."""
        data: Dict[str, Any] = {"status": InquiryStatus(status).value}
        if notes is not None:
            data["notes"] = notes
        await self.backend.update(Inquiry.class_name, object_id, data, session=self.session)

    async def create_inquiry(self, submission: InquirySubmission) -> str:
        """
        Store a public enquiry.
        Always creates, always with status "new", and never with the admin session.
        """
        inquiry = Inquiry(
            name=submission.name,
            phone=submission.phone,
            email=submission.email,
            message=submission.message,
            service=submission.service,
            status=InquiryStatus.NEW,
        )
        return await self.backend.create(Inquiry.class_name, inquiry.to_backend(), session=None)

    # Files
    async def upload_file(self, content: bytes, filename: str, content_type: str) -> str:
        return await self.backend.upload_file(filename, content, content_type, session=self.session)

    # Auth
    async def login(self, username: str, password: str) -> BackendSession:
        self.session = await self.backend.log_in(username, password)
        return self.session

    async def logout(self) -> None:
        if self.session is None:
            return
        try:
            await self.backend.log_out(self.session)
        finally:
            self.session = None

    async def is_authenticated(self) -> bool:
        """True only when the backend confirms the session in a round trip."""
        if self.session is None:
            return False
        try:
            self.session.user = await self.backend.fetch_current_user(self.session)
        except BackendError as e:
            logger.info(f"Session rejected by backend: {e.message}")
            self.session.user = None
            return False
        return True

    def get_current_user(self) -> Optional[AdminUser]:
        if self.session is None:
            return None
        return self.session.user


async def gather_sections(**fetches: Awaitable[Any]) -> Tuple[Dict[str, Any], List[str]]:
    """
    Run independent page fetches concurrently and wait for all of them.

    A failing fetch does not affect the others: its section comes back as
    None and its name is listed in the returned errors.

    Returns:
        (results by section name, names of failed sections)
    """
    names = list(fetches)
    outcomes = await asyncio.gather(*fetches.values(), return_exceptions=True)

    results: Dict[str, Any] = {}
    errors: List[str] = []
    for name, outcome in zip(names, outcomes):
        if isinstance(outcome, Exception):
            logger.error(f"Failed to load {name}: {str(outcome)}", exc_info=outcome)
            results[name] = None
            errors.append(name)
        else:
            results[name] = outcome
    return results, errors
