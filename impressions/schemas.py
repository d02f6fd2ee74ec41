"""
Pydantic schemas for content records and API payloads.
Records convert explicitly to and from the backend wire representation
(camelCase field names, objectId, createdAt).
"""
from pydantic import BaseModel, ConfigDict, Field
from abc import abstractmethod
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Tuple


class GalleryCategory(str, Enum):
    FRAMED = "Framed"
    PREMIUM = "Premium"
    SPECIAL = "Special"


class InquiryStatus(str, Enum):
    NEW = "new"
    CONTACTED = "contacted"
    BOOKED = "booked"
    COMPLETED = "completed"


def _file_url(data: Dict[str, Any]) -> Optional[str]:
    """Image path, falling back to the URL of an attached file pointer."""
    path = data.get("imagePath")
    if path:
        return path
    image_file = data.get("imageFile")
    if isinstance(image_file, dict):
        return image_file.get("url")
    return None


class Record(BaseModel):
    """
    Base for records stored in a backend class.
    Subclasses name their backend class and the wire fields they write.
    """
    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    class_name: ClassVar[str] = ""
    wire_fields: ClassVar[Tuple[str, ...]] = ()

    id: Optional[str] = None

    def to_backend(self) -> Dict[str, Any]:
        """Whole-record wire payload (no id, no backend-assigned fields)."""
        data = self.model_dump(by_alias=True)
        return {field: data[field] for field in self.wire_fields}

    @classmethod
    @abstractmethod
    def from_backend(cls, data: Dict[str, Any]) -> "Record":
        """Decode a wire dict, applying the defaults for fields the backend left unset."""


class GalleryImage(Record):
    class_name: ClassVar[str] = "GalleryImage"
    wire_fields: ClassVar[Tuple[str, ...]] = ("title", "category", "imagePath", "featured", "order")

    title: str = Field(..., min_length=1)
    category: GalleryCategory = GalleryCategory.FRAMED
    image_path: str = Field(..., alias="imagePath", min_length=1)
    featured: bool = False
    order: int = Field(0, ge=0)

    @classmethod
    def from_backend(cls, data: Dict[str, Any]) -> "GalleryImage":
        return cls(
            id=data.get("objectId"),
            title=data.get("title") or "",
            category=data.get("category") or GalleryCategory.FRAMED,
            image_path=_file_url(data) or "",
            featured=data.get("featured") or False,
            order=data.get("order") or 0,
        )


class Service(Record):
    class_name: ClassVar[str] = "Service"
    wire_fields: ClassVar[Tuple[str, ...]] = ("title", "description", "imagePath", "order", "active")

    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    image_path: str = Field(..., alias="imagePath", min_length=1)
    order: int = 0
    active: bool = True

    @classmethod
    def from_backend(cls, data: Dict[str, Any]) -> "Service":
        return cls(
            id=data.get("objectId"),
            title=data.get("title") or "",
            description=data.get("description"),
            image_path=_file_url(data) or "",
            order=data.get("order") or 0,
            active=data.get("active") is not False,
        )


class Testimonial(Record):
    class_name: ClassVar[str] = "Testimonial"
    wire_fields: ClassVar[Tuple[str, ...]] = ("name", "location", "message", "rating", "active", "order")

    name: str = Field(..., min_length=1)
    location: str = ""
    message: str = Field(..., min_length=1)
    rating: int = Field(5, ge=1, le=5)
    active: bool = True
    order: int = 0

    @classmethod
    def from_backend(cls, data: Dict[str, Any]) -> "Testimonial":
        return cls(
            id=data.get("objectId"),
            name=data.get("name") or "",
            location=data.get("location") or "",
            message=data.get("message") or "",
            rating=data.get("rating") or 5,
            active=data.get("active") is not False,
            order=data.get("order") or 0,
        )


class Inquiry(Record):
    class_name: ClassVar[str] = "Inquiry"
    wire_fields: ClassVar[Tuple[str, ...]] = (
        "name", "phone", "email", "message", "service", "status", "notes"
    )

    name: str
    phone: str
    email: Optional[str] = None
    message: str
    service: Optional[str] = None
    status: InquiryStatus = InquiryStatus.NEW
    notes: Optional[str] = None
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    @classmethod
    def from_backend(cls, data: Dict[str, Any]) -> "Inquiry":
        created_at = data.get("createdAt")
        if isinstance(created_at, dict):
            # Parse Date type: {"__type": "Date", "iso": "..."}
            created_at = created_at.get("iso")
        return cls(
            id=data.get("objectId"),
            name=data.get("name") or "",
            phone=data.get("phone") or "",
            email=data.get("email"),
            message=data.get("message") or "",
            service=data.get("service"),
            status=data.get("status") or InquiryStatus.NEW,
            notes=data.get("notes"),
            created_at=created_at,
        )


class AdminUser(BaseModel):
    """Authenticated admin account. The password is never read back."""
    id: str
    username: str

    @classmethod
    def from_backend(cls, data: Dict[str, Any]) -> "AdminUser":
        return cls(id=data["objectId"], username=data.get("username") or "Admin")


# Request payloads

class InquirySubmission(BaseModel):
    """
    Public enquiry form payload.
    Any status the caller sends is ignored; new enquiries always start as "new".
    """
    name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    email: Optional[str] = None
    message: str = Field(..., min_length=1)
    service: Optional[str] = None
    status: Optional[str] = None


class InquiryStatusUpdate(BaseModel):
    status: InquiryStatus
    notes: Optional[str] = None


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


# Response payloads

class SavedResponse(BaseModel):
    id: str


class UploadResponse(BaseModel):
    url: str


class SessionResponse(BaseModel):
    authenticated: bool
    username: Optional[str] = None


class HomePage(BaseModel):
    """
    Home page view model.
    Sections that failed to load are null and named in errors.
    """
    gallery: Optional[List[GalleryImage]] = None
    services: Optional[List[Service]] = None
    testimonials: Optional[List[Testimonial]] = None
    errors: List[str] = []


class GalleryPage(BaseModel):
    categories: List[str]
    active_category: str
    images: List[GalleryImage]


class DashboardStats(BaseModel):
    gallery_count: Optional[int] = None
    inquiry_count: Optional[int] = None
    new_inquiries: Optional[int] = None
    testimonial_count: Optional[int] = None
    service_count: Optional[int] = None


class DashboardPage(BaseModel):
    username: str
    stats: DashboardStats
    recent_inquiries: Optional[List[Inquiry]] = None
    errors: List[str] = []


class InquiriesPage(BaseModel):
    username: str
    status_filter: str
    counts: Dict[str, int]
    inquiries: List[Inquiry]
