"""
SQLAlchemy models for the self-hosted backend.
Attribute names are the snake_case form of the backend wire fields
(imagePath -> image_path, createdAt -> created_at).
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text

from impressions.database import Base


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ContentMixin:
    id = Column(String(32), primary_key=True, default=_new_id)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)


class GalleryImage(ContentMixin, Base):
    __tablename__ = "gallery_images"

    title = Column(String, nullable=False)
    category = Column(String(32), nullable=False, default="Framed")
    image_path = Column(String, nullable=False)
    featured = Column(Boolean, nullable=False, default=False)
    order = Column("display_order", Integer, nullable=False, default=0, index=True)


class Service(ContentMixin, Base):
    __tablename__ = "services"

    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    image_path = Column(String, nullable=False)
    order = Column("display_order", Integer, nullable=False, default=0, index=True)
    active = Column(Boolean, nullable=False, default=True)


class Testimonial(ContentMixin, Base):
    __tablename__ = "testimonials"

    name = Column(String, nullable=False)
    location = Column(String, nullable=False, default="")
    message = Column(Text, nullable=False)
    rating = Column(Integer, nullable=False, default=5)
    active = Column(Boolean, nullable=False, default=True)
    order = Column("display_order", Integer, nullable=False, default=0, index=True)


class Inquiry(ContentMixin, Base):
    __tablename__ = "inquiries"

    name = Column(String, nullable=False)
    phone = Column(String(32), nullable=False)
    email = Column(String, nullable=True)
    message = Column(Text, nullable=False)
    service = Column(String, nullable=True)
    status = Column(String(16), nullable=False, default="new", index=True)
    notes = Column(Text, nullable=True)


class AdminUser(ContentMixin, Base):
    __tablename__ = "admin_users"

    username = Column(String(64), nullable=False, unique=True, index=True)
    email = Column(String, nullable=True)
    password_hash = Column(String, nullable=False)


class AdminSession(Base):
    """Issued session; deleting the row revokes its token."""
    __tablename__ = "admin_sessions"

    id = Column(String(32), primary_key=True, default=_new_id)
    user_id = Column(String(32), ForeignKey("admin_users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
