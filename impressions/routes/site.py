"""
Public site routes.
Home and gallery page payloads plus the public enquiry form.
"""
from fastapi import APIRouter, Depends, status
from typing import Optional
import logging

from impressions.data_access import DataAccess, gather_sections
from impressions.dependencies import get_public_data_access, http_error
from impressions.exceptions import BackendError
from impressions.schemas import (
    GalleryCategory,
    GalleryPage,
    HomePage,
    InquirySubmission,
    SavedResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

HOME_GALLERY_SIZE = 8
ALL_CATEGORIES = "All"


@router.get("/", response_model=HomePage)
async def home_page(data: DataAccess = Depends(get_public_data_access)):
    """
    Home page: first gallery images, active services and active testimonials.

    The three fetches run concurrently; a section that fails is returned as
    null and listed in errors while the others still render.
    """
    results, errors = await gather_sections(
        gallery=data.get_gallery_images(),
        services=data.get_services(),
        testimonials=data.get_testimonials(),
    )

    gallery = results["gallery"]
    services = results["services"]
    testimonials = results["testimonials"]

    return HomePage(
        gallery=gallery[:HOME_GALLERY_SIZE] if gallery is not None else None,
        services=[s for s in services if s.active] if services is not None else None,
        testimonials=[t for t in testimonials if t.active] if testimonials is not None else None,
        errors=errors,
    )


@router.get("/gallery", response_model=GalleryPage)
async def gallery_page(
    category: Optional[str] = None,
    data: DataAccess = Depends(get_public_data_access),
):
    """
    Gallery page, optionally filtered by category.
    Unknown categories show everything.

    Raises:
        HTTPException: 502/503 if the gallery cannot be loaded
    """
    try:
        images = await data.get_gallery_images()
    except BackendError as e:
        logger.error(f"Failed to load gallery: {str(e)}", exc_info=True)
        raise http_error(e, "load gallery")

    categories = [ALL_CATEGORIES] + [c.value for c in GalleryCategory]
    active = category if category in categories else ALL_CATEGORIES
    if active != ALL_CATEGORIES:
        images = [image for image in images if image.category == active]

    return GalleryPage(categories=categories, active_category=active, images=images)


@router.post("/api/inquiries", response_model=SavedResponse, status_code=status.HTTP_201_CREATED)
async def submit_inquiry(
    submission: InquirySubmission,
    data: DataAccess = Depends(get_public_data_access),
):
    """
    Public enquiry form.
    Anonymous write; the stored enquiry always starts with status "new".
    """
    try:
        inquiry_id = await data.create_inquiry(submission)
    except BackendError as e:
        logger.error(f"Failed to save enquiry: {str(e)}", exc_info=True)
        raise http_error(e, "send enquiry")

    logger.info(f"New enquiry {inquiry_id} from {submission.name}")
    return SavedResponse(id=inquiry_id)
