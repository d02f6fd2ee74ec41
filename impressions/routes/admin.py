"""
Admin page routes.
Every page except the login page goes through the session gate.
"""
from fastapi import APIRouter, Depends
from typing import Optional
import logging

from impressions.auth_gate import LOGIN_PATH
from impressions.data_access import DataAccess, gather_sections
from impressions.dependencies import get_data_access, http_error, require_admin_page
from impressions.exceptions import BackendError
from impressions.schemas import (
    AdminUser,
    DashboardPage,
    DashboardStats,
    InquiriesPage,
    InquiryStatus,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin")

RECENT_INQUIRIES = 5
ALL_STATUSES = "all"

CONTENT_SECTIONS = [
    {
        "title": "Services",
        "description": "Manage the services displayed on your homepage",
        "href": "/admin/content/services",
    },
    {
        "title": "Testimonials",
        "description": "Manage customer testimonials and reviews",
        "href": "/admin/content/testimonials",
    },
]


@router.get("/login")
async def login_page():
    """Login page. Never gated."""
    return {"page": "login", "path": LOGIN_PATH, "action": "/api/admin/login"}


@router.get("", response_model=DashboardPage)
async def dashboard_page(
    user: AdminUser = Depends(require_admin_page),
    data: DataAccess = Depends(get_data_access),
):
    """
    Dashboard with content counts and the most recent enquiries.
    The four lists load concurrently; a failed list leaves its counts null.
    """
    results, errors = await gather_sections(
        gallery=data.get_gallery_images(),
        inquiries=data.get_inquiries(),
        testimonials=data.get_testimonials(),
        services=data.get_services(),
    )

    gallery = results["gallery"]
    inquiries = results["inquiries"]
    testimonials = results["testimonials"]
    services = results["services"]

    stats = DashboardStats(
        gallery_count=len(gallery) if gallery is not None else None,
        inquiry_count=len(inquiries) if inquiries is not None else None,
        new_inquiries=(
            sum(1 for i in inquiries if i.status == InquiryStatus.NEW)
            if inquiries is not None else None
        ),
        testimonial_count=len(testimonials) if testimonials is not None else None,
        service_count=len(services) if services is not None else None,
    )

    return DashboardPage(
        username=user.username,
        stats=stats,
        recent_inquiries=inquiries[:RECENT_INQUIRIES] if inquiries is not None else None,
        errors=errors,
    )


@router.get("/gallery")
async def gallery_admin_page(
    user: AdminUser = Depends(require_admin_page),
    data: DataAccess = Depends(get_data_access),
):
    try:
        images = await data.get_gallery_images()
    except BackendError as e:
        logger.error(f"Failed to load images: {str(e)}", exc_info=True)
        raise http_error(e, "load gallery images")
    return {"username": user.username, "images": images}


@router.get("/content")
async def content_overview_page(user: AdminUser = Depends(require_admin_page)):
    return {"username": user.username, "sections": CONTENT_SECTIONS}


@router.get("/content/services")
async def services_admin_page(
    user: AdminUser = Depends(require_admin_page),
    data: DataAccess = Depends(get_data_access),
):
    try:
        services = await data.get_services()
    except BackendError as e:
        logger.error(f"Failed to load services: {str(e)}", exc_info=True)
        raise http_error(e, "load services")
    return {"username": user.username, "services": services}


@router.get("/content/testimonials")
async def testimonials_admin_page(
    user: AdminUser = Depends(require_admin_page),
    data: DataAccess = Depends(get_data_access),
):
    try:
        testimonials = await data.get_testimonials()
    except BackendError as e:
        logger.error(f"Failed to load testimonials: {str(e)}", exc_info=True)
        raise http_error(e, "load testimonials")
    return {"username": user.username, "testimonials": testimonials}


@router.get("/inquiries", response_model=InquiriesPage)
async def inquiries_admin_page(
    status: Optional[str] = None,
    user: AdminUser = Depends(require_admin_page),
    data: DataAccess = Depends(get_data_access),
):
    """
    Enquiries, newest first, with per-status counts.
    The status filter is applied to the fetched list; unknown values show all.
    """
    try:
        inquiries = await data.get_inquiries()
    except BackendError as e:
        logger.error(f"Failed to load inquiries: {str(e)}", exc_info=True)
        raise http_error(e, "load inquiries")

    counts = {s.value: 0 for s in InquiryStatus}
    for inquiry in inquiries:
        counts[inquiry.status] = counts.get(inquiry.status, 0) + 1

    status_filter = status if status in counts else ALL_STATUSES
    if status_filter != ALL_STATUSES:
        inquiries = [i for i in inquiries if i.status == status_filter]

    return InquiriesPage(
        username=user.username,
        status_filter=status_filter,
        counts=counts,
        inquiries=inquiries,
    )
