"""
CMS API routes for the admin area.
Login and logout manage the session cookie; every other endpoint requires a
valid session.
"""
from fastapi import APIRouter, Depends, HTTPException, Request, Response, UploadFile, File, status
import logging
import time

from impressions.config import Settings
from impressions.data_access import DataAccess
from impressions.dependencies import get_data_access, get_settings, http_error, require_admin_api
from impressions.exceptions import AuthenticationFailure, BackendError, RecordNotFound
from impressions.schemas import (
    AdminUser,
    GalleryImage,
    InquiryStatusUpdate,
    LoginRequest,
    SavedResponse,
    Service,
    SessionResponse,
    Testimonial,
    UploadResponse,
)
from impressions.utils.rate_limit import LOGIN_LIMIT, UPLOAD_LIMIT, limiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["CMS"])


def build_upload_filename(original: str) -> str:
    """
    Unique upload name: impression-<epoch millis>.<original extension>.
    """
    timestamp = int(time.time() * 1000)
    if original and "." in original:
        return f"impression-{timestamp}.{original.rsplit('.', 1)[1].lower()}"
    return f"impression-{timestamp}"


# Session

@router.post("/login", response_model=SessionResponse)
@limiter.limit(LOGIN_LIMIT)
async def login(
    request: Request,
    response: Response,
    credentials: LoginRequest,
    data: DataAccess = Depends(get_data_access),
    settings: Settings = Depends(get_settings),
):
    """
    Exchange admin credentials for a session cookie.

    Raises:
        HTTPException: 401 on wrong username or password, 502/503 on backend failure
    """
    if data.session is not None:
        # The cookie is about to be replaced; end the session it carries
        try:
            await data.logout()
        except BackendError as e:
            logger.warning(f"Could not revoke previous session: {e.message}")

    try:
        session = await data.login(credentials.username, credentials.password)
    except AuthenticationFailure as e:
        logger.warning(f"Failed login for {credentials.username}: {e.message}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Invalid credentials", "message": "Invalid username or password"},
        )
    except BackendError as e:
        logger.error(f"Login failed: {str(e)}", exc_info=True)
        raise http_error(e, "log in")

    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=session.token,
        httponly=True,  # Not readable from page scripts
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
        path="/",
    )
    username = session.user.username if session.user else credentials.username
    return SessionResponse(authenticated=True, username=username)


@router.post("/logout", response_model=SessionResponse)
async def logout(
    response: Response,
    data: DataAccess = Depends(get_data_access),
    settings: Settings = Depends(get_settings),
):
    try:
        await data.logout()
    except BackendError as e:
        # The cookie is dropped regardless; the backend session expires on its own
        logger.error(f"Logout failed on backend: {str(e)}", exc_info=True)

    response.delete_cookie(settings.SESSION_COOKIE_NAME, path="/")
    return SessionResponse(authenticated=False)


@router.get("/session", response_model=SessionResponse)
async def current_session(data: DataAccess = Depends(get_data_access)):
    """Whether the session cookie is still accepted by the backend."""
    if not await data.is_authenticated():
        return SessionResponse(authenticated=False)
    user = data.get_current_user()
    return SessionResponse(authenticated=True, username=user.username if user else None)


# Gallery

@router.post("/gallery-images", response_model=SavedResponse)
async def save_gallery_image(
    image: GalleryImage,
    user: AdminUser = Depends(require_admin_api),
    data: DataAccess = Depends(get_data_access),
):
    """Create a gallery image, or replace it when the payload carries an id."""
    try:
        image_id = await data.save_gallery_image(image)
    except BackendError as e:
        logger.error(f"Failed to save image: {str(e)}", exc_info=True)
        raise http_error(e, "save gallery image")
    return SavedResponse(id=image_id)


@router.delete("/gallery-images/{image_id}")
async def delete_gallery_image(
    image_id: str,
    user: AdminUser = Depends(require_admin_api),
    data: DataAccess = Depends(get_data_access),
):
    try:
        await data.delete_gallery_image(image_id)
    except RecordNotFound:
        logger.info(f"Gallery image {image_id} was already deleted")
    except BackendError as e:
        logger.error(f"Failed to delete image: {str(e)}", exc_info=True)
        raise http_error(e, "delete gallery image")
    return {"message": "Image deleted successfully", "id": image_id}


# Services

@router.post("/services", response_model=SavedResponse)
async def save_service(
    service: Service,
    user: AdminUser = Depends(require_admin_api),
    data: DataAccess = Depends(get_data_access),
):
    try:
        service_id = await data.save_service(service)
    except BackendError as e:
        logger.error(f"Failed to save service: {str(e)}", exc_info=True)
        raise http_error(e, "save service")
    return SavedResponse(id=service_id)


@router.delete("/services/{service_id}")
async def delete_service(
    service_id: str,
    user: AdminUser = Depends(require_admin_api),
    data: DataAccess = Depends(get_data_access),
):
    try:
        await data.delete_service(service_id)
    except RecordNotFound:
        logger.info(f"Service {service_id} was already deleted")
    except BackendError as e:
        logger.error(f"Failed to delete service: {str(e)}", exc_info=True)
        raise http_error(e, "delete service")
    return {"message": "Service deleted successfully", "id": service_id}


# Testimonials

@router.post("/testimonials", response_model=SavedResponse)
async def save_testimonial(
    testimonial: Testimonial,
    user: AdminUser = Depends(require_admin_api),
    data: DataAccess = Depends(get_data_access),
):
    try:
        testimonial_id = await data.save_testimonial(testimonial)
    except BackendError as e:
        logger.error(f"Failed to save testimonial: {str(e)}", exc_info=True)
        raise http_error(e, "save testimonial")
    return SavedResponse(id=testimonial_id)


@router.delete("/testimonials/{testimonial_id}")
async def delete_testimonial(
    testimonial_id: str,
    user: AdminUser = Depends(require_admin_api),
    data: DataAccess = Depends(get_data_access),
):
    try:
        await data.delete_testimonial(testimonial_id)
    except RecordNotFound:
        logger.info(f"Testimonial {testimonial_id} was already deleted")
    except BackendError as e:
        logger.error(f"Failed to delete testimonial: {str(e)}", exc_info=True)
        raise http_error(e, "delete testimonial")
    return {"message": "Testimonial deleted successfully", "id": testimonial_id}


# Inquiries

@router.patch("/inquiries/{inquiry_id}", response_model=SavedResponse)
async def update_inquiry(
    inquiry_id: str,
    update: InquiryStatusUpdate,
    user: AdminUser = Depends(require_admin_api),
    data: DataAccess = Depends(get_data_access),
):
    """Set the status of an enquiry and, when given, its internal notes."""
    try:
        await data.update_inquiry_status(inquiry_id, update.status, update.notes)
    except RecordNotFound:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "Inquiry not found", "detail": f"Inquiry {inquiry_id} does not exist"},
        )
    except BackendError as e:
        logger.error(f"Failed to update inquiry: {str(e)}", exc_info=True)
        raise http_error(e, "update inquiry")
    return SavedResponse(id=inquiry_id)


# Uploads

@router.post("/uploads", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(UPLOAD_LIMIT)
async def upload_image(
    request: Request,
    file: UploadFile = File(...),
    user: AdminUser = Depends(require_admin_api),
    data: DataAccess = Depends(get_data_access),
):
    """
    Store an image and return its public URL.

    Raises:
        HTTPException: 400 if the file is not an image, 502/503 if storing fails
    """
    if not file.content_type or not file.content_type.startswith("image/"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Invalid file type", "detail": f"File '{file.filename}' is not a valid image file"},
        )

    content = await file.read()
    filename = build_upload_filename(file.filename or "")
    try:
        url = await data.upload_file(content, filename, file.content_type)
    except BackendError as e:
        logger.error(f"Upload failed: {str(e)}", exc_info=True)
        raise http_error(e, "upload image")

    logger.info(f"Uploaded {file.filename} as {filename}")
    return UploadResponse(url=url)
