"""
Cloudinary service for file storage used by the self-hosted backend.
Uploads run in a worker thread with retry and exponential backoff.
"""
import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
import logging
import asyncio
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_FOLDER = "impressions"


def configure_cloudinary(cloud_name: str, api_key: str, api_secret: str) -> None:
    """Configure the Cloudinary SDK with account credentials."""
    cloudinary.config(
        cloud_name=cloud_name,
        api_key=api_key,
        api_secret=api_secret,
        secure=True  # Always use HTTPS for secure URLs
    )


async def upload_file(
    content: bytes,
    filename: str,
    folder: str = DEFAULT_FOLDER,
    max_retries: int = 3
) -> str:
    """
    Upload a file to Cloudinary with retry logic.

    The public id is the filename without extension, so callers are
    responsible for making filenames unique.

    Args:
        content: File bytes
        filename: Target filename, e.g. impression-1718000000000.jpg
        folder: Cloudinary folder path
        max_retries: Maximum number of attempts for transient failures

    Returns:
        str: Secure HTTPS URL of the uploaded file

    Raises:
        CloudinaryError: If upload fails after all retries
    """
    public_id: Optional[str] = filename.rsplit(".", 1)[0] if filename else None

    for attempt in range(max_retries):
        try:
            result = await asyncio.to_thread(
                cloudinary.uploader.upload,
                content,
                folder=folder,
                public_id=public_id,
                resource_type="auto",
            )
            logger.info(f"Successfully uploaded file: {result['public_id']}")
            return result["secure_url"]

        except CloudinaryError as e:
            logger.warning(f"Cloudinary upload error (attempt {attempt + 1}/{max_retries}): {str(e)}")

            if attempt < max_retries - 1:
                await asyncio.sleep(2 ** attempt)  # 1s, 2s, 4s backoff
                continue

            logger.error(f"Cloudinary upload failed after {max_retries} attempts: {str(e)}")
            raise
