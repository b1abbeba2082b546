"""
Cloudinary service for gallery images stored on Cloudinary's CDN.
Used by the `cloudinary` image storage backend.
"""
import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from saavi_site.config import settings
import logging
import asyncio
from typing import Dict, Any

logger = logging.getLogger(__name__)


def configure_cloudinary() -> None:
    cloudinary.config(
        cloud_name=settings.CLOUDINARY_CLOUD_NAME,
        api_key=settings.CLOUDINARY_API_KEY,
        api_secret=settings.CLOUDINARY_API_SECRET,
        secure=True
    )


def validate_cloudinary_config() -> bool:
    """
    Validate that Cloudinary is properly configured.

    Returns:
        bool: True if Cloudinary is configured, False otherwise
    """
    for name in ("CLOUDINARY_CLOUD_NAME", "CLOUDINARY_API_KEY", "CLOUDINARY_API_SECRET"):
        if not getattr(settings, name):
            logger.warning(f"{name} not configured")
            return False
    return True


async def upload_image(
    content: bytes,
    folder: str = "gallery",
    max_retries: int = 3
) -> Dict[str, Any]:
    """
    Upload image bytes to Cloudinary with retry logic.

    Returns:
        dict: url (secure HTTPS URL) and public_id of the uploaded image

    Raises:
        CloudinaryError: If upload fails after all retries
    """
    configure_cloudinary()

    for attempt in range(max_retries):
        try:
            result = await asyncio.to_thread(
                cloudinary.uploader.upload,
                content,
                folder=folder,
                resource_type="image",
                transformation=[{"width": 1920, "height": 1080, "crop": "limit"}],
            )
            logger.info(f"Uploaded image to Cloudinary: {result['public_id']}")
            return {"url": result["secure_url"], "public_id": result["public_id"]}

        except CloudinaryError as e:
            logger.warning(f"Cloudinary upload error (attempt {attempt + 1}/{max_retries}): {str(e)}")
            if attempt < max_retries - 1:
                await asyncio.sleep(2 ** attempt)
                continue
            logger.error(f"Cloudinary upload failed after {max_retries} attempts: {str(e)}")
            raise


async def delete_image(public_id: str, max_retries: int = 3) -> Dict[str, Any]:
    """
    Delete an image from Cloudinary with retry logic.

    Raises:
        CloudinaryError: If deletion fails after all retries
    """
    configure_cloudinary()

    for attempt in range(max_retries):
        try:
            result = await asyncio.to_thread(
                cloudinary.uploader.destroy,
                public_id,
                invalidate=True,
                resource_type="image",
            )
            if result.get("result") not in ("ok", "not found"):
                logger.warning(f"Unexpected Cloudinary delete result for {public_id}: {result}")
            else:
                logger.info(f"Deleted image from Cloudinary: {public_id} (result: {result.get('result')})")
            return result

        except CloudinaryError as e:
            logger.warning(f"Cloudinary delete error (attempt {attempt + 1}/{max_retries}) for {public_id}: {str(e)}")
            if attempt < max_retries - 1:
                await asyncio.sleep(2 ** attempt)
                continue
            logger.error(f"Cloudinary delete failed after {max_retries} attempts for {public_id}: {str(e)}")
            raise
