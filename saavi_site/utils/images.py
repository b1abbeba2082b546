"""
Upload checks and image conversion for gallery images.
Enforces the MIME allow-list and size ceiling, and verifies the bytes with Pillow.
"""
import io
import logging
from typing import Optional, Tuple

from fastapi import UploadFile
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/webp",
    "image/gif",
}

# Pillow format name -> canonical content type and file extension
PIL_FORMATS = {
    "JPEG": ("image/jpeg", ".jpg"),
    "PNG": ("image/png", ".png"),
    "WEBP": ("image/webp", ".webp"),
    "GIF": ("image/gif", ".gif"),
}

DEFAULT_WEBP_QUALITY = 85
DEFAULT_WEBP_METHOD = 6
MAX_DIMENSION = 3840


class InvalidImageError(ValueError):
    """Raised when an upload is not an acceptable gallery image."""


def check_content_type(content_type: Optional[str]) -> None:
    if not content_type or content_type.lower() not in ALLOWED_CONTENT_TYPES:
        raise InvalidImageError("Invalid file type. Use JPG, PNG, WebP or GIF.")


async def read_upload(file: UploadFile, max_bytes: int) -> bytes:
    """
    Read an uploaded file, refusing anything larger than `max_bytes`.

    The declared content type is checked before any bytes are read.

    Raises:
        InvalidImageError: On a disallowed type, an empty file or an oversized file
    """
    check_content_type(file.content_type)

    content = await file.read(max_bytes + 1)
    if not content:
        raise InvalidImageError("Uploaded file is empty.")
    if len(content) > max_bytes:
        raise InvalidImageError(
            f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB."
        )
    return content


def inspect_image(image_bytes: bytes) -> dict:
    """
    Verify that the bytes decode as an allowed image format.

    Returns:
        dict: format, content_type, extension, size and mode of the image

    Raises:
        InvalidImageError: If Pillow cannot identify the image or the format is not allowed
    """
    try:
        with Image.open(io.BytesIO(image_bytes)) as image:
            image_format = image.format
            size = image.size
            mode = image.mode
            image.verify()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        logger.warning(f"Rejected upload that is not a readable image: {str(e)}")
        raise InvalidImageError("Uploaded file is not a valid image.")

    if image_format not in PIL_FORMATS:
        raise InvalidImageError(f"Unsupported image format: {image_format}")

    content_type, extension = PIL_FORMATS[image_format]
    return {
        "format": image_format,
        "content_type": content_type,
        "extension": extension,
        "size": size,
        "mode": mode,
        "bytes": len(image_bytes),
    }


def convert_to_webp(
    image_bytes: bytes,
    quality: int = DEFAULT_WEBP_QUALITY,
    method: int = DEFAULT_WEBP_METHOD,
    max_dimension: Optional[int] = MAX_DIMENSION,
) -> Tuple[bytes, bool]:
    """
    Convert image bytes to WebP format to reduce file size.

    Animated GIFs and images that are already WebP are returned unchanged.

    Returns:
        Tuple[bytes, bool]:
            - Converted image bytes (or original if skipped/failed)
            - Whether the returned bytes are WebP
    """
    try:
        image = Image.open(io.BytesIO(image_bytes))

        if image.format == 'WEBP':
            return image_bytes, True
        if getattr(image, "is_animated", False):
            logger.debug("Skipping WebP conversion for animated image")
            return image_bytes, False

        if image.mode == 'P':
            image = image.convert('RGBA')
        elif image.mode not in ('RGB', 'RGBA', 'LA'):
            image = image.convert('RGB')

        if max_dimension:
            width, height = image.size
            if width > max_dimension or height > max_dimension:
                image.thumbnail((max_dimension, max_dimension), Image.Resampling.LANCZOS)
                logger.info(f"Downscaled image from {width}x{height} to {image.size[0]}x{image.size[1]}")

        buffer = io.BytesIO()
        image.save(buffer, format='WEBP', quality=quality, method=method)
        webp_bytes = buffer.getvalue()

        logger.info(
            f"Converted image to WebP: {len(image_bytes):,} bytes -> {len(webp_bytes):,} bytes"
        )
        return webp_bytes, True

    except Exception as e:
        logger.error(f"Error converting image to WebP: {str(e)}", exc_info=True)
        return image_bytes, False
