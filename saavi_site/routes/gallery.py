"""
Gallery routes.
Public listing and retrieval, plus admin-only create/update/delete with image uploads.
"""
from fastapi import APIRouter, Depends, HTTPException, status, UploadFile, File, Form, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.orm import undefer
from typing import List, Optional
import asyncio
import logging

from saavi_site.config import settings
from saavi_site.database import get_db
from saavi_site.models import GalleryItem, GALLERY_CATEGORIES
from saavi_site.schemas import GalleryItemResponse, GalleryCategoriesResponse, DeleteResponse
from saavi_site.services.image_storage import get_image_store, discard_image, StoredImage
from saavi_site.utils.images import InvalidImageError, read_upload, inspect_image, convert_to_webp
from saavi_site.utils.jwt_auth import require_admin
from saavi_site.utils.rate_limit import limiter, RATE_LIMITS

logger = logging.getLogger(__name__)

router = APIRouter()

TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 300
LOCATION_MAX_LENGTH = 200


def _bad_request(error: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"error": error, "message": message}
    )


def _not_found(item_id: int) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"error": "Image not found", "message": f"Gallery item {item_id} does not exist"}
    )


def _gallery_lock(request: Request) -> asyncio.Lock:
    """Serializes count-then-insert so concurrent uploads cannot pass the item limit."""
    lock = getattr(request.app.state, "gallery_lock", None)
    if lock is None:
        lock = request.app.state.gallery_lock = asyncio.Lock()
    return lock


def _clean_text(value: Optional[str], field: str, max_length: int) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if len(value) > max_length:
        raise _bad_request("Validation error", f"{field} must be at most {max_length} characters")
    return value or None


def _check_category(category: str) -> str:
    if category not in GALLERY_CATEGORIES:
        raise _bad_request(
            "Validation error",
            f"Category must be one of: {', '.join(GALLERY_CATEGORIES)}"
        )
    return category


def _has_file(image: Optional[UploadFile]) -> bool:
    return image is not None and bool(image.filename)


async def _read_image(image: UploadFile) -> tuple[bytes, dict]:
    """
    Run every upload check before anything is stored.

    Returns:
        (content, image_info) ready for an ImageStore
    """
    try:
        content = await read_upload(image, settings.MAX_UPLOAD_BYTES)
        image_info = inspect_image(content)
    except InvalidImageError as e:
        logger.warning(f"Rejected upload '{image.filename}': {str(e)}")
        raise _bad_request("Invalid image", str(e))

    if settings.CONVERT_UPLOADS_TO_WEBP:
        converted, is_webp = convert_to_webp(content)
        if is_webp and len(converted) < len(content):
            content = converted
            image_info = inspect_image(content)

    return content, image_info


async def _store_image(content: bytes, image_info: dict, title: str) -> StoredImage:
    try:
        return await get_image_store().save(content, image_info, title)
    except Exception as e:
        logger.error(f"Failed to store image for '{title}': {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to upload image", "message": "Image storage failed"}
        )


def _apply_stored_image(item: GalleryItem, stored: StoredImage) -> None:
    item.storage = stored.storage
    item.storage_key = stored.storage_key
    item.content_type = stored.content_type
    item.image_data = stored.data
    if stored.storage == "database":
        item.image_url = f"/api/gallery/image/{item.id}"
    else:
        item.image_url = stored.image_url


@router.get("/gallery", response_model=List[GalleryItemResponse])
async def list_gallery_items(
    category: Optional[str] = None,
    db: AsyncSession = Depends(get_db)
):
    """
    List gallery items, newest first, capped at the gallery limit.

    Args:
        category: Optional category filter (must be one of the fixed categories)
    """
    if category is not None:
        _check_category(category)

    try:
        query = select(GalleryItem).order_by(
            GalleryItem.created_at.desc(), GalleryItem.id.desc()
        )
        if category is not None:
            query = query.where(GalleryItem.category == category)
        query = query.limit(settings.GALLERY_MAX_ITEMS)

        result = await db.execute(query)
        items = result.scalars().all()

        logger.info(f"Retrieved {len(items)} gallery items (category: {category})")
        return [GalleryItemResponse.model_validate(item) for item in items]

    except Exception as e:
        logger.error(f"Failed to retrieve gallery items: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to load gallery", "message": "Database query failed"}
        )


@router.get("/gallery/categories", response_model=GalleryCategoriesResponse)
async def list_gallery_categories():
    return GalleryCategoriesResponse(
        categories=list(GALLERY_CATEGORIES),
        max_items=settings.GALLERY_MAX_ITEMS
    )


@router.get("/gallery/image/{item_id}")
async def get_gallery_image(item_id: int, db: AsyncSession = Depends(get_db)):
    """Serve the bytes of a database-stored gallery image."""
    result = await db.execute(
        select(GalleryItem)
        .options(undefer(GalleryItem.image_data))
        .where(GalleryItem.id == item_id)
    )
    item = result.scalar_one_or_none()

    if item is None or item.storage != "database" or not item.image_data:
        raise _not_found(item_id)

    return Response(
        content=item.image_data,
        media_type=item.content_type or "application/octet-stream",
        headers={"Cache-Control": "public, max-age=86400"}
    )


@router.get("/gallery/{item_id}", response_model=GalleryItemResponse)
async def get_gallery_item(item_id: int, db: AsyncSession = Depends(get_db)):
    item = await db.get(GalleryItem, item_id)
    if item is None:
        raise _not_found(item_id)
    return GalleryItemResponse.model_validate(item)


@router.post("/gallery", response_model=GalleryItemResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_LIMITS["upload"])
async def create_gallery_item(
    request: Request,
    image: Optional[UploadFile] = File(None),
    title: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(require_admin)
):
    """
    Upload a new gallery image.
    Requires admin authentication.

    Every check (image type and size, fields, gallery limit) runs before the
    image is stored or a row is written.

    Raises:
        HTTPException: 400 on invalid input or a full gallery, 401 if not
            authenticated, 500 if storage or the database fails
    """
    if not _has_file(image):
        raise _bad_request("No image uploaded", "An image file is required")

    content, image_info = await _read_image(image)

    title = _clean_text(title, "Title", TITLE_MAX_LENGTH)
    if not title:
        raise _bad_request("Validation error", "Title is required")
    if not category:
        raise _bad_request("Validation error", "Category is required")
    category = _check_category(category.strip())
    description = _clean_text(description, "Description", DESCRIPTION_MAX_LENGTH)
    location = _clean_text(location, "Location", LOCATION_MAX_LENGTH)

    async with _gallery_lock(request):
        count = await db.scalar(select(func.count(GalleryItem.id)))
        if count >= settings.GALLERY_MAX_ITEMS:
            logger.warning(f"Rejected upload: gallery limit ({settings.GALLERY_MAX_ITEMS}) reached")
            raise _bad_request(
                "Gallery limit reached",
                f"Gallery limit ({settings.GALLERY_MAX_ITEMS}) reached"
            )

        stored = await _store_image(content, image_info, title)

        try:
            item = GalleryItem(
                title=title,
                category=category,
                description=description,
                location=location,
                storage=stored.storage,
            )
            db.add(item)
            await db.flush()  # assigns item.id for database-backed image URLs
            _apply_stored_image(item, stored)
            await db.commit()
            await db.refresh(item)

        except Exception as e:
            logger.error(f"Error saving gallery item '{title}': {str(e)}", exc_info=True)
            await db.rollback()
            await discard_image(stored.storage, stored.storage_key)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail={"error": "Failed to upload image", "message": "Database write failed"}
            )

    logger.info(f"Created gallery item {item.id} ('{title}', storage={item.storage}) by {admin.get('username')}")
    return GalleryItemResponse.model_validate(item)


@router.put("/gallery/{item_id}", response_model=GalleryItemResponse)
@limiter.limit(RATE_LIMITS["upload"])
async def update_gallery_item(
    request: Request,
    item_id: int,
    image: Optional[UploadFile] = File(None),
    title: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(require_admin)
):
    """
    Update a gallery item's fields and optionally replace its image.
    Requires admin authentication. Omitted fields are left unchanged.

    The previous image is deleted after the new one is committed; a failure to
    delete it is logged and otherwise ignored.
    """
    item = await db.get(GalleryItem, item_id)
    if item is None:
        raise _not_found(item_id)

    new_image = None
    if _has_file(image):
        new_image = await _read_image(image)

    if title is not None:
        title = _clean_text(title, "Title", TITLE_MAX_LENGTH)
        if not title:
            raise _bad_request("Validation error", "Title cannot be empty")
        item.title = title
    if category is not None:
        item.category = _check_category(category.strip())
    if description is not None:
        item.description = _clean_text(description, "Description", DESCRIPTION_MAX_LENGTH)
    if location is not None:
        item.location = _clean_text(location, "Location", LOCATION_MAX_LENGTH)

    old_storage, old_key = item.storage, item.storage_key
    stored = None
    if new_image is not None:
        content, image_info = new_image
        stored = await _store_image(content, image_info, item.title)
        _apply_stored_image(item, stored)

    try:
        await db.commit()
        await db.refresh(item)
    except Exception as e:
        logger.error(f"Error updating gallery item {item_id}: {str(e)}", exc_info=True)
        await db.rollback()
        if stored is not None:
            await discard_image(stored.storage, stored.storage_key)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Update failed", "message": "Database write failed"}
        )

    if stored is not None and (old_storage, old_key) != (stored.storage, stored.storage_key):
        await discard_image(old_storage, old_key)

    logger.info(f"Updated gallery item {item_id} (image replaced: {stored is not None})")
    return GalleryItemResponse.model_validate(item)


@router.delete("/gallery/{item_id}", response_model=DeleteResponse)
async def delete_gallery_item(
    item_id: int,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(require_admin)
):
    """
    Delete a gallery item and its image.
    Requires admin authentication. Database blobs go with the row; files and
    Cloudinary assets are removed after the commit on a best-effort basis.
    """
    item = await db.get(GalleryItem, item_id)
    if item is None:
        raise _not_found(item_id)

    storage, storage_key = item.storage, item.storage_key

    try:
        await db.delete(item)
        await db.commit()
    except Exception as e:
        logger.error(f"Error deleting gallery item {item_id}: {str(e)}", exc_info=True)
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Delete failed", "message": "Database write failed"}
        )

    await discard_image(storage, storage_key)

    logger.info(f"Deleted gallery item {item_id} (storage={storage})")
    return DeleteResponse(success=True, message="Image deleted successfully", id=item_id)
