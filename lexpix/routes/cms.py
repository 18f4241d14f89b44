"""
CMS API routes for the gallery, events, uploads and storage screens.
All endpoints require an authenticated admin session.
"""
from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from datetime import date
from typing import List, Optional
import logging

from lexpix.context import IMAGES_BUCKET, PROJECTS_BUCKET, AppContext, get_context
from lexpix.routes.deps import api_error, read_uploads, require_admin, validate_image_uploads
from lexpix.schemas import (
    BulkDeleteRequest,
    EventCreate,
    EventItem,
    GalleryImageResponse,
    ImageItem,
    StorageFile,
    StorageUsageResponse,
)
from lexpix.services import event_service, gallery_service, storage_service
from lexpix.services.uploads import upload_image
from lexpix.utils.rate_limit import RATE_LIMITS, limiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cms", tags=["CMS"], dependencies=[Depends(require_admin)])

UPLOAD_BUCKETS = (IMAGES_BUCKET, PROJECTS_BUCKET)


async def _ensure_capacity(ctx: AppContext, size: int) -> None:
    """Refuse uploads that would take the site over its storage plan."""
    check = await storage_service.check_storage_limit(ctx, additional_size=size)
    if not check.can_upload:
        raise api_error(
            status.HTTP_507_INSUFFICIENT_STORAGE,
            "Storage limit reached",
            f"Upload would use {check.percent_used:.1f}% of {storage_service.format_bytes(check.limit)}",
        )


# ---------------------------------------------------------------------------
# Gallery
# ---------------------------------------------------------------------------

@router.get("/gallery-images", response_model=List[ImageItem])
async def get_cms_gallery_images(ctx: AppContext = Depends(get_context)):
    """All gallery images, newest first."""
    return await gallery_service.get_gallery_images(ctx)


@router.post("/gallery-images", response_model=List[GalleryImageResponse], status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_LIMITS["upload"])
async def add_cms_gallery_images(
    request: Request,
    files: List[UploadFile] = File(...),
    ctx: AppContext = Depends(get_context),
):
    """
    Upload one or more gallery images (single or bulk upload).

    Each file becomes one gallery row titled after its file name.

    Returns:
        List[GalleryImageResponse]: the rows created for the files that stored

    Raises:
        HTTPException: 400 if a file is not an image, 507 if the storage plan
        is full, 500 if every upload failed
    """
    validate_image_uploads(files)
    uploads = await read_uploads(files)
    await _ensure_capacity(ctx, storage_service.get_file_sizes(uploads))

    created = await gallery_service.upload_gallery_images(ctx, uploads)
    if not created:
        raise api_error(status.HTTP_500_INTERNAL_SERVER_ERROR, "All uploads failed")
    logger.info(f"Created {len(created)} of {len(uploads)} gallery images")
    return created


@router.delete("/gallery-images/bulk")
async def delete_cms_gallery_images_bulk(payload: BulkDeleteRequest, ctx: AppContext = Depends(get_context)):
    deleted = await gallery_service.delete_gallery_images(ctx, payload.ids)
    return {
        "deleted_count": len(deleted),
        "deleted_ids": deleted,
        "failed_ids": [i for i in payload.ids if i not in deleted],
    }


@router.delete("/gallery-images/{image_id}")
async def delete_cms_gallery_image(image_id: str, ctx: AppContext = Depends(get_context)):
    if not await gallery_service.delete_gallery_image(ctx, image_id):
        raise api_error(status.HTTP_404_NOT_FOUND, "Image not found", f"No gallery image with id {image_id}")
    return {"message": "Image deleted successfully", "id": image_id}


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

@router.get("/events", response_model=List[EventItem])
async def get_cms_events(ctx: AppContext = Depends(get_context)):
    return await event_service.get_events(ctx)


@router.post("/events", response_model=EventItem, status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_LIMITS["upload"])
async def create_cms_event(
    request: Request,
    title: str = Form(...),
    event_date: date = Form(..., alias="date"),
    description: Optional[str] = Form(None),
    cover_image: UploadFile = File(...),
    images: List[UploadFile] = File(default=[]),
    ctx: AppContext = Depends(get_context),
):
    """
    Create an event from a multipart form: title, date, optional
    description, a cover image and any number of event images.
    """
    validate_image_uploads([cover_image, *images])
    cover = (await read_uploads([cover_image]))[0]
    uploads = await read_uploads(images)
    await _ensure_capacity(ctx, cover.size + storage_service.get_file_sizes(uploads))

    data = EventCreate(title=title, description=description, date=event_date)
    event = await event_service.create_event(ctx, data, cover, uploads)
    if event is None:
        raise api_error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to create event")
    return event


@router.delete("/events/{event_id}")
async def delete_cms_event(event_id: str, ctx: AppContext = Depends(get_context)):
    if not await event_service.delete_event(ctx, event_id):
        raise api_error(status.HTTP_404_NOT_FOUND, "Event not found", f"Could not delete event {event_id}")
    return {"message": "Event deleted successfully", "id": event_id}


@router.get("/events/{event_id}/images", response_model=List[ImageItem])
async def get_cms_event_images(event_id: str, ctx: AppContext = Depends(get_context)):
    return await event_service.get_event_images(ctx, event_id)


@router.post("/events/{event_id}/images", response_model=List[ImageItem], status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_LIMITS["upload"])
async def add_cms_event_images(
    request: Request,
    event_id: str,
    files: List[UploadFile] = File(...),
    ctx: AppContext = Depends(get_context),
):
    validate_image_uploads(files)
    uploads = await read_uploads(files)
    await _ensure_capacity(ctx, storage_service.get_file_sizes(uploads))

    added = await event_service.add_event_images(ctx, event_id, uploads)
    if added is None:
        raise api_error(status.HTTP_404_NOT_FOUND, "Event not found", f"No event with id {event_id}")
    return added


@router.delete("/event-images/{image_id}")
async def delete_cms_event_image(image_id: str, ctx: AppContext = Depends(get_context)):
    if not await event_service.delete_event_image(ctx, image_id):
        raise api_error(status.HTTP_404_NOT_FOUND, "Image not found", f"No event image with id {image_id}")
    return {"message": "Image deleted successfully", "id": image_id}


# ---------------------------------------------------------------------------
# Single uploads (project covers, about images, ...)
# ---------------------------------------------------------------------------

@router.post("/uploads", status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_LIMITS["upload"])
async def upload_cms_file(
    request: Request,
    file: UploadFile = File(...),
    folder: str = Form("uploads"),
    bucket: str = Form(IMAGES_BUCKET),
    ctx: AppContext = Depends(get_context),
):
    """Store one image and return its public URL for use in another record."""
    if bucket not in UPLOAD_BUCKETS:
        raise api_error(status.HTTP_400_BAD_REQUEST, "Invalid bucket", f"Unknown bucket '{bucket}'")
    validate_image_uploads([file])
    upload = (await read_uploads([file]))[0]
    await _ensure_capacity(ctx, upload.size)

    url = await upload_image(
        ctx.storage, upload, folder=folder.strip("/") or "uploads", bucket=bucket,
        convert=ctx.settings.CONVERT_UPLOADS_TO_WEBP,
    )
    if not url:
        raise api_error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Upload failed", f"Could not store {upload.filename}")
    return {"url": url}


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------

@router.get("/storage", response_model=StorageUsageResponse)
async def get_storage_usage(ctx: AppContext = Depends(get_context)):
    total_size, files = await storage_service.get_current_storage_usage(ctx)
    limit = ctx.settings.STORAGE_LIMIT_BYTES
    return StorageUsageResponse(
        total_size=total_size,
        total_size_formatted=storage_service.format_bytes(total_size),
        limit=limit,
        percent_used=(total_size / limit) * 100 if limit else 100.0,
        files=files,
    )


@router.get("/storage/large-files", response_model=List[StorageFile])
async def get_large_files(threshold: Optional[int] = None, ctx: AppContext = Depends(get_context)):
    return await storage_service.get_large_files(ctx, threshold)


@router.delete("/storage/{bucket}/{name:path}")
async def delete_storage_file(bucket: str, name: str, ctx: AppContext = Depends(get_context)):
    if bucket not in UPLOAD_BUCKETS:
        raise api_error(status.HTTP_400_BAD_REQUEST, "Invalid bucket", f"Unknown bucket '{bucket}'")
    if not await storage_service.delete_storage_file(ctx, bucket, name):
        raise api_error(status.HTTP_404_NOT_FOUND, "File not found", f"{bucket}/{name}")
    return {"message": "File deleted successfully", "bucket": bucket, "name": name}
