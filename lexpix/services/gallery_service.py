"""
Gallery service: the public portfolio grid and its admin management.

Failures are logged and reported as an empty/None/False result so the public
pages degrade to an empty grid instead of an error.
"""
import logging
from typing import List, Optional, Sequence

from lexpix.context import IMAGES_BUCKET, AppContext
from lexpix.schemas import (
    GalleryImageResponse,
    GalleryImagesPageResponse,
    ImageItem,
    PaginationMetadata,
)
from lexpix.services.uploads import UploadedFile, upload_image

logger = logging.getLogger(__name__)


async def get_gallery_images(ctx: AppContext) -> List[ImageItem]:
    """All gallery images, newest first."""
    try:
        rows = await ctx.repos.gallery_images.list(order_by="created_at", descending=True)
        logger.info(f"Gallery images retrieved: {len(rows)}")
        return [ImageItem.model_validate(row) for row in rows]
    except Exception as e:
        logger.error(f"Error fetching gallery images: {str(e)}", exc_info=True)
        return []


async def get_gallery_page(ctx: AppContext, limit: int = 20, offset: int = 0) -> GalleryImagesPageResponse:
    """One page of the gallery grid plus offset pagination metadata."""
    try:
        repo = ctx.repos.gallery_images
        total_count = await repo.count()
        rows = await repo.list(order_by="created_at", descending=True, limit=limit, offset=offset)
    except Exception as e:
        logger.error(f"Error fetching gallery page (offset={offset}): {str(e)}", exc_info=True)
        return GalleryImagesPageResponse(
            images=[], pagination=PaginationMetadata(next_offset=None, has_more=False, total_count=0)
        )

    has_more = offset + len(rows) < total_count
    return GalleryImagesPageResponse(
        images=[ImageItem.model_validate(row) for row in rows],
        pagination=PaginationMetadata(
            next_offset=offset + len(rows) if has_more else None,
            has_more=has_more,
            total_count=total_count,
        ),
    )


async def create_gallery_image(ctx: AppContext, title: str, url: str) -> Optional[GalleryImageResponse]:
    try:
        row = await ctx.repos.gallery_images.insert({"title": title, "url": url})
        return GalleryImageResponse.model_validate(row)
    except Exception as e:
        logger.error(f"Error creating gallery image: {str(e)}", exc_info=True)
        return None


async def upload_gallery_images(ctx: AppContext, files: Sequence[UploadedFile]) -> List[GalleryImageResponse]:
    """
    Upload files into the gallery folder and create one row per stored file.

    Each file is handled on its own: a failed upload is logged and skipped,
    and the rows for the files that did succeed are returned.
    """
    created = []
    for index, file in enumerate(files, start=1):
        url = await upload_image(
            ctx.storage, file, folder="gallery", bucket=IMAGES_BUCKET,
            convert=ctx.settings.CONVERT_UPLOADS_TO_WEBP,
        )
        if not url:
            logger.error(f"Failed to upload gallery image {index} of {len(files)}: {file.filename}")
            continue
        image = await create_gallery_image(ctx, file.stem or file.filename, url)
        if image:
            created.append(image)

    logger.info(f"Gallery upload summary: {len(created)} of {len(files)} stored")
    return created


async def delete_gallery_image(ctx: AppContext, image_id: str) -> bool:
    """Remove the gallery row; the stored file is left for storage housekeeping."""
    try:
        deleted = await ctx.repos.gallery_images.delete(image_id)
        if not deleted:
            logger.warning(f"Gallery image {image_id} not found")
        return deleted
    except Exception as e:
        logger.error(f"Error deleting gallery image {image_id}: {str(e)}", exc_info=True)
        return False


async def delete_gallery_images(ctx: AppContext, image_ids: Sequence[str]) -> List[str]:
    """Delete several rows; returns the ids that were actually removed."""
    deleted = []
    for image_id in image_ids:
        if await delete_gallery_image(ctx, image_id):
            deleted.append(image_id)
    return deleted
