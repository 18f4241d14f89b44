"""
Images shown in the "About" block of the home page.
"""
import logging
from typing import List

from lexpix.context import AppContext
from lexpix.exceptions import NotFoundError, ServiceError
from lexpix.schemas import AboutImage, AboutImageCreate, AboutImageUpdate
from lexpix.store.query import utc_now_iso

logger = logging.getLogger(__name__)

DISPLAY_LIMIT = 3


async def get_about_images(ctx: AppContext) -> List[AboutImage]:
    try:
        rows = await ctx.repos.about_images.list(order_by="sort_order")
    except Exception as e:
        logger.error(f"Error fetching about images: {str(e)}", exc_info=True)
        raise ServiceError("Error fetching about images") from e
    return [AboutImage.model_validate(row) for row in rows]


async def get_display_about_images(ctx: AppContext) -> List[AboutImage]:
    """The images the home page actually shows: the first three by sort order."""
    return (await get_about_images(ctx))[:DISPLAY_LIMIT]


async def create_about_image(ctx: AppContext, image: AboutImageCreate) -> AboutImage:
    try:
        row = await ctx.repos.about_images.insert(image.model_dump())
    except Exception as e:
        logger.error(f"Error creating about image: {str(e)}", exc_info=True)
        raise ServiceError("Error creating about image") from e
    return AboutImage.model_validate(row)


async def update_about_image(ctx: AppContext, image_id: str, updates: AboutImageUpdate) -> AboutImage:
    values = updates.model_dump(exclude_unset=True)
    values["updated_at"] = utc_now_iso()
    try:
        row = await ctx.repos.about_images.update(image_id, values)
    except Exception as e:
        logger.error(f"Error updating about image {image_id}: {str(e)}", exc_info=True)
        raise ServiceError("Error updating about image") from e
    if row is None:
        raise NotFoundError(f"About image {image_id} not found")
    return AboutImage.model_validate(row)


async def delete_about_image(ctx: AppContext, image_id: str) -> None:
    try:
        deleted = await ctx.repos.about_images.delete(image_id)
    except Exception as e:
        logger.error(f"Error deleting about image {image_id}: {str(e)}", exc_info=True)
        raise ServiceError("Error deleting about image") from e
    if not deleted:
        raise NotFoundError(f"About image {image_id} not found")
