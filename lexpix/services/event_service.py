"""
Event service: photo events with a cover image and their own image set.

``events.image_count`` is kept in step with the event's image rows: it is
recounted after every write that adds or removes images.
"""
import logging
from typing import List, Optional, Sequence

from lexpix.context import IMAGES_BUCKET, AppContext
from lexpix.exceptions import ServiceError
from lexpix.schemas import EventCreate, EventItem, ImageItem
from lexpix.services.uploads import UploadedFile, discard_image, store_image, upload_image

logger = logging.getLogger(__name__)


async def get_events(ctx: AppContext) -> List[EventItem]:
    """All events, most recent date first."""
    try:
        rows = await ctx.repos.events.list(order_by="date", descending=True)
        logger.info(f"Events retrieved: {len(rows)}")
        return [EventItem.model_validate(row) for row in rows]
    except Exception as e:
        logger.error(f"Error fetching events: {str(e)}", exc_info=True)
        return []


async def get_event(ctx: AppContext, event_id: str) -> Optional[EventItem]:
    try:
        row = await ctx.repos.events.get_by_id(event_id)
        if not row:
            logger.info(f"No event found with ID {event_id}")
            return None
        return EventItem.model_validate(row)
    except Exception as e:
        logger.error(f"Error fetching event {event_id}: {str(e)}", exc_info=True)
        return None


async def get_event_images(ctx: AppContext, event_id: str) -> List[ImageItem]:
    """Images of one event in upload order."""
    try:
        rows = await ctx.repos.event_images.list(filters={"event_id": event_id}, order_by="created_at")
        logger.info(f"Retrieved {len(rows)} images for event {event_id}")
        return [ImageItem.model_validate(row) for row in rows]
    except Exception as e:
        logger.error(f"Error fetching event images: {str(e)}", exc_info=True)
        return []


async def _refresh_image_count(ctx: AppContext, event_id: str) -> int:
    count = await ctx.repos.event_images.count({"event_id": event_id})
    await ctx.repos.events.update(event_id, {"image_count": count})
    return count


async def _store_event_images(ctx: AppContext, event_id: str, files: Sequence[UploadedFile]) -> List[ImageItem]:
    """Upload files into the event's folder one by one; failures are counted, not raised."""
    stored = []
    failed = 0
    for index, file in enumerate(files, start=1):
        logger.info(f"Uploading image {index} of {len(files)}: {file.filename}")
        url = await upload_image(
            ctx.storage, file, folder=f"events/{event_id}", bucket=IMAGES_BUCKET,
            convert=ctx.settings.CONVERT_UPLOADS_TO_WEBP,
        )
        if not url:
            failed += 1
            continue
        try:
            row = await ctx.repos.event_images.insert({
                "event_id": event_id,
                "title": file.stem or file.filename,
                "url": url,
            })
            stored.append(ImageItem.model_validate(row))
        except Exception as e:
            logger.error(f"Failed to save image {index} for event {event_id}: {str(e)}")
            failed += 1

    logger.info(f"Upload summary: {len(stored)} successful, {failed} failed")
    return stored


async def create_event(ctx: AppContext, data: EventCreate, cover_file: UploadedFile,
                       image_files: Sequence[UploadedFile] = ()) -> Optional[EventItem]:
    """
    Create an event from a cover image and any number of gallery images.

    If the event row cannot be written the uploaded cover is removed again.
    Image uploads that fail are skipped and ``image_count`` reflects only the
    images that were stored.
    """
    logger.info(f"Creating event '{data.title}' with {len(image_files)} images")
    try:
        cover = await store_image(
            ctx.storage, cover_file, folder="events/covers", bucket=IMAGES_BUCKET,
            convert=ctx.settings.CONVERT_UPLOADS_TO_WEBP,
        )
    except Exception as e:
        logger.error(f"Failed to upload cover image for '{data.title}': {str(e)}")
        return None

    try:
        row = await ctx.repos.events.insert({
            "title": data.title,
            "description": data.description or None,
            "date": data.date,
            "cover_image": cover.url,
            "image_count": len(image_files),
        })
    except Exception as e:
        logger.error(f"Error inserting event '{data.title}': {str(e)}", exc_info=True)
        await discard_image(ctx.storage, cover)
        return None

    event_id = row["id"]
    if image_files:
        stored = await _store_event_images(ctx, event_id, image_files)
        if len(stored) != len(image_files):
            row = await ctx.repos.events.update(event_id, {"image_count": len(stored)}) or row
            logger.info(f"Updated event image count to {len(stored)}")

    return EventItem.model_validate(row)


async def add_event_images(ctx: AppContext, event_id: str, files: Sequence[UploadedFile]) -> Optional[List[ImageItem]]:
    """Append images to an existing event; None when the event does not exist."""
    try:
        if not await ctx.repos.events.get_by_id(event_id):
            logger.info(f"No event found with ID {event_id}")
            return None
        stored = await _store_event_images(ctx, event_id, files)
        await _refresh_image_count(ctx, event_id)
        return stored
    except Exception as e:
        logger.error(f"Error adding images to event {event_id}: {str(e)}", exc_info=True)
        return None


async def delete_event_image(ctx: AppContext, image_id: str) -> bool:
    try:
        row = await ctx.repos.event_images.get_by_id(image_id)
        if not row:
            return False
        await ctx.repos.event_images.delete(image_id)
        await _refresh_image_count(ctx, row["event_id"])
        return True
    except Exception as e:
        logger.error(f"Error deleting event image {image_id}: {str(e)}", exc_info=True)
        return False


async def delete_event(ctx: AppContext, event_id: str) -> bool:
    """Delete an event together with its image rows."""
    try:
        removed_images = await ctx.repos.event_images.delete_where(event_id=event_id)
        if not await ctx.repos.events.delete(event_id):
            raise ServiceError(f"Event {event_id} not found")
        logger.info(f"Deleted event {event_id} and {removed_images} image rows")
        return True
    except Exception as e:
        logger.error(f"Error deleting event {event_id}: {str(e)}")
        return False
