"""
Storage housekeeping for the admin storage screen: usage against the plan
limit, the largest files, and deleting stored files.
"""
import logging
from typing import Iterable, List, Optional, Tuple

from lexpix.context import IMAGES_BUCKET, PROJECTS_BUCKET, AppContext
from lexpix.schemas import StorageFile, StorageLimitCheck

logger = logging.getLogger(__name__)

TRACKED_BUCKETS = (IMAGES_BUCKET, PROJECTS_BUCKET)
SIZE_UNITS = ('Bytes', 'KB', 'MB', 'GB', 'TB')


def format_bytes(num_bytes: int) -> str:
    """Human readable size, e.g. ``1.5 KB``."""
    if num_bytes <= 0:
        return '0 Bytes'
    value, i = float(num_bytes), 0
    while value >= 1024 and i < len(SIZE_UNITS) - 1:
        value /= 1024
        i += 1
    return f"{round(value, 2):g} {SIZE_UNITS[i]}"


def get_file_sizes(files: Iterable) -> int:
    """Total size of pending uploads (anything with a ``size``)."""
    return sum(f.size for f in files)


async def get_current_storage_usage(ctx: AppContext) -> Tuple[int, List[StorageFile]]:
    """Total bytes stored across the tracked buckets and the files making it up."""
    files: List[StorageFile] = []
    existing = await ctx.storage.list_buckets()
    for bucket in TRACKED_BUCKETS:
        if bucket not in existing:
            continue
        try:
            objects = await ctx.storage.from_(bucket).list()
        except Exception as e:
            logger.error(f"Error listing bucket {bucket}: {str(e)}", exc_info=True)
            continue
        for obj in objects:
            if not obj.size:
                continue
            files.append(StorageFile(
                name=obj.name,
                size=obj.size,
                bucket_id=bucket,
                created_at=obj.created_at or "",
                mimetype=obj.mimetype or "unknown",
            ))

    return sum(f.size for f in files), files


async def check_storage_limit(ctx: AppContext, additional_size: int = 0) -> StorageLimitCheck:
    """Whether ``additional_size`` more bytes still fit under STORAGE_LIMIT_BYTES."""
    limit = ctx.settings.STORAGE_LIMIT_BYTES
    total_size, _ = await get_current_storage_usage(ctx)
    new_total = total_size + additional_size
    return StorageLimitCheck(
        can_upload=new_total <= limit,
        current_usage=total_size,
        limit=limit,
        percent_used=(new_total / limit) * 100 if limit else 100.0,
    )


async def get_large_files(ctx: AppContext, threshold: Optional[int] = None) -> List[StorageFile]:
    """Files above ``threshold`` bytes (LARGE_FILE_BYTES by default), largest first."""
    threshold = ctx.settings.LARGE_FILE_BYTES if threshold is None else threshold
    _, files = await get_current_storage_usage(ctx)
    return sorted((f for f in files if f.size > threshold), key=lambda f: f.size, reverse=True)


async def delete_storage_file(ctx: AppContext, bucket: str, name: str) -> bool:
    """
    Remove a stored file. Files in the images bucket also lose the gallery
    rows that point at them.
    """
    target = ctx.storage.from_(bucket)
    public_url = target.get_public_url(name) if bucket == IMAGES_BUCKET else None
    try:
        removed = await target.remove([name])
    except Exception as e:
        logger.error(f"Error deleting file {bucket}/{name}: {str(e)}", exc_info=True)
        return False
    if not removed:
        logger.warning(f"File {bucket}/{name} not found")
        return False

    if public_url:
        rows = await ctx.repos.gallery_images.delete_where(url=public_url)
        if rows:
            logger.info(f"Removed {rows} gallery rows for {bucket}/{name}")
    logger.info(f"Deleted file {bucket}/{name}")
    return True
