"""
Cloudinary-backed object storage for remote mode.
Buckets map to top-level Cloudinary folders and object paths to public IDs.
"""
import cloudinary
import cloudinary.api
import cloudinary.uploader
import cloudinary.utils
from cloudinary.exceptions import Error as CloudinaryError
import asyncio
import logging
import os
from typing import Any, Dict, List, Optional

from lexpix.config import settings
from lexpix.store.objects import Bucket, ObjectStorage, StoredObject

logger = logging.getLogger(__name__)


def configure_cloudinary() -> None:
    """Configure the Cloudinary SDK with credentials from settings."""
    cloudinary.config(
        cloud_name=settings.CLOUDINARY_CLOUD_NAME,
        api_key=settings.CLOUDINARY_API_KEY,
        api_secret=settings.CLOUDINARY_API_SECRET,
        secure=True  # Always use HTTPS for secure URLs
    )


def validate_cloudinary_config() -> bool:
    """
    Validate that Cloudinary is properly configured.

    Returns:
        bool: True if Cloudinary is configured, False otherwise
    """
    if not settings.CLOUDINARY_CLOUD_NAME:
        logger.warning("CLOUDINARY_CLOUD_NAME not configured")
        return False
    if not settings.CLOUDINARY_API_KEY:
        logger.warning("CLOUDINARY_API_KEY not configured")
        return False
    if not settings.CLOUDINARY_API_SECRET:
        logger.warning("CLOUDINARY_API_SECRET not configured")
        return False

    logger.info("Cloudinary configuration validated successfully")
    return True


def split_extension(path: str) -> tuple:
    """Split 'events/abc.jpg' into ('events/abc', 'jpg')."""
    root, ext = os.path.splitext(path)
    return root, ext.lstrip(".") or None


async def _with_retries(operation: str, call, max_retries: int = 3) -> Dict[str, Any]:
    """Run a Cloudinary call, retrying transport errors with exponential backoff."""
    for attempt in range(max_retries):
        try:
            return call()
        except CloudinaryError as e:
            logger.warning(f"Cloudinary {operation} error (attempt {attempt + 1}/{max_retries}): {str(e)}")

            if attempt < max_retries - 1:
                await asyncio.sleep(2 ** attempt)  # 1s, 2s, 4s backoff
                continue

            logger.error(f"Cloudinary {operation} failed after {max_retries} attempts: {str(e)}")
            raise


class CloudinaryBucket(Bucket):

    def __init__(self, name: str, max_retries: int = 3):
        self.name = name
        self.max_retries = max_retries

    def _public_id(self, path: str) -> str:
        root, _ = split_extension(path)
        return f"{self.name}/{root}"

    async def upload(self, path: str, content: bytes, content_type: Optional[str] = None,
                     upsert: bool = False) -> str:
        public_id = self._public_id(path)
        result = await _with_retries("upload", lambda: cloudinary.uploader.upload(
            content,
            public_id=public_id,
            overwrite=upsert,
            quality="auto",  # Automatic quality optimization and compression
            transformation=[
                {
                    "width": 1920,
                    "height": 1080,
                    "crop": "limit"  # Limit max dimensions, maintain aspect ratio
                }
            ]
        ), self.max_retries)
        logger.info(f"Successfully uploaded image: {result['public_id']} ({result.get('bytes', 0):,} bytes)")
        return path

    async def remove(self, paths: List[str]) -> List[str]:
        removed = []
        for path in paths:
            public_id = self._public_id(path)
            # Invalidate the CDN cache so the asset disappears immediately
            result = await _with_retries("delete", lambda: cloudinary.uploader.destroy(
                public_id, invalidate=True, resource_type="image"
            ), self.max_retries)
            if result.get("result") == "ok":
                removed.append(path)
            else:
                logger.warning(f"Unexpected Cloudinary delete result for {public_id}: {result}")
        return removed

    async def list(self, prefix: str = "") -> List[StoredObject]:
        folder_prefix = f"{self.name}/{prefix}"
        resources = []
        cursor = None
        # The Admin API returns at most 500 assets per page
        while True:
            params = {"type": "upload", "prefix": folder_prefix, "max_results": 500}
            if cursor:
                params["next_cursor"] = cursor
            result = await _with_retries(
                "list", lambda: cloudinary.api.resources(**params), self.max_retries
            )
            resources.extend(result.get("resources", []))
            cursor = result.get("next_cursor")
            if not cursor:
                break

        objects = []
        for resource in resources:
            name = resource["public_id"][len(self.name) + 1:]
            if resource.get("format"):
                name = f"{name}.{resource['format']}"
            objects.append(StoredObject(
                name=name,
                size=resource.get("bytes", 0),
                mimetype=f"{resource.get('resource_type', 'image')}/{resource.get('format', 'unknown')}",
                created_at=resource.get("created_at", ""),
            ))
        return objects

    def get_public_url(self, path: str) -> str:
        root, ext = split_extension(path)
        url, _ = cloudinary.utils.cloudinary_url(f"{self.name}/{root}", format=ext, secure=True)
        return url


class CloudinaryObjectStorage(ObjectStorage):
    """Remote object storage; buckets are top-level folders."""

    def __init__(self, max_retries: int = 3):
        configure_cloudinary()
        self.max_retries = max_retries

    def from_(self, bucket: str) -> CloudinaryBucket:
        return CloudinaryBucket(bucket, self.max_retries)

    async def list_buckets(self) -> List[str]:
        result = await _with_retries("list folders", cloudinary.api.root_folders, self.max_retries)
        return [folder["name"] for folder in result.get("folders", [])]

    async def create_bucket(self, name: str, public: bool = True) -> None:
        # Cloudinary delivery URLs are always public
        await _with_retries("create folder", lambda: cloudinary.api.create_folder(name), self.max_retries)
