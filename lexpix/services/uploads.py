"""
Image upload helper shared by the gallery, event and project services.
"""
import logging
import mimetypes
import uuid
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Optional

from lexpix.exceptions import LexPixError, StorageQuotaExceeded
from lexpix.store.objects import ObjectStorage
from lexpix.utils.image_converter import convert_to_webp

logger = logging.getLogger(__name__)

DEFAULT_BUCKET = "images"


@dataclass
class UploadedFile:
    """A file received from a multipart form (or built by a test)."""
    filename: str
    content: bytes
    content_type: Optional[str] = None

    @property
    def stem(self) -> str:
        """File name without its extension, used as the default image title."""
        return self.filename.split('.')[0] if self.filename else ""

    @property
    def extension(self) -> str:
        suffix = PurePosixPath(self.filename or "").suffix.lstrip('.')
        if suffix:
            return suffix.lower()
        guessed = mimetypes.guess_extension(self.content_type or "") or ".bin"
        return guessed.lstrip('.')

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass
class StoredImage:
    bucket: str
    path: str
    url: str


def random_file_name() -> str:
    return uuid.uuid4().hex[:13]


async def store_image(storage: ObjectStorage, file: UploadedFile, folder: str = "gallery",
                      bucket: str = DEFAULT_BUCKET, convert: bool = False) -> StoredImage:
    """
    Upload one image and return where it landed. Raises on failure.

    With ``convert`` the content is re-encoded as WebP first; content Pillow
    cannot read is stored unchanged under its original extension.
    """
    content, extension, content_type = file.content, file.extension, file.content_type
    if convert:
        converted, ok = await convert_to_webp(file.content)
        if ok:
            content, extension, content_type = converted, "webp", "image/webp"

    path = f"{folder}/{random_file_name()}.{extension}"
    await storage.ensure_bucket(bucket)
    target = storage.from_(bucket)
    stored_path = await target.upload(path, content, content_type=content_type)
    return StoredImage(bucket=bucket, path=stored_path, url=target.get_public_url(stored_path))


async def upload_image(storage: ObjectStorage, file: UploadedFile, folder: str = "gallery",
                       bucket: str = DEFAULT_BUCKET, convert: bool = False) -> Optional[str]:
    """Upload one image; returns its public URL, or None when the upload failed."""
    try:
        stored = await store_image(storage, file, folder=folder, bucket=bucket, convert=convert)
        return stored.url
    except StorageQuotaExceeded as e:
        logger.error(f"Storage quota exceeded while uploading {file.filename}: {e.message}")
        return None
    except LexPixError as e:
        logger.error(f"Error uploading image {file.filename}: {e.message}")
        return None
    except Exception as e:
        logger.error(f"Error uploading image {file.filename}: {str(e)}", exc_info=True)
        return None


async def discard_image(storage: ObjectStorage, stored: StoredImage) -> None:
    """Best-effort removal of an upload whose database row was never written."""
    try:
        await storage.from_(stored.bucket).remove([stored.path])
        logger.info(f"Removed orphaned upload {stored.bucket}/{stored.path}")
    except Exception as e:
        logger.error(f"Could not remove orphaned upload {stored.bucket}/{stored.path}: {str(e)}")
