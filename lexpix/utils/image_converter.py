"""
Image conversion utility: re-encodes uploads as WebP before they are stored,
which keeps data URLs in the local store (and Cloudinary bandwidth) small.
"""
import io
import logging
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

DEFAULT_WEBP_QUALITY = 85
DEFAULT_WEBP_METHOD = 6
MAX_DIMENSION = 3840  # longest edge before downscaling, None disables


def _scaled_size(width: int, height: int, max_dimension: int) -> Tuple[int, int]:
    if width >= height:
        return max_dimension, int(height * (max_dimension / width))
    return int(width * (max_dimension / height)), max_dimension


async def convert_to_webp(
    image_bytes: bytes,
    quality: int = DEFAULT_WEBP_QUALITY,
    method: int = DEFAULT_WEBP_METHOD,
    max_dimension: Optional[int] = MAX_DIMENSION,
) -> Tuple[bytes, bool]:
    """
    Convert image bytes to WebP.

    Args:
        image_bytes: Original file content
        quality: WebP quality (0-100); 100 switches to lossless
        method: WebP compression effort (0-6)
        max_dimension: Longest allowed edge, larger images are downscaled

    Returns:
        Tuple[bytes, bool]: the WebP bytes and True, or the untouched input
        and False when the content is not a readable image. Input that is
        already WebP is returned as-is with True.
    """
    try:
        image = Image.open(io.BytesIO(image_bytes))

        if image.format == 'WEBP':
            logger.debug("Image is already WebP, skipping conversion")
            return image_bytes, True

        # WebP keeps alpha, so only palette and exotic modes need converting
        if image.mode == 'P':
            image = image.convert('RGBA')
        elif image.mode not in ('RGB', 'RGBA', 'LA'):
            if image.mode not in ('CMYK', 'L'):
                logger.warning(f"Unusual image mode '{image.mode}', converting to RGB")
            image = image.convert('RGB')

        if max_dimension:
            width, height = image.size
            if width > max_dimension or height > max_dimension:
                new_size = _scaled_size(width, height, max_dimension)
                logger.info(f"Downscaling image from {width}x{height} to {new_size[0]}x{new_size[1]}")
                image = image.resize(new_size, Image.Resampling.LANCZOS)

        buffer = io.BytesIO()
        save_kwargs = {'format': 'WEBP', 'quality': quality, 'method': method}
        if quality == 100:
            save_kwargs['lossless'] = True
        image.save(buffer, **save_kwargs)
        webp_bytes = buffer.getvalue()

        logger.info(
            f"Converted upload to WebP: {len(image_bytes):,} bytes -> {len(webp_bytes):,} bytes "
            f"(quality={quality})"
        )
        return webp_bytes, True

    except UnidentifiedImageError as e:
        logger.warning(f"Cannot identify image format: {str(e)}")
        return image_bytes, False

    except Exception as e:
        logger.error(f"Error converting image to WebP: {str(e)}", exc_info=True)
        return image_bytes, False
