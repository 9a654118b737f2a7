"""
Normalise uploaded progress photos: limit long side, keep aspect ratio, re-encode as JPEG.
Scale only, no cropping. Transparent images are flattened onto white.
"""
import io
import logging

from PIL import Image, ImageOps, UnidentifiedImageError
from starlette.concurrency import run_in_threadpool

logger = logging.getLogger(__name__)

PHOTO_MAX_LONG_SIDE = 2048
PHOTO_JPEG_QUALITY = 85


class InvalidImageError(ValueError):
    pass


def _normalize_sync(image_bytes: bytes, max_long_side: int, jpeg_quality: int) -> bytes:
    try:
        img = Image.open(io.BytesIO(image_bytes))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise InvalidImageError("File is not a readable image") from e

    # Phone cameras store rotation in EXIF
    img = ImageOps.exif_transpose(img)

    if img.mode in ("P", "RGBA", "LA"):
        if img.mode == "P":
            img = img.convert("RGBA")
        background = Image.new("RGB", img.size, (255, 255, 255))
        background.paste(img, mask=img.split()[-1])
        img = background
    elif img.mode != "RGB":
        img = img.convert("RGB")

    w, h = img.size
    long_side = max(w, h)
    if long_side > max_long_side:
        scale = max_long_side / long_side
        img = img.resize((max(1, round(w * scale)), max(1, round(h * scale))), Image.Resampling.LANCZOS)

    buf = io.BytesIO()
    img.save(buf, format="JPEG", quality=jpeg_quality)
    return buf.getvalue()


def normalize_photo(
    image_bytes: bytes,
    max_long_side: int = PHOTO_MAX_LONG_SIDE,
    jpeg_quality: int = PHOTO_JPEG_QUALITY,
) -> bytes:
    """JPEG bytes for `image_bytes`; raises InvalidImageError for non-images."""
    return _normalize_sync(image_bytes, max_long_side, jpeg_quality)


async def normalize_photo_async(
    image_bytes: bytes,
    max_long_side: int = PHOTO_MAX_LONG_SIDE,
    jpeg_quality: int = PHOTO_JPEG_QUALITY,
) -> bytes:
    return await run_in_threadpool(_normalize_sync, image_bytes, max_long_side, jpeg_quality)
