"""
Odometer photo pipeline: validate, compress, upload.

Photos are re-encoded as JPEG and shrunk until they fit the target size
(about 300 KB) so meter digits stay legible without storing camera originals.
"""

import io
import logging
import time
from dataclasses import dataclass

from fastapi.concurrency import run_in_threadpool
from PIL import Image, ImageOps, UnidentifiedImageError

from fleetdesk.app.core.config import settings
from fleetdesk.app.core.exceptions import PhotoProcessingError
from fleetdesk.app.schemas.trip import MeterPhoto

logger = logging.getLogger(__name__)

QUALITY_STEP = 10
SHRINK_FACTOR = 0.8
MIN_DIMENSION = 320


@dataclass
class StoredPhoto:
    bucket: str
    path: str
    url: str


def validate_image(content_type: str, size: int) -> None:
    """
    Reject non-images and oversized uploads before any work is done.

    Raises:
        PhotoProcessingError: With a message suitable for the user
    """
    if not content_type or not content_type.startswith("image/"):
        raise PhotoProcessingError("Please upload an image file")
    if size <= 0:
        raise PhotoProcessingError("Uploaded image is empty")
    if size > settings.photo_max_upload_bytes:
        limit_mb = settings.photo_max_upload_bytes // (1024 * 1024)
        raise PhotoProcessingError(f"Image size must be less than {limit_mb} MB")


def _encode(img: Image.Image, quality: int) -> bytes:
    buffer = io.BytesIO()
    img.save(buffer, format="JPEG", quality=quality, optimize=True)
    return buffer.getvalue()


def compress_image(
    data: bytes,
    max_dimension: int = None,
    target_bytes: int = None,
    initial_quality: int = None,
    min_quality: int = None,
) -> bytes:
    """
    Re-encode an image as a JPEG no larger than ``target_bytes`` if possible.

    Quality drops in steps of 10 down to ``min_quality``; after that the image
    is scaled down by 20% per round until it fits or gets too small. The last
    encoding is returned even if it is still above target.
    """
    max_dimension = max_dimension or settings.photo_max_dimension
    target_bytes = target_bytes or settings.photo_target_bytes
    initial_quality = initial_quality or settings.photo_initial_quality
    min_quality = min_quality or settings.photo_min_quality

    try:
        with Image.open(io.BytesIO(data)) as original:
            img = ImageOps.exif_transpose(original)
            if img.mode != "RGB":
                img = img.convert("RGB")
            img.thumbnail((max_dimension, max_dimension))

            while True:
                quality = initial_quality
                encoded = _encode(img, quality)
                while len(encoded) > target_bytes and quality - QUALITY_STEP >= min_quality:
                    quality -= QUALITY_STEP
                    encoded = _encode(img, quality)

                if len(encoded) <= target_bytes:
                    return encoded

                width, height = img.size
                new_size = (int(width * SHRINK_FACTOR), int(height * SHRINK_FACTOR))
                if min(new_size) < MIN_DIMENSION:
                    return encoded
                img = img.resize(new_size, Image.LANCZOS)
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        logger.warning("Image compression failed: %s", exc)
        raise PhotoProcessingError() from exc


def storage_savings(original_size: int, compressed_size: int) -> dict:
    saved = original_size - compressed_size
    percentage = (saved / original_size * 100) if original_size else 0.0
    return {
        "saved_bytes": saved,
        "saved_mb": round(saved / 1024 / 1024, 2),
        "savings_percentage": round(percentage, 1),
        "original_size_mb": round(original_size / 1024 / 1024, 2),
        "compressed_size_kb": round(compressed_size / 1024, 2),
    }


def meter_photo_path(employee_id: int, request_id: int, stage: str) -> str:
    """``<employee>/<start|end>-<request>-<epoch ms>.jpg``"""
    return f"{employee_id}/{stage}-{request_id}-{int(time.time() * 1000)}.jpg"


async def upload_meter_photo(store, photo: MeterPhoto, employee_id: int, request_id: int, stage: str) -> StoredPhoto:
    """
    Validate, compress and upload one odometer photo.

    Raises:
        PhotoProcessingError: Not an image, too large, or undecodable
        StorageError: Upload rejected by the object store
    """
    validate_image(photo.content_type, len(photo.data))

    compressed = await run_in_threadpool(compress_image, photo.data)
    savings = storage_savings(len(photo.data), len(compressed))
    logger.info(
        "Meter photo compressed: %sMB -> %sKB (%s%% saved)",
        savings["original_size_mb"], savings["compressed_size_kb"], savings["savings_percentage"],
    )

    bucket = settings.meter_photo_bucket
    path = meter_photo_path(employee_id, request_id, stage)
    stored_path = await store.upload(bucket, path, compressed, "image/jpeg")

    return StoredPhoto(bucket=bucket, path=stored_path, url=store.get_public_url(bucket, stored_path))
