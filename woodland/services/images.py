"""Image resizing for uploaded photos.

Every stored image is re-encoded as JPEG and shrunk to fit the feature's
bounding box. Images already smaller than the box keep their size.
"""

from __future__ import annotations

import io
import logging
import uuid
from dataclasses import dataclass, field

from fastapi import UploadFile
from PIL import Image, ImageOps

from woodland.config import ImageSize, UploadPolicy
from woodland.observability.metrics import UPLOAD_COUNTER
from woodland.services.storage import LocalStorage, UploadError

logger = logging.getLogger(__name__)


class ImageProcessingError(Exception):
    """A single image could not be accepted; ``str(exc)`` is user-facing."""


@dataclass
class FailedImage:
    name: str
    error: str


@dataclass
class ImageProcessingResult:
    succeeded: list[str] = field(default_factory=list)
    failed: list[FailedImage] = field(default_factory=list)
    # stored filename -> name the client uploaded it under
    original_names: dict[str, str] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed)

    def summary(self) -> str:
        return f"{len(self.succeeded)}/{self.total}"


def resize_to_jpeg(data: bytes, max_size: ImageSize, quality: int) -> bytes:
    """Decode ``data``, fit it inside ``max_size`` and encode as JPEG."""
    with Image.open(io.BytesIO(data)) as source:
        image = ImageOps.exif_transpose(source)
        if image.mode in ("RGBA", "LA", "P"):
            image = image.convert("RGBA")
            background = Image.new("RGB", image.size, (255, 255, 255))
            background.paste(image, mask=image.getchannel("A"))
            image = background
        elif image.mode != "RGB":
            image = image.convert("RGB")
        # thumbnail() only ever shrinks
        image.thumbnail((max_size.width, max_size.height), Image.Resampling.LANCZOS)
        buffer = io.BytesIO()
        image.save(buffer, format="JPEG", quality=quality, optimize=True)
    return buffer.getvalue()


async def process_image_with_resize(
    file: UploadFile, policy: UploadPolicy, storage: LocalStorage
) -> str:
    """Validate, resize and store one image; returns the stored filename."""
    if (file.content_type or "") not in policy.allowed_types:
        raise ImageProcessingError(
            "Unsupported file type. Allowed: " + ", ".join(policy.allowed_types)
        )
    data = await file.read()
    if len(data) > policy.max_file_size:
        raise ImageProcessingError(
            f"Files must be {policy.max_file_size_mb}MB or smaller"
        )

    try:
        encoded = resize_to_jpeg(data, policy.max_size, policy.quality)
    except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as exc:
        logger.warning("Could not decode image %s: %s", file.filename, exc)
        raise ImageProcessingError("Failed to process image") from exc

    filename = f"{uuid.uuid4()}.jpg"
    try:
        await storage.save(encoded, filename)
    except (OSError, UploadError) as exc:
        logger.exception("Could not store image %s", file.filename)
        raise ImageProcessingError("Failed to save image") from exc
    return filename


async def process_images_with_resize(
    files: list[UploadFile],
    policy: UploadPolicy,
    storage: LocalStorage,
    feature: str = "images",
) -> ImageProcessingResult:
    """Process ``files`` one after another, collecting failures instead of raising."""
    result = ImageProcessingResult()
    for file in files:
        name = file.filename or "image"
        try:
            stored = await process_image_with_resize(file, policy, storage)
            result.succeeded.append(stored)
            result.original_names[stored] = name
            UPLOAD_COUNTER.labels(feature, "stored").inc()
        except ImageProcessingError as exc:
            result.failed.append(FailedImage(name=name, error=str(exc)))
            UPLOAD_COUNTER.labels(feature, "failed").inc()
    if result.failed:
        logger.warning(
            "Image batch for %s partially failed: %s stored", feature, result.summary()
        )
    return result
