"""Image decoding helpers backed by Pillow."""

from io import BytesIO

from aws_lambda_powertools import Logger
from PIL import Image, UnidentifiedImageError

from core.models.errors import UnsupportedFormatError
from core.models.image import ImageInfo
from core.utils.constants import ORIENTATION_LANDSCAPE, ORIENTATION_PORTRAIT, SUPPORTED_FORMATS

logger = Logger(UTC=True)

# Pillow format names -> stored format names
PIL_FORMATS = {
    "JPEG": "jpeg",
    "MPO": "jpeg",
    "PNG": "png",
    "GIF": "gif",
    "WEBP": "webp",
    "AVIF": "avif",
}


def is_supported_format(image_format: str | None) -> bool:
    if not image_format:
        return False
    normalized = image_format.lower()
    return normalized == "jpg" or normalized in SUPPORTED_FORMATS


def orientation_for(width: int, height: int) -> str:
    """Square images count as landscape."""
    return ORIENTATION_LANDSCAPE if width >= height else ORIENTATION_PORTRAIT


def get_image_info(data: bytes) -> ImageInfo:
    """Decode the header of ``data`` and report format, size and orientation.

    Raises:
        UnsupportedFormatError: If the bytes are not a decodable image of a
            supported format
    """
    try:
        with Image.open(BytesIO(data)) as image:
            pil_format = (image.format or "").upper()
            width, height = image.size
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        logger.warning("Unable to decode image", extra={"size": len(data)})
        raise UnsupportedFormatError(
            message="Invalid or unsupported image file",
            details={"size": len(data)},
        ) from exc

    image_format = PIL_FORMATS.get(pil_format)
    if not is_supported_format(image_format):
        raise UnsupportedFormatError(
            message=f"Unsupported image format: {pil_format or 'unknown'}",
            details={"format": pil_format},
        )

    return ImageInfo(
        format=image_format,
        width=width,
        height=height,
        orientation=orientation_for(width, height),
    )
