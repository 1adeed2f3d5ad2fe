"""WebP / AVIF variant generation.

Variants are produced one format at a time, WebP first. Each format can fail
on its own; a failed variant is left out of the result instead of failing
the upload. Transient transform errors are retried with exponential backoff.
"""

import time
from collections.abc import Callable
from io import BytesIO
from typing import Protocol, TypeVar

from aws_lambda_powertools import Logger
from PIL import Image

from core.models.compression import CompressedImage, CompressionOptions, CompressionResult
from core.models.errors import TransformError
from core.services.image_info import get_image_info
from core.utils.constants import (
    AVIF_ATTEMPTS,
    AVIF_MAX_DIMENSION,
    RETRY_BASE_DELAY_SECONDS,
    TRANSIENT_ERROR_MARKERS,
    WEBP_ATTEMPTS,
)
from core.utils.mime import content_type_for_format

logger = Logger(UTC=True)

T = TypeVar("T")

GRAPHIC_CONTROL_EXTENSION = b"\x21\xf9"
IMAGE_DESCRIPTOR = b"\x2c"


class ImageTransformer(Protocol):
    """Encodes source bytes into a target format at a given size."""

    def transform(
        self,
        data: bytes,
        *,
        target_format: str,
        quality: int,
        width: int,
        height: int,
    ) -> CompressedImage: ...


class PillowImageTransformer:
    """Default transformer; resizes with LANCZOS and encodes with Pillow."""

    def transform(
        self,
        data: bytes,
        *,
        target_format: str,
        quality: int,
        width: int,
        height: int,
    ) -> CompressedImage:
        try:
            with Image.open(BytesIO(data)) as source:
                has_alpha = source.mode in ("RGBA", "LA") or "transparency" in source.info
                frame = source.convert("RGBA" if has_alpha else "RGB")

            if frame.size != (width, height):
                frame = frame.resize((width, height), Image.Resampling.LANCZOS)

            buffer = BytesIO()
            frame.save(buffer, format=target_format.upper(), quality=quality)

        except (OSError, ValueError, KeyError) as exc:
            raise TransformError(
                message=f"Unable to encode {target_format}: {exc}",
                details={"format": target_format},
            ) from exc

        encoded = buffer.getvalue()
        return CompressedImage(
            data=encoded,
            content_type=content_type_for_format(target_format),
            size=len(encoded),
        )


def is_transient_error(exc: BaseException) -> bool:
    message = str(exc).lower()
    return any(marker in message for marker in TRANSIENT_ERROR_MARKERS)


def with_retry(
    operation: Callable[[], T],
    *,
    label: str,
    attempts: int,
    base_delay: float = RETRY_BASE_DELAY_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run ``operation``, retrying transient failures.

    The delay before retry ``n`` is ``base_delay * 2 ** (n - 1)``. Errors that
    are not transient, and the error from the last attempt, are re-raised.
    """
    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except Exception as exc:
            if attempt >= attempts or not is_transient_error(exc):
                raise

            delay = base_delay * 2 ** (attempt - 1)
            logger.warning(
                f"{label} attempt failed, retrying",
                extra={"attempt": attempt, "delay_seconds": delay, "error": str(exc)},
            )
            sleep(delay)

    raise ValueError("attempts must be at least 1")


def is_animated_gif(data: bytes) -> bool:
    """More than one frame marker means more than one frame."""
    markers = data.count(GRAPHIC_CONTROL_EXTENSION) + data[:-1].count(IMAGE_DESCRIPTOR)
    return markers > 1


def calculate_dimensions(
    width: int,
    height: int,
    max_width: int,
    max_height: int,
) -> tuple[int, int]:
    """Fit within the bounds keeping aspect ratio; never upscale."""
    if width <= max_width and height <= max_height:
        return width, height

    scale = min(max_width / width, max_height / height)
    return round(width * scale), round(height * scale)


class CompressionService:
    """Produces optional WebP and AVIF variants of an upload."""

    def __init__(
        self,
        transformer: ImageTransformer | None = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.transformer = transformer or PillowImageTransformer()
        self._sleep = sleep

    def compress(
        self,
        data: bytes,
        source_format: str,
        options: CompressionOptions | None = None,
        *,
        dimensions: tuple[int, int] | None = None,
    ) -> CompressionResult:
        opts = options or CompressionOptions()

        is_animated = source_format == "gif" and is_animated_gif(data)
        if is_animated and opts.preserve_animation:
            logger.info("Animated GIF, skipping compression")
            return CompressionResult(original=data, is_animated=True)

        if dimensions is None:
            info = get_image_info(data)
            dimensions = (info.width, info.height)

        width, height = dimensions
        webp_size = calculate_dimensions(width, height, opts.max_width, opts.max_height)
        avif_size = calculate_dimensions(
            width,
            height,
            min(opts.max_width, AVIF_MAX_DIMENSION),
            min(opts.max_height, AVIF_MAX_DIMENSION),
        )

        # AVIF fails more often; run it after WebP rather than concurrently
        webp = (
            self._encode(data, "webp", opts.quality, webp_size, WEBP_ATTEMPTS)
            if opts.generate_webp
            else None
        )
        avif = (
            self._encode(data, "avif", opts.quality, avif_size, AVIF_ATTEMPTS)
            if opts.generate_avif
            else None
        )

        logger.debug(
            "Compression finished",
            extra={
                "source_format": source_format,
                "webp_size": webp.size if webp else None,
                "avif_size": avif.size if avif else None,
            },
        )

        return CompressionResult(original=data, webp=webp, avif=avif, is_animated=is_animated)

    def _encode(
        self,
        data: bytes,
        target_format: str,
        quality: int,
        size: tuple[int, int],
        attempts: int,
    ) -> CompressedImage | None:
        label = f"{target_format.upper()} compression"

        try:
            return with_retry(
                lambda: self.transformer.transform(
                    data,
                    target_format=target_format,
                    quality=quality,
                    width=size[0],
                    height=size[1],
                ),
                label=label,
                attempts=attempts,
                sleep=self._sleep,
            )
        except Exception as exc:
            logger.error(f"{label} failed", extra={"error": str(exc)})
            return None
