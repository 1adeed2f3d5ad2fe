"""Business logic for image upload operations.

This module coordinates decoding, variant generation, storage and metadata
persistence for image uploads while translating failures into
domain-specific errors.
"""

import uuid
from typing import Any

from aws_lambda_powertools import Logger

from core.container import Container, get_container
from core.infrastructure.aws.s3_image_storage import S3ImageStorage
from core.models.compression import CompressionResult
from core.models.errors import MetadataOperationFailedError
from core.models.image import ImageMetadata, ImagePaths, ImageSizes
from core.services.image_info import get_image_info
from core.services.url_resolver import build_image_urls
from core.utils.mime import content_type_for_format
from core.utils.time import expiry_from_minutes, utc_now_iso

from .models import UploadResult

logger = Logger(UTC=True)


class UploadService:
    """Application service responsible for image uploads.

    This service orchestrates:
    - Image decoding and format validation
    - Uploading the original while variants are generated
    - Uploading WebP / AVIF variants, falling back to the original bytes
    - Persisting image metadata
    - Scheduling cache invalidation
    """

    def __init__(self, container: Container | None = None) -> None:
        """Initialize the upload service with required infrastructure dependencies."""
        container = container or get_container()
        self.settings = container.settings
        self.storage = container.storage
        self.metadata = container.metadata
        self.cache = container.cache
        self.compression = container.compression
        self.executor = container.executor

    @staticmethod
    def generate_image_id() -> str:
        """Generate a unique image identifier."""
        return f"img_{uuid.uuid4().hex}"

    def upload_image(
        self,
        *,
        file_data: bytes,
        original_name: str,
        tags: list[str] | None = None,
        expiry_minutes: int | None = None,
        compression_overrides: dict[str, Any] | None = None,
    ) -> UploadResult:
        """Store an image with its variants and persist its metadata.

        The upload flow is:
        1. Decode the image; reject unsupported formats before any write
        2. Upload the original while variants are generated
        3. Upload both variants, substituting the original bytes for a
           variant that could not be generated
        4. Persist metadata in one atomic batch (clean up objects on failure)
        5. Invalidate caches without waiting

        Raises:
            UnsupportedFormatError: If the bytes are not a supported image
            ImageUploadFailedError: If any storage write fails
            MetadataOperationFailedError: If metadata persistence fails
        """
        tags = tags or []

        # Step 1: Decode and validate format
        info = get_image_info(file_data)

        image_id = self.generate_image_id()
        paths = S3ImageStorage.generate_paths(image_id, info.orientation, info.format)
        content_type = content_type_for_format(info.format)

        logger.debug(
            "Starting image upload",
            extra={"image_id": image_id, "format": info.format, "size": len(file_data)},
        )

        # Steps 2-3: Store original and variants
        if info.format == "gif":
            self.storage.upload_object(key=paths.original, data=file_data, content_type=content_type)
            paths = ImagePaths(original=paths.original)
            sizes = ImageSizes(original=len(file_data))
        else:
            sizes = self._store_with_variants(
                file_data,
                paths=paths,
                content_type=content_type,
                image_format=info.format,
                dimensions=(info.width, info.height),
                compression_overrides=compression_overrides,
            )

        minutes = self.settings.default_expiry_minutes if expiry_minutes is None else expiry_minutes

        metadata = ImageMetadata(
            id=image_id,
            original_name=original_name,
            upload_time=utc_now_iso(),
            expiry_time=expiry_from_minutes(minutes),
            orientation=info.orientation,
            tags=tags,
            format=info.format,
            width=info.width,
            height=info.height,
            paths=paths,
            sizes=sizes,
        )

        # Step 4: Persist metadata (roll back storage on failure)
        try:
            self.metadata.save_image(metadata)
        except MetadataOperationFailedError:
            logger.exception("Failed to persist image metadata", extra={"image_id": image_id})
            self._remove_objects(paths)
            raise

        # Step 5: Fire-and-forget invalidation
        self.cache.invalidate_async(self.executor)

        logger.info(
            "Image uploaded successfully",
            extra={"image_id": image_id, "orientation": info.orientation, "tags": tags},
        )

        return UploadResult(
            id=image_id,
            urls=build_image_urls(self.settings.public_base_url, metadata),
            orientation=info.orientation,
            tags=tags,
            sizes=sizes,
            expiry_time=metadata.expiry_time,
            format=info.format,
        )

    def _store_with_variants(
        self,
        file_data: bytes,
        *,
        paths: ImagePaths,
        content_type: str,
        image_format: str,
        dimensions: tuple[int, int],
        compression_overrides: dict[str, Any] | None,
    ) -> ImageSizes:
        options = self.settings.compression_options(compression_overrides)

        original_upload = self.executor.submit(
            self.storage.upload_object,
            key=paths.original,
            data=file_data,
            content_type=content_type,
        )
        compression = self.executor.submit(
            self.compression.compress,
            file_data,
            image_format,
            options,
            dimensions=dimensions,
        )

        original_upload.result()
        result: CompressionResult = compression.result()

        webp_data, webp_type = (
            (result.webp.data, result.webp.content_type) if result.webp else (file_data, content_type)
        )
        avif_data, avif_type = (
            (result.avif.data, result.avif.content_type) if result.avif else (file_data, content_type)
        )

        if not result.webp or not result.avif:
            logger.warning(
                "Variant unavailable, storing original bytes in its place",
                extra={"webp": bool(result.webp), "avif": bool(result.avif), "key": paths.original},
            )

        variant_uploads = [
            self.executor.submit(self.storage.upload_object, key=paths.webp, data=webp_data, content_type=webp_type),
            self.executor.submit(self.storage.upload_object, key=paths.avif, data=avif_data, content_type=avif_type),
        ]
        for upload in variant_uploads:
            upload.result()

        return ImageSizes(original=len(file_data), webp=len(webp_data), avif=len(avif_data))

    def _remove_objects(self, paths: ImagePaths) -> None:
        """Best-effort cleanup to avoid orphaned storage objects."""
        for key in filter(None, (paths.original, paths.webp, paths.avif)):
            try:
                self.storage.remove_object(key=key)
            except Exception:
                logger.warning(
                    "Failed to clean up uploaded object after metadata failure",
                    extra={"key": key},
                )
