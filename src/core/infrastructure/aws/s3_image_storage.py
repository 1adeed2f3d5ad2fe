"""S3-backed implementation of ImageStorageRepository."""

from aws_lambda_powertools import Logger
from botocore.exceptions import ClientError

from core.infrastructure.adapters.s3_adapter import S3Adapter
from core.models.errors import ImageDeletionFailedError, ImageUploadFailedError
from core.models.image import ImagePaths
from core.repositories.storage_repository import ImageStorageRepository
from core.utils.mime import extension_for_format

logger = Logger(UTC=True)

MISSING_KEY_ERROR_CODES = frozenset({"NoSuchKey", "404", "NotFound"})


class S3ImageStorage(ImageStorageRepository):
    """Image storage implementation backed by Amazon S3."""

    def __init__(self, adapter: S3Adapter | None = None) -> None:
        """Create storage using the provided S3 adapter."""
        self._s3 = adapter or S3Adapter()

    @staticmethod
    def generate_paths(image_id: str, orientation: str, image_format: str) -> ImagePaths:
        """Object keys for an image and both variants, grouped by orientation."""
        extension = extension_for_format(image_format)
        return ImagePaths(
            original=f"original/{orientation}/{image_id}.{extension}",
            webp=f"webp/{orientation}/{image_id}.webp",
            avif=f"avif/{orientation}/{image_id}.avif",
        )

    def upload_object(self, *, key: str, data: bytes, content_type: str) -> None:
        """Upload bytes to S3 under ``key``."""
        logger.debug(
            "Uploading object",
            extra={"key": key, "size": len(data), "content_type": content_type},
        )

        try:
            self._s3.put_object(
                key=key,
                body=data,
                content_type=content_type,
                metadata={},
            )
            logger.info("Object uploaded successfully", extra={"key": key})

        except ClientError as exc:
            logger.error("S3 upload failed", extra={"key": key})
            raise ImageUploadFailedError(
                message="Unable to upload image at this time",
                details={"key": key},
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error uploading object")
            raise ImageUploadFailedError(
                message="Unable to upload image at this time",
                details={"key": key},
            ) from exc

    def remove_object(self, *, key: str) -> None:
        """Delete an object from S3; a key that is already gone is a success."""
        logger.debug("Deleting object", extra={"key": key})

        try:
            self._s3.delete_object(key=key)
            logger.info("Object deleted successfully", extra={"key": key})

        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in MISSING_KEY_ERROR_CODES:
                logger.info("Object already absent", extra={"key": key})
                return

            logger.error("S3 deletion failed", extra={"key": key})
            raise ImageDeletionFailedError(
                message="Unable to delete image at this time",
                details={"key": key},
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error deleting object")
            raise ImageDeletionFailedError(
                message="Unable to delete image at this time",
                details={"key": key},
            ) from exc
