"""Business logic for image deletion.

Metadata is removed first so the image disappears from every read path
immediately. Stored objects are removed asynchronously by the deletion
worker from a queued job.
"""

from aws_lambda_powertools import Logger

from core.container import Container, get_container
from core.services.deletion_pipeline import DeletionOutcome

logger = Logger(UTC=True)


class DeleteService:
    """Application service responsible for deleting images."""

    def __init__(self, container: Container | None = None) -> None:
        """Initialize the delete service with the shared deletion pipeline."""
        container = container or get_container()
        self.pipeline = container.pipeline

    def delete_image(self, image_id: str) -> DeletionOutcome:
        """Delete an image, its tag associations and (asynchronously) its objects.

        Raises:
            NotFoundError: If the image does not exist
            MetadataOperationFailedError: If metadata deletion fails
        """
        logger.debug("Starting image deletion", extra={"image_id": image_id})
        return self.pipeline.delete_image(image_id)
