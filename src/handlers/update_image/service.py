"""Business logic for image metadata updates."""

from typing import Any

from aws_lambda_powertools import Logger

from core.container import Container, get_container
from core.models.errors import NotFoundError, ValidationError
from core.models.image import ImageDetail, ImageUpdate
from core.services.url_resolver import image_detail

logger = Logger(UTC=True)


class UpdateService:
    """Application service replacing an image's tags and/or expiry."""

    def __init__(self, container: Container | None = None) -> None:
        container = container or get_container()
        self.metadata = container.metadata
        self.cache = container.cache
        self.base_url = container.settings.public_base_url

    def update_image(self, image_id: str, fields: dict[str, Any]) -> ImageDetail:
        """
        Raises:
            ValidationError: If no updatable field was provided
            NotFoundError: If the image does not exist
        """
        if not fields:
            raise ValidationError(message="No updates provided", details={"image_id": image_id})

        updated = self.metadata.update_image(image_id, ImageUpdate(**fields))

        if updated is None:
            raise NotFoundError(message="Image not found", details={"image_id": image_id})

        self.cache.invalidate_after_tag_change()

        logger.info("Image updated", extra={"image_id": image_id, "fields": sorted(fields)})
        return image_detail(self.base_url, updated)
