"""Business logic for single image lookup."""

from aws_lambda_powertools import Logger

from core.container import Container, get_container
from core.models.errors import NotFoundError
from core.models.image import ImageDetail
from core.services.url_resolver import image_detail

logger = Logger(UTC=True)


class GetService:
    """Application service returning one image with its delivery URLs."""

    def __init__(self, container: Container | None = None) -> None:
        container = container or get_container()
        self.metadata = container.metadata
        self.base_url = container.settings.public_base_url

    def get_image(self, image_id: str) -> ImageDetail:
        """
        Raises:
            NotFoundError: If the image does not exist
        """
        image = self.metadata.get_image(image_id)

        if image is None:
            logger.warning("Image metadata not found", extra={"image_id": image_id})
            raise NotFoundError(message="Image not found", details={"image_id": image_id})

        return image_detail(self.base_url, image)
