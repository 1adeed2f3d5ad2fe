"""Business logic for random image selection."""

from aws_lambda_powertools import Logger

from core.container import Container, get_container
from core.models.errors import NotFoundError
from core.models.image import RandomImageFilters
from core.services.url_resolver import resolve
from core.utils.constants import ORIENTATION_LANDSCAPE, ORIENTATION_PORTRAIT
from core.utils.validators import is_mobile_device

from .models import RandomImageRequest

logger = Logger(UTC=True)


class RandomService:
    """Picks a random matching image and resolves the URL to redirect to."""

    def __init__(self, container: Container | None = None) -> None:
        container = container or get_container()
        self.metadata = container.metadata
        self.base_url = container.settings.public_base_url

    def random_image_url(
        self,
        request: RandomImageRequest,
        *,
        user_agent: str | None = None,
        accept: str | None = None,
    ) -> str:
        """Return the URL of one random image matching the request.

        Without an explicit orientation, mobile clients get portrait images
        and everyone else landscape.

        Raises:
            NotFoundError: If no image matches
        """
        orientation = request.orientation or (
            ORIENTATION_PORTRAIT if is_mobile_device(user_agent) else ORIENTATION_LANDSCAPE
        )

        filters = RandomImageFilters(tags=request.tags, exclude=request.exclude, orientation=orientation)
        image = self.metadata.get_random_image(filters)

        if image is None:
            logger.info("No image matches random filters", extra=filters.model_dump())
            raise NotFoundError(message="No images found matching criteria", details=filters.model_dump())

        url = resolve(self.base_url, image, request.format, accept)

        logger.debug("Random image selected", extra={"image_id": image.id, "url": url})
        return url
