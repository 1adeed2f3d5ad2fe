"""Business logic for paginated image listing."""

from aws_lambda_powertools import Logger

from core.container import Container, get_container
from core.models.image import ImageFilters, ListImagesResponse
from core.models.pagination import PaginationInfo
from core.services.url_resolver import image_detail
from core.utils.constants import CACHE_TTL_IMAGES_LIST

from .models import ListImagesRequest

logger = Logger(UTC=True)


class ListService:
    """Read-through cached image listing."""

    def __init__(self, container: Container | None = None) -> None:
        container = container or get_container()
        self.metadata = container.metadata
        self.cache = container.cache
        self.base_url = container.settings.public_base_url

    def list_images(self, request: ListImagesRequest) -> ListImagesResponse:
        cache_key = self.cache.images_list_key(
            page=request.page,
            limit=request.limit,
            tag=request.tag,
            orientation=request.orientation,
        )

        if cache_key:
            cached = self.cache.get(cache_key)
            if cached is not None:
                return ListImagesResponse.model_validate(cached)

        page = self.metadata.get_images(
            ImageFilters(
                page=request.page,
                limit=request.limit,
                tag=request.tag,
                orientation=request.orientation,
            )
        )

        response = ListImagesResponse(
            images=[image_detail(self.base_url, image) for image in page.images],
            total_count=page.total,
            returned_count=len(page.images),
            pagination=PaginationInfo.for_page(page=request.page, limit=request.limit, total=page.total),
        )

        if cache_key:
            self.cache.set(cache_key, response.model_dump(), CACHE_TTL_IMAGES_LIST)

        logger.debug(
            "Images listed",
            extra={"page": request.page, "returned": response.returned_count, "total": page.total},
        )
        return response
