"""Shared image and tag metadata models."""

from typing import Literal

from pydantic import BaseModel, Field, StrictInt, StrictStr

from core.models.pagination import PaginationInfo
from core.utils.constants import DEFAULT_LIMIT, DEFAULT_PAGE, MAX_LIMIT

Orientation = Literal["landscape", "portrait"]


class ImagePaths(BaseModel):
    """Object storage keys of an image and its derived variants."""

    original: StrictStr = Field(..., description="Key of the original upload")
    webp: StrictStr = Field("", description="Key of the WebP variant, empty when absent")
    avif: StrictStr = Field("", description="Key of the AVIF variant, empty when absent")


class ImageSizes(BaseModel):
    """Byte sizes of the stored objects."""

    original: StrictInt = 0
    webp: StrictInt = 0
    avif: StrictInt = 0


class ImageMetadata(BaseModel):
    """Authoritative image record owned by the metadata store."""

    id: StrictStr = Field(..., description="Unique image identifier")
    original_name: StrictStr = Field(..., description="Original upload file name")
    upload_time: StrictStr = Field(..., description="ISO-8601 upload timestamp (UTC)")
    expiry_time: StrictStr | None = Field(None, description="ISO-8601 expiry timestamp (UTC)")

    orientation: Orientation = Field(..., description="Derived from dimensions at upload")
    tags: list[StrictStr] = Field(default_factory=list, description="Associated tag names")

    format: StrictStr = Field(..., description="Decoded image format (jpeg, png, ...)")
    width: StrictInt = Field(..., description="Width in pixels")
    height: StrictInt = Field(..., description="Height in pixels")

    paths: ImagePaths
    sizes: ImageSizes = Field(default_factory=ImageSizes)


class ImageUpdate(BaseModel):
    """Partial update applied by ``update_image``.

    Only fields present in ``model_fields_set`` are applied, so an explicit
    ``expiry_time=None`` clears the expiry while an omitted one keeps it.
    """

    tags: list[StrictStr] | None = None
    expiry_time: StrictStr | None = None


class ImageFilters(BaseModel):
    """Filters for paginated image listing."""

    page: int = Field(DEFAULT_PAGE, ge=1)
    limit: int = Field(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT)
    tag: StrictStr | None = None
    orientation: Orientation | None = None


class RandomImageFilters(BaseModel):
    """Filters for random image selection."""

    tags: list[StrictStr] = Field(default_factory=list, description="Image must carry all of these")
    exclude: list[StrictStr] = Field(default_factory=list, description="Image must carry none of these")
    orientation: Orientation | None = None


class ImagePage(BaseModel):
    """One page of images plus the total number of matches."""

    images: list[ImageMetadata]
    total: StrictInt


class Tag(BaseModel):
    """Tag name with its live association count."""

    name: StrictStr
    count: StrictInt = 0


class ImageUrls(BaseModel):
    """Public delivery URLs; an empty string means the format is unavailable."""

    original: StrictStr
    webp: StrictStr = ""
    avif: StrictStr = ""


class ImageInfo(BaseModel):
    """Result of decoding an uploaded image."""

    format: StrictStr
    width: StrictInt
    height: StrictInt
    orientation: Orientation


class ImageDetail(ImageMetadata):
    """Image record together with its public delivery URLs."""

    urls: ImageUrls


class ListImagesResponse(BaseModel):
    """Paginated response for listing images."""

    images: list[ImageDetail] = Field(..., description="Images on this page")
    total_count: StrictInt = Field(..., description="Total number of images matching the query")
    returned_count: StrictInt = Field(..., description="Number of images returned in this response")
    pagination: PaginationInfo = Field(..., description="Pagination metadata")
