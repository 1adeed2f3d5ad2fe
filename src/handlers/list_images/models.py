"""
Pydantic models for list images request.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.models.image import Orientation
from core.utils.constants import DEFAULT_LIMIT, DEFAULT_PAGE, MAX_LIMIT, MIN_LIMIT
from core.utils.validators import sanitize_tag_name


class ListImagesRequest(BaseModel):
    """
    Validation model for GET /api/images.

    Supports two filters:
    - tag: exact tag name match
    - orientation: landscape | portrait
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    page: int = Field(default=DEFAULT_PAGE, ge=1, description="Page number, starting at 1")
    limit: int = Field(
        default=DEFAULT_LIMIT,
        ge=MIN_LIMIT,
        le=MAX_LIMIT,
        description=f"Results per page ({MIN_LIMIT}-{MAX_LIMIT})",
    )
    tag: str | None = Field(None, description="Only images carrying this tag")
    orientation: Orientation | None = Field(None, description="Only images with this orientation")

    @field_validator("tag", mode="before")
    @classmethod
    def normalize_tag(cls, value: Any) -> str | None:
        return sanitize_tag_name(value) or None

    @field_validator("orientation", mode="before")
    @classmethod
    def empty_orientation(cls, value: Any) -> Any:
        return value or None
