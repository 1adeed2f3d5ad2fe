"""Pydantic models for the random image request."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.models.image import Orientation
from core.utils.validators import parse_tags


class RandomImageRequest(BaseModel):
    """Query parameters of GET /api/random.

    Unknown ``orientation`` or ``format`` values are treated as absent.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    tags: list[str] = Field(default_factory=list, description="Comma-separated; image must carry all")
    exclude: list[str] = Field(default_factory=list, description="Comma-separated; image must carry none")
    orientation: Orientation | None = None
    format: Literal["original", "webp", "avif"] | None = None

    @field_validator("tags", "exclude", mode="before")
    @classmethod
    def split_tags(cls, value: Any) -> list[str]:
        return parse_tags(value)

    @field_validator("orientation", mode="before")
    @classmethod
    def known_orientation(cls, value: Any) -> Any:
        return value if value in ("landscape", "portrait") else None

    @field_validator("format", mode="before")
    @classmethod
    def known_format(cls, value: Any) -> Any:
        return value if value in ("original", "webp", "avif") else None
