"""Compression option and result models."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from core.utils.constants import DEFAULT_MAX_DIMENSION, DEFAULT_QUALITY


class CompressionOptions(BaseModel):
    """Per-upload compression settings.

    Accepts snake_case or camelCase keys. Values are parsed leniently the way
    form fields arrive: unparsable numbers fall back to the default and
    toggles are only off for an explicit ``false``.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    quality: int = Field(DEFAULT_QUALITY, ge=1, le=100)
    max_width: int = Field(DEFAULT_MAX_DIMENSION, ge=1)
    max_height: int = Field(DEFAULT_MAX_DIMENSION, ge=1)
    preserve_animation: bool = True
    generate_webp: bool = True
    generate_avif: bool = True

    @field_validator("quality", "max_width", "max_height", mode="before")
    @classmethod
    def parse_number(cls, value: Any, info: Any) -> int:
        default = cls.model_fields[info.field_name].default
        if value is None or value == "":
            return default
        try:
            number = int(value)
        except (TypeError, ValueError):
            return default
        if info.field_name == "quality":
            return max(1, min(100, number))
        return number if number > 0 else default

    @field_validator("preserve_animation", "generate_webp", "generate_avif", mode="before")
    @classmethod
    def parse_toggle(cls, value: Any, info: Any) -> bool:
        if value is None:
            return cls.model_fields[info.field_name].default
        if isinstance(value, str):
            return value.strip().lower() != "false"
        return bool(value)


class CompressedImage(BaseModel):
    """One encoded variant."""

    data: bytes
    content_type: str
    size: int


class CompressionResult(BaseModel):
    """Outcome of compressing an upload; missing variants are ``None``."""

    original: bytes
    webp: CompressedImage | None = None
    avif: CompressedImage | None = None
    is_animated: bool = False
