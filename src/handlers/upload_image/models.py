"""Pydantic models for image upload request/response."""

import base64
import binascii
from typing import Any

from aws_lambda_powertools import Logger
from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.models.image import ImageSizes, ImageUrls, Orientation
from core.utils.constants import MAX_FILE_SIZE
from core.utils.validators import parse_tags

logger = Logger(UTC=True)

COMPRESSION_FIELDS = (
    "quality",
    "max_width",
    "max_height",
    "preserve_animation",
    "generate_webp",
    "generate_avif",
)


class ImageUploadRequest(BaseModel):
    """Validation model for image upload request.

    Compression fields are optional per-request overrides of the configured
    defaults and are parsed leniently later on.
    """

    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    file: str = Field(..., description="Base64 encoded image file")
    image_name: str = Field("image", min_length=1, max_length=255, description="Original file name")
    tags: list[str] = Field(default_factory=list, description="Comma-separated string or list")
    expiry_minutes: int | None = Field(
        None, ge=0, alias="expiryMinutes", description="Minutes until expiry, 0 for never"
    )

    quality: Any = None
    max_width: Any = None
    max_height: Any = None
    preserve_animation: Any = None
    generate_webp: Any = None
    generate_avif: Any = None

    @field_validator("tags", mode="before")
    @classmethod
    def validate_tags(cls, value: Any) -> list[str]:
        return parse_tags(value)

    @field_validator("expiry_minutes", mode="before")
    @classmethod
    def parse_expiry(cls, value: Any) -> int | None:
        if value is None or value == "":
            return None
        try:
            return max(0, int(value))
        except (TypeError, ValueError):
            return 0

    @field_validator("file")
    @classmethod
    def validate_file(cls, value: str) -> str:
        """
        Validate base64 file:
        - must not be empty
        - must decode correctly
        - must not exceed MAX_FILE_SIZE
        """
        if not value:
            raise ValueError("No file provided")

        try:
            file_data = base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError) as e:
            logger.error(f"File validation error: Invalid base64 - {e}")
            raise ValueError("Invalid base64 encoded file") from e

        if not file_data:
            raise ValueError("Decoded file is empty")

        if len(file_data) > MAX_FILE_SIZE:
            logger.error("File size validation error: File size exceeds limit")
            raise ValueError(f"File size exceeds {MAX_FILE_SIZE // (1024 * 1024)}MB limit")

        return value

    def file_bytes(self) -> bytes:
        return base64.b64decode(self.file)

    def compression_overrides(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in COMPRESSION_FIELDS if getattr(self, name) is not None}


class UploadResult(BaseModel):
    """Outcome of one upload."""

    id: str
    status: str = "success"
    urls: ImageUrls
    orientation: Orientation
    tags: list[str]
    sizes: ImageSizes
    expiry_time: str | None = None
    format: str


class ImageUploadResponse(BaseModel):
    """Response model for successful image upload."""

    result: UploadResult
    message: str = Field("Image uploaded successfully", description="Success message")
