"""Pydantic models for update image request/response."""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator

from core.models.image import ImageDetail
from core.utils.validators import parse_tags


class UpdateImageRequest(BaseModel):
    """Validation model for PUT /api/images/{image_id}.

    Omitted fields are left unchanged. ``expiry_time`` set to null or an
    empty string clears the expiry.
    """

    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    image_id: StrictStr = Field(..., min_length=1)
    tags: list[str] | None = Field(None, description="Full replacement tag set")
    expiry_time: str | None = Field(None, alias="expiryTime", description="ISO-8601 timestamp")

    @field_validator("tags", mode="before")
    @classmethod
    def validate_tags(cls, value: Any) -> list[str] | None:
        if value is None:
            return None
        return parse_tags(value)

    @field_validator("expiry_time", mode="before")
    @classmethod
    def normalize_expiry(cls, value: Any) -> str | None:
        """Store expiry in UTC so stored timestamps compare as strings."""
        if value is None or value == "":
            return None

        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError as exc:
            raise ValueError("Invalid expiry time, expected ISO-8601") from exc

        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)

        return parsed.astimezone(timezone.utc).isoformat()

    def update_fields(self) -> dict[str, Any]:
        """Only the fields the client actually sent."""
        return {name: getattr(self, name) for name in ("tags", "expiry_time") if name in self.model_fields_set}


class UpdateImageResponse(BaseModel):
    image: ImageDetail
    message: str = "Image updated successfully"
