"""Pydantic models for get image request/response."""

from pydantic import BaseModel, ConfigDict, Field, StrictStr

from core.models.image import ImageDetail


class GetImageRequest(BaseModel):
    """Validation model for get image request."""

    model_config = ConfigDict(str_strip_whitespace=True)

    image_id: StrictStr = Field(
        ...,
        min_length=1,
        description="Image ID to retrieve",
    )


class GetImageResponse(BaseModel):
    image: ImageDetail
