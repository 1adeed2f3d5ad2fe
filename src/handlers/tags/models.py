"""Pydantic models for tag management requests/responses."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator

from core.models.image import Tag


def _as_name_list(value: Any) -> Any:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return value


class CreateTagRequest(BaseModel):
    """Body of POST /api/tags."""

    name: Any = Field(None, description="Tag name; sanitized by the service")


class RenameTagRequest(BaseModel):
    """Path name plus body of PUT /api/tags/{name}."""

    model_config = ConfigDict(populate_by_name=True)

    old_name: StrictStr = Field(..., min_length=1)
    new_name: Any = Field(None, alias="newName", description="Tag name; sanitized by the service")


class BatchTagsRequest(BaseModel):
    """Body of POST /api/tags/batch."""

    model_config = ConfigDict(populate_by_name=True)

    image_ids: list[StrictStr] = Field(default_factory=list, alias="imageIds")
    add_tags: list[Any] = Field(default_factory=list, alias="addTags")
    remove_tags: list[Any] = Field(default_factory=list, alias="removeTags")

    @field_validator("add_tags", "remove_tags", mode="before")
    @classmethod
    def normalize_names(cls, value: Any) -> Any:
        return _as_name_list(value)


class TagListResponse(BaseModel):
    tags: list[Tag]


class TagResponse(BaseModel):
    tag: Tag


class DeleteTagResponse(BaseModel):
    message: str = "Tag and associated images deleted"
    deleted_images: int
    queued_jobs: int
    orphaned_objects: list[str] = Field(default_factory=list)


class BatchTagsResponse(BaseModel):
    updated_count: int
