"""Deletion job payloads exchanged over the work queue."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, StrictStr
from pydantic.alias_generators import to_camel

from core.utils.constants import JOB_TYPE_DELETE_TAG_IMAGES


class ObjectPaths(BaseModel):
    """Storage keys that belong to one image."""

    original: StrictStr
    webp: StrictStr | None = None
    avif: StrictStr | None = None

    def keys(self) -> list[str]:
        """Distinct non-empty keys, original first."""
        keys: list[str] = []
        for key in (self.original, self.webp, self.avif):
            if key and key not in keys:
                keys.append(key)
        return keys


class ImageObjectRef(BaseModel):
    """Image id together with the storage keys to remove."""

    id: StrictStr
    paths: ObjectPaths


class DeletionJob(BaseModel):
    """Queued unit of work removing the objects of a batch of images.

    Serialized in camelCase (``tagName``, ``imagePaths``) on the wire.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    type: Literal["delete_tag_images", "delete_images"] = JOB_TYPE_DELETE_TAG_IMAGES
    tag_name: StrictStr | None = None
    image_paths: list[ImageObjectRef] = Field(default_factory=list)

    def to_message(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)
