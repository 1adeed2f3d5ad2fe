"""Business logic for tag management.

Every write invalidates the affected cache entries synchronously before
returning, so the next read never sees a stale tag list.
"""

from typing import Any

from aws_lambda_powertools import Logger

from core.container import Container, get_container
from core.models.errors import DuplicateTagError, NotFoundError, ValidationError
from core.models.image import Tag
from core.services.deletion_pipeline import DeletionOutcome
from core.utils.constants import CACHE_TTL_TAGS_LIST
from core.utils.validators import sanitize_tag_name

logger = Logger(UTC=True)


def _sanitize_all(names: list[Any]) -> list[str]:
    return list(dict.fromkeys(name for name in map(sanitize_tag_name, names) if name))


class TagService:
    """Application service for listing, creating, renaming and deleting tags."""

    def __init__(self, container: Container | None = None) -> None:
        container = container or get_container()
        self.metadata = container.metadata
        self.cache = container.cache
        self.pipeline = container.pipeline

    def list_tags(self) -> list[Tag]:
        cache_key = self.cache.tags_list_key()

        if cache_key:
            cached = self.cache.get(cache_key)
            if cached is not None:
                return [Tag.model_validate(tag) for tag in cached["tags"]]

        tags = self.metadata.get_all_tags()

        if cache_key:
            self.cache.set(cache_key, {"tags": [tag.model_dump() for tag in tags]}, CACHE_TTL_TAGS_LIST)
        return tags

    def create_tag(self, raw_name: Any) -> Tag:
        name = sanitize_tag_name(raw_name)
        if not name:
            raise ValidationError(message="Tag name cannot be empty")

        self.metadata.create_tag(name)
        self.cache.invalidate_tags_list()

        logger.info("Tag created", extra={"tag": name})
        return Tag(name=name, count=0)

    def rename_tag(self, old_name: str, raw_new_name: Any) -> Tag:
        """Rename a tag in place.

        Raises:
            ValidationError: If the new name is empty or equals the old one
            NotFoundError: If the tag to rename does not exist
            DuplicateTagError: If a tag with the new name already exists
        """
        new_name = sanitize_tag_name(raw_new_name)
        if not new_name:
            raise ValidationError(message="New tag name cannot be empty")

        if new_name == old_name:
            raise ValidationError(message="New tag name must differ from the current name")

        if not self.metadata.tag_exists(old_name):
            raise NotFoundError(message="Tag not found", details={"tag": old_name})

        if self.metadata.tag_exists(new_name):
            raise DuplicateTagError(
                message=f"Tag '{new_name}' already exists",
                details={"tag": new_name},
            )

        affected = self.metadata.rename_tag(old_name, new_name)
        self.cache.invalidate_after_tag_change()

        logger.info(
            "Tag renamed",
            extra={"old_name": old_name, "new_name": new_name, "affected_images": affected},
        )

        current = next((tag for tag in self.metadata.get_all_tags() if tag.name == new_name), None)
        return current or Tag(name=new_name, count=affected)

    def delete_tag(self, name: str) -> DeletionOutcome:
        """Delete the tag and every image carrying it."""
        return self.pipeline.delete_tag_with_images(name)

    def batch_update(
        self,
        image_ids: list[str],
        add_tags: list[Any],
        remove_tags: list[Any],
    ) -> int:
        """Add and remove tags across many images.

        Raises:
            ValidationError: If no image ids, or no usable tag names, are given
        """
        if not image_ids:
            raise ValidationError(message="Image id list cannot be empty")

        add = _sanitize_all(add_tags)
        remove = _sanitize_all(remove_tags)

        if not add and not remove:
            raise ValidationError(message="Tags to add or remove are required")

        updated = self.metadata.batch_update_tags(image_ids, add, remove)
        self.cache.invalidate_after_tag_change()

        logger.info(
            "Tags batch updated",
            extra={"image_count": len(image_ids), "add_tags": add, "remove_tags": remove},
        )
        return updated
