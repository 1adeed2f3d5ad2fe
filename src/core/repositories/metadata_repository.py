"""Abstract contract for image and tag metadata persistence."""

from abc import ABC, abstractmethod

from core.models.image import (
    ImageFilters,
    ImageMetadata,
    ImagePage,
    ImageUpdate,
    RandomImageFilters,
    Tag,
)
from core.models.jobs import ImageObjectRef
from core.utils.constants import MAX_TAGS_LIMIT


class ImageMetadataRepository(ABC):
    """Contract for storing and querying image and tag metadata.

    The store is the single source of truth for every read path. Each
    operation is atomic relative to concurrent callers; multi-statement
    writes either commit as a whole or not at all.
    Handlers depend on this interface, not the implementation.
    """

    # === Image CRUD ===

    @abstractmethod
    def save_image(self, metadata: ImageMetadata) -> None:
        """Insert the image row, its tags and associations in one batch.

        Raises:
            MetadataOperationFailedError: If the batch fails; nothing is persisted
        """

    @abstractmethod
    def get_image(self, image_id: str) -> ImageMetadata | None:
        """Fetch one image with its tags, or None if it does not exist."""

    @abstractmethod
    def update_image(self, image_id: str, updates: ImageUpdate) -> ImageMetadata | None:
        """Replace the tag set and/or expiry of an image.

        Returns:
            The updated record, or None if the image does not exist
        """

    @abstractmethod
    def delete_image(self, image_id: str) -> bool:
        """Delete one image row; associations go with it.

        Returns:
            True if a row existed and was deleted
        """

    # === Image Queries ===

    @abstractmethod
    def get_images(self, filters: ImageFilters) -> ImagePage:
        """One page of images, newest upload first, plus the total match count."""

    @abstractmethod
    def get_random_image(self, filters: RandomImageFilters | None = None) -> ImageMetadata | None:
        """One image chosen uniformly at random among the matches, or None."""

    # === Tag Management ===

    @abstractmethod
    def get_all_tags(self, limit: int = MAX_TAGS_LIMIT) -> list[Tag]:
        """All tags with live image counts, alphabetical, at most ``limit``."""

    @abstractmethod
    def create_tag(self, name: str) -> None:
        """Create a tag if it does not exist yet."""

    @abstractmethod
    def tag_exists(self, name: str) -> bool:
        """Whether a tag with exactly this name exists."""

    @abstractmethod
    def rename_tag(self, old_name: str, new_name: str) -> int:
        """Rename a tag in place, keeping its associations.

        Returns:
            Number of images carrying the tag

        Raises:
            DuplicateTagError: If ``new_name`` already exists
        """

    @abstractmethod
    def get_image_paths_by_tag(self, tag_name: str) -> list[ImageObjectRef]:
        """Ids and storage keys of every image carrying the tag."""

    @abstractmethod
    def delete_tag_with_images(self, name: str) -> int:
        """Delete the tag AND every image associated with it.

        This is destructive: images are removed, not merely detached.

        Returns:
            Number of deleted images
        """

    @abstractmethod
    def batch_update_tags(
        self,
        image_ids: list[str],
        add_tags: list[str],
        remove_tags: list[str],
    ) -> int:
        """Add and remove tags across many images in one transaction.

        Returns:
            Number of image ids processed
        """

    # === Cleanup ===

    @abstractmethod
    def delete_expired_images(self) -> list[ImageObjectRef]:
        """Delete every image whose expiry time is set and in the past.

        All-or-nothing: on failure no row is deleted.

        Returns:
            Ids and storage keys of the deleted images
        """
