"""Abstract contract for image object storage."""

from abc import ABC, abstractmethod


class ImageStorageRepository(ABC):
    """Contract for storing and removing image objects by key.

    Implementations could be S3, GCS, local disk, etc.
    Storage has no awareness of metadata; keys are chosen by callers.
    """

    @abstractmethod
    def upload_object(self, *, key: str, data: bytes, content_type: str) -> None:
        """Write bytes under ``key``, replacing any existing object.

        Raises:
            ImageUploadFailedError: If the write fails
        """

    @abstractmethod
    def remove_object(self, *, key: str) -> None:
        """Delete the object under ``key``.

        Deleting a key that does not exist is a success.

        Raises:
            ImageDeletionFailedError: If deletion fails
        """
