"""Multi-store deletion workflow.

There is no transaction spanning the metadata store, the cache and object
storage. Deletions are sequenced instead:

    REQUESTED -> METADATA_DELETED -> CACHE_INVALIDATED -> OBJECTS_QUEUED
              -> (worker) OBJECTS_DELETED

Metadata goes first so no read path can return an image whose objects are
about to disappear. Objects are removed asynchronously by ``DeletionWorker``;
both steps tolerate being repeated.
"""

from enum import Enum

from aws_lambda_powertools import Logger
from pydantic import BaseModel, Field

from core.models.errors import NotFoundError, QueueError
from core.models.image import ImageMetadata
from core.models.jobs import DeletionJob, ImageObjectRef, ObjectPaths
from core.repositories.metadata_repository import ImageMetadataRepository
from core.repositories.queue_repository import DeletionQueueRepository
from core.repositories.storage_repository import ImageStorageRepository
from core.services.cache import CacheService
from core.utils.chunking import chunked
from core.utils.constants import (
    DELETION_JOB_CHUNK_SIZE,
    JOB_TYPE_DELETE_IMAGES,
    JOB_TYPE_DELETE_TAG_IMAGES,
)

logger = Logger(UTC=True)


class DeletionState(str, Enum):
    REQUESTED = "requested"
    METADATA_DELETED = "metadata_deleted"
    CACHE_INVALIDATED = "cache_invalidated"
    OBJECTS_QUEUED = "objects_queued"
    OBJECTS_DELETED = "objects_deleted"


class DeletionOutcome(BaseModel):
    """What a deletion request achieved.

    ``orphaned_objects`` lists storage keys whose deletion job could not be
    queued; the metadata is already gone, so these objects are unreferenced.
    """

    state: DeletionState = DeletionState.REQUESTED
    deleted_images: int = 0
    queued_jobs: int = 0
    job_ids: list[str] = Field(default_factory=list)
    orphaned_objects: list[str] = Field(default_factory=list)


def to_object_ref(image: ImageMetadata) -> ImageObjectRef:
    return ImageObjectRef(
        id=image.id,
        paths=ObjectPaths(
            original=image.paths.original,
            webp=image.paths.webp or None,
            avif=image.paths.avif or None,
        ),
    )


class DeletionPipeline:
    """Runs deletions in order: metadata, cache, queued object removal."""

    def __init__(
        self,
        metadata: ImageMetadataRepository,
        cache: CacheService,
        queue: DeletionQueueRepository,
    ) -> None:
        self.metadata = metadata
        self.cache = cache
        self.queue = queue

    def delete_tag_with_images(self, name: str) -> DeletionOutcome:
        """Delete a tag together with every image carrying it.

        Raises:
            MetadataOperationFailedError: If the metadata batch fails; no jobs
                are queued in that case
        """
        outcome = DeletionOutcome()
        self._log_state(outcome, tag=name)

        # Read keys before the rows are gone
        refs = self.metadata.get_image_paths_by_tag(name)

        outcome.deleted_images = self.metadata.delete_tag_with_images(name)
        self._advance(outcome, DeletionState.METADATA_DELETED, tag=name)

        self.cache.invalidate_after_tag_change()
        self._advance(outcome, DeletionState.CACHE_INVALIDATED, tag=name)

        self._enqueue(outcome, refs, job_type=JOB_TYPE_DELETE_TAG_IMAGES, tag_name=name)
        return outcome

    def delete_image(self, image_id: str) -> DeletionOutcome:
        """Delete one image.

        Raises:
            NotFoundError: If the image does not exist
        """
        outcome = DeletionOutcome()
        self._log_state(outcome, image_id=image_id)

        image = self.metadata.get_image(image_id)
        if image is None or not self.metadata.delete_image(image_id):
            raise NotFoundError(message="Image not found", details={"image_id": image_id})

        outcome.deleted_images = 1
        self._advance(outcome, DeletionState.METADATA_DELETED, image_id=image_id)

        self.cache.invalidate_after_tag_change()
        self._advance(outcome, DeletionState.CACHE_INVALIDATED, image_id=image_id)

        self._enqueue(outcome, [to_object_ref(image)], job_type=JOB_TYPE_DELETE_IMAGES)
        return outcome

    def purge_expired(self) -> DeletionOutcome:
        """Delete every image whose expiry time has passed.

        Raises:
            MetadataOperationFailedError: If the metadata batch fails; nothing
                is deleted and no jobs are queued in that case
        """
        outcome = DeletionOutcome()
        self._log_state(outcome, workflow="purge_expired")

        refs = self.metadata.delete_expired_images()

        outcome.deleted_images = len(refs)
        self._advance(outcome, DeletionState.METADATA_DELETED, workflow="purge_expired")

        if refs:
            self.cache.invalidate_after_tag_change()
        self._advance(outcome, DeletionState.CACHE_INVALIDATED, workflow="purge_expired")

        self._enqueue(outcome, refs, job_type=JOB_TYPE_DELETE_IMAGES)
        return outcome

    def _enqueue(
        self,
        outcome: DeletionOutcome,
        refs: list[ImageObjectRef],
        *,
        job_type: str,
        tag_name: str | None = None,
    ) -> None:
        for chunk in chunked(refs, DELETION_JOB_CHUNK_SIZE):
            job = DeletionJob(type=job_type, tag_name=tag_name, image_paths=chunk)
            try:
                outcome.job_ids.append(self.queue.submit(job))
                outcome.queued_jobs += 1
            except QueueError:
                orphaned = [key for ref in chunk for key in ref.paths.keys()]
                outcome.orphaned_objects.extend(orphaned)
                logger.warning(
                    "Deletion job not queued, objects orphaned",
                    extra={"tag": tag_name, "image_ids": [ref.id for ref in chunk], "keys": orphaned},
                )

        self._advance(
            outcome,
            DeletionState.OBJECTS_QUEUED,
            queued_jobs=outcome.queued_jobs,
            orphaned_objects=len(outcome.orphaned_objects),
        )

    @staticmethod
    def _advance(outcome: DeletionOutcome, state: DeletionState, **context: object) -> None:
        outcome.state = state
        DeletionPipeline._log_state(outcome, **context)

    @staticmethod
    def _log_state(outcome: DeletionOutcome, **context: object) -> None:
        logger.info(
            "Deletion state",
            extra={"state": outcome.state.value, "deleted_images": outcome.deleted_images, **context},
        )


class DeletionWorker:
    """Consumes deletion jobs and removes the referenced objects.

    Safe to run more than once per job: removing an absent key succeeds.
    """

    def __init__(self, storage: ImageStorageRepository) -> None:
        self.storage = storage

    def process_job(self, job: DeletionJob) -> int:
        """Delete every key of every image in ``job``.

        Returns:
            Number of keys processed

        Raises:
            ImageDeletionFailedError: On a storage failure other than a
                missing key, so the message is redelivered
        """
        keys = [key for ref in job.image_paths for key in ref.paths.keys()]

        logger.debug(
            "Processing deletion job",
            extra={"type": job.type, "tag": job.tag_name, "key_count": len(keys)},
        )

        for key in keys:
            self.storage.remove_object(key=key)

        logger.info(
            "Deletion state",
            extra={
                "state": DeletionState.OBJECTS_DELETED.value,
                "tag": job.tag_name,
                "image_count": len(job.image_paths),
                "key_count": len(keys),
            },
        )
        return len(keys)
