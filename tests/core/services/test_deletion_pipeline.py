"""Unit tests for the deletion workflow."""

from unittest.mock import patch

import pytest

from core.models.errors import ImageDeletionFailedError, MetadataOperationFailedError, NotFoundError
from core.models.jobs import DeletionJob, ImageObjectRef, ObjectPaths
from core.services.cache import CacheService
from core.services.deletion_pipeline import DeletionPipeline, DeletionState, DeletionWorker


@pytest.fixture
def cache(fake_cache_backend) -> CacheService:
    return CacheService(fake_cache_backend)


@pytest.fixture
def pipeline(metadata_store, cache, fake_queue) -> DeletionPipeline:
    return DeletionPipeline(metadata_store, cache, fake_queue)


class TestDeleteTagWithImages:
    def test_full_sequence(self, pipeline, metadata_store, image_factory, fake_queue, fake_cache_backend) -> None:
        metadata_store.save_image(image_factory("img_1", tags=["a", "b"]))
        metadata_store.save_image(image_factory("img_2", tags=["a"]))
        metadata_store.save_image(image_factory("img_3", tags=["b"]))
        fake_cache_backend.set("tags:list:v0", {"tags": []}, 300)

        outcome = pipeline.delete_tag_with_images("a")

        assert outcome.state == DeletionState.OBJECTS_QUEUED
        assert outcome.deleted_images == 2
        assert outcome.queued_jobs == 1
        assert outcome.job_ids == ["msg-1"]
        assert outcome.orphaned_objects == []

        job = fake_queue.jobs[0]
        assert job.type == "delete_tag_images"
        assert job.tag_name == "a"
        assert {ref.id for ref in job.image_paths} == {"img_1", "img_2"}

        assert metadata_store.get_image("img_3").tags == ["b"]
        assert fake_cache_backend.get_counter("tags:list:generation") == 1
        assert fake_cache_backend.get_counter("images:list:generation") == 1

    def test_jobs_are_chunked(self, pipeline, metadata_store, image_factory, fake_queue) -> None:
        for index in range(120):
            metadata_store.save_image(image_factory(f"img_{index:03d}", tags=["bulk"]))

        outcome = pipeline.delete_tag_with_images("bulk")

        assert outcome.deleted_images == 120
        assert [len(job.image_paths) for job in fake_queue.jobs] == [50, 50, 20]
        assert outcome.queued_jobs == 3

    def test_queue_failure_reports_orphans(self, pipeline, metadata_store, image_factory, fake_queue) -> None:
        metadata_store.save_image(image_factory("img_1", tags=["a"]))
        fake_queue.failing = True

        outcome = pipeline.delete_tag_with_images("a")

        assert outcome.deleted_images == 1
        assert outcome.queued_jobs == 0
        assert outcome.state == DeletionState.OBJECTS_QUEUED
        assert outcome.orphaned_objects == [
            "original/landscape/img_1.jpg",
            "webp/landscape/img_1.webp",
            "avif/landscape/img_1.avif",
        ]
        assert metadata_store.get_image("img_1") is None

    def test_metadata_failure_queues_nothing(self, pipeline, metadata_store, image_factory, fake_queue) -> None:
        metadata_store.save_image(image_factory("img_1", tags=["a"]))

        with patch.object(
            metadata_store,
            "delete_tag_with_images",
            side_effect=MetadataOperationFailedError(message="Unable to delete tag"),
        ):
            with pytest.raises(MetadataOperationFailedError):
                pipeline.delete_tag_with_images("a")

        assert fake_queue.jobs == []
        assert metadata_store.get_image("img_1") is not None

    def test_unknown_tag(self, pipeline, fake_queue) -> None:
        outcome = pipeline.delete_tag_with_images("missing")

        assert outcome.deleted_images == 0
        assert fake_queue.jobs == []


class TestDeleteImage:
    def test_deletes_and_queues(self, pipeline, metadata_store, image_factory, fake_queue) -> None:
        metadata_store.save_image(image_factory("img_1", tags=["a"]))

        outcome = pipeline.delete_image("img_1")

        assert outcome.deleted_images == 1
        assert fake_queue.jobs[0].type == "delete_images"
        assert fake_queue.jobs[0].image_paths[0].id == "img_1"
        assert metadata_store.get_image("img_1") is None

    def test_missing_image(self, pipeline, fake_queue) -> None:
        with pytest.raises(NotFoundError):
            pipeline.delete_image("missing")

        assert fake_queue.jobs == []


class TestPurgeExpired:
    def test_removes_only_expired(self, pipeline, metadata_store, image_factory, fake_queue) -> None:
        metadata_store.save_image(image_factory("img_old", expiry_time="2000-01-01T00:00:00+00:00"))
        metadata_store.save_image(image_factory("img_new", expiry_time="2999-01-01T00:00:00+00:00"))

        outcome = pipeline.purge_expired()

        assert outcome.deleted_images == 1
        assert [ref.id for ref in fake_queue.jobs[0].image_paths] == ["img_old"]
        assert metadata_store.get_image("img_new") is not None

    def test_nothing_expired(self, pipeline, fake_queue, fake_cache_backend) -> None:
        outcome = pipeline.purge_expired()

        assert outcome.deleted_images == 0
        assert fake_queue.jobs == []
        assert fake_cache_backend.get_counter("images:list:generation") == 0

    def test_store_failure_queues_nothing(
        self, pipeline, metadata_store, image_factory, fake_queue, fake_cache_backend
    ) -> None:
        metadata_store.save_image(image_factory("img_old", expiry_time="2000-01-01T00:00:00+00:00"))

        with patch.object(
            metadata_store,
            "delete_expired_images",
            side_effect=MetadataOperationFailedError(message="Unable to delete expired images"),
        ):
            with pytest.raises(MetadataOperationFailedError):
                pipeline.purge_expired()

        assert fake_queue.jobs == []
        assert fake_cache_backend.get_counter("images:list:generation") == 0
        assert metadata_store.get_image("img_old") is not None

        outcome = pipeline.purge_expired()

        assert outcome.deleted_images == 1
        assert [ref.id for ref in fake_queue.jobs[0].image_paths] == ["img_old"]


class TestDeletionWorker:
    def _job(self) -> DeletionJob:
        return DeletionJob(
            tag_name="a",
            image_paths=[
                ImageObjectRef(
                    id="img_1",
                    paths=ObjectPaths(original="original/landscape/img_1.jpg", webp="webp/landscape/img_1.webp"),
                ),
                ImageObjectRef(id="img_2", paths=ObjectPaths(original="original/landscape/img_2.gif")),
            ],
        )

    def test_removes_every_key(self, fake_storage) -> None:
        count = DeletionWorker(fake_storage).process_job(self._job())

        assert count == 3
        assert fake_storage.removed == [
            "original/landscape/img_1.jpg",
            "webp/landscape/img_1.webp",
            "original/landscape/img_2.gif",
        ]

    def test_repeated_job_is_harmless(self, fake_storage) -> None:
        worker = DeletionWorker(fake_storage)

        worker.process_job(self._job())
        worker.process_job(self._job())

        assert fake_storage.objects == {}

    def test_storage_failure_propagates(self, fake_storage) -> None:
        with patch.object(
            fake_storage,
            "remove_object",
            side_effect=ImageDeletionFailedError(message="Unable to delete image at this time"),
        ):
            with pytest.raises(ImageDeletionFailedError):
                DeletionWorker(fake_storage).process_job(self._job())
