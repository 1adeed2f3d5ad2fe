from unittest.mock import patch

import pytest

from core.models.errors import (
    ImageUploadFailedError,
    MetadataOperationFailedError,
    TransformError,
    UnsupportedFormatError,
)
from handlers.upload_image.service import UploadService


class TestUploadService:
    def test_generate_image_id(self) -> None:
        id1 = UploadService.generate_image_id()
        id2 = UploadService.generate_image_id()

        assert id1.startswith("img_")
        assert id1 != id2

    def test_upload_stores_original_and_variants(self, container, fake_storage, portrait_jpeg_bytes) -> None:
        service = UploadService(container)

        result = service.upload_image(file_data=portrait_jpeg_bytes, original_name="photo.jpg", tags=["a", "b"])

        assert result.orientation == "portrait"
        assert result.format == "jpeg"
        assert set(fake_storage.objects) == {
            f"original/portrait/{result.id}.jpg",
            f"webp/portrait/{result.id}.webp",
            f"avif/portrait/{result.id}.avif",
        }
        assert fake_storage.objects[f"webp/portrait/{result.id}.webp"] == (b"webp-bytes", "image/webp")
        assert result.sizes.original == len(portrait_jpeg_bytes)
        assert result.urls.avif == f"https://images.example.com/avif/portrait/{result.id}.avif"

        stored = container.metadata.get_image(result.id)
        assert stored.tags == ["a", "b"]
        assert stored.paths.webp == f"webp/portrait/{result.id}.webp"

    def test_failed_variant_falls_back_to_original_bytes(
        self, container, fake_storage, fake_transformer, jpeg_bytes
    ) -> None:
        fake_transformer.fail["avif"] = TransformError(message="encoder crashed")
        service = UploadService(container)

        result = service.upload_image(file_data=jpeg_bytes, original_name="photo.jpg")

        avif_key = f"avif/landscape/{result.id}.avif"
        assert fake_storage.objects[avif_key] == (jpeg_bytes, "image/jpeg")
        assert result.sizes.avif == len(jpeg_bytes)
        assert container.metadata.get_image(result.id).paths.avif == avif_key

    def test_gif_stores_only_original(self, container, fake_storage, animated_gif_bytes) -> None:
        service = UploadService(container)

        result = service.upload_image(file_data=animated_gif_bytes, original_name="anim.gif")

        assert list(fake_storage.objects) == [f"original/landscape/{result.id}.gif"]
        assert result.urls.webp == ""
        assert result.urls.avif == ""

        stored = container.metadata.get_image(result.id)
        assert stored.paths.webp == ""
        assert stored.paths.avif == ""

    def test_compression_overrides(self, container, fake_transformer, png_bytes) -> None:
        service = UploadService(container)

        service.upload_image(
            file_data=png_bytes,
            original_name="a.png",
            compression_overrides={"quality": "55", "generate_webp": "false"},
        )

        assert fake_transformer.calls == [{"format": "avif", "quality": 55, "width": 32, "height": 32}]

    def test_expiry(self, container, jpeg_bytes) -> None:
        service = UploadService(container)

        result = service.upload_image(file_data=jpeg_bytes, original_name="a.jpg", expiry_minutes=60)

        assert result.expiry_time is not None
        assert container.metadata.get_image(result.id).expiry_time == result.expiry_time

    def test_default_expiry_from_settings(self, container, jpeg_bytes) -> None:
        container.settings.default_expiry_minutes = 15
        service = UploadService(container)

        assert service.upload_image(file_data=jpeg_bytes, original_name="a.jpg").expiry_time is not None
        assert service.upload_image(file_data=jpeg_bytes, original_name="a.jpg", expiry_minutes=0).expiry_time is None

    def test_rejects_unsupported_bytes_before_any_write(self, container, fake_storage) -> None:
        service = UploadService(container)

        with pytest.raises(UnsupportedFormatError):
            service.upload_image(file_data=b"%PDF-1.7", original_name="doc.pdf")

        assert fake_storage.objects == {}

    def test_storage_failure(self, container, fake_storage, stored_ids, jpeg_bytes) -> None:
        service = UploadService(container)

        with patch.object(
            fake_storage,
            "upload_object",
            side_effect=ImageUploadFailedError(message="Unable to upload image at this time"),
        ):
            with pytest.raises(ImageUploadFailedError):
                service.upload_image(file_data=jpeg_bytes, original_name="a.jpg")

        assert stored_ids() == []

    def test_metadata_failure_cleans_up_objects(self, container, fake_storage, jpeg_bytes) -> None:
        service = UploadService(container)

        with patch.object(
            container.metadata,
            "save_image",
            side_effect=MetadataOperationFailedError(message="Unable to save image metadata at this time"),
        ):
            with pytest.raises(MetadataOperationFailedError):
                service.upload_image(file_data=jpeg_bytes, original_name="a.jpg")

        assert fake_storage.objects == {}
        assert len(fake_storage.removed) == 3

    def test_cache_is_invalidated(self, container, fake_cache_backend, jpeg_bytes) -> None:
        fake_cache_backend.set("tags:list:v0", {"tags": []}, 300)
        service = UploadService(container)

        service.upload_image(file_data=jpeg_bytes, original_name="a.jpg", tags=["a"])
        container.executor.shutdown(wait=True)

        assert fake_cache_backend.get_counter("tags:list:generation") == 1
        assert fake_cache_backend.get_counter("images:list:generation") == 1
