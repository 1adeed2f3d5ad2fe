"""Unit tests for image metadata models."""

import pytest
from pydantic import ValidationError

from core.models.image import ImageFilters, ImageMetadata, ImagePaths, ImageUpdate


def _metadata(**overrides) -> ImageMetadata:
    fields = {
        "id": "img_1",
        "original_name": "photo.jpg",
        "upload_time": "2024-01-01T10:00:00+00:00",
        "orientation": "landscape",
        "format": "jpeg",
        "width": 1200,
        "height": 800,
        "paths": ImagePaths(original="original/landscape/img_1.jpg"),
    }
    fields.update(overrides)
    return ImageMetadata(**fields)


class TestImageMetadata:
    def test_defaults(self) -> None:
        metadata = _metadata()

        assert metadata.tags == []
        assert metadata.expiry_time is None
        assert metadata.paths.webp == ""
        assert metadata.paths.avif == ""
        assert metadata.sizes.original == 0

    def test_rejects_unknown_orientation(self) -> None:
        with pytest.raises(ValidationError):
            _metadata(orientation="square")

    def test_strict_dimensions(self) -> None:
        with pytest.raises(ValidationError):
            _metadata(width="1200")


class TestImageUpdate:
    def test_omitted_expiry_is_not_set(self) -> None:
        update = ImageUpdate(tags=["a"])

        assert "expiry_time" not in update.model_fields_set

    def test_explicit_none_expiry_is_set(self) -> None:
        update = ImageUpdate(expiry_time=None)

        assert "expiry_time" in update.model_fields_set
        assert update.tags is None


class TestImageFilters:
    def test_limit_bounds(self) -> None:
        with pytest.raises(ValidationError):
            ImageFilters(limit=101)

        with pytest.raises(ValidationError):
            ImageFilters(page=0)
