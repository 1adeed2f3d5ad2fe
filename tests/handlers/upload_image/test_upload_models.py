import base64

import pytest
from pydantic import ValidationError

from core.utils.constants import MAX_FILE_SIZE
from handlers.upload_image.models import ImageUploadRequest


def encoded(data: bytes = b"image-bytes") -> str:
    return base64.b64encode(data).decode()


class TestImageUploadRequest:
    def test_defaults(self) -> None:
        request = ImageUploadRequest(file=encoded())

        assert request.image_name == "image"
        assert request.tags == []
        assert request.expiry_minutes is None
        assert request.compression_overrides() == {}
        assert request.file_bytes() == b"image-bytes"

    def test_tags_from_comma_string(self) -> None:
        request = ImageUploadRequest(file=encoded(), tags=" sunset, beach ,sunset,")

        assert request.tags == ["sunset", "beach"]

    def test_invalid_base64(self) -> None:
        with pytest.raises(ValidationError):
            ImageUploadRequest(file="not-base64!!!")

    def test_empty_file(self) -> None:
        with pytest.raises(ValidationError):
            ImageUploadRequest(file="")

    def test_file_too_large(self) -> None:
        with pytest.raises(ValidationError):
            ImageUploadRequest(file=encoded(b"x" * (MAX_FILE_SIZE + 1)))

    @pytest.mark.parametrize("raw,expected", [("30", 30), (-4, 0), ("soon", 0), ("", None)])
    def test_expiry_minutes_is_lenient(self, raw, expected) -> None:
        assert ImageUploadRequest(file=encoded(), expiry_minutes=raw).expiry_minutes == expected

    def test_compression_overrides_only_sent_fields(self) -> None:
        request = ImageUploadRequest(file=encoded(), quality="80", generate_avif="false")

        assert request.compression_overrides() == {"quality": "80", "generate_avif": "false"}

    def test_expiry_minutes_camel_case(self) -> None:
        assert ImageUploadRequest(file=encoded(), expiryMinutes=5).expiry_minutes == 5
