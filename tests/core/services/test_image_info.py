import pytest

from core.models.errors import UnsupportedFormatError
from core.services.image_info import get_image_info, is_supported_format, orientation_for


class TestGetImageInfo:
    def test_jpeg_landscape(self, jpeg_bytes) -> None:
        info = get_image_info(jpeg_bytes)

        assert info.format == "jpeg"
        assert (info.width, info.height) == (64, 48)
        assert info.orientation == "landscape"

    def test_jpeg_portrait(self, portrait_jpeg_bytes) -> None:
        assert get_image_info(portrait_jpeg_bytes).orientation == "portrait"

    def test_square_png_is_landscape(self, png_bytes) -> None:
        info = get_image_info(png_bytes)

        assert info.format == "png"
        assert info.orientation == "landscape"

    def test_gif(self, animated_gif_bytes) -> None:
        assert get_image_info(animated_gif_bytes).format == "gif"

    def test_garbage_is_rejected(self) -> None:
        with pytest.raises(UnsupportedFormatError):
            get_image_info(b"definitely not an image")

    def test_unsupported_decodable_format(self) -> None:
        from io import BytesIO

        from PIL import Image

        buffer = BytesIO()
        Image.new("RGB", (4, 4)).save(buffer, format="BMP")

        with pytest.raises(UnsupportedFormatError) as exc:
            get_image_info(buffer.getvalue())

        assert "BMP" in exc.value.message


@pytest.mark.parametrize(
    "image_format,expected",
    [("jpeg", True), ("JPG", True), ("png", True), ("gif", True), ("webp", True), ("avif", True), ("bmp", False), (None, False)],
)
def test_is_supported_format(image_format, expected) -> None:
    assert is_supported_format(image_format) is expected


def test_orientation_for() -> None:
    assert orientation_for(2000, 3000) == "portrait"
    assert orientation_for(3000, 2000) == "landscape"
    assert orientation_for(500, 500) == "landscape"
