from collections.abc import Mapping

from core.utils.constants import FORMAT_CONTENT_TYPES, FORMAT_EXTENSIONS

MAGIC_BYTES: Mapping[bytes, str] = {
    b"\xff\xd8\xff": "jpeg",
    b"\x89PNG\r\n\x1a\n": "png",
    b"GIF87a": "gif",
    b"GIF89a": "gif",
}


def detect_format(file_data: bytes) -> str:
    """Return the image format name from the leading signature bytes."""
    for signature, image_format in MAGIC_BYTES.items():
        if file_data.startswith(signature):
            return image_format

    if file_data[:4] == b"RIFF" and file_data[8:12] == b"WEBP":
        return "webp"

    if file_data[4:8] == b"ftyp" and file_data[8:12] in (b"avif", b"avis"):
        return "avif"

    raise ValueError("Unsupported or unknown file type")


def content_type_for_format(image_format: str) -> str:
    return FORMAT_CONTENT_TYPES.get(image_format.lower(), "application/octet-stream")


def extension_for_format(image_format: str) -> str:
    return FORMAT_EXTENSIONS.get(image_format.lower(), "bin")
