"""Public URL construction for originals and variants."""

from urllib.parse import urljoin, urlsplit

from pydantic import BaseModel

from core.models.image import ImageDetail, ImageMetadata, ImageUrls
from core.services.compression import calculate_dimensions
from core.utils.constants import DEFAULT_QUALITY, TRANSFORMABLE_FORMATS

FORMAT_ORIGINAL = "original"
FORMAT_WEBP = "webp"
FORMAT_AVIF = "avif"


class VariantUrlOptions(BaseModel):
    """Controls which variant URLs are built and how transform URLs look.

    A max bound of 0 means the transform URL does not resize.
    """

    quality: int = DEFAULT_QUALITY
    max_width: int = 0
    max_height: int = 0
    generate_webp: bool = True
    generate_avif: bool = True


def build_public_url(base_url: str, key: str) -> str:
    base = base_url if base_url.endswith("/") else f"{base_url}/"
    return urljoin(base, key.lstrip("/"))


def _transform_url(original_url: str, target_format: str, image: ImageMetadata, opts: VariantUrlOptions) -> str:
    parts = [f"format={target_format}", f"quality={max(1, min(100, int(opts.quality)))}"]

    max_width = max(0, int(opts.max_width))
    max_height = max(0, int(opts.max_height))
    if max_width > 0 and max_height > 0:
        width, height = calculate_dimensions(image.width, image.height, max_width, max_height)
        parts += [f"width={width}", f"height={height}", "fit=scale-down"]

    url = urlsplit(original_url)
    query = f"?{url.query}" if url.query else ""
    return f"{url.scheme}://{url.netloc}/cdn-cgi/image/{','.join(parts)}{url.path}{query}"


def _variant_url(
    *,
    base_url: str,
    image: ImageMetadata,
    target_format: str,
    stored_path: str,
    original_url: str,
    opts: VariantUrlOptions,
    prefer_stored_variants: bool,
) -> str:
    source_format = image.format.lower()

    # A variant key equal to the original key only marks "use the original"
    is_marker = bool(stored_path) and stored_path == image.paths.original and source_format != target_format

    if prefer_stored_variants and stored_path and not is_marker:
        return build_public_url(base_url, stored_path)

    if source_format == target_format:
        return original_url

    if source_format not in TRANSFORMABLE_FORMATS:
        return ""

    return _transform_url(original_url, target_format, image, opts)


def build_image_urls(
    base_url: str,
    image: ImageMetadata,
    options: VariantUrlOptions | None = None,
    *,
    prefer_stored_variants: bool = True,
) -> ImageUrls:
    """Original URL plus WebP and AVIF URLs; empty when a format is unavailable."""
    opts = options or VariantUrlOptions()
    original_url = build_public_url(base_url, image.paths.original)

    if image.format.lower() == "gif":
        return ImageUrls(original=original_url)

    webp = (
        _variant_url(
            base_url=base_url,
            image=image,
            target_format=FORMAT_WEBP,
            stored_path=image.paths.webp,
            original_url=original_url,
            opts=opts,
            prefer_stored_variants=prefer_stored_variants,
        )
        if opts.generate_webp
        else ""
    )
    avif = (
        _variant_url(
            base_url=base_url,
            image=image,
            target_format=FORMAT_AVIF,
            stored_path=image.paths.avif,
            original_url=original_url,
            opts=opts,
            prefer_stored_variants=prefer_stored_variants,
        )
        if opts.generate_avif
        else ""
    )

    return ImageUrls(original=original_url, webp=webp, avif=avif)


def get_best_format(accept_header: str | None) -> str:
    if not accept_header:
        return FORMAT_ORIGINAL
    accept = accept_header.lower()
    if "image/avif" in accept:
        return FORMAT_AVIF
    if "image/webp" in accept:
        return FORMAT_WEBP
    return FORMAT_ORIGINAL


def resolve(
    base_url: str,
    image: ImageMetadata,
    requested_format: str | None = None,
    accept_header: str | None = None,
) -> str:
    """Pick the single URL to serve for ``image``.

    An explicit ``original``/``webp``/``avif`` request wins; otherwise the
    Accept header decides. Unavailable formats fall back to the original.
    """
    urls = build_image_urls(
        base_url,
        image,
        VariantUrlOptions(
            generate_webp=bool(image.paths.webp),
            generate_avif=bool(image.paths.avif),
        ),
    )

    if image.format.lower() == "gif":
        return urls.original

    if requested_format == FORMAT_ORIGINAL:
        return urls.original
    if requested_format == FORMAT_WEBP:
        return urls.webp or urls.original
    if requested_format == FORMAT_AVIF:
        return urls.avif or urls.original

    best = get_best_format(accept_header)
    if best == FORMAT_AVIF and urls.avif:
        return urls.avif
    if best == FORMAT_WEBP and urls.webp:
        return urls.webp
    return urls.original


def image_detail(base_url: str, image: ImageMetadata) -> ImageDetail:
    """Attach public URLs to a metadata record."""
    return ImageDetail(**image.model_dump(), urls=build_image_urls(base_url, image))
