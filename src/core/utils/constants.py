"""Global constants used throughout the application.

This module centralizes all magic numbers, string literals, and configuration
values that are used across multiple modules. Using constants prevents hardcoding
values and makes it easy to change them globally.
"""

from typing import Final

# ============================================================================
# Error Codes
# ============================================================================


# Validation Errors
ERROR_CODE_VALIDATION_FAILED = "VALIDATION_FAILED"
ERROR_CODE_UNSUPPORTED_FORMAT = "UNSUPPORTED_FORMAT"
ERROR_CODE_DUPLICATE_TAG = "DUPLICATE_TAG"

# Not Found Errors
ERROR_CODE_RESOURCE_NOT_FOUND = "NOT_FOUND"

# Storage Errors
ERROR_CODE_S3 = "S3_ERROR"
ERROR_CODE_IMAGE_UPLOAD_FAILED = "IMAGE_UPLOAD_FAILED"
ERROR_CODE_IMAGE_DELETION_FAILED = "IMAGE_DELETION_FAILED"

# Metadata Errors
ERROR_CODE_METADATA_OPERATION_FAILED = "METADATA_OPERATION_FAILED"
ERROR_CODE_METADATA_CREATE_FAILED = "METADATA_CREATE_FAILED"
ERROR_CODE_METADATA_FETCH_FAILED = "METADATA_FETCH_FAILED"
ERROR_CODE_METADATA_UPDATE_FAILED = "METADATA_UPDATE_FAILED"
ERROR_CODE_METADATA_DELETE_FAILED = "METADATA_DELETE_FAILED"
ERROR_CODE_METADATA_LIST_FAILED = "METADATA_LIST_FAILED"
ERROR_CODE_TAG_OPERATION_FAILED = "TAG_OPERATION_FAILED"

# Cache / Queue / Transform Errors
ERROR_CODE_DYNAMODB = "DYNAMODB_ERROR"
ERROR_CODE_QUEUE = "QUEUE_ERROR"
ERROR_CODE_TRANSFORM_FAILED = "TRANSFORM_FAILED"


# ============================================================================
# Image Formats
# ============================================================================

FORMAT_CONTENT_TYPES: Final[dict[str, str]] = {
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "avif": "image/avif",
}

SUPPORTED_FORMATS: Final[frozenset[str]] = frozenset(FORMAT_CONTENT_TYPES.keys())

FORMAT_EXTENSIONS: Final[dict[str, str]] = {
    "jpeg": "jpg",
    "png": "png",
    "gif": "gif",
    "webp": "webp",
    "avif": "avif",
}

# Formats a downstream CDN transform can derive variants from
TRANSFORMABLE_FORMATS: Final[frozenset[str]] = frozenset({"jpeg", "jpg", "png"})

ORIENTATION_LANDSCAPE = "landscape"
ORIENTATION_PORTRAIT = "portrait"


# ============================================================================
# Compression
# ============================================================================

DEFAULT_QUALITY = 90
DEFAULT_MAX_DIMENSION = 3840
AVIF_MAX_DIMENSION = 1600

WEBP_ATTEMPTS = 2
AVIF_ATTEMPTS = 3
RETRY_BASE_DELAY_SECONDS = 0.12

TRANSIENT_ERROR_MARKERS: Final[tuple[str, ...]] = (
    "network connection lost",
    "connection lost",
    "fetch failed",
    "timeout",
    "timed out",
    "econnreset",
    "eai_again",
    "temporar",
)


# ============================================================================
# Upload Constraints
# ============================================================================

MAX_FILE_SIZE = 20 * 1024 * 1024  # 20MB in bytes


# ============================================================================
# Tag Constraints
# ============================================================================

TAG_MAX_LENGTH = 50
MAX_TAGS_LIMIT = 1000


# ============================================================================
# Metadata Store
# ============================================================================

# SQLite caps bound parameters per statement; stay well below it
SQL_PARAM_CHUNK_SIZE = 90


# ============================================================================
# Pagination Constraints
# ============================================================================

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 12
MIN_LIMIT = 1
MAX_LIMIT = 100


# ============================================================================
# Cache
# ============================================================================

CACHE_KEY_TAGS_LIST_GENERATION = "tags:list:generation"
CACHE_KEY_IMAGES_LIST_GENERATION = "images:list:generation"
CACHE_TTL_TAGS_LIST = 300
CACHE_TTL_IMAGES_LIST = 60


# ============================================================================
# Deletion Pipeline
# ============================================================================

DELETION_JOB_CHUNK_SIZE = 50
JOB_TYPE_DELETE_TAG_IMAGES = "delete_tag_images"
JOB_TYPE_DELETE_IMAGES = "delete_images"


# ============================================================================
# API Gateway Configuration
# ============================================================================

CORS_ORIGIN = "*"
CORS_METHODS = "GET,POST,PUT,DELETE,OPTIONS"
CORS_HEADERS = "Content-Type,Authorization,X-Api-Key"
EXPOSE_HEADERS = "Content-Type,Content-Length,Location"
DEFAULT_CONTENT_TYPE = "application/json"
NO_CACHE_HEADER = "no-cache, no-store, must-revalidate"

METRICS_NAMESPACE = "ImageHosting"

# ============================================================================
# Environment Variable Names
# ============================================================================

ENV_AWS_ENDPOINT_URL = "AWS_ENDPOINT_URL"
ENV_AWS_REGION = "AWS_REGION"
ENV_IMAGE_S3_BUCKET_NAME = "IMAGE_S3_BUCKET_NAME"
ENV_IMAGE_CACHE_TABLE_NAME = "IMAGE_CACHE_TABLE_NAME"
ENV_IMAGE_DELETE_QUEUE_URL = "IMAGE_DELETE_QUEUE_URL"
ENV_IMAGE_DATABASE_URL = "IMAGE_DATABASE_URL"
ENV_IMAGE_PUBLIC_BASE_URL = "IMAGE_PUBLIC_BASE_URL"
ENV_COMPRESSION_QUALITY = "COMPRESSION_QUALITY"
ENV_COMPRESSION_MAX_WIDTH = "COMPRESSION_MAX_WIDTH"
ENV_COMPRESSION_MAX_HEIGHT = "COMPRESSION_MAX_HEIGHT"
ENV_COMPRESSION_PRESERVE_ANIMATION = "COMPRESSION_PRESERVE_ANIMATION"
ENV_COMPRESSION_GENERATE_WEBP = "COMPRESSION_GENERATE_WEBP"
ENV_COMPRESSION_GENERATE_AVIF = "COMPRESSION_GENERATE_AVIF"
ENV_DEFAULT_EXPIRY_MINUTES = "DEFAULT_EXPIRY_MINUTES"

DEFAULT_DATABASE_URL = "sqlite:///images.db"
DEFAULT_AWS_REGION = "us-east-1"


# ============================================================================
# Helper Functions
# ============================================================================


def get_max_file_size_mb() -> int:
    """Get maximum file size in megabytes."""
    return MAX_FILE_SIZE // (1024 * 1024)
