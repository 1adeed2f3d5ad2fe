"""
Pytest configuration and fixtures for image-hosting tests.
Provides AWS mocking (S3, DynamoDB cache table, SQS), an in-memory SQL
metadata store, sample images and a wired service container.
"""

import os

os.environ.setdefault("POWERTOOLS_SERVICE_NAME", "image-hosting-test")
os.environ.setdefault("POWERTOOLS_METRICS_NAMESPACE", "ImageHostingTest")
os.environ.setdefault("POWERTOOLS_TRACE_DISABLED", "1")
os.environ.setdefault("AWS_REGION", "us-east-1")
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
os.environ.setdefault("IMAGE_S3_BUCKET_NAME", "test-images-bucket")
os.environ.setdefault("IMAGE_CACHE_TABLE_NAME", "test-image-cache")
os.environ.setdefault("IMAGE_DELETE_QUEUE_URL", "https://sqs.us-east-1.amazonaws.com/123456789012/test-delete-queue")
os.environ.setdefault("IMAGE_PUBLIC_BASE_URL", "https://images.example.com")

import base64  # noqa: E402
import json  # noqa: E402
from collections.abc import Callable  # noqa: E402
from concurrent.futures import ThreadPoolExecutor  # noqa: E402
from io import BytesIO  # noqa: E402
from types import SimpleNamespace  # noqa: E402
from typing import Any  # noqa: E402

import boto3  # noqa: E402
import pytest  # noqa: E402
from botocore.exceptions import ClientError  # noqa: E402
from moto import mock_aws  # noqa: E402
from PIL import Image  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from core.config import ServiceSettings  # noqa: E402
from core.container import Container, set_container  # noqa: E402
from core.infrastructure.adapters.sql_adapter import SQLAdapter  # noqa: E402
from core.infrastructure.sql.sql_metadata import SQLMetadataStore  # noqa: E402
from core.models.compression import CompressedImage  # noqa: E402
from core.models.errors import QueueError  # noqa: E402
from core.models.image import ImageFilters, ImageMetadata, ImagePaths, ImageSizes  # noqa: E402
from core.models.jobs import DeletionJob  # noqa: E402
from core.repositories.cache_repository import CacheRepository  # noqa: E402
from core.repositories.queue_repository import DeletionQueueRepository  # noqa: E402
from core.repositories.storage_repository import ImageStorageRepository  # noqa: E402
from core.services.cache import CacheService  # noqa: E402
from core.services.compression import CompressionService  # noqa: E402
from core.utils.constants import MAX_LIMIT  # noqa: E402
from core.utils.mime import content_type_for_format  # noqa: E402

PUBLIC_BASE_URL = "https://images.example.com"


# ============================================================================
# AWS (moto)
# ============================================================================


@pytest.fixture(scope="function")
def aws_mock():
    with mock_aws():
        yield


@pytest.fixture(scope="function")
def s3_client(aws_mock):
    """S3 client for bucket operations."""
    return boto3.client("s3", region_name=os.getenv("AWS_REGION"))


@pytest.fixture(scope="function")
def s3_bucket(s3_client):
    """Create the image bucket for the duration of the test."""
    bucket_name = os.getenv("IMAGE_S3_BUCKET_NAME")

    try:
        s3_client.head_bucket(Bucket=bucket_name)
    except ClientError:
        s3_client.create_bucket(Bucket=bucket_name)

    yield s3_client


@pytest.fixture
def s3_put_object(s3_client) -> Callable[[str, bytes, str], dict[str, Any]]:
    """
    Helper to upload an object to S3.

    Usage:
        response = s3_put_object("original/landscape/img.jpg", image_bytes, "image/jpeg")
    """

    def _put(key: str, body: bytes, content_type: str = "application/octet-stream"):
        bucket_name = os.getenv("IMAGE_S3_BUCKET_NAME")
        return s3_client.put_object(Bucket=bucket_name, Key=key, Body=body, ContentType=content_type)

    return _put


@pytest.fixture
def s3_get_object(s3_client) -> Callable[[str], bytes]:
    """
    Helper to get an object from S3.

    Usage:
        content = s3_get_object("original/landscape/img.jpg")
    """

    def _get(key: str) -> bytes:
        bucket_name = os.getenv("IMAGE_S3_BUCKET_NAME")
        response: dict[str, Any] = s3_client.get_object(Bucket=bucket_name, Key=key)
        data: bytes = response["Body"].read()
        return data

    return _get


@pytest.fixture
def s3_object_keys(s3_client) -> Callable[[], list[str]]:
    """Helper listing every key currently in the bucket."""

    def _keys() -> list[str]:
        bucket_name = os.getenv("IMAGE_S3_BUCKET_NAME")
        response = s3_client.list_objects_v2(Bucket=bucket_name)
        return sorted(obj["Key"] for obj in response.get("Contents", []))

    return _keys


@pytest.fixture(scope="function")
def dynamodb_resource(aws_mock):
    return boto3.resource("dynamodb", region_name=os.getenv("AWS_REGION"))


@pytest.fixture(scope="function")
def cache_table(dynamodb_resource):
    """Cache table keyed on ``cache_key``."""
    table = dynamodb_resource.create_table(
        TableName=os.getenv("IMAGE_CACHE_TABLE_NAME"),
        BillingMode="PAY_PER_REQUEST",
        KeySchema=[{"AttributeName": "cache_key", "KeyType": "HASH"}],
        AttributeDefinitions=[{"AttributeName": "cache_key", "AttributeType": "S"}],
    )
    table.wait_until_exists()
    return table


@pytest.fixture(scope="function")
def sqs_client(aws_mock):
    return boto3.client("sqs", region_name=os.getenv("AWS_REGION"))


@pytest.fixture(scope="function")
def sqs_queue(sqs_client, monkeypatch) -> str:
    """Create the deletion queue and point the environment at it."""
    queue_url = sqs_client.create_queue(QueueName="test-delete-queue")["QueueUrl"]
    monkeypatch.setenv("IMAGE_DELETE_QUEUE_URL", queue_url)
    return queue_url


@pytest.fixture
def sqs_receive(sqs_client, sqs_queue) -> Callable[[], list[dict[str, Any]]]:
    """Helper draining up to ten messages from the deletion queue."""

    def _receive() -> list[dict[str, Any]]:
        response = sqs_client.receive_message(QueueUrl=sqs_queue, MaxNumberOfMessages=10)
        return response.get("Messages", [])

    return _receive


# ============================================================================
# SQL metadata store
# ============================================================================


@pytest.fixture
def sql_adapter() -> SQLAdapter:
    """In-memory SQLite shared by every connection of the engine."""
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    adapter = SQLAdapter(engine=engine)
    adapter.create_schema()
    yield adapter
    adapter.dispose()


@pytest.fixture
def metadata_store(sql_adapter) -> SQLMetadataStore:
    return SQLMetadataStore(sql_adapter)


@pytest.fixture
def stored_ids(metadata_store) -> Callable[..., list[str]]:
    """Ids currently in the metadata store, newest upload first."""

    def _ids(orientation: str | None = None) -> list[str]:
        page = metadata_store.get_images(ImageFilters(limit=MAX_LIMIT, orientation=orientation))
        return [image.id for image in page.images]

    return _ids


def make_metadata(
    image_id: str,
    *,
    tags: list[str] | None = None,
    orientation: str = "landscape",
    image_format: str = "jpeg",
    upload_time: str = "2024-01-01T10:00:00+00:00",
    expiry_time: str | None = None,
) -> ImageMetadata:
    extension = "jpg" if image_format == "jpeg" else image_format
    width, height = (1200, 800) if orientation == "landscape" else (800, 1200)
    return ImageMetadata(
        id=image_id,
        original_name=f"{image_id}.{extension}",
        upload_time=upload_time,
        expiry_time=expiry_time,
        orientation=orientation,
        tags=tags or [],
        format=image_format,
        width=width,
        height=height,
        paths=ImagePaths(
            original=f"original/{orientation}/{image_id}.{extension}",
            webp=f"webp/{orientation}/{image_id}.webp",
            avif=f"avif/{orientation}/{image_id}.avif",
        ),
        sizes=ImageSizes(original=1000, webp=600, avif=400),
    )


@pytest.fixture
def image_factory() -> Callable[..., ImageMetadata]:
    """Build ImageMetadata records; see ``make_metadata`` for the knobs."""
    return make_metadata


# ============================================================================
# Sample images
# ============================================================================


def encode_image(image: Image.Image, image_format: str, **params: Any) -> bytes:
    buffer = BytesIO()
    image.save(buffer, format=image_format, **params)
    return buffer.getvalue()


@pytest.fixture
def jpeg_bytes() -> bytes:
    """Landscape 64x48 JPEG."""
    return encode_image(Image.new("RGB", (64, 48), (200, 30, 30)), "JPEG")


@pytest.fixture
def portrait_jpeg_bytes() -> bytes:
    return encode_image(Image.new("RGB", (40, 60), (30, 200, 30)), "JPEG")


@pytest.fixture
def png_bytes() -> bytes:
    """Square 32x32 PNG with alpha."""
    return encode_image(Image.new("RGBA", (32, 32), (0, 0, 255, 128)), "PNG")


@pytest.fixture
def animated_gif_bytes() -> bytes:
    frames = [Image.new("P", (16, 16), color) for color in (1, 2, 3)]
    return encode_image(frames[0], "GIF", save_all=True, append_images=frames[1:], duration=100, loop=0)


# ============================================================================
# Fakes and container
# ============================================================================


class FakeTransformer:
    """Returns fixed bytes per format; formats in ``fail`` raise."""

    def __init__(self, fail: dict[str, Exception] | None = None) -> None:
        self.fail = fail or {}
        self.calls: list[dict[str, Any]] = []

    def transform(self, data: bytes, *, target_format: str, quality: int, width: int, height: int) -> CompressedImage:
        self.calls.append({"format": target_format, "quality": quality, "width": width, "height": height})
        if target_format in self.fail:
            raise self.fail[target_format]
        encoded = f"{target_format}-bytes".encode()
        return CompressedImage(data=encoded, content_type=content_type_for_format(target_format), size=len(encoded))


class InMemoryStorage(ImageStorageRepository):
    def __init__(self) -> None:
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.removed: list[str] = []

    def upload_object(self, *, key: str, data: bytes, content_type: str) -> None:
        self.objects[key] = (data, content_type)

    def remove_object(self, *, key: str) -> None:
        self.removed.append(key)
        self.objects.pop(key, None)


class InMemoryCache(CacheRepository):
    def __init__(self) -> None:
        self.entries: dict[str, Any] = {}
        self.counters: dict[str, int] = {}

    def get(self, key: str) -> Any | None:
        return self.entries.get(key)

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        self.entries[key] = value

    def delete(self, key: str) -> None:
        self.entries.pop(key, None)

    def increment(self, key: str) -> int:
        self.counters[key] = self.counters.get(key, 0) + 1
        return self.counters[key]

    def get_counter(self, key: str) -> int:
        return self.counters.get(key, 0)


class RecordingQueue(DeletionQueueRepository):
    """Keeps submitted jobs; raises QueueError while ``failing`` is set."""

    def __init__(self) -> None:
        self.jobs: list[DeletionJob] = []
        self.failing = False

    def submit(self, job: DeletionJob) -> str:
        if self.failing:
            raise QueueError(message="Unable to queue deletion job")
        self.jobs.append(job)
        return f"msg-{len(self.jobs)}"


@pytest.fixture
def fake_storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def fake_cache_backend() -> InMemoryCache:
    return InMemoryCache()


@pytest.fixture
def fake_queue() -> RecordingQueue:
    return RecordingQueue()


@pytest.fixture
def fake_transformer() -> FakeTransformer:
    return FakeTransformer()


@pytest.fixture
def settings() -> ServiceSettings:
    return ServiceSettings(public_base_url=PUBLIC_BASE_URL)


@pytest.fixture
def executor() -> ThreadPoolExecutor:
    pool = ThreadPoolExecutor(max_workers=4)
    yield pool
    pool.shutdown(wait=True)


@pytest.fixture
def container(
    settings,
    sql_adapter,
    metadata_store,
    fake_storage,
    fake_cache_backend,
    fake_queue,
    fake_transformer,
    executor,
) -> Container:
    """Container wired to in-memory collaborators and installed process-wide."""
    wired = Container(
        settings,
        sql=sql_adapter,
        metadata=metadata_store,
        storage=fake_storage,
        cache=CacheService(fake_cache_backend),
        queue=fake_queue,
        compression=CompressionService(fake_transformer, sleep=lambda _: None),
        executor=executor,
    )
    set_container(wired)
    yield wired
    set_container(None)



@pytest.fixture
def lambda_context():
    return SimpleNamespace(
        aws_request_id="test-request-id",
        function_name="test-function",
        memory_limit_in_mb=256,
        invoked_function_arn="arn:aws:lambda:us-east-1:000000000000:function:test",
        log_group_name="/aws/lambda/test-function",
        log_stream_name="2024/01/01/[$LATEST]test",
    )


@pytest.fixture
def upload_event():
    """Build an upload event for the given image bytes and extra body fields."""

    def _event(file_data: bytes, **fields: Any) -> dict[str, Any]:
        body = {"file": base64.b64encode(file_data).decode("utf-8"), **fields}
        return {
            "httpMethod": "POST",
            "path": "/api/upload",
            "body": json.dumps(body),
            "headers": {"Content-Type": "application/json"},
        }

    return _event


def parse_body(response: dict[str, Any]) -> dict[str, Any]:
    return json.loads(response["body"]) if response.get("body") else {}


@pytest.fixture
def body_of():
    return parse_body
