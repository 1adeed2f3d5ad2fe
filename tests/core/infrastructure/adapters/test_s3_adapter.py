import pytest
from botocore.exceptions import ClientError

from core.infrastructure.adapters.s3_adapter import S3Adapter
from core.utils.constants import ENV_IMAGE_S3_BUCKET_NAME


class TestS3Adapter:
    def test_init_missing_bucket_env(self, monkeypatch):
        monkeypatch.delenv(ENV_IMAGE_S3_BUCKET_NAME, raising=False)

        with pytest.raises(RuntimeError):
            S3Adapter()

    def test_put_object_success(self, s3_bucket, s3_get_object):
        adapter = S3Adapter()

        key = "original/landscape/img_1.jpg"
        adapter.put_object(key=key, body=b"image-bytes", content_type="image/jpeg", metadata={})

        assert s3_get_object(key) == b"image-bytes"

    def test_delete_object_success(self, s3_bucket, s3_put_object, s3_get_object):
        adapter = S3Adapter()

        key = "webp/landscape/img_delete.webp"
        s3_put_object(key, b"data", "image/webp")

        adapter.delete_object(key=key)

        with pytest.raises(ClientError) as exc:
            s3_get_object(key)

        assert exc.value.response["Error"]["Code"] == "NoSuchKey"

    def test_delete_missing_object_succeeds(self, s3_bucket):
        adapter = S3Adapter()

        adapter.delete_object(key="original/landscape/never-existed.jpg")

    def test_put_object_bubbles_client_error(self, monkeypatch, s3_bucket):
        adapter = S3Adapter()

        def raise_error(**_):
            raise ClientError({"Error": {"Code": "InternalError"}}, "PutObject")

        monkeypatch.setattr(adapter._client, "put_object", raise_error)

        with pytest.raises(ClientError):
            adapter.put_object(key="original/x.jpg", body=b"data", content_type="image/jpeg", metadata={})
