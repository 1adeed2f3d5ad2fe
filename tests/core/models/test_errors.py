"""
Unit tests for core.models.errors
"""

import pytest

from core.models.errors import (
    DuplicateTagError,
    DynamoDBError,
    ImageDeletionFailedError,
    ImageServiceError,
    ImageUploadFailedError,
    MetadataOperationFailedError,
    NotFoundError,
    QueueError,
    S3Error,
    TransformError,
    UnsupportedFormatError,
    ValidationError,
)


class TestImageServiceError:
    def test_base_error(self) -> None:
        err = ImageServiceError(
            message="Something went wrong",
            error_code="TEST_ERROR",
            details={"foo": "bar"},
        )

        assert err.message == "Something went wrong"
        assert err.error_code == "TEST_ERROR"
        assert err.details == {"foo": "bar"}
        assert str(err) == "Something went wrong"


class TestValidationError:
    def test_validation_error_defaults(self) -> None:
        err = ValidationError(message="Invalid input")

        assert err.error_code == "VALIDATION_FAILED"
        assert err.details == {}


@pytest.mark.parametrize(
    "error_cls,code,parent",
    [
        (UnsupportedFormatError, "UNSUPPORTED_FORMAT", ValidationError),
        (DuplicateTagError, "DUPLICATE_TAG", ValidationError),
        (NotFoundError, "NOT_FOUND", ImageServiceError),
        (MetadataOperationFailedError, "METADATA_OPERATION_FAILED", ImageServiceError),
        (ImageUploadFailedError, "IMAGE_UPLOAD_FAILED", S3Error),
        (ImageDeletionFailedError, "IMAGE_DELETION_FAILED", S3Error),
        (DynamoDBError, "DYNAMODB_ERROR", ImageServiceError),
        (QueueError, "QUEUE_ERROR", ImageServiceError),
        (TransformError, "TRANSFORM_FAILED", ImageServiceError),
    ],
)
def test_error_codes_and_hierarchy(error_cls, code, parent) -> None:
    err = error_cls(message="failed", details={"key": "value"})

    assert isinstance(err, parent)
    assert err.error_code == code
    assert err.details == {"key": "value"}
