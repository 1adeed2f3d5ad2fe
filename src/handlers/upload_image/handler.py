"""
Lambda handler responsible for image upload and metadata creation.
"""

import json
from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext

from core.utils.constants import METRICS_NAMESPACE
from core.utils.decorators import api_gateway_handler
from core.utils.response import ResponseBuilder
from core.utils.validators import validate_request

from .models import ImageUploadRequest, ImageUploadResponse
from .service import UploadService

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics(namespace=METRICS_NAMESPACE)


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Handle image upload requests (POST /api/upload).

    Expected API Gateway event structure:
    {
        "body": "{\"file\": \"<base64>\", \"image_name\": \"cat.jpg\", \"tags\": \"a,b\"}",
        "isBase64Encoded": false
    }

    Optional body fields: ``expiry_minutes`` and the compression overrides
    ``quality``, ``max_width``, ``max_height``, ``preserve_animation``,
    ``generate_webp``, ``generate_avif``.

    Args:
        event: API Gateway Lambda proxy event containing the upload payload
        context: AWS Lambda execution context

    Returns:
        API Gateway-compatible HTTP response describing the stored image
    """
    request_id = getattr(context, "aws_request_id", None)

    logger.info(
        "Received image upload request",
        extra={
            "http_method": event.get("httpMethod"),
            "path": event.get("path"),
            "request_id": request_id,
            "function_name": getattr(context, "function_name", None),
        },
    )

    try:
        body = json.loads(event.get("body") or "{}")
    except json.JSONDecodeError as exc:
        logger.exception("Invalid JSON body received", exc_info=exc)
        return ResponseBuilder.bad_request(message="Invalid JSON body", request_id=request_id)

    ok, request = validate_request(ImageUploadRequest, body, request_id=request_id)
    if not ok:
        logger.error("Request validation failed")
        return request

    service = UploadService()

    result = service.upload_image(
        file_data=request.file_bytes(),
        original_name=request.image_name,
        tags=request.tags,
        expiry_minutes=request.expiry_minutes,
        compression_overrides=request.compression_overrides(),
    )

    metrics.add_metric(name="ImagesUploaded", unit=MetricUnit.Count, value=1)

    response = ImageUploadResponse(result=result)
    return ResponseBuilder.created(response.model_dump(), request_id=request_id)
