"""
Lambda handler responsible for image retrieval.
"""

from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.utilities.typing import LambdaContext

from core.utils.constants import METRICS_NAMESPACE
from core.utils.decorators import api_gateway_handler
from core.utils.response import ResponseBuilder
from core.utils.validators import validate_request

from .models import GetImageRequest, GetImageResponse
from .service import GetService

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics(namespace=METRICS_NAMESPACE)


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Handle GET /api/images/{image_id}.

    Args:
        event: API Gateway event payload.
        context: AWS Lambda runtime context.

    Returns:
        The image record with original, WebP and AVIF URLs.
    """
    request_id = getattr(context, "aws_request_id", None)
    path_params = event.get("pathParameters") or {}

    logger.info(
        "Received image get request",
        extra={"path_params": path_params, "request_id": request_id},
    )

    ok, request = validate_request(
        GetImageRequest,
        {"image_id": path_params.get("image_id")},
        request_id=request_id,
    )
    if not ok:
        return request

    image = GetService().get_image(request.image_id)
    return ResponseBuilder.ok(GetImageResponse(image=image).model_dump(), request_id=request_id)
