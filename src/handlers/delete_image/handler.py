"""
Lambda handler responsible for deleting an image resource.
"""

from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext

from core.utils.constants import METRICS_NAMESPACE
from core.utils.decorators import api_gateway_handler
from core.utils.response import ResponseBuilder
from core.utils.time import utc_now_iso
from core.utils.validators import validate_request

from .models import DeleteImageRequest, DeleteImageResponse
from .service import DeleteService

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics(namespace=METRICS_NAMESPACE)


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Handle image deletion requests (DELETE /api/images/{image_id}).

    This function:
    - Extracts the image identifier from API Gateway path parameters
    - Validates the incoming request
    - Delegates deletion to the service layer

    Args:
        event: API Gateway Lambda proxy event
        context: AWS Lambda execution context

    Returns:
        API Gateway-compatible HTTP response
    """
    request_id = getattr(context, "aws_request_id", None)
    path_params = event.get("pathParameters") or {}

    logger.info(
        "Received image delete request",
        extra={
            "http_method": event.get("httpMethod"),
            "path": event.get("path"),
            "request_id": request_id,
            "function_name": getattr(context, "function_name", None),
        },
    )

    ok, request = validate_request(
        DeleteImageRequest,
        {"image_id": path_params.get("image_id")},
        request_id=request_id,
    )
    if not ok:
        return request

    outcome = DeleteService().delete_image(request.image_id)

    metrics.add_metric(name="ImagesDeleted", unit=MetricUnit.Count, value=outcome.deleted_images)
    metrics.add_metric(name="DeletionJobsQueued", unit=MetricUnit.Count, value=outcome.queued_jobs)

    response = DeleteImageResponse(
        image_id=request.image_id,
        message="Image deleted successfully",
        deleted_at=utc_now_iso(),
        queued_jobs=outcome.queued_jobs,
        orphaned_objects=outcome.orphaned_objects,
    )

    return ResponseBuilder.ok(response.model_dump(), request_id=request_id)
