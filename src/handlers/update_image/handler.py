"""
Lambda handler responsible for updating image tags and expiry.
"""

import json
from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.utilities.typing import LambdaContext

from core.utils.constants import METRICS_NAMESPACE
from core.utils.decorators import api_gateway_handler
from core.utils.response import ResponseBuilder
from core.utils.validators import validate_request

from .models import UpdateImageRequest, UpdateImageResponse
from .service import UpdateService

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics(namespace=METRICS_NAMESPACE)


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Handle PUT /api/images/{image_id}.

    Body fields (all optional): ``tags`` (list or comma-separated string,
    replaces the current set) and ``expiryTime`` (ISO-8601, null clears).
    """
    request_id = getattr(context, "aws_request_id", None)
    path_params = event.get("pathParameters") or {}

    logger.info(
        "Received image update request",
        extra={"path_params": path_params, "request_id": request_id},
    )

    try:
        body = json.loads(event.get("body") or "{}")
    except json.JSONDecodeError as exc:
        logger.exception("Invalid JSON body received", exc_info=exc)
        return ResponseBuilder.bad_request(message="Invalid JSON body", request_id=request_id)

    if not isinstance(body, dict):
        return ResponseBuilder.bad_request(message="Invalid request payload", request_id=request_id)

    ok, request = validate_request(
        UpdateImageRequest,
        {**body, "image_id": path_params.get("image_id")},
        request_id=request_id,
    )
    if not ok:
        return request

    image = UpdateService().update_image(request.image_id, request.update_fields())
    return ResponseBuilder.ok(UpdateImageResponse(image=image).model_dump(), request_id=request_id)
