"""
Lambda handler redirecting to a random image.
"""

from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.utilities.typing import LambdaContext

from core.utils.constants import METRICS_NAMESPACE, NO_CACHE_HEADER
from core.utils.decorators import api_gateway_handler
from core.utils.response import ResponseBuilder
from core.utils.validators import validate_request

from .models import RandomImageRequest
from .service import RandomService

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics(namespace=METRICS_NAMESPACE)


def _header(event: dict[str, Any], name: str) -> str | None:
    headers = event.get("headers") or {}
    lowered = name.lower()
    return next((value for key, value in headers.items() if key.lower() == lowered), None)


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Handle GET /api/random.

    Query parameters: ``tags`` and ``exclude`` (comma-separated),
    ``orientation`` (landscape | portrait) and ``format``
    (original | webp | avif). Without ``format`` the Accept header picks the
    best available variant.

    Returns:
        302 redirect to the chosen URL, never cached by clients
    """
    request_id = getattr(context, "aws_request_id", None)

    logger.info(
        "Received random image request",
        extra={
            "query_params": event.get("queryStringParameters"),
            "request_id": request_id,
        },
    )

    ok, request = validate_request(
        RandomImageRequest,
        event.get("queryStringParameters") or {},
        request_id=request_id,
    )
    if not ok:
        return request

    url = RandomService().random_image_url(
        request,
        user_agent=_header(event, "User-Agent"),
        accept=_header(event, "Accept"),
    )

    return ResponseBuilder.redirect(url, headers={"Cache-Control": NO_CACHE_HEADER})
