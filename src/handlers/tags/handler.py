"""
Lambda handlers for tag management endpoints.

Routes:
    GET    /api/tags          -> list_handler
    POST   /api/tags          -> create_handler
    PUT    /api/tags/{name}   -> rename_handler
    DELETE /api/tags/{name}   -> delete_handler
    POST   /api/tags/batch    -> batch_handler
"""

import json
from typing import Any
from urllib.parse import unquote

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext

from core.utils.constants import METRICS_NAMESPACE
from core.utils.decorators import api_gateway_handler
from core.utils.response import ResponseBuilder
from core.utils.validators import validate_request

from .models import (
    BatchTagsRequest,
    BatchTagsResponse,
    CreateTagRequest,
    DeleteTagResponse,
    RenameTagRequest,
    TagListResponse,
    TagResponse,
)
from .service import TagService

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics(namespace=METRICS_NAMESPACE)


def _log_request(message: str, event: dict[str, Any], context: LambdaContext) -> None:
    logger.info(
        message,
        extra={
            "http_method": event.get("httpMethod"),
            "path": event.get("path"),
            "path_params": event.get("pathParameters"),
            "request_id": getattr(context, "aws_request_id", None),
            "function_name": getattr(context, "function_name", None),
        },
    )


def _json_body(event: dict[str, Any]) -> Any:
    """Parse the request body; malformed JSON surfaces as a 400 via the decorator."""
    try:
        return json.loads(event.get("body") or "{}")
    except json.JSONDecodeError as exc:
        raise ValueError("Invalid JSON body") from exc


def _tag_name(event: dict[str, Any]) -> str:
    path_params = event.get("pathParameters") or {}
    return unquote(path_params.get("name") or "")


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def list_handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """Return every tag with its live image count, alphabetically."""
    _log_request("Received tag list request", event, context)

    tags = TagService().list_tags()
    return ResponseBuilder.ok(TagListResponse(tags=tags).model_dump())


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def create_handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    _log_request("Received tag create request", event, context)
    request_id = getattr(context, "aws_request_id", None)

    ok, request = validate_request(CreateTagRequest, _json_body(event), request_id=request_id)
    if not ok:
        return request

    tag = TagService().create_tag(request.name)
    return ResponseBuilder.created(TagResponse(tag=tag).model_dump(), request_id=request_id)


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def rename_handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """Rename a tag; the body carries ``newName``."""
    _log_request("Received tag rename request", event, context)
    request_id = getattr(context, "aws_request_id", None)

    body = _json_body(event)
    if not isinstance(body, dict):
        raise ValueError("Invalid request payload")

    ok, request = validate_request(
        RenameTagRequest,
        {"old_name": _tag_name(event), **body},
        request_id=request_id,
    )
    if not ok:
        return request

    tag = TagService().rename_tag(request.old_name, request.new_name)
    return ResponseBuilder.ok(TagResponse(tag=tag).model_dump(), request_id=request_id)


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def delete_handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Delete a tag together with every image carrying it.

    Metadata and cache are updated before the response; stored objects are
    removed asynchronously by the deletion worker.
    """
    _log_request("Received tag delete request", event, context)
    request_id = getattr(context, "aws_request_id", None)

    name = _tag_name(event)
    if not name:
        return ResponseBuilder.bad_request("Tag name is required", request_id=request_id)

    outcome = TagService().delete_tag(name)

    metrics.add_metric(name="ImagesDeleted", unit=MetricUnit.Count, value=outcome.deleted_images)
    metrics.add_metric(name="DeletionJobsQueued", unit=MetricUnit.Count, value=outcome.queued_jobs)

    response = DeleteTagResponse(
        deleted_images=outcome.deleted_images,
        queued_jobs=outcome.queued_jobs,
        orphaned_objects=outcome.orphaned_objects,
    )
    return ResponseBuilder.ok(response.model_dump(), request_id=request_id)


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def batch_handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """Add and remove tags across many images; body uses ``imageIds``, ``addTags``, ``removeTags``."""
    _log_request("Received tag batch request", event, context)
    request_id = getattr(context, "aws_request_id", None)

    ok, request = validate_request(BatchTagsRequest, _json_body(event), request_id=request_id)
    if not ok:
        return request

    updated = TagService().batch_update(request.image_ids, request.add_tags, request.remove_tags)
    return ResponseBuilder.ok(BatchTagsResponse(updated_count=updated).model_dump(), request_id=request_id)
