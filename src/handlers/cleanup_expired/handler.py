"""
Scheduled Lambda deleting images whose expiry time has passed.
"""

from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext

from core.container import get_container
from core.utils.constants import METRICS_NAMESPACE

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics(namespace=METRICS_NAMESPACE)


@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Purge expired images (EventBridge schedule).

    Metadata rows are deleted here; objects go through the deletion queue
    like any other deletion.
    """
    logger.info(
        "Expiry sweep started",
        extra={"request_id": getattr(context, "aws_request_id", None)},
    )

    outcome = get_container().pipeline.purge_expired()

    metrics.add_metric(name="ImagesDeleted", unit=MetricUnit.Count, value=outcome.deleted_images)
    metrics.add_metric(name="DeletionJobsQueued", unit=MetricUnit.Count, value=outcome.queued_jobs)

    logger.info("Expiry sweep finished", extra=outcome.model_dump(mode="json"))
    return outcome.model_dump(mode="json")
