"""
SQS-triggered Lambda removing stored objects of deleted images.

Each message is one deletion job. Failed records are reported back to SQS
as partial batch failures so only they are redelivered.
"""

from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.batch import (
    BatchProcessor,
    EventType,
    process_partial_response,
)
from aws_lambda_powertools.utilities.data_classes.sqs_event import SQSRecord
from aws_lambda_powertools.utilities.typing import LambdaContext

from core.container import get_container
from core.models.jobs import DeletionJob
from core.utils.constants import METRICS_NAMESPACE

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics(namespace=METRICS_NAMESPACE)

processor = BatchProcessor(event_type=EventType.SQS)


@tracer.capture_method
def record_handler(record: SQSRecord) -> int:
    """Process one deletion job; raising marks the record as failed."""
    job = DeletionJob.model_validate_json(record.body)

    logger.append_keys(message_id=record.message_id)
    deleted = get_container().worker.process_job(job)

    metrics.add_metric(name="ObjectsDeleted", unit=MetricUnit.Count, value=deleted)
    return deleted


@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    return process_partial_response(
        event=event,
        record_handler=record_handler,
        processor=processor,
        context=context,
    )
