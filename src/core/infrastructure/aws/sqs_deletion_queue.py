"""SQS-backed implementation of DeletionQueueRepository."""

from aws_lambda_powertools import Logger
from botocore.exceptions import ClientError

from core.infrastructure.adapters.sqs_adapter import SQSAdapter, SQSAdapterProtocol
from core.models.errors import QueueError
from core.models.jobs import DeletionJob
from core.repositories.queue_repository import DeletionQueueRepository

logger = Logger(UTC=True)


class SQSDeletionQueue(DeletionQueueRepository):
    """Deletion jobs sent as JSON messages to an SQS queue."""

    def __init__(self, adapter: SQSAdapterProtocol | None = None) -> None:
        self._sqs: SQSAdapterProtocol = adapter or SQSAdapter()

    def submit(self, job: DeletionJob) -> str:
        details = {"type": job.type, "tag": job.tag_name, "image_count": len(job.image_paths)}
        logger.debug("Submitting deletion job", extra=details)

        try:
            message_id = self._sqs.send_message(body=job.to_message())

        except ClientError as exc:
            logger.error("SQS send failed", extra=details)
            raise QueueError(message="Unable to queue deletion job", details=details) from exc

        except Exception as exc:
            logger.exception("Unexpected error queueing deletion job")
            raise QueueError(message="Unable to queue deletion job", details=details) from exc

        logger.info("Deletion job queued", extra={**details, "message_id": message_id})
        return message_id
