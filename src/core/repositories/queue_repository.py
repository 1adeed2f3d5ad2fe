"""Abstract contract for the asynchronous deletion work queue."""

from abc import ABC, abstractmethod

from core.models.jobs import DeletionJob


class DeletionQueueRepository(ABC):
    """Contract for submitting deletion jobs.

    Delivery is at-least-once; consumers must be idempotent.
    """

    @abstractmethod
    def submit(self, job: DeletionJob) -> str:
        """Submit one job and return the backend message id.

        Raises:
            QueueError: If the job could not be submitted
        """
