"""Thin adapter for interacting with Amazon SQS."""

import os
from typing import Any, Protocol

import boto3

from core.utils.constants import (
    DEFAULT_AWS_REGION,
    ENV_AWS_ENDPOINT_URL,
    ENV_AWS_REGION,
    ENV_IMAGE_DELETE_QUEUE_URL,
)


class _Boto3SQSClient(Protocol):
    """Internal typing for boto3 SQS client (AWS-facing only)."""

    def send_message(self, *, QueueUrl: str, MessageBody: str) -> Any: ...


class SQSAdapterProtocol(Protocol):
    """Minimal SQS adapter protocol (repository-facing)."""

    def send_message(self, *, body: str) -> str: ...


class SQSAdapter:
    """Low-level SQS operations (mechanical, no error handling).

    This adapter:
    - Wraps boto3 SQS client
    - Does NOT handle errors (lets them bubble up)
    - Domain implementations catch and translate errors
    """

    def __init__(self) -> None:
        """Create SQS client from environment configuration."""
        queue_url = os.getenv(ENV_IMAGE_DELETE_QUEUE_URL)
        if not queue_url:
            raise RuntimeError(f"{ENV_IMAGE_DELETE_QUEUE_URL} environment variable is not set")

        self._queue_url = queue_url
        self._client: _Boto3SQSClient = boto3.client(
            "sqs",
            endpoint_url=os.getenv(ENV_AWS_ENDPOINT_URL),
            region_name=os.getenv(ENV_AWS_REGION, DEFAULT_AWS_REGION),
        )

    def send_message(self, *, body: str) -> str:
        """Send one message and return its message id.

        Raises boto3 exceptions - caught by domain implementation.
        """
        response = self._client.send_message(
            QueueUrl=self._queue_url,
            MessageBody=body,
        )
        return str(response.get("MessageId", ""))
