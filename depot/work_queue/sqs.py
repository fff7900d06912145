"""
Metadata Depot Repository
Introductory remarks: This module is part of the metadata depot codebase.

Amazon SQS work queue.

FIFO queues (URL ending in ``.fifo``) group messages per project so the
snapshot notification of a refresh is delivered before its versions.

A pulled message stays hidden for ``visibility_timeout`` seconds. Its
receipt is forgotten once that window closes, since SQS hands out a new
receipt when the message is delivered again.
"""

from __future__ import annotations

import logging
import os
import threading
import time
import uuid
from typing import Any, Callable, Dict, Optional, Tuple

from botocore.exceptions import BotoCoreError, ClientError

from depot.models import MetadataNotification

from .base import Queue
from .errors import QueueError

_LOGGER = logging.getLogger(__name__)


class SqsQueue(Queue):
    """Queue backed by an SQS queue URL."""

    def __init__(
        self,
        queue_url: str,
        *,
        client: Any | None = None,
        wait_seconds: int = 1,
        visibility_timeout: int = 300,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if not queue_url:
            raise ValueError("queue_url must be provided")
        if client is None:
            import boto3  # type: ignore[import-untyped]

            region = os.environ.get("AWS_REGION") or os.environ.get(
                "AWS_DEFAULT_REGION"
            )
            kwargs: Dict[str, Any] = {}
            if region:
                kwargs["region_name"] = region
            client = boto3.client("sqs", **kwargs)
        self._sqs = client
        self._queue_url = queue_url
        self._fifo = queue_url.endswith(".fifo")
        self._wait_seconds = wait_seconds
        self._visibility_timeout = visibility_timeout
        self._clock = clock
        self._lock = threading.Lock()
        # message id -> (receipt handle, expiry)
        self._receipts: Dict[str, Tuple[str, float]] = {}

    def push(self, notification: MetadataNotification) -> str:
        params: Dict[str, Any] = {
            "QueueUrl": self._queue_url,
            "MessageBody": notification.to_json(),
        }
        if self._fifo:
            params["MessageGroupId"] = (
                f"{notification.group_id}:{notification.artifact_id}"
            )
            params["MessageDeduplicationId"] = uuid.uuid4().hex
        try:
            response = self._sqs.send_message(**params)
        except (BotoCoreError, ClientError) as exc:
            raise QueueError(f"Failed to enqueue notification: {exc}") from exc
        return str(response["MessageId"])

    def pull(self) -> Optional[MetadataNotification]:
        try:
            response = self._sqs.receive_message(
                QueueUrl=self._queue_url,
                MaxNumberOfMessages=1,
                WaitTimeSeconds=self._wait_seconds,
                VisibilityTimeout=self._visibility_timeout,
            )
        except (BotoCoreError, ClientError) as exc:
            raise QueueError(f"Failed to receive notification: {exc}") from exc
        messages = response.get("Messages") or []
        if not messages:
            return None
        message = messages[0]
        try:
            notification = MetadataNotification.from_json(message["Body"])
        except ValueError as exc:
            # Poison message: drop it so it does not block the queue.
            _LOGGER.error("Discarding malformed notification: %s", exc)
            self._delete(message["ReceiptHandle"])
            return None
        notification = notification.with_event_id(message["MessageId"])
        now = self._clock()
        with self._lock:
            self._expire_receipts(now)
            self._receipts[message["MessageId"]] = (
                message["ReceiptHandle"],
                now + self._visibility_timeout,
            )
        return notification

    def ack(self, notification: MetadataNotification) -> None:
        if notification.event_id is None:
            raise QueueError("Cannot acknowledge a notification without id")
        with self._lock:
            self._expire_receipts(self._clock())
            entry = self._receipts.pop(notification.event_id, None)
        if entry is None:
            raise QueueError(
                f"Unknown or expired receipt for event "
                f"{notification.event_id}"
            )
        self._delete(entry[0])

    def size(self) -> int:
        try:
            response = self._sqs.get_queue_attributes(
                QueueUrl=self._queue_url,
                AttributeNames=["ApproximateNumberOfMessages"],
            )
        except (BotoCoreError, ClientError) as exc:
            raise QueueError(f"Failed to read queue size: {exc}") from exc
        attributes = response.get("Attributes") or {}
        return int(attributes.get("ApproximateNumberOfMessages", 0))

    def _expire_receipts(self, now: float) -> None:
        expired = [
            message_id
            for message_id, (_, expires_at) in self._receipts.items()
            if expires_at <= now
        ]
        for message_id in expired:
            del self._receipts[message_id]
        if expired:
            _LOGGER.debug("Dropped %d expired receipts", len(expired))

    def pending_receipts(self) -> int:
        """Number of pulled messages still awaiting acknowledgement."""
        with self._lock:
            self._expire_receipts(self._clock())
            return len(self._receipts)

    def _delete(self, receipt: str) -> None:
        try:
            self._sqs.delete_message(
                QueueUrl=self._queue_url, ReceiptHandle=receipt
            )
        except (BotoCoreError, ClientError) as exc:
            raise QueueError(f"Failed to acknowledge message: {exc}") from exc
