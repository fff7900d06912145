"""Work queue for refresh notifications."""

from __future__ import annotations

from typing import Optional

from depot.config import DepotSettings

from .base import Queue
from .errors import QueueError
from .memory import InMemoryQueue


def build_queue_from_env(settings: Optional[DepotSettings] = None) -> Queue:
    settings = settings or DepotSettings.from_env()
    if settings.queue_url:
        from .sqs import SqsQueue

        return SqsQueue(settings.queue_url)
    return InMemoryQueue()


__all__ = ["InMemoryQueue", "Queue", "QueueError", "build_queue_from_env"]
