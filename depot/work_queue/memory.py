"""In-process queue used for local runs and tests."""

from __future__ import annotations

import threading
import uuid
from collections import deque
from typing import Deque, Dict, List, Optional

from depot.models import MetadataNotification

from .base import Queue
from .errors import QueueError


class InMemoryQueue(Queue):
    """Thread-safe deque with an in-flight table for unacknowledged work."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pending: Deque[MetadataNotification] = deque()
        self._in_flight: Dict[str, MetadataNotification] = {}

    def push(self, notification: MetadataNotification) -> str:
        event_id = uuid.uuid4().hex
        with self._lock:
            self._pending.append(notification.with_event_id(event_id))
        return event_id

    def pull(self) -> Optional[MetadataNotification]:
        with self._lock:
            if not self._pending:
                return None
            notification = self._pending.popleft()
            self._in_flight[notification.event_id] = notification
            return notification

    def ack(self, notification: MetadataNotification) -> None:
        if notification.event_id is None:
            raise QueueError("Cannot acknowledge a notification without id")
        with self._lock:
            self._in_flight.pop(notification.event_id, None)

    def redeliver_unacked(self) -> int:
        """Return in-flight notifications to the front of the queue."""
        with self._lock:
            stranded = list(self._in_flight.values())
            self._in_flight.clear()
            self._pending.extendleft(reversed(stranded))
        return len(stranded)

    def size(self) -> int:
        with self._lock:
            return len(self._pending)

    def get_all(self) -> List[MetadataNotification]:
        """Snapshot of pending notifications in delivery order."""
        with self._lock:
            return list(self._pending)
