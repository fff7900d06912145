"""Work queue contract for refresh notifications."""

from __future__ import annotations

from typing import Optional, Protocol

from depot.models import MetadataNotification


class Queue(Protocol):
    """At-least-once FIFO of refresh work.

    ``push`` is safe to call from many threads and returns a unique event id.
    A pulled notification stays owned by the consumer until ``ack``; an
    unacknowledged notification may be delivered again.
    """

    def push(self, notification: MetadataNotification) -> str:
        """Enqueue ``notification`` and return its event id."""

    def pull(self) -> Optional[MetadataNotification]:
        """Return the next notification (with ``event_id`` set) or ``None``."""

    def ack(self, notification: MetadataNotification) -> None:
        """Mark a pulled notification as processed."""

    def size(self) -> int:
        """Number of notifications waiting to be pulled."""
