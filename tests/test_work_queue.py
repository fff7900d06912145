from __future__ import annotations

import threading
from typing import Any, Dict, List

import pytest
from botocore.exceptions import ClientError

from depot.config import DepotSettings
from depot.models import MetadataNotification
from depot.work_queue import InMemoryQueue, QueueError, build_queue_from_env
from depot.work_queue.sqs import SqsQueue


def _notification(version_id: str = "1.0.0") -> MetadataNotification:
    return MetadataNotification("PROD-1", "g", "a", version_id, True)


def test_in_memory_queue_is_fifo_with_unique_ids() -> None:
    queue = InMemoryQueue()
    ids = [queue.push(_notification(v)) for v in ("1.0.0", "1.1.0")]

    first = queue.pull()
    second = queue.pull()

    assert len(set(ids)) == 2
    assert (first.version_id, first.event_id) == ("1.0.0", ids[0])
    assert (second.version_id, second.event_id) == ("1.1.0", ids[1])
    assert queue.pull() is None


def test_in_memory_queue_redelivers_unacknowledged() -> None:
    queue = InMemoryQueue()
    queue.push(_notification("1.0.0"))
    queue.push(_notification("1.1.0"))
    acked = queue.pull()
    queue.pull()
    queue.ack(acked)

    assert queue.redeliver_unacked() == 1
    assert [n.version_id for n in queue.get_all()] == ["1.1.0"]


def test_in_memory_queue_concurrent_pushes() -> None:
    queue = InMemoryQueue()
    ids: List[str] = []
    lock = threading.Lock()

    def _push() -> None:
        for _ in range(50):
            event_id = queue.push(_notification())
            with lock:
                ids.append(event_id)

    threads = [threading.Thread(target=_push) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert queue.size() == 200
    assert len(set(ids)) == 200


def test_ack_requires_event_id() -> None:
    with pytest.raises(QueueError):
        InMemoryQueue().ack(_notification())


class _FakeSqsClient:
    def __init__(self) -> None:
        self.sent: List[Dict[str, Any]] = []
        self.deleted: List[str] = []
        self.inbox: List[Dict[str, Any]] = []
        self.fail_send = False

    def send_message(self, **params: Any) -> Dict[str, Any]:
        if self.fail_send:
            raise ClientError(
                {"Error": {"Code": "AWS.SimpleQueueService.NonExistentQueue"}},
                "SendMessage",
            )
        self.sent.append(params)
        return {"MessageId": f"msg-{len(self.sent)}"}

    def receive_message(self, **params: Any) -> Dict[str, Any]:
        if not self.inbox:
            return {}
        return {"Messages": [self.inbox.pop(0)]}

    def delete_message(self, QueueUrl: str, ReceiptHandle: str) -> None:
        self.deleted.append(ReceiptHandle)

    def get_queue_attributes(self, **params: Any) -> Dict[str, Any]:
        return {"Attributes": {"ApproximateNumberOfMessages": "7"}}


def test_sqs_push_uses_message_groups_on_fifo_queues() -> None:
    client = _FakeSqsClient()
    queue = SqsQueue("https://sqs.local/depot.fifo", client=client)

    event_id = queue.push(_notification())

    assert event_id == "msg-1"
    (sent,) = client.sent
    assert sent["MessageGroupId"] == "g:a"
    assert MetadataNotification.from_json(sent["MessageBody"]) == (
        _notification()
    )


def test_sqs_pull_and_ack_round_trip() -> None:
    client = _FakeSqsClient()
    client.inbox.append(
        {
            "MessageId": "m-1",
            "ReceiptHandle": "r-1",
            "Body": _notification().to_json(),
        }
    )
    queue = SqsQueue("https://sqs.local/depot", client=client)

    notification = queue.pull()
    queue.ack(notification)

    assert notification.event_id == "m-1"
    assert client.deleted == ["r-1"]
    assert queue.pull() is None
    assert queue.size() == 7


def test_sqs_discards_malformed_messages() -> None:
    client = _FakeSqsClient()
    client.inbox.append(
        {"MessageId": "m-1", "ReceiptHandle": "r-1", "Body": "{}"}
    )
    queue = SqsQueue("https://sqs.local/depot", client=client)

    assert queue.pull() is None
    assert client.deleted == ["r-1"]


def test_sqs_errors_become_queue_errors() -> None:
    client = _FakeSqsClient()
    client.fail_send = True
    queue = SqsQueue("https://sqs.local/depot", client=client)

    with pytest.raises(QueueError):
        queue.push(_notification())
    with pytest.raises(QueueError):
        queue.ack(_notification().with_event_id("unknown"))


def test_build_queue_defaults_to_memory() -> None:
    assert isinstance(build_queue_from_env(DepotSettings()), InMemoryQueue)


class _ManualClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _message(message_id: str, receipt: str) -> Dict[str, Any]:
    return {
        "MessageId": message_id,
        "ReceiptHandle": receipt,
        "Body": _notification().to_json(),
    }


def test_sqs_forgets_receipts_of_unacked_messages() -> None:
    client = _FakeSqsClient()
    client.inbox.extend([_message("m-1", "r-1"), _message("m-2", "r-2")])
    clock = _ManualClock()
    queue = SqsQueue(
        "https://sqs.local/depot",
        client=client,
        visibility_timeout=30,
        clock=clock,
    )

    stranded = queue.pull()
    assert queue.pending_receipts() == 1

    clock.now = 31.0
    queue.pull()

    assert queue.pending_receipts() == 1
    with pytest.raises(QueueError):
        queue.ack(stranded)
    assert client.deleted == []


def test_sqs_redelivered_message_acks_with_new_receipt() -> None:
    client = _FakeSqsClient()
    clock = _ManualClock()
    queue = SqsQueue(
        "https://sqs.local/depot",
        client=client,
        visibility_timeout=30,
        clock=clock,
    )

    client.inbox.append(_message("m-1", "r-1"))
    queue.pull()
    clock.now = 45.0
    client.inbox.append(_message("m-1", "r-2"))
    redelivered = queue.pull()
    queue.ack(redelivered)

    assert client.deleted == ["r-2"]
    assert queue.pending_receipts() == 0
