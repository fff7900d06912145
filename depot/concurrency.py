"""Bounded parallel fan-out over independent work items."""

from __future__ import annotations

import contextvars
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, List, Sequence, TypeVar

_I = TypeVar("_I")
_R = TypeVar("_R")


def parallel_map(
    items: Sequence[_I],
    operation: Callable[[_I], _R],
    *,
    max_workers: int,
    thread_name_prefix: str = "depot",
) -> List[_R]:
    """Apply ``operation`` to every item on at most ``max_workers`` threads.

    Each call runs in a copy of the caller's context, so the active span
    becomes the parent of spans opened by ``operation``. Results come back
    in input order; an exception raised by ``operation`` is re-raised here
    once every submitted item has finished.
    """

    if not items:
        return []
    workers = max(1, min(max_workers, len(items)))
    with ThreadPoolExecutor(
        max_workers=workers, thread_name_prefix=thread_name_prefix
    ) as executor:
        futures: List[Future[_R]] = [
            executor.submit(contextvars.copy_context().run, operation, item)
            for item in items
        ]
    return [future.result() for future in futures]
