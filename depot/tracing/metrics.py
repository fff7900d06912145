"""Prometheus counters for depot operations."""

from __future__ import annotations

import threading
from typing import Dict, Optional

from prometheus_client import REGISTRY, CollectorRegistry, Counter

ERROR_SUFFIX = "_errors"


class PrometheusMetrics:
    """Success and error counters created on first use.

    ``increment_count("versionPurge")`` feeds the ``versionPurge`` counter and
    ``increment_error_count("versionPurge")`` the separate
    ``versionPurge_errors`` family.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None) -> None:
        self._registry = registry if registry is not None else REGISTRY
        self._lock = threading.Lock()
        self._counters: Dict[str, Counter] = {}

    def increment_count(self, name: str) -> None:
        self._counter(name).inc()

    def increment_error_count(self, name: str) -> None:
        self._counter(name + ERROR_SUFFIX).inc()

    def count(self, name: str) -> float:
        return self._read(name)

    def error_count(self, name: str) -> float:
        return self._read(name + ERROR_SUFFIX)

    def _counter(self, name: str) -> Counter:
        with self._lock:
            counter = self._counters.get(name)
            if counter is None:
                counter = Counter(
                    name,
                    f"Depot operation counter {name}",
                    registry=self._registry,
                )
                self._counters[name] = counter
            return counter

    def _read(self, name: str) -> float:
        value = self._registry.get_sample_value(f"{name}_total")
        return value or 0.0
