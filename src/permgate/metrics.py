"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Metrics sinks for request coordinator observability.
"""

from __future__ import annotations

from collections.abc import Mapping
from threading import Lock
from typing import Protocol

# Counters emitted by RequestCoordinator: name -> (help text, label names).
COORDINATOR_COUNTERS: dict[str, tuple[str, tuple[str, ...]]] = {
    "short_circuit_total": ("Requests answered from already granted capabilities", ()),
    "authority_calls_total": ("Prompts issued to the authority", ()),
    "coalesced_keys_total": ("Capabilities attached to an already pending prompt", ()),
    "results_delivered_total": ("Capability decisions delivered to waiters", ("granted",)),
    "protocol_violations_total": ("Authority answers naming no pending capability", ()),
    "authority_failures_total": ("Prompts that failed before reaching the authority", ()),
}


class CoordinatorMetrics(Protocol):
    """Counter sink used by the coordinator."""

    def incr(
        self, name: str, value: int = 1, *, tags: Mapping[str, str] | None = None
    ) -> None:
        """Increment counter ``name``."""


class NoOpCoordinatorMetrics:
    """Default sink when no metrics backend is configured."""

    def incr(
        self, name: str, value: int = 1, *, tags: Mapping[str, str] | None = None
    ) -> None:
        _ = name
        _ = value
        _ = tags


class InMemoryCoordinatorMetrics:
    """Counter sink that keeps totals in process memory, keyed by name and tags."""

    def __init__(self) -> None:
        self._totals: dict[tuple[str, tuple[tuple[str, str], ...]], int] = {}
        self._lock = Lock()

    def incr(
        self, name: str, value: int = 1, *, tags: Mapping[str, str] | None = None
    ) -> None:
        key = (name, tuple(sorted((tags or {}).items())))
        with self._lock:
            self._totals[key] = self._totals.get(key, 0) + int(value)

    def total(self, name: str, **tags: str) -> int:
        """
        Return the summed value of ``name``.

        With ``tags`` only series carrying exactly those label values count.
        """
        wanted = tuple(sorted(tags.items()))
        with self._lock:
            return sum(
                value
                for (series, labels), value in self._totals.items()
                if series == name and (not wanted or labels == wanted)
            )

    def names(self) -> set[str]:
        with self._lock:
            return {series for series, _ in self._totals}


class PrometheusCoordinatorMetrics:
    """
    Prometheus-backed coordinator sink.

    Known coordinator counters get their catalogued help text and label set;
    other names are created on first use with the labels they arrive with.
    Requires `prometheus_client` package.
    """

    def __init__(self, *, namespace: str = "permgate", registry: object | None = None) -> None:
        try:
            from prometheus_client import REGISTRY, Counter
        except ModuleNotFoundError as exc:  # pragma: no cover
            raise RuntimeError(
                "PrometheusCoordinatorMetrics requires `prometheus_client` to be installed."
            ) from exc

        self._Counter = Counter
        self._namespace = namespace
        self._registry = registry if registry is not None else REGISTRY
        self._counters: dict[str, tuple[object, tuple[str, ...]]] = {}
        self._lock = Lock()

    def _counter(
        self, name: str, label_names: tuple[str, ...]
    ) -> tuple[object, tuple[str, ...]]:
        with self._lock:
            entry = self._counters.get(name)
            if entry is None:
                documentation, catalogued = COORDINATOR_COUNTERS.get(
                    name, (f"permgate coordinator metric {name}", label_names)
                )
                counter = self._Counter(
                    name=name,
                    documentation=documentation,
                    namespace=self._namespace,
                    labelnames=catalogued,
                    registry=self._registry,
                )
                entry = (counter, catalogued)
                self._counters[name] = entry
            return entry

    def incr(self, name: str, value: int = 1, *, tags: Mapping[str, str] | None = None) -> None:
        labels = dict(tags or {})
        counter, label_names = self._counter(name, tuple(sorted(labels)))
        if label_names:
            counter.labels(*[str(labels.get(label, "")) for label in label_names]).inc(value)
        else:
            counter.inc(value)
