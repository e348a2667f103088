"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Factory helpers for building coordinators from environment variables.
"""

from __future__ import annotations

from collections.abc import Sequence

from .coordinator import RequestCoordinator
from .metrics import (
    CoordinatorMetrics,
    InMemoryCoordinatorMetrics,
    NoOpCoordinatorMetrics,
)
from .settings import CoordinatorSettings
from .tags import DEFAULT_TAG_MASK, derive_request_tag
from .types import Authority, CapabilityKey


def create_metrics(settings: CoordinatorSettings) -> CoordinatorMetrics:
    """
    Build the metrics sink named by `settings.metrics_backend`.

    Backends:
    - `none` / `noop` (default)
    - `memory` / `inmemory`
    - `prometheus`
    """
    backend = settings.metrics_backend
    if backend in ("", "none", "noop"):
        return NoOpCoordinatorMetrics()
    if backend in ("memory", "inmemory", "in_memory"):
        return InMemoryCoordinatorMetrics()
    if backend in ("prometheus", "prom"):
        from .metrics import PrometheusCoordinatorMetrics

        return PrometheusCoordinatorMetrics(namespace=settings.metrics_namespace)
    raise ValueError(f"Unknown PERMGATE_METRICS_BACKEND: {backend}")


def create_coordinator(
    authority: Authority,
    settings: CoordinatorSettings,
    *,
    metrics: CoordinatorMetrics | None = None,
) -> RequestCoordinator:
    """Build a coordinator for `authority` from explicit settings."""
    if settings.tag_mask <= 0:
        raise ValueError("PERMGATE_TAG_MASK must be > 0")

    tag_factory = None
    if settings.tag_mask != DEFAULT_TAG_MASK:
        tag_factory = _masked_tag_factory(settings.tag_mask)

    return RequestCoordinator(
        authority,
        tag_factory=tag_factory,
        metrics=metrics if metrics is not None else create_metrics(settings),
    )


def create_coordinator_from_env(
    authority: Authority,
    *,
    metrics: CoordinatorMetrics | None = None,
) -> RequestCoordinator:
    """
    Create a coordinator from `PERMGATE_*` environment variables.

    An explicitly supplied `metrics` sink overrides `PERMGATE_METRICS_BACKEND`.
    """
    return create_coordinator(authority, CoordinatorSettings.from_env(), metrics=metrics)


def _masked_tag_factory(mask: int):
    def _factory(keys: Sequence[CapabilityKey]) -> int:
        return derive_request_tag(keys, mask=mask)

    return _factory
