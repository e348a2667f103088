"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Coalescing permission request coordinator.

Requests for the same capability that overlap in time share one authority
prompt, and every caller receives the same eventual decision.

Quick start::

    from permgate import InMemoryAuthority, RequestCoordinator

    authority = InMemoryAuthority()
    coordinator = RequestCoordinator(authority)
    authority.bind(coordinator.on_authority_result)

    result = coordinator.request("CAMERA", "STORAGE")
    authority.complete_all({"CAMERA": True, "STORAGE": True})
    granted = await result
"""

from .authorities import InMemoryAuthority, UnrestrictedAuthority
from .channel import GrantResult, all_granted
from .coordinator import RequestCoordinator, TagFactory
from .errors import EmptyCapabilitySetError, PermGateError, ProtocolViolationError
from .factory import create_coordinator, create_coordinator_from_env, create_metrics
from .metrics import (
    COORDINATOR_COUNTERS,
    CoordinatorMetrics,
    InMemoryCoordinatorMetrics,
    NoOpCoordinatorMetrics,
    PrometheusCoordinatorMetrics,
)
from .registry import PendingSlot, RequestRegistry
from .settings import CoordinatorSettings
from .tags import DEFAULT_TAG_MASK, derive_request_tag, string_hash32
from .types import Authority, AuthorityCall, CapabilityKey, ResultCallback

__all__ = [
    "Authority",
    "AuthorityCall",
    "CapabilityKey",
    "ResultCallback",
    "RequestCoordinator",
    "TagFactory",
    "RequestRegistry",
    "PendingSlot",
    "GrantResult",
    "all_granted",
    "derive_request_tag",
    "string_hash32",
    "DEFAULT_TAG_MASK",
    "PermGateError",
    "EmptyCapabilitySetError",
    "ProtocolViolationError",
    "InMemoryAuthority",
    "UnrestrictedAuthority",
    "CoordinatorSettings",
    "CoordinatorMetrics",
    "NoOpCoordinatorMetrics",
    "InMemoryCoordinatorMetrics",
    "COORDINATOR_COUNTERS",
    "PrometheusCoordinatorMetrics",
    "create_coordinator",
    "create_coordinator_from_env",
    "create_metrics",
]
