"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Request coordinator: coalesces capability requests and fans out results.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from .channel import GrantResult, all_granted
from .errors import EmptyCapabilitySetError, ProtocolViolationError
from .metrics import CoordinatorMetrics, NoOpCoordinatorMetrics
from .registry import PendingSlot, RequestRegistry
from .tags import derive_request_tag
from .types import Authority, CapabilityKey

logger = logging.getLogger("permgate.coordinator")

TagFactory = Callable[[Sequence[CapabilityKey]], int]


class RequestCoordinator:
    """
    Public entry point for capability requests and authority callbacks.

    Each distinct capability is asked from the authority at most once while
    it is pending. Every caller receives a one-shot ``GrantResult`` that is
    true only when all of its requested capabilities were granted.

    Hosts must forward the authority's asynchronous answer to
    ``on_authority_result`` exactly once per ``request_grants`` call.
    """

    def __init__(
        self,
        authority: Authority,
        *,
        registry: RequestRegistry | None = None,
        tag_factory: TagFactory | None = None,
        metrics: CoordinatorMetrics | None = None,
    ) -> None:
        self._authority = authority
        self._registry = registry if registry is not None else RequestRegistry()
        self._tag_factory: TagFactory = tag_factory or derive_request_tag
        self._metrics: CoordinatorMetrics = metrics or NoOpCoordinatorMetrics()

    @property
    def registry(self) -> RequestRegistry:
        return self._registry

    def pending_keys(self) -> list[CapabilityKey]:
        return self._registry.pending_keys()

    def is_granted(self, *keys: CapabilityKey) -> bool:
        """
        Return whether every key is already granted.

        Always true when the authority has no runtime prompting.
        """
        if not keys:
            raise EmptyCapabilitySetError(
                "is_granted requires at least one capability"
            )
        if not self._authority.supports_runtime_request():
            return True
        return all(self._authority.check_granted(key) for key in keys)

    def request(self, *keys: CapabilityKey) -> GrantResult:
        """
        Request one or several capabilities.

        Returns immediately. The result emits ``True`` at once when everything
        is already granted; otherwise it emits the AND of the authority's
        answers once every requested capability has been decided.

        Raises:
            EmptyCapabilitySetError: If no keys are given.
        """
        if not keys:
            raise EmptyCapabilitySetError(
                "request requires at least one capability"
            )
        if self.is_granted(*keys):
            self._metrics.incr("short_circuit_total")
            return GrantResult.resolved(True)

        slots: list[PendingSlot] = []
        fresh_slots: list[PendingSlot] = []
        for key in dict.fromkeys(keys):
            slot, is_new = self._registry.get_or_create(key)
            slots.append(slot)
            if is_new:
                fresh_slots.append(slot)
            else:
                logger.debug("Attached to pending request for %s", key)
                self._metrics.incr("coalesced_keys_total")

        # Subscriptions are taken before asking so a synchronous answer
        # cannot slip past this caller.
        combined = all_granted([self._registry.subscribe(slot) for slot in slots])
        if fresh_slots:
            self._ask_authority(fresh_slots)
        return combined

    def on_authority_result(
        self,
        tag: int,
        keys: Sequence[CapabilityKey],
        grants: Sequence[bool],
    ) -> None:
        """
        Deliver the authority's decisions to every waiting caller.

        All keys with a pending request are resolved even when some keys in
        the same callback are unknown; the unknown ones are then reported.

        Raises:
            ValueError: If ``keys`` and ``grants`` differ in length.
            ProtocolViolationError: If any key had no pending request.
        """
        if len(keys) != len(grants):
            raise ValueError(
                f"Authority result has {len(keys)} keys but {len(grants)} grants"
            )

        unknown: list[CapabilityKey] = []
        for key, granted in zip(keys, grants):
            try:
                self._registry.resolve(key, granted)
            except ProtocolViolationError:
                unknown.append(key)
                continue
            logger.info("Capability %s resolved granted=%s (tag=%s)", key, bool(granted), tag)
            self._metrics.incr(
                "results_delivered_total",
                tags={"granted": "true" if granted else "false"},
            )

        if unknown:
            self._metrics.incr("protocol_violations_total", len(unknown))
            logger.error(
                "Authority result for tag=%s names capabilities with no pending request: %s",
                tag,
                unknown,
            )
            raise ProtocolViolationError(unknown, tag=tag)

    def _ask_authority(self, fresh_slots: list[PendingSlot]) -> None:
        fresh_keys = [slot.key for slot in fresh_slots]
        tag: int | None = None
        try:
            tag = self._tag_factory(fresh_keys)
            logger.info("Requesting %s from authority (tag=%s)", fresh_keys, tag)
            self._metrics.incr("authority_calls_total")
            self._authority.request_grants(tag, tuple(fresh_keys))
        except Exception as error:
            logger.exception("Authority request failed for %s (tag=%s)", fresh_keys, tag)
            self._metrics.incr("authority_failures_total")
            for slot in fresh_slots:
                self._registry.abandon(slot, error)
            raise
