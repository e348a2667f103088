"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Thread-safe registry of in-flight capability requests.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future
from threading import Lock

from .channel import GrantResult
from .errors import ProtocolViolationError
from .types import CapabilityKey

logger = logging.getLogger("permgate.registry")


class PendingSlot:
    """
    One outstanding request for a single capability key.

    The slot owns a one-shot channel that emits the decision once and then
    closes. Slots are never reused after their decision is published.
    """

    __slots__ = ("key", "_future")

    def __init__(self, key: CapabilityKey) -> None:
        self.key = key
        self._future: Future[bool] = Future()

    @property
    def future(self) -> Future[bool]:
        return self._future

    @property
    def closed(self) -> bool:
        return self._future.done()

    def subscribe(self) -> GrantResult:
        return GrantResult(self._future)

    def __repr__(self) -> str:
        state = "closed" if self.closed else "pending"
        return f"PendingSlot(key={self.key!r}, {state})"


class RequestRegistry:
    """
    Single source of truth for which capability keys are currently pending.

    All create/detach operations run under one lock. Decisions are published
    after the slot has been detached and outside the lock, so subscriber
    callbacks may re-enter the registry freely. A holder that subscribes to a
    detached slot still receives its value because the slot's channel
    replays to late subscribers.
    """

    def __init__(self) -> None:
        self._slots: dict[CapabilityKey, PendingSlot] = {}
        self._lock = Lock()

    def get_or_create(self, key: CapabilityKey) -> tuple[PendingSlot, bool]:
        """
        Return the pending slot for ``key``, creating it when absent.

        Returns:
            ``(slot, is_new)``. At most one concurrent caller sees
            ``is_new=True`` for a given key.
        """
        with self._lock:
            slot = self._slots.get(key)
            if slot is not None:
                return slot, False
            slot = PendingSlot(key)
            self._slots[key] = slot
        logger.debug("Created pending slot for %s", key)
        return slot, True

    def resolve(self, key: CapabilityKey, granted: bool) -> None:
        """
        Publish ``granted`` to every holder of ``key``'s slot and discard it.

        Raises:
            ProtocolViolationError: If no slot is pending for ``key``.
        """
        with self._lock:
            slot = self._slots.pop(key, None)
        if slot is None:
            raise ProtocolViolationError([key])
        slot.future.set_result(bool(granted))

    def abandon(self, slot: PendingSlot, error: BaseException) -> None:
        """
        Discard ``slot`` and fail its holders with ``error``.

        Only the exact slot is removed; a newer slot registered for the same
        key is left alone. A slot already detached by ``resolve`` keeps its
        decision.
        """
        with self._lock:
            if self._slots.get(slot.key) is not slot:
                return
            del self._slots[slot.key]
        logger.debug("Abandoned pending slot for %s", slot.key)
        slot.future.set_exception(error)

    def subscribe(self, slot: PendingSlot) -> GrantResult:
        return slot.subscribe()

    def pending_keys(self) -> list[CapabilityKey]:
        with self._lock:
            return sorted(self._slots.keys())

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._slots

    def __len__(self) -> int:
        with self._lock:
            return len(self._slots)
