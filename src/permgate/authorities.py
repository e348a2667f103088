"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Reference authority implementations.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from threading import RLock

from .types import AuthorityCall, CapabilityKey, ResultCallback


class UnrestrictedAuthority:
    """
    Authority for platforms without runtime prompting.

    Every capability counts as granted, so the coordinator never asks it.
    """

    def supports_runtime_request(self) -> bool:
        return False

    def check_granted(self, key: CapabilityKey) -> bool:
        _ = key
        return True

    def request_grants(self, tag: int, keys: Sequence[CapabilityKey]) -> None:
        raise RuntimeError(
            f"UnrestrictedAuthority cannot prompt for {list(keys)} (tag={tag})"
        )


class InMemoryAuthority:
    """
    In-process scripted authority.

    Records every outbound call and answers them only when told to, which
    makes the asynchronous callback path explicit. Suitable for testing and
    for hosts that decide grants in-process. Granted capabilities are
    remembered for ``check_granted``; nothing survives a restart.
    """

    def __init__(
        self,
        granted: Iterable[CapabilityKey] = (),
        *,
        runtime: bool = True,
    ) -> None:
        self._granted: set[CapabilityKey] = set(granted)
        self._runtime = runtime
        self._calls: list[AuthorityCall] = []
        self._answered: set[int] = set()
        self._callback: ResultCallback | None = None
        self._lock = RLock()

    def bind(self, callback: ResultCallback) -> None:
        """Attach the entry point that receives ``(tag, keys, grants)``."""
        self._callback = callback

    @property
    def calls(self) -> list[AuthorityCall]:
        with self._lock:
            return list(self._calls)

    @property
    def granted(self) -> frozenset[CapabilityKey]:
        with self._lock:
            return frozenset(self._granted)

    def supports_runtime_request(self) -> bool:
        return self._runtime

    def check_granted(self, key: CapabilityKey) -> bool:
        with self._lock:
            return key in self._granted

    def request_grants(self, tag: int, keys: Sequence[CapabilityKey]) -> None:
        with self._lock:
            self._calls.append(AuthorityCall(tag=tag, keys=tuple(keys)))

    def outstanding(self) -> list[AuthorityCall]:
        """Return recorded calls that have not been answered yet, in issue order."""
        with self._lock:
            return [
                call
                for index, call in enumerate(self._calls)
                if index not in self._answered
            ]

    def complete(
        self, call: AuthorityCall, decisions: Mapping[CapabilityKey, bool]
    ) -> None:
        """
        Answer one recorded call and forward the result to the bound callback.

        Keys absent from ``decisions`` are denied.

        Raises:
            RuntimeError: If no callback is bound.
            ValueError: If ``call`` was never issued or was already answered.
        """
        if self._callback is None:
            raise RuntimeError("InMemoryAuthority has no bound result callback")
        with self._lock:
            index = self._index_of(call)
            self._answered.add(index)
            grants = [bool(decisions.get(key, False)) for key in call.keys]
            for key, granted in zip(call.keys, grants):
                if granted:
                    self._granted.add(key)
        self._callback(call.tag, list(call.keys), grants)

    def complete_all(self, decisions: Mapping[CapabilityKey, bool]) -> None:
        """Answer every outstanding call in issue order."""
        for call in self.outstanding():
            self.complete(call, decisions)

    def _index_of(self, call: AuthorityCall) -> int:
        for index, recorded in enumerate(self._calls):
            if recorded == call and index not in self._answered:
                return index
        raise ValueError(f"Unknown or already answered authority call: {call}")
