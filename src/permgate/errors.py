"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Error taxonomy for permission request coordination.
"""

from __future__ import annotations

from collections.abc import Sequence


class PermGateError(RuntimeError):
    """Base permgate error."""


class EmptyCapabilitySetError(PermGateError, ValueError):
    """Raised when a request or grant check names no capabilities."""


class ProtocolViolationError(PermGateError):
    """
    Raised when the authority answers a capability nobody is waiting on.

    This is a host contract violation (callback forwarded for the wrong
    keys, or forwarded twice) and must not be swallowed.

    Attributes:
        keys: Capability keys that had no pending slot.
        tag: Request tag supplied with the offending callback, if any.
    """

    def __init__(self, keys: Sequence[str], *, tag: int | None = None) -> None:
        self.keys = tuple(keys)
        self.tag = tag
        joined = ", ".join(repr(key) for key in self.keys)
        super().__init__(
            f"Authority result received for capabilities with no pending request: {joined}"
        )
