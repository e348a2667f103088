"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Capability keys and the authority collaborator contract.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

CapabilityKey = str

# Host-facing callback signature: (tag, keys, grants).
ResultCallback = Callable[[int, Sequence[CapabilityKey], Sequence[bool]], None]


@dataclass(frozen=True, slots=True)
class AuthorityCall:
    """
    One outbound ask issued to the authority.

    Attributes:
        tag: Routing token derived from ``keys``.
        keys: Capabilities named in the call, in issue order.
    """

    tag: int
    keys: tuple[CapabilityKey, ...]


@runtime_checkable
class Authority(Protocol):
    """
    External system that grants or denies capabilities.

    ``request_grants`` must return promptly; the decision is reported later
    by the host through the coordinator's ``on_authority_result``.
    """

    def request_grants(self, tag: int, keys: Sequence[CapabilityKey]) -> None:
        """Ask the user/system for ``keys``."""

    def check_granted(self, key: CapabilityKey) -> bool:
        """Return whether ``key`` is already granted."""

    def supports_runtime_request(self) -> bool:
        """Return whether runtime prompting exists at all."""
