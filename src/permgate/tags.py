"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Deterministic request tag derivation.
"""

from __future__ import annotations

from collections.abc import Iterable

from .types import CapabilityKey

DEFAULT_TAG_MASK = 0x7FFFFFFF


def string_hash32(value: str) -> int:
    """
    Return the signed 32-bit polynomial string hash of ``value``.

    Computed as ``h = 31 * h + unit`` over UTF-16 code units, which keeps tags
    stable across processes and compatible with hosts that hash the same way.
    Lone surrogates count as single code units.
    """
    h = 0
    data = value.encode("utf-16-be", "surrogatepass")
    for index in range(0, len(data), 2):
        unit = (data[index] << 8) | data[index + 1]
        h = (31 * h + unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return h


def derive_request_tag(
    keys: Iterable[CapabilityKey], *, mask: int = DEFAULT_TAG_MASK
) -> int:
    """
    Derive the routing tag for one authority call.

    The tag depends only on the set of keys, never on enumeration order.
    """
    if mask <= 0:
        raise ValueError("mask must be > 0")
    joined = "".join(sorted(keys))
    return abs(string_hash32(joined)) & mask
