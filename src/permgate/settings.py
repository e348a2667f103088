"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Coordinator settings and explicit config loading.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from .tags import DEFAULT_TAG_MASK


@dataclass(frozen=True, slots=True)
class CoordinatorSettings:
    """Explicit settings used when building a request coordinator."""

    metrics_backend: str = "none"
    metrics_namespace: str = "permgate"
    tag_mask: int = DEFAULT_TAG_MASK

    @staticmethod
    def from_env() -> "CoordinatorSettings":
        """Load settings from environment variables."""
        return CoordinatorSettings(
            metrics_backend=os.getenv("PERMGATE_METRICS_BACKEND", "none")
            .strip()
            .lower(),
            metrics_namespace=os.getenv("PERMGATE_METRICS_NAMESPACE", "permgate").strip(),
            tag_mask=int(os.getenv("PERMGATE_TAG_MASK", str(DEFAULT_TAG_MASK)), 0),
        )
