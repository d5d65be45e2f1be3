"""Visit-count classification for display."""

from __future__ import annotations

from enum import Enum
from typing import Final


class Tier(str, Enum):
    """Visit-frequency tier of a cell."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    SEVERE = "severe"


# Inclusive lower bounds, highest first.
TIER_THRESHOLDS: Final[tuple[tuple[int, Tier], ...]] = (
    (10, Tier.SEVERE),
    (5, Tier.HIGH),
    (2, Tier.MEDIUM),
    (1, Tier.LOW),
)

TIER_COLORS: Final[dict[Tier, str]] = {
    Tier.LOW: "#2e86de",
    Tier.MEDIUM: "#27ae60",
    Tier.HIGH: "#f39c12",
    Tier.SEVERE: "#e74c3c",
}


def tier_of(count: int) -> Tier:
    """Classify a session-visit count.

    Raises:
        ValueError: If count < 1. Unvisited cells are never classified.
    """

    for lower, tier in TIER_THRESHOLDS:
        if count >= lower:
            return tier
    raise ValueError(f"visit count must be >= 1, got {count!r}")
