"""
Retention tier definitions for snapprune.

A retention policy is a collection of tiers. Each tier credits at most
``count`` snapshots, spaced at least ``min_spacing`` apart. Tiers are
immutable so one policy can be shared across any number of prune runs.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import timedelta
from typing import Iterable


class InvalidPolicyError(ValueError):
    """Raised when a retention policy or tier specification is malformed."""


# Unit suffixes accepted by parse_duration
DURATION_UNITS = {
    "s": timedelta(seconds=1),
    "m": timedelta(minutes=1),
    "h": timedelta(hours=1),
    "d": timedelta(days=1),
    "w": timedelta(weeks=1),
    "y": timedelta(days=365),
}

_DURATION_PART = re.compile(r"(\d+)([smhdwy])")
_TIER_ITEM = re.compile(r"^(\d+)[x*](\S+)$")


@dataclass(frozen=True)
class RetentionTier:
    """
    A single retention rule.

    Attributes:
        count: Maximum number of snapshots credited to this tier (0 = inert)
        min_spacing: Minimum gap between two snapshots credited to this tier
    """

    count: int
    min_spacing: timedelta = timedelta(0)

    def __post_init__(self) -> None:
        """Validate tier after initialization."""
        if isinstance(self.count, bool) or not isinstance(self.count, int):
            raise InvalidPolicyError(f"Tier count must be an integer, got {self.count!r}")
        if self.count < 0:
            raise InvalidPolicyError(f"Tier count must be non-negative, got {self.count}")
        if not isinstance(self.min_spacing, timedelta):
            raise InvalidPolicyError(
                f"Tier min_spacing must be a timedelta, got {self.min_spacing!r}"
            )
        if self.min_spacing < timedelta(0):
            raise InvalidPolicyError(
                f"Tier min_spacing must be non-negative, got {self.min_spacing}"
            )
        # Snapshots are compared at whole-second resolution
        if self.min_spacing % timedelta(seconds=1):
            raise InvalidPolicyError(
                f"Tier min_spacing must be a whole number of seconds, got {self.min_spacing}"
            )

    @property
    def is_inert(self) -> bool:
        """True if the tier can never retain anything."""
        return self.count == 0

    def describe(self) -> str:
        """Render the tier in parse_tiers syntax, e.g. '12x30d'."""
        return f"{self.count}x{format_duration(self.min_spacing)}"

    def __str__(self) -> str:
        return self.describe()


# Default policy: monthly, weekly and daily slots
DEFAULT_TIERS: tuple[RetentionTier, ...] = (
    RetentionTier(count=12, min_spacing=timedelta(days=30)),  # 12 months
    RetentionTier(count=4, min_spacing=timedelta(days=7)),  # 4 weeks
    RetentionTier(count=7, min_spacing=timedelta(hours=18)),  # at least 18h between dailies
)

YEARLY_SPACING = timedelta(days=365)


def default_tiers(yearly: int = 0) -> tuple[RetentionTier, ...]:
    """
    Get the default retention policy.

    Args:
        yearly: Number of additional slots spaced at least a year apart

    Returns:
        Tuple of tiers, with a yearly tier appended when yearly > 0
    """
    return with_yearly(DEFAULT_TIERS, yearly)


def with_yearly(tiers: Iterable[RetentionTier], yearly: int) -> tuple[RetentionTier, ...]:
    """
    Append a yearly tier to a policy.

    Args:
        tiers: Base policy
        yearly: Number of slots spaced at least a year apart (0 adds nothing)

    Returns:
        Tuple of the base tiers, plus the yearly tier when yearly > 0

    Raises:
        InvalidPolicyError: If yearly is negative
    """
    tiers = tuple(tiers)
    if yearly < 0:
        raise InvalidPolicyError(f"Yearly slot count must be non-negative, got {yearly}")
    if yearly == 0:
        return tiers
    return tiers + (RetentionTier(count=yearly, min_spacing=YEARLY_SPACING),)


def order_tiers(tiers: Iterable[RetentionTier]) -> tuple[RetentionTier, ...]:
    """
    Put tiers in canonical order: finest spacing first, coarsest last.

    Ties on spacing are broken by count so the result never depends on
    the order the caller supplied.
    """
    tiers = tuple(tiers)
    for tier in tiers:
        if not isinstance(tier, RetentionTier):
            raise InvalidPolicyError(f"Expected a RetentionTier, got {tier!r}")
    return tuple(sorted(tiers, key=lambda t: (t.min_spacing, t.count)))


def parse_duration(text: str) -> timedelta:
    """
    Parse a compact duration such as '30d', '18h' or '1d12h'.

    Args:
        text: Duration text; units are s, m, h, d, w and y (365 days)

    Returns:
        Parsed duration

    Raises:
        InvalidPolicyError: If the text is empty or malformed
    """
    value = text.strip().lower()
    if not value:
        raise InvalidPolicyError("Duration cannot be empty")
    if value == "0":
        return timedelta(0)

    total = timedelta(0)
    position = 0
    for match in _DURATION_PART.finditer(value):
        if match.start() != position:
            break
        total += int(match.group(1)) * DURATION_UNITS[match.group(2)]
        position = match.end()

    if position != len(value):
        raise InvalidPolicyError(f"Invalid duration: {text!r}")
    return total


def format_duration(duration: timedelta) -> str:
    """Render a duration in the largest whole unit parse_duration accepts."""
    seconds = int(duration.total_seconds())
    if seconds == 0:
        return "0"
    for unit in ("y", "w", "d", "h", "m", "s"):
        size = int(DURATION_UNITS[unit].total_seconds())
        if seconds % size == 0:
            return f"{seconds // size}{unit}"
    return f"{seconds}s"


def parse_tiers(text: str) -> tuple[RetentionTier, ...]:
    """
    Parse a tier specification such as '12x30d,4x7d,7x18h'.

    Items are separated by commas or whitespace. An empty string
    yields an empty policy.

    Args:
        text: Tier specification

    Returns:
        Tuple of tiers in the order given

    Raises:
        InvalidPolicyError: If any item is malformed
    """
    tiers = []
    for item in re.split(r"[,\s]+", text.strip()):
        if not item:
            continue
        match = _TIER_ITEM.match(item.lower())
        if not match:
            raise InvalidPolicyError(
                f"Invalid tier {item!r}: expected <count>x<duration>, e.g. 12x30d"
            )
        count, duration = match.groups()
        tiers.append(RetentionTier(count=int(count), min_spacing=parse_duration(duration)))
    return tuple(tiers)
