"""
Retention engine for snapprune.

Decides which snapshots are redundant under a tiered retention policy.
The engine is a pure function of its inputs: it never touches storage,
never mutates the caller's tiers and keeps no state between calls.

Walk order:
    Snapshots are visited newest to oldest while tiers are visited finest
    to coarsest. A snapshot is retained when it is at least the current
    tier's min_spacing older than the last retained snapshot, which
    consumes one slot of that tier. Once a tier's slots are used up the
    next coarser tier takes over. The oldest snapshot always passes the
    spacing check, so it is kept whenever any tier still has a free slot.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable

from loguru import logger

from snapprune.retention.policy import DEFAULT_TIERS, RetentionTier, order_tiers


def _second_key(ts: datetime) -> datetime:
    """Identity of a snapshot for keep/delete decisions (whole seconds)."""
    return ts.replace(microsecond=0)


@dataclass(frozen=True)
class PruneResult:
    """
    Outcome of evaluating a set of snapshots against a policy.

    Attributes:
        kept: Input timestamps selected for retention
        deleted: Input timestamps safe to delete
        tiers: Tiers in evaluation order (finest spacing first)
        credits: Second-resolution key of each retained snapshot mapped to
            the position in tiers of the tier it was credited to
    """

    kept: frozenset[datetime]
    deleted: frozenset[datetime]
    tiers: tuple[RetentionTier, ...] = ()
    credits: dict[datetime, int] = field(default_factory=dict)

    def to_delete(self) -> list[datetime]:
        """Timestamps to delete, oldest first."""
        return sorted(self.deleted)

    def to_keep(self) -> list[datetime]:
        """Timestamps to keep, oldest first."""
        return sorted(self.kept)

    def tier_for(self, ts: datetime) -> RetentionTier | None:
        """Tier a retained timestamp was credited to, or None if it is deleted."""
        slot = self.credits.get(_second_key(ts))
        return None if slot is None else self.tiers[slot]

    def tier_usage(self) -> list[tuple[RetentionTier, int]]:
        """
        Number of snapshots credited to each tier, in evaluation order.

        Tiers that compare equal are reported separately.
        """
        used = Counter(self.credits.values())
        return [(tier, used[slot]) for slot, tier in enumerate(self.tiers)]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "kept": len(self.kept),
            "deleted": len(self.deleted),
            "tier_usage": [
                {"tier": tier.describe(), "used": used} for tier, used in self.tier_usage()
            ],
        }


class RetentionEngine:
    """
    Applies a tiered retention policy to snapshot timestamps.

    The engine holds only the canonically ordered, immutable tiers. Budgets
    are tracked per evaluation, so one engine may be reused and shared
    between threads.
    """

    def __init__(self, tiers: Iterable[RetentionTier] | None = None):
        """
        Initialize the retention engine.

        Args:
            tiers: Retention tiers in any order (defaults to DEFAULT_TIERS).
                An explicitly empty collection is kept empty.
        """
        self._tiers = order_tiers(DEFAULT_TIERS if tiers is None else tiers)

    @property
    def tiers(self) -> tuple[RetentionTier, ...]:
        """Tiers in evaluation order (finest spacing first)."""
        return self._tiers

    def evaluate(self, timestamps: Iterable[datetime]) -> PruneResult:
        """
        Classify every timestamp as kept or deleted.

        Timestamps must already be valid; filtering unset or unparseable
        values is the caller's job.

        Args:
            timestamps: Snapshot timestamps in any order

        Returns:
            PruneResult partitioning the input
        """
        timestamps = list(timestamps)
        credits = self._credit(sorted({_second_key(ts) for ts in timestamps}, reverse=True))

        kept = frozenset(ts for ts in timestamps if _second_key(ts) in credits)
        deleted = frozenset(ts for ts in timestamps if _second_key(ts) not in credits)

        logger.debug(
            f"Evaluated {len(timestamps)} snapshots against {len(self._tiers)} tiers: "
            f"keeping {len(kept)}, deleting {len(deleted)}"
        )
        return PruneResult(kept=kept, deleted=deleted, tiers=self._tiers, credits=credits)

    def to_delete(self, timestamps: Iterable[datetime]) -> set[datetime]:
        """Get the timestamps that are safe to delete."""
        return set(self.evaluate(timestamps).deleted)

    def _credit(self, newest_first: list[datetime]) -> dict[datetime, int]:
        """Walk distinct snapshots newest to oldest, crediting keepers to tiers."""
        remaining = [tier.count for tier in self._tiers]
        credits: dict[datetime, int] = {}
        cursor = 0
        last_kept: datetime | None = None
        oldest_index = len(newest_first) - 1

        for index, ts in enumerate(newest_first):
            while cursor < len(self._tiers) and remaining[cursor] == 0:
                cursor += 1
            if cursor == len(self._tiers):
                # Out of budget: everything older is deleted
                break

            tier = self._tiers[cursor]
            if (
                last_kept is None
                or index == oldest_index
                or last_kept - ts >= tier.min_spacing
            ):
                credits[ts] = cursor
                remaining[cursor] -= 1
                last_kept = ts

        return credits


def prune(
    timestamps: Iterable[datetime],
    tiers: Iterable[RetentionTier],
) -> set[datetime]:
    """
    Get the snapshots that are redundant under a retention policy.

    Usage:
        from datetime import timedelta
        from snapprune.retention import RetentionTier, prune

        tiers = [RetentionTier(count=7, min_spacing=timedelta(hours=18))]
        for ts in sorted(prune(snapshot_times, tiers)):
            print(ts.isoformat())

    Args:
        timestamps: Valid snapshot timestamps in any order
        tiers: Retention tiers in any order

    Returns:
        Set of input timestamps that are safe to delete
    """
    return RetentionEngine(tiers).to_delete(timestamps)
