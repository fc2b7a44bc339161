"""
Tiered snapshot retention for snapprune.

Decides which backup snapshots are redundant under a layered policy.

Usage:
    from snapprune.retention import RetentionEngine, parse_tiers, prune

    # One-shot
    doomed = prune(snapshot_times, parse_tiers("12x30d,4x7d,7x18h"))

    # Reusable engine with the default policy
    engine = RetentionEngine()
    result = engine.evaluate(snapshot_times)
    print(result.to_dict())
"""

from snapprune.retention.engine import PruneResult, RetentionEngine, prune
from snapprune.retention.policy import (
    DEFAULT_TIERS,
    InvalidPolicyError,
    RetentionTier,
    default_tiers,
    order_tiers,
    parse_duration,
    parse_tiers,
    with_yearly,
)

__all__ = [
    "DEFAULT_TIERS",
    "InvalidPolicyError",
    "PruneResult",
    "RetentionEngine",
    "RetentionTier",
    "default_tiers",
    "order_tiers",
    "parse_duration",
    "parse_tiers",
    "prune",
    "with_yearly",
]
