"""
Configuration for snapprune.

Settings are read from the environment once and cached:

    SNAPPRUNE_TIERS             Tier spec, e.g. "12x30d,4x7d,7x18h" (default policy if unset)
    SNAPPRUNE_YEARLY            Extra yearly slots added to the configured tiers
    SNAPPRUNE_TIMESTAMP_FORMAT  strptime/strftime format for snapshot timestamps
    SNAPPRUNE_LOG_LEVEL         loguru level for diagnostics on stderr
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from snapprune.retention.policy import (
    DEFAULT_TIERS,
    InvalidPolicyError,
    RetentionTier,
    parse_tiers,
    with_yearly,
)
from snapprune.timestamps import TIMESTAMP_FORMAT, validate_format

LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


@dataclass
class Config:
    """
    Runtime configuration.

    The yearly slot count is held apart from the base tiers so a
    command-line --yearly can replace it without touching the rest.
    """

    base_tiers: tuple[RetentionTier, ...] = field(default_factory=lambda: DEFAULT_TIERS)
    yearly: int = 0
    timestamp_format: str = TIMESTAMP_FORMAT
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        self.base_tiers = tuple(self.base_tiers)
        if self.yearly < 0:
            raise InvalidPolicyError(f"Yearly slot count must be non-negative, got {self.yearly}")
        self.log_level = self.log_level.upper()
        if self.log_level not in LOG_LEVELS:
            raise InvalidPolicyError(
                f"Invalid log level: '{self.log_level}'. Valid levels: {', '.join(LOG_LEVELS)}"
            )
        validate_format(self.timestamp_format)

    @property
    def tiers(self) -> tuple[RetentionTier, ...]:
        """Effective policy: base tiers plus the yearly tier, if any."""
        return with_yearly(self.base_tiers, self.yearly)

    @classmethod
    def from_env(cls) -> Config:
        """
        Build configuration from SNAPPRUNE_* environment variables.

        Raises:
            InvalidPolicyError: If any variable holds an invalid value
        """
        tiers_spec = os.getenv("SNAPPRUNE_TIERS")
        yearly_text = os.getenv("SNAPPRUNE_YEARLY", "0").strip() or "0"

        try:
            yearly = int(yearly_text)
        except ValueError:
            raise InvalidPolicyError(f"SNAPPRUNE_YEARLY must be an integer, got {yearly_text!r}")

        return cls(
            base_tiers=DEFAULT_TIERS if tiers_spec is None else parse_tiers(tiers_spec),
            yearly=yearly,
            timestamp_format=os.getenv("SNAPPRUNE_TIMESTAMP_FORMAT", TIMESTAMP_FORMAT),
            log_level=os.getenv("SNAPPRUNE_LOG_LEVEL", "WARNING"),
        )


_config: Config | None = None


def get_config() -> Config:
    """Get the cached configuration, loading it from the environment on first use."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reset_config() -> None:
    """Drop the cached configuration (used by tests)."""
    global _config
    _config = None
