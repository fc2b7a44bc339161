"""
Snapshot timestamp ingestion and formatting.

Parsing is best-effort: lines that are blank, unparseable or hold the
unset instant are skipped rather than aborting the run.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from loguru import logger

from snapprune.retention.policy import InvalidPolicyError

# Fixed snapshot timestamp format, e.g. 2024-01-01T12:00:00
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S"


def validate_format(fmt: str) -> str:
    """
    Check that a format can both render and read back a timestamp.

    Raises:
        InvalidPolicyError: If the format is empty or holds a directive
            strptime does not understand
    """
    if not fmt:
        raise InvalidPolicyError("Timestamp format cannot be empty")
    sample = datetime(2024, 1, 2, 3, 4, 5)
    try:
        datetime.strptime(sample.strftime(fmt), fmt)
    except ValueError as e:
        raise InvalidPolicyError(f"Invalid timestamp format {fmt!r}: {e}") from e
    return fmt


def parse_timestamp(text: str, fmt: str = TIMESTAMP_FORMAT) -> datetime | None:
    """
    Parse a single timestamp.

    Args:
        text: Timestamp text (surrounding whitespace is ignored)
        fmt: strptime format

    Returns:
        Parsed datetime, or None if the text does not match the format
    """
    try:
        return datetime.strptime(text.strip(), fmt)
    except ValueError:
        return None


def is_zero(ts: datetime) -> bool:
    """True for the unset instant 0001-01-01T00:00:00."""
    return ts.replace(tzinfo=None) == datetime.min


def valid_timestamps(timestamps: Iterable[datetime]) -> list[datetime]:
    """Drop unset instants."""
    return [ts for ts in timestamps if not is_zero(ts)]


def read_timestamps(lines: Iterable[str], fmt: str = TIMESTAMP_FORMAT) -> list[datetime]:
    """
    Read snapshot timestamps, one per line.

    Args:
        lines: Input lines (e.g. an open file or sys.stdin)
        fmt: strptime format

    Returns:
        Valid timestamps in input order
    """
    timestamps = []
    skipped = 0

    for lineno, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        ts = parse_timestamp(line, fmt)
        if ts is None:
            logger.debug(f"Skipping line {lineno}: not a timestamp: {line.strip()!r}")
            skipped += 1
        elif is_zero(ts):
            logger.debug(f"Skipping line {lineno}: unset timestamp")
            skipped += 1
        else:
            timestamps.append(ts)

    if skipped:
        logger.info(f"Skipped {skipped} invalid lines, read {len(timestamps)} timestamps")
    return timestamps


def format_timestamp(ts: datetime, fmt: str = TIMESTAMP_FORMAT) -> str:
    return ts.strftime(fmt)


def format_timestamps(timestamps: Iterable[datetime], fmt: str = TIMESTAMP_FORMAT) -> list[str]:
    """Format timestamps oldest first."""
    return [format_timestamp(ts, fmt) for ts in sorted(timestamps)]
