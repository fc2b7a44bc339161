"""
Command-line interface for snapprune.

Reads snapshot timestamps (one per line) and prints the ones that are
redundant under the retention policy, oldest first.

Usage:
    ls /backups | snapprune
    snapprune snapshots.txt --tiers 12x30d,4x7d,7x18h
    snapprune --yearly 5 --keep < snapshots.txt
    snapprune | xargs -I{} rm -rf /backups/{}
"""

from __future__ import annotations

import argparse
import sys

from loguru import logger

from snapprune.retention import InvalidPolicyError, RetentionEngine, parse_tiers, with_yearly
from snapprune.timestamps import format_timestamps, read_timestamps, validate_format
from snapprune.utils.config import Config, get_config


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="snapprune",
        description="Print backup snapshots that are redundant under a tiered retention policy",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Tier syntax:
  <count>x<duration>, comma separated. Duration units: s m h d w y (y = 365 days).
  Default policy: 12x30d,4x7d,7x18h

Examples:
  List snapshots to delete:
    ls /backups | snapprune

  Custom policy:
    snapprune snapshots.txt --tiers 24x1h,7x1d,4x1w

  Add five yearly slots to the default policy and list what is kept:
    snapprune --yearly 5 --keep < snapshots.txt
""",
    )

    parser.add_argument(
        "file",
        nargs="?",
        default="-",
        help="File with one timestamp per line (default: stdin)",
    )
    parser.add_argument(
        "--tiers",
        type=str,
        metavar="TIERS",
        help="Retention tiers, e.g. 12x30d,4x7d,7x18h (default: $SNAPPRUNE_TIERS or built-in policy)",
    )
    parser.add_argument(
        "--yearly",
        type=int,
        metavar="N",
        help="Add N slots spaced at least a year apart to the policy (overrides $SNAPPRUNE_YEARLY)",
    )
    parser.add_argument(
        "--format",
        type=str,
        metavar="FMT",
        help="Timestamp format for input and output (default: %%Y-%%m-%%dT%%H:%%M:%%S)",
    )
    parser.add_argument(
        "--keep",
        action="store_true",
        help="Print the snapshots to keep instead of the ones to delete",
    )

    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Suppress diagnostics except errors",
    )
    verbosity.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log debug diagnostics to stderr",
    )
    return parser


def _configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level)


def _resolve_tiers(args: argparse.Namespace, config: Config) -> tuple:
    """Command-line options override the matching configured settings."""
    base = parse_tiers(args.tiers) if args.tiers is not None else config.base_tiers
    yearly = args.yearly if args.yearly is not None else config.yearly
    return with_yearly(base, yearly)


def main(argv: list[str] | None = None) -> int:
    """
    CLI entry point.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = get_config()
    except InvalidPolicyError as e:
        _configure_logging("ERROR")
        logger.error(f"Invalid configuration: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.quiet:
        _configure_logging("ERROR")
    elif args.verbose:
        _configure_logging("DEBUG")
    else:
        _configure_logging(config.log_level)

    try:
        fmt = validate_format(args.format) if args.format is not None else config.timestamp_format
        engine = RetentionEngine(_resolve_tiers(args, config))
        logger.debug(f"Policy: {', '.join(t.describe() for t in engine.tiers) or '(empty)'}")

        if args.file == "-":
            timestamps = read_timestamps(sys.stdin, fmt)
        else:
            with open(args.file) as f:
                timestamps = read_timestamps(f, fmt)

        result = engine.evaluate(timestamps)
        logger.info(f"Prune summary: {result.to_dict()}")

        selected = result.kept if args.keep else result.deleted
        for line in format_timestamps(selected, fmt):
            print(line)
        return 0

    except (InvalidPolicyError, OSError) as e:
        logger.error(f"Prune failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
