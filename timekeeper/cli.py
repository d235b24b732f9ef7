"""
Time Keeper CLI.

Command-line interface for reading and rewriting console addresses.

Usage:
    python -m timekeeper classify URL
    python -m timekeeper capture URL --format json
    python -m timekeeper apply URL --start 2024-01-01T00:00:00 --end 2024-01-01T06:00:00
"""

import argparse
import json
import logging
import sys
from typing import Optional

from . import __version__
from .config import KeeperConfig
from .engine import TimeKeeper
from .format import describe_failure, manual_range, summarize
from .serialize import to_dict


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="timekeeper",
        description="Copy time windows between console pages through their addresses",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    %(prog)s classify 'https://console.aws.amazon.com/cloudwatch/home#metricsV2:graph=~(start~'-PT3H~end~'P0D)'
    %(prog)s capture URL --format json
    %(prog)s apply URL --start 1700000000000 --end 1700003600000

Exit codes:
    0 - Success
    1 - The address could not be read or rewritten
    2 - Usage error
        """,
    )
    parser.add_argument(
        "--format", "-f",
        type=str,
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )
    parser.add_argument(
        "--tz",
        type=str,
        default="local",
        help="Timezone for wall-clock text (default: local)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log scheme decisions to stderr",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    p_classify = sub.add_parser("classify", help="Show which scheme an address uses")
    p_classify.add_argument("url", type=str)

    p_capture = sub.add_parser("capture", help="Read the time range from an address")
    p_capture.add_argument("url", type=str)

    p_apply = sub.add_parser("apply", help="Write a time range into an address")
    p_apply.add_argument("url", type=str)
    p_apply.add_argument("--start", required=True, help="ISO date-time or epoch milliseconds")
    p_apply.add_argument("--end", required=True, help="ISO date-time or epoch milliseconds")

    return parser


def main(args: Optional[list] = None) -> int:
    """
    Main entry point for the CLI.

    Returns:
        Exit code: 0 on success, 1 on a scheme failure, 2 on usage errors
    """
    parsed = _build_parser().parse_args(args)

    if parsed.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    try:
        config = KeeperConfig(timezone=parsed.tz)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    keeper = TimeKeeper(config)
    tz = config.tzinfo()

    if parsed.command == "classify":
        tag = keeper.detect(parsed.url)
        if parsed.format == "json":
            print(json.dumps({"scheme": tag.value, "label": keeper.label(parsed.url), "supported": tag.supported}))
        else:
            print(f"{tag.value} ({keeper.label(parsed.url)})")
        return 0

    if parsed.command == "capture":
        result = keeper.capture(parsed.url)
        if not result.ok:
            _print_failure(parsed.format, result.scheme, result.failure, "capture")
            return 1
        if parsed.format == "json":
            print(json.dumps({"scheme": result.scheme.value, "timeRange": to_dict(result.time_range)}))
        else:
            print(summarize(result.time_range, tz))
        return 0

    try:
        time_range = manual_range(parsed.start, parsed.end, tz)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    applied = keeper.apply(parsed.url, time_range)
    if not applied.ok:
        _print_failure(parsed.format, applied.scheme, applied.failure, "apply")
        return 1
    if parsed.format == "json":
        print(json.dumps({"scheme": applied.scheme.value, "address": applied.address}))
    else:
        print(applied.address)
    return 0


def _print_failure(fmt, scheme, failure, action) -> None:
    if fmt == "json":
        print(json.dumps({"scheme": scheme.value, "error": failure.reason.value, "message": failure.message}))
    else:
        print(f"{describe_failure(failure, scheme, action)} [{failure}]", file=sys.stderr)


if __name__ == "__main__":
    sys.exit(main())
