"""Command-line interface for the decimal round-trip verifier.

Usage:
    python -m roundtrip_engine run --max-integer 100 --decimal-places 2
    python -m roundtrip_engine run --config configs/verify.json --workers 8
    python -m roundtrip_engine check 5000 --decimal-places 2
    python -m roundtrip_engine validate configs/verify.json
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from shared.exceptions import (
    PrecisionMismatchError,
    RoundTripError,
    ValidationError,
    WorkerFaultError,
)

from .config import DEFAULT_DECIMAL_PLACES, RunConfig, load_config, validate_config
from .core.codec import format_fixed, index_text, serialize, transcode, value_at
from .core.coordinator import RunCoordinator
from .core.equivalence import check_canonical, check_equivalence, mismatch_reason
from .logging import get_log_service
from .report import ConsoleReporter

# Exit codes
EXIT_SUCCESS = 0
EXIT_MISMATCH = 1
EXIT_CONFIG_NOT_FOUND = 2
EXIT_VALIDATION_FAILED = 3
EXIT_WORKER_FAULT = 4
EXIT_ERROR = 5


def create_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="roundtrip-verify",
        description="Exhaustively verify fixed-point decimal serialize/deserialize round trips",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s run --max-integer 100 --decimal-places 2 --workers 4
  %(prog)s run --config configs/verify.json --json
  %(prog)s run --max-integer 100 --decimal-places 2 --inject-mismatch 5000
  %(prog)s check 9998 --decimal-places 2
  %(prog)s validate configs/verify.json
""",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # run command
    run_parser = subparsers.add_parser(
        "run",
        help="Verify a full range",
        description="Verify every value of [0, max-integer) in 10^-decimal-places steps.",
    )
    run_parser.add_argument("-c", "--config", type=Path, help="Path to config JSON file")
    run_parser.add_argument("--max-integer", type=int, help="Exclusive upper bound of the integer part")
    run_parser.add_argument("--decimal-places", type=int, help="Fractional digit count")
    run_parser.add_argument("-w", "--workers", type=int, help="Worker processes (default: host CPUs)")
    run_parser.add_argument(
        "--check-mode",
        choices=("platform", "canonical"),
        help="canonical also compares against the exact text of each index",
    )
    run_parser.add_argument(
        "--no-cancel",
        action="store_true",
        help="Leave sibling workers running after the first failure",
    )
    run_parser.add_argument(
        "--inject-mismatch",
        type=int,
        metavar="INDEX",
        help="Force a mismatch at INDEX to exercise the failure path",
    )
    run_parser.add_argument("--tick", type=float, help="Progress tick interval in seconds")
    run_parser.add_argument("-q", "--quiet", action="store_true", help="Only print failures")
    run_parser.add_argument("--json", action="store_true", help="Print the run result as JSON")

    # check command
    check_parser = subparsers.add_parser(
        "check",
        help="Reproduce a single index in isolation",
        description="Run the round trip for one index and print every observed value.",
    )
    check_parser.add_argument("index", type=int, help="Index to check")
    check_parser.add_argument(
        "--decimal-places", type=int, default=DEFAULT_DECIMAL_PLACES, help="Fractional digit count"
    )
    check_parser.add_argument(
        "--check-mode", choices=("platform", "canonical"), default="platform"
    )

    # validate command
    validate_parser = subparsers.add_parser(
        "validate",
        help="Validate config file without running",
        description="Validate a run config file.",
    )
    validate_parser.add_argument("config", type=Path, help="Path to config JSON file")

    return parser


def build_config(args: argparse.Namespace) -> RunConfig:
    """Merge the optional config file with command-line overrides."""
    base: dict[str, Any] = {}
    if args.config is not None:
        base = load_config(args.config).model_dump()

    overrides = {
        "max_integer": args.max_integer,
        "decimal_places": args.decimal_places,
        "worker_count": args.workers,
        "check_mode": args.check_mode,
        "fault_index": args.inject_mismatch,
        "tick_interval_sec": args.tick,
    }
    base.update({key: value for key, value in overrides.items() if value is not None})
    if args.no_cancel:
        base["cancel_on_failure"] = False
    return validate_config(base)


def cmd_run(args: argparse.Namespace) -> int:
    """Execute the 'run' command."""
    if args.config is not None and not Path(args.config).exists():
        print(f"Error: Config file not found: {args.config}", file=sys.stderr)
        return EXIT_CONFIG_NOT_FOUND

    try:
        config = build_config(args)
    except ValidationError as e:
        print(f"Config validation error: {e}", file=sys.stderr)
        return EXIT_VALIDATION_FAILED

    reporter = ConsoleReporter(
        config.max_integer,
        config.decimal_places,
        stream=sys.stderr if args.json else sys.stdout,
        quiet=args.quiet,
    )

    try:
        result = RunCoordinator(config, observer=reporter).run()
        if args.json:
            print(json.dumps(result.to_dict(), indent=2, default=str))
        result.raise_for_failure()
        return EXIT_SUCCESS

    except PrecisionMismatchError:
        return EXIT_MISMATCH

    except WorkerFaultError:
        return EXIT_WORKER_FAULT

    except RoundTripError as e:
        get_log_service("cli").log_exception("Run aborted", e)
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR


def cmd_check(args: argparse.Namespace) -> int:
    """Execute the 'check' command."""
    if args.index < 0 or args.decimal_places < 0:
        print("Error: index and decimal places must be >= 0", file=sys.stderr)
        return EXIT_VALIDATION_FAILED

    places = args.decimal_places
    value = value_at(args.index, places)
    serialized = serialize(value, places)
    deserialized = transcode(serialized)
    if args.check_mode == "canonical":
        ok = check_canonical(args.index, value, serialized, deserialized, places)
    else:
        ok = check_equivalence(value, serialized, deserialized, places)

    print(f"  Index:         {args.index}")
    print(f"  Exact text:    {index_text(args.index, places)}")
    print(f"  Value:         {value!r} ({format_fixed(value, places)})")
    print(f"  Serialized:    {serialized!r} ({format_fixed(serialized, places)})")
    print(f"  Deserialized:  {deserialized!r}")
    if ok:
        print("  Result:        OK")
        return EXIT_SUCCESS
    reason = mismatch_reason(args.index, value, serialized, deserialized, places)
    print(f"  Result:        MISMATCH ({reason})")
    return EXIT_MISMATCH


def cmd_validate(args: argparse.Namespace) -> int:
    """Execute the 'validate' command."""
    config_path = Path(args.config).resolve()

    if not config_path.exists():
        print(f"Error: Config file not found: {config_path}", file=sys.stderr)
        return EXIT_CONFIG_NOT_FOUND

    try:
        config = load_config(config_path)
    except ValidationError as e:
        print(f"Validation error: {e}", file=sys.stderr)
        return EXIT_VALIDATION_FAILED

    print(f"Config valid: {config_path} ({config.total_numbers} numbers)")
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command == "run":
        return cmd_run(args)
    elif args.command == "check":
        return cmd_check(args)
    elif args.command == "validate":
        return cmd_validate(args)

    parser.print_help()
    return EXIT_SUCCESS


if __name__ == "__main__":
    sys.exit(main())
