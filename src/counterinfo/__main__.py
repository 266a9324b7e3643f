"""CLI entry point for counterinfo.

Usage:
    python -m counterinfo <command> [options]

Commands:
    combine FILE... [--details] [--config PATH]
    merge TARGET SOURCE...
    config validate
    config get <key>
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import NoReturn

from counterinfo import __version__
from counterinfo.config import Config
from counterinfo.logs import setup_logging
from counterinfo.models import Report

logger = logging.getLogger("counterinfo.cli")


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="counterinfo",
        description="Combine counter metadata reports from multiple sources",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # combine command
    combine_parser = subparsers.add_parser(
        "combine", help="Combine reports with an incremental combiner"
    )
    combine_parser.add_argument("files", nargs="+", help="JSON report files")
    combine_parser.add_argument(
        "--details",
        action="store_true",
        default=None,
        help="Aggregate request details (overrides combiner.aggregate_details)",
    )
    combine_parser.add_argument(
        "--config",
        help="Path to config file (default: search for .counterinfo/config.toml)",
    )

    # merge command
    merge_parser = subparsers.add_parser(
        "merge", help="Merge the counters of source reports into a target report"
    )
    merge_parser.add_argument("target", help="JSON report to merge into")
    merge_parser.add_argument("sources", nargs="+", help="JSON reports to merge from")

    # config command
    config_parser = subparsers.add_parser("config", help="Configuration management")
    config_subparsers = config_parser.add_subparsers(
        dest="config_command", help="Config subcommands"
    )

    # config validate
    config_subparsers.add_parser("validate", help="Validate configuration")

    # config get
    get_parser = config_subparsers.add_parser("get", help="Get configuration value")
    get_parser.add_argument(
        "key", help="Configuration key (e.g. combiner.aggregate_details)"
    )

    return parser


def load_report(path: Path) -> Report:
    """Read a JSON report from a file.

    Raises:
        ValueError: If the file is not a valid report.
        OSError: If the file cannot be read.
    """
    with open(path) as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"{path}: invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object")

    try:
        return Report.from_dict(data)
    except (ValueError, TypeError, AttributeError) as e:
        raise ValueError(f"{path}: invalid report: {e}") from e


def load_config(path: str | None = None) -> Config:
    """Load the configuration and set up logging from it.

    Raises:
        ValueError: If the configuration is invalid.
        OSError: If the configured log file cannot be opened.
    """
    config = Config.load_or_default(Path(path) if path else None)
    setup_logging(config.logging)
    return config


def cmd_combine(args: argparse.Namespace) -> int:
    """Handle 'combine' command."""
    from counterinfo.combiner import SampleCombiner

    try:
        config = load_config(args.config)
    except (OSError, ValueError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    aggregate_details = config.combiner.aggregate_details
    if args.details is not None:
        aggregate_details = args.details
    combiner = SampleCombiner(aggregate_details=aggregate_details)

    for name in args.files:
        try:
            report = load_report(Path(name))
        except (OSError, ValueError) as e:
            print(f"Error reading report: {e}", file=sys.stderr)
            return 1
        logger.info(f"Adding {len(report.counters)} counters from {name}")
        combiner.add_samples(report)

    print(combiner.get_response().to_json())
    return 0


def cmd_merge(args: argparse.Namespace) -> int:
    """Handle 'merge' command."""
    from counterinfo.combiner import merge

    try:
        load_config()
    except (OSError, ValueError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    try:
        target = load_report(Path(args.target))
        for name in args.sources:
            source = load_report(Path(name))
            logger.info(f"Merging {len(source.counters)} counters from {name}")
            merge(target, source)
    except (OSError, ValueError) as e:
        print(f"Error reading report: {e}", file=sys.stderr)
        return 1

    print(target.to_json())
    return 0


def cmd_config_validate(args: argparse.Namespace) -> int:
    """Handle 'config validate' command."""
    try:
        config = Config.load()
        print(f"Configuration valid: {config.config_path}")
        print(f"  Version: {config.version}")
        print(f"  Aggregate details: {config.combiner.aggregate_details}")
        print(f"  Log level: {config.logging.level}")
        print(f"  Log file: {config.logging.file or '(stderr)'}")
        return 0
    except FileNotFoundError as e:
        print(f"No configuration found: {e}", file=sys.stderr)
        return 0  # Missing config is not an error
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1


def cmd_config_get(args: argparse.Namespace) -> int:
    """Handle 'config get' command."""
    try:
        config = Config.load_or_default()
        print(config.get_value(args.key))
        return 0
    except KeyError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1


def main() -> NoReturn:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "combine":
        sys.exit(cmd_combine(args))
    elif args.command == "merge":
        sys.exit(cmd_merge(args))
    elif args.command == "config":
        if args.config_command == "validate":
            sys.exit(cmd_config_validate(args))
        elif args.config_command == "get":
            sys.exit(cmd_config_get(args))
        else:
            parser.parse_args(["config", "--help"])
            sys.exit(1)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
