"""Main CLI entry point for esmready."""

import argparse
import logging
import sys
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler

from esmready.cli.check import check_command


def setup_logging(verbose: bool = False, console: Optional[Console] = None) -> None:
    """Route log records to stderr through Rich; ``verbose`` enables DEBUG."""
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        markup=False,
        rich_tracebacks=verbose,
    )
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="[%(name)s] %(message)s",
        handlers=[handler],
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="esmready",
        description="Check whether installed dependencies are ready to be consumed as ES modules",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-p",
        "--package-json",
        default="package.json",
        help="Root package.json (or its directory) (default: ./package.json)",
    )
    parser.add_argument(
        "-o",
        "--output",
        help="Write the JSON report to this file",
    )
    parser.add_argument(
        "-c",
        "--packages",
        help="Comma-separated dependency names to check instead of all dependencies",
    )
    parser.add_argument(
        "--config",
        help=(
            "Optional checker configuration. Can be a path to a TOML/JSON "
            "file or an inline TOML/JSON string. When omitted, built-in "
            "defaults are used."
        ),
    )
    parser.add_argument(
        "-w",
        "--workers",
        type=int,
        help="Maximum concurrent package walks (default: from config, 8)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging and list packages per bucket",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point.

    Returns:
        int: Exit code.
    """
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)
    return check_command(args)


if __name__ == "__main__":
    sys.exit(main())
