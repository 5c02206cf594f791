"""Check command implementation."""

import logging
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from esmready.config.loader import load_config
from esmready.config.schema import CheckerConfig
from esmready.errors import ConfigurationError, RootManifestError
from esmready.report import Report
from esmready.runtime.aggregator import generate_report

logger = logging.getLogger("esmready.cli.check")


def parse_name_filter(value: Optional[str]) -> Optional[List[str]]:
    """``"react, lodash"`` -> ``["react", "lodash"]``; None or blank -> None."""
    if value is None:
        return None
    names = [name.strip() for name in value.split(",") if name.strip()]
    return names or None


def render_summary(report: Report, console: Console, verbose: bool = False) -> None:
    """Print bucket counts, and with ``verbose`` the package names per bucket."""
    table = Table(title=f"ESM readiness ({report.total} package(s) classified)")
    table.add_column("Bucket", style="bold")
    table.add_column("Count", justify="right")
    if verbose:
        table.add_column("Packages")

    buckets = [
        report.esm,
        report.cjs,
        report.faux_esm.with_commonjs_dependencies,
        report.faux_esm.with_missing_js_file_extensions,
        sorted({entry.package for entry in report.resolve_errors}),
        sorted({entry.package for entry in report.parse_errors}),
    ]
    for (label, count), names in zip(report.counts().items(), buckets):
        row = [label, str(count)]
        if verbose:
            row.append(", ".join(names))
        table.add_row(*row)
    console.print(table)


def check_command(args, console: Optional[Console] = None) -> int:
    """Execute the check command.

    Args:
        args: Parsed command-line arguments containing:
            - package_json: Root manifest path
            - output: Report file path (optional)
            - packages: Comma-separated name filter (optional)
            - config: Config file or inline TOML/JSON (optional)
            - workers: Worker thread override (optional)
            - verbose: Show package names in the summary

    Returns:
        int: Exit code (0 for success, non-zero for failure).
    """
    console = console or Console()
    try:
        config = load_config(args.config)
        if args.workers is not None:
            config = CheckerConfig.model_validate(
                {**config.model_dump(), "max_workers": args.workers}
            )
    except (ConfigurationError, ValidationError, TypeError) as e:
        logger.error("Invalid configuration: %s", e)
        return 2

    try:
        report = generate_report(
            args.package_json, parse_name_filter(args.packages), config
        )
    except RootManifestError as e:
        Console(stderr=True).print(f"[red]{escape(str(e))}[/red]", highlight=False)
        return 1

    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(report.to_json() + "\n", encoding="utf-8")
        logger.info("Report written to %s", output_path)

    render_summary(report, console, verbose=args.verbose)
    return 0
