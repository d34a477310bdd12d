"""
promrdf command line entry point.

Usage:
    promrdf [global options] <command> [args]

Commands:
    scan-metrics    Discover annotated workloads, scrape and store their metrics
    export-triples  Write the stored graph as N-Triples
    export-turtle   Write the stored graph as Turtle
    report          Show the recent scan history
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Callable, Sequence

from pydantic import ValidationError

from promrdf import __version__
from promrdf.cli.export import handle_export_command, register_export_parsers
from promrdf.cli.report import handle_report_command, register_report_parser
from promrdf.cli.scan import handle_scan_command, register_scan_parser
from promrdf.config.settings import Settings, get_settings
from promrdf.core.errors import ConfigurationError, main_with_error_handling
from promrdf.logging import configure_logging

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]

_HANDLERS: dict[str, Callable[[argparse.Namespace, Settings], int]] = {
    "scan-metrics": handle_scan_command,
    "export-triples": handle_export_command,
    "export-turtle": handle_export_command,
    "report": handle_report_command,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="promrdf",
        description="Scrape annotated Kubernetes workloads into an RDF statement graph",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--store",
        dest="store_path",
        type=Path,
        help="Graph store file (default: $TMPDIR/promrdf/graph.db, or PROMRDF_STORE_PATH)",
    )
    parser.add_argument(
        "--namespace",
        "-n",
        help="Restrict discovery to one namespace (default: all namespaces)",
    )
    parser.add_argument(
        "--triples-file",
        type=Path,
        help="N-Triples output file (default: metrics.nt)",
    )
    parser.add_argument(
        "--turtle-file",
        type=Path,
        help="Turtle output file (default: metrics.ttl)",
    )
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        type=str.upper,
        help="Log level (default: WARNING, or PROMRDF_LOG_LEVEL)",
    )
    parser.add_argument(
        "--log-format",
        choices=["console", "json"],
        help="Log renderer (default: console, or PROMRDF_LOG_FORMAT)",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="command")
    register_scan_parser(subparsers)
    register_export_parsers(subparsers)
    register_report_parser(subparsers)
    return parser


def load_settings(args: argparse.Namespace) -> Settings:
    """Environment settings with global CLI flags applied on top."""
    try:
        settings = get_settings()
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e

    overrides = {
        "store_path": args.store_path,
        "namespace": args.namespace,
        "triples_file": args.triples_file,
        "turtle_file": args.turtle_file,
        "log_level": args.log_level,
        "log_format": args.log_format,
    }
    return settings.model_copy(
        update={key: value for key, value in overrides.items() if value is not None}
    )


@main_with_error_handling()
def run_command(args: argparse.Namespace) -> int:
    settings = load_settings(args)
    configure_logging(settings.log_level, settings.log_format)
    return _HANDLERS[args.command](args, settings)


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(2)

    sys.exit(run_command(args))


if __name__ == "__main__":
    main()
