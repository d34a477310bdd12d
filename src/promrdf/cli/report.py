"""
CLI command for reports over the stored graph.

Commands:
    promrdf report             - Recent scan history
    promrdf report --limit 25  - Longer history
"""

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path

from promrdf.cli.ux import info, print_table
from promrdf.config.settings import Settings
from promrdf.core.errors import ExitCode, main_with_error_handling
from promrdf.store.repository import GraphStore, ScanRecord

DEFAULT_LIMIT = 10

REPORT_COLUMNS = [
    "Scan",
    "Namespace",
    "Finished",
    "Discovered",
    "Scraped",
    "Failed",
    "Lines skipped",
    "Statements",
]


async def load_scans(store_path: Path, limit: int = DEFAULT_LIMIT) -> tuple[list[ScanRecord], int]:
    """Recent scans and the current statement count of the store."""
    async with GraphStore(store_path, create=False) as store:
        scans = await store.scans(limit)
        graph = await store.all()
    return scans, len(graph)


@main_with_error_handling()
def report_command(settings: Settings, limit: int = DEFAULT_LIMIT) -> int:
    """Print the recent scan history recorded in the store."""
    scans, statements = asyncio.run(load_scans(settings.store_path, limit))

    if not scans:
        info(f"No scans recorded in {settings.store_path}")
        return ExitCode.SUCCESS

    print_table(
        f"Recent scans ({statements} statements stored)",
        REPORT_COLUMNS,
        [
            [
                scan.scan_id[:12],
                scan.namespace or "(all)",
                scan.finished_at.strftime("%Y-%m-%d %H:%M:%S"),
                str(scan.targets_discovered),
                str(scan.targets_scraped),
                str(scan.skipped_targets),
                str(scan.skipped_lines),
                str(scan.statement_count),
            ]
            for scan in scans
        ],
    )
    return ExitCode.SUCCESS


def register_report_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the report subcommand."""
    report_parser = subparsers.add_parser(
        "report",
        help="Show the recent scan history of the store",
    )
    report_parser.add_argument(
        "--limit",
        type=int,
        default=DEFAULT_LIMIT,
        help=f"Number of scans to show (default: {DEFAULT_LIMIT})",
    )


def handle_report_command(args: argparse.Namespace, settings: Settings) -> int:
    """Handle report from CLI args."""
    return report_command(settings, limit=getattr(args, "limit", DEFAULT_LIMIT))
