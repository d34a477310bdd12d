"""
CLI commands for exporting the stored graph.

Commands:
    promrdf export-triples                       - Write N-Triples (metrics.nt)
    promrdf export-turtle                        - Write Turtle (metrics.ttl)
    promrdf --turtle-file out.ttl export-turtle  - Write Turtle to another file
"""

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path
from typing import Callable

from promrdf.cli.ux import success
from promrdf.config.settings import Settings
from promrdf.core.errors import ConfigurationError, ExitCode, main_with_error_handling
from promrdf.graph.model import Graph
from promrdf.rdf import default_prefixes, write_ntriples, write_turtle
from promrdf.store.repository import GraphStore


async def load_graph(store_path: Path) -> Graph:
    """Read the committed graph from the store at ``store_path``."""
    async with GraphStore(store_path, create=False) as store:
        return await store.all()


def _write(writer: Callable[[Path], int], path: Path) -> int:
    try:
        return writer(path)
    except OSError as e:
        raise ConfigurationError(f"Cannot write {path}: {e}", details={"path": str(path)}) from e


@main_with_error_handling()
def export_triples_command(settings: Settings) -> int:
    """Write the stored graph as N-Triples to the configured triples file."""
    graph = asyncio.run(load_graph(settings.store_path))
    count = _write(lambda path: write_ntriples(graph, path), settings.triples_file)
    success(f"Wrote {count} statements to {settings.triples_file}")
    return ExitCode.SUCCESS


@main_with_error_handling()
def export_turtle_command(settings: Settings) -> int:
    """Write the stored graph as Turtle to the configured Turtle file."""
    graph = asyncio.run(load_graph(settings.store_path))
    prefixes = default_prefixes(settings.metric_base)
    count = _write(lambda path: write_turtle(graph, path, prefixes), settings.turtle_file)
    success(f"Wrote {count} statements to {settings.turtle_file}")
    return ExitCode.SUCCESS


def register_export_parsers(subparsers: argparse._SubParsersAction) -> None:
    """Register export-triples and export-turtle subcommands."""
    subparsers.add_parser(
        "export-triples",
        help="Export the stored graph as N-Triples (see --triples-file)",
    )
    subparsers.add_parser(
        "export-turtle",
        help="Export the stored graph as Turtle (see --turtle-file)",
    )


def handle_export_command(args: argparse.Namespace, settings: Settings) -> int:
    """Handle export-triples / export-turtle from CLI args."""
    if args.command == "export-turtle":
        return export_turtle_command(settings)
    return export_triples_command(settings)
