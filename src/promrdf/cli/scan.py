"""
CLI command for scanning annotated workloads.

Commands:
    promrdf scan-metrics                          - Scan pods of the current cluster
    promrdf -n shop scan-metrics                  - Scan one namespace
    promrdf scan-metrics --workloads-file pods.yaml - Scan a static inventory
"""

from __future__ import annotations

import argparse
import asyncio

from promrdf.cli.ux import console, header, print_key_value, print_table, success, warning
from promrdf.config.settings import Settings
from promrdf.core.errors import ConfigurationError, ExitCode, main_with_error_handling
from promrdf.discovery.discoverer import Discoverer
from promrdf.discovery.providers import (
    BaseWorkloadProvider,
    KubernetesWorkloadProvider,
    StaticWorkloadProvider,
    WorkloadProviderError,
)
from promrdf.graph.builder import GraphBuilder
from promrdf.scanning.session import CancelPolicy, ScanReport, ScanSession
from promrdf.scraping.scraper import Scraper
from promrdf.store.repository import GraphStore


def build_provider(settings: Settings, workloads_file: str | None = None) -> BaseWorkloadProvider:
    """Static inventory when a workloads file is given, otherwise the Kubernetes API."""
    if workloads_file:
        try:
            return StaticWorkloadProvider.from_file(workloads_file)
        except WorkloadProviderError as e:
            raise ConfigurationError(str(e), details={"workloads_file": workloads_file}) from e

    kwargs: dict[str, str] = {}
    if settings.kubeconfig:
        kwargs["kubeconfig"] = settings.kubeconfig
    if settings.kube_context:
        kwargs["context"] = settings.kube_context
    return KubernetesWorkloadProvider(**kwargs)


async def run_scan(settings: Settings, provider: BaseWorkloadProvider) -> ScanReport:
    """Run one scan session against ``provider`` and commit it to the store."""
    discoverer = Discoverer(provider, annotation_prefix=settings.annotation_prefix)
    builder = GraphBuilder(settings.workload_base, settings.metric_base)

    async with GraphStore(settings.store_path) as store:
        async with Scraper(
            timeout=settings.scrape_timeout,
            max_bytes=settings.scrape_max_bytes,
            retries=settings.scrape_retries,
            concurrency=settings.scrape_concurrency,
        ) as scraper:
            session = ScanSession(
                discoverer,
                scraper,
                builder,
                store,
                concurrency=settings.scrape_concurrency,
                cancel_policy=CancelPolicy(settings.cancel_policy),
            )
            return await session.run(settings.namespace)


@main_with_error_handling()
def scan_metrics_command(
    settings: Settings,
    workloads_file: str | None = None,
    concurrency: int | None = None,
    timeout: float | None = None,
    max_bytes: int | None = None,
) -> int:
    """
    Discover, scrape and commit metrics of annotated workloads.

    Args:
        settings: Effective settings (global CLI flags already applied)
        workloads_file: Optional YAML inventory replacing the Kubernetes API
        concurrency: Override of the worker count
        timeout: Override of the per-target timeout
        max_bytes: Override of the response-size ceiling

    Returns:
        Exit code (0 on success, also when individual targets failed)
    """
    overrides = {
        "scrape_concurrency": concurrency,
        "scrape_timeout": timeout,
        "scrape_max_bytes": max_bytes,
    }
    for key, value in overrides.items():
        if value is not None and value <= 0:
            raise ConfigurationError(f"{key} must be positive", details={key: value})
    settings = settings.model_copy(
        update={key: value for key, value in overrides.items() if value is not None}
    )

    provider = build_provider(settings, workloads_file)
    report = asyncio.run(run_scan(settings, provider))
    print_scan_report(report)
    return ExitCode.SUCCESS


def print_scan_report(report: ScanReport) -> None:
    header(f"Scan {report.scan_id}")
    print_key_value(
        {
            "Namespace": report.namespace or "(all)",
            "Targets discovered": str(report.targets_discovered),
            "Targets scraped": str(report.targets_scraped),
            "Skipped workloads": str(len(report.skipped_workloads)),
            "Skipped lines": str(report.skipped_lines),
            "Statements": str(report.statement_count),
        }
    )
    console.print()

    for skipped in report.skipped_workloads:
        warning(f"Skipped {skipped.namespace}/{skipped.name}: {skipped.reason}")

    if report.failures:
        print_table(
            "Failed targets",
            ["Kind", "Count"],
            [[kind, str(count)] for kind, count in sorted(report.failures.items())],
        )

    if report.committed:
        success(
            f"Committed {report.statement_count} statements from "
            f"{report.targets_scraped}/{report.targets_discovered} targets"
        )


def register_scan_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the scan-metrics subcommand."""
    scan_parser = subparsers.add_parser(
        "scan-metrics",
        help="Discover annotated workloads, scrape them and store the statements",
    )
    scan_parser.add_argument(
        "--workloads-file",
        "-w",
        help="YAML inventory of workloads to use instead of the Kubernetes API",
    )
    scan_parser.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help="Number of concurrent scrapes (or set PROMRDF_SCRAPE_CONCURRENCY)",
    )
    scan_parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Per-target scrape timeout in seconds (or set PROMRDF_SCRAPE_TIMEOUT)",
    )
    scan_parser.add_argument(
        "--max-bytes",
        type=int,
        default=None,
        help="Maximum response size per target (or set PROMRDF_SCRAPE_MAX_BYTES)",
    )


def handle_scan_command(args: argparse.Namespace, settings: Settings) -> int:
    """Handle scan-metrics from CLI args."""
    return scan_metrics_command(
        settings,
        workloads_file=getattr(args, "workloads_file", None),
        concurrency=getattr(args, "concurrency", None),
        timeout=getattr(args, "timeout", None),
        max_bytes=getattr(args, "max_bytes", None),
    )
