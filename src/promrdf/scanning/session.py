"""
Scan session orchestration.

One scan discovers targets once, scrapes them with a fixed pool of worker
tasks and commits everything that was successfully scraped and parsed in a
single store transaction::

    targets -> [worker x N] -> results queue -> reducer -> GraphStore.commit

Workers only produce immutable ``TargetResult`` batches. The reducer is the
only place the graph is built and the only caller of the store, so there is
no shared mutable state between workers.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

import structlog

from promrdf.discovery.discoverer import Discoverer
from promrdf.discovery.models import SkippedWorkload, Target
from promrdf.exposition.parser import ExpositionParser
from promrdf.graph.builder import GraphBuilder
from promrdf.graph.model import Graph, Statement
from promrdf.logging import bind_context
from promrdf.scraping.scraper import ScrapeError, Scraper
from promrdf.store.models import utcnow
from promrdf.store.repository import GraphStore, ScanRecord

logger = structlog.get_logger()

DEFAULT_CONCURRENCY = 16


class CancelPolicy(str, Enum):
    """What a cancelled scan leaves behind in the store."""

    ALL_OR_NOTHING = "all_or_nothing"
    BEST_EFFORT = "best_effort"


@dataclass(frozen=True)
class TargetResult:
    """Outcome of scraping and mapping one target."""

    target: Target
    statements: tuple[Statement, ...] = ()
    skipped_lines: int = 0
    error_kind: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error_kind is None


@dataclass
class ScanReport:
    """Summary of one scan session."""

    scan_id: str
    namespace: str | None
    started_at: datetime = field(default_factory=utcnow)
    finished_at: datetime | None = None
    targets_discovered: int = 0
    targets_scraped: int = 0
    skipped_workloads: list[SkippedWorkload] = field(default_factory=list)
    failures: dict[str, int] = field(default_factory=dict)
    failed_targets: list[str] = field(default_factory=list)
    skipped_lines: int = 0
    statement_count: int = 0
    committed: bool = False

    @property
    def targets_failed(self) -> int:
        return sum(self.failures.values())

    def to_record(self) -> ScanRecord:
        return ScanRecord(
            scan_id=self.scan_id,
            namespace=self.namespace,
            started_at=self.started_at,
            finished_at=self.finished_at or utcnow(),
            targets_discovered=self.targets_discovered,
            targets_scraped=self.targets_scraped,
            skipped_targets=self.targets_failed,
            skipped_lines=self.skipped_lines,
            statement_count=self.statement_count,
        )


class ScanSession:
    """
    Run discovery, scraping and commit for one namespace.

    Args:
        discoverer: Target discoverer
        scraper: Open scraper shared by all workers
        builder: Statement builder
        store: Open graph store
        concurrency: Number of worker tasks
        cancel_policy: Whether a cancelled scan commits what it already mapped
    """

    def __init__(
        self,
        discoverer: Discoverer,
        scraper: Scraper,
        builder: GraphBuilder,
        store: GraphStore,
        *,
        concurrency: int = DEFAULT_CONCURRENCY,
        cancel_policy: CancelPolicy = CancelPolicy.ALL_OR_NOTHING,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.discoverer = discoverer
        self.scraper = scraper
        self.builder = builder
        self.store = store
        self.concurrency = concurrency
        self.cancel_policy = CancelPolicy(cancel_policy)

    async def run(self, namespace: str | None = None) -> ScanReport:
        """
        Execute one scan.

        Raises:
            DiscoveryError: If targets cannot be listed; nothing is committed
            StoreError: If the final commit fails; nothing is committed
        """
        report = ScanReport(scan_id=uuid.uuid4().hex, namespace=namespace)
        log = bind_context(scan_id=report.scan_id)

        outcome = await self.discoverer.discover(namespace)
        targets = outcome.targets
        report.targets_discovered = len(targets)
        report.skipped_workloads = list(outcome.skipped)
        log.info(
            "scan_started",
            namespace=namespace,
            targets=len(targets),
            skipped_workloads=len(outcome.skipped),
            concurrency=self.concurrency,
        )

        pending: asyncio.Queue[Target] = asyncio.Queue()
        for target in targets:
            pending.put_nowait(target)
        results: asyncio.Queue[TargetResult] = asyncio.Queue()

        workers = [
            asyncio.create_task(self._worker(pending, results, log))
            for _ in range(min(self.concurrency, len(targets)))
        ]
        graph = Graph()
        try:
            for _ in range(len(targets)):
                self._reduce(graph, await results.get(), report)
        except asyncio.CancelledError:
            await _stop(workers)
            if self.cancel_policy is CancelPolicy.BEST_EFFORT:
                await self._commit(graph, report, log)
            log.warning(
                "scan_cancelled", policy=self.cancel_policy.value, committed=report.committed
            )
            raise
        finally:
            await _stop(workers)

        await self._commit(graph, report, log)
        return report

    async def _worker(
        self,
        pending: asyncio.Queue[Target],
        results: asyncio.Queue[TargetResult],
        log: Any,
    ) -> None:
        while True:
            try:
                target = pending.get_nowait()
            except asyncio.QueueEmpty:
                return
            await results.put(await self.scrape_target(target, log))

    async def scrape_target(self, target: Target, log: Any = logger) -> TargetResult:
        """Scrape, parse and map one target. Failures are returned, never raised."""
        try:
            text = await self.scraper.fetch(target)
            parser = ExpositionParser(source=target.url)
            statements = tuple(self.builder.build(target, parser.parse(text)))
        except ScrapeError as exc:
            log.warning(
                "target_failed",
                target=target.ref,
                url=target.url,
                kind=exc.kind,
                reason=exc.message,
            )
            return TargetResult(target, error_kind=exc.kind, error=exc.message)
        except Exception as exc:
            log.exception("target_failed", target=target.ref, url=target.url, kind="error")
            return TargetResult(target, error_kind="error", error=str(exc))

        log.debug(
            "target_scraped",
            target=target.ref,
            statements=len(statements),
            skipped_lines=parser.skipped_lines,
        )
        return TargetResult(target, statements, parser.skipped_lines)

    def _reduce(self, graph: Graph, result: TargetResult, report: ScanReport) -> None:
        if result.ok:
            graph.update(result.statements)
            report.targets_scraped += 1
            report.skipped_lines += result.skipped_lines
            return
        kind = result.error_kind or "error"
        report.failures[kind] = report.failures.get(kind, 0) + 1
        report.failed_targets.append(result.target.ref)

    async def _commit(self, graph: Graph, report: ScanReport, log: Any) -> None:
        report.statement_count = len(graph)
        report.finished_at = utcnow()
        await self.store.commit(graph, scan=report.to_record())
        report.committed = True
        log.info(
            "scan_committed",
            statements=report.statement_count,
            targets_scraped=report.targets_scraped,
            targets_failed=report.targets_failed,
            skipped_lines=report.skipped_lines,
        )


async def _stop(workers: list[asyncio.Task[None]]) -> None:
    for worker in workers:
        worker.cancel()
    await asyncio.gather(*workers, return_exceptions=True)
