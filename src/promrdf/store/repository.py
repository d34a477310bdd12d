"""
Durable graph store.

Keeps the accumulated statement graph in a single SQLite file through
SQLAlchemy's async engine. Each scan is committed in one transaction, so
readers only ever observe fully committed scans.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Iterator

import structlog
from sqlalchemy import select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from promrdf.core.errors import StoreError
from promrdf.graph.model import IRI, Graph, Literal, Statement, merge
from promrdf.store.models import Base, ScanModel, StatementModel, utcnow

logger = structlog.get_logger()

# Rows per executemany batch
_BATCH_SIZE = 500


@dataclass(frozen=True)
class ScanRecord:
    """Summary of one committed scan session."""

    scan_id: str
    namespace: str | None
    started_at: datetime
    finished_at: datetime
    targets_discovered: int = 0
    targets_scraped: int = 0
    skipped_targets: int = 0
    skipped_lines: int = 0
    statement_count: int = 0


def _to_row(statement: Statement, scan_id: str | None, now: datetime) -> dict[str, Any]:
    obj = statement.object
    return {
        "subject": statement.subject.value,
        "predicate": statement.predicate.value,
        "merge_key": statement.merge_key,
        "object_kind": "iri" if isinstance(obj, IRI) else "literal",
        "object_value": obj.value if isinstance(obj, IRI) else obj.lexical,
        "datatype": None if isinstance(obj, IRI) else obj.datatype,
        "labels": json.dumps([list(pair) for pair in statement.labels]),
        "timestamp_ms": statement.timestamp,
        "scan_id": scan_id,
        "updated_at": now,
    }


def _from_model(model: StatementModel) -> Statement:
    obj: IRI | Literal
    if model.object_kind == "iri":
        obj = IRI(model.object_value)
    else:
        obj = Literal(model.object_value, model.datatype or "")
    labels = tuple((name, value) for name, value in json.loads(model.labels or "[]"))
    return Statement(
        IRI(model.subject),
        IRI(model.predicate),
        obj,
        labels=labels,
        timestamp=model.timestamp_ms,
    )


def _upsert_statement() -> Any:
    table = StatementModel.__table__
    stmt = sqlite_insert(table)
    return stmt.on_conflict_do_update(
        index_elements=[table.c.subject, table.c.predicate, table.c.merge_key],
        set_={
            "object_kind": stmt.excluded.object_kind,
            "object_value": stmt.excluded.object_value,
            "datatype": stmt.excluded.datatype,
            "labels": stmt.excluded.labels,
            "timestamp_ms": stmt.excluded.timestamp_ms,
            "scan_id": stmt.excluded.scan_id,
            "updated_at": stmt.excluded.updated_at,
        },
    )


def _batches(rows: list[dict[str, Any]], size: int) -> Iterator[list[dict[str, Any]]]:
    for start in range(0, len(rows), size):
        yield rows[start : start + size]


class GraphStore:
    """
    Repository for the durable statement graph.

    Use as an async context manager, or call ``open()``/``close()``::

        async with GraphStore(path) as store:
            await store.commit(statements)
            graph = await store.all()

    A store assumes a single writer per process.

    Args:
        path: SQLite file of the store
        create: Create a missing store file; when False a missing file
            raises StoreError
        echo: Log SQL statements
    """

    # Pure upsert policy shared with the in-memory graph
    merge = staticmethod(merge)

    def __init__(self, path: str | Path, *, create: bool = True, echo: bool = False) -> None:
        self.path = Path(path)
        self.create = create
        self._echo = echo
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def url(self) -> str:
        return f"sqlite+aiosqlite:///{self.path}"

    async def open(self) -> None:
        """
        Create the engine, and the schema if needed.

        Raises:
            StoreError: If the file is missing and ``create`` is False, or is corrupt
        """
        if self._engine is not None:
            return

        if not self.create and not self.path.is_file():
            raise StoreError("Graph store does not exist", details={"path": str(self.path)})

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StoreError(
                f"Cannot create graph store directory: {exc}", details={"path": str(self.path)}
            ) from exc

        engine = create_async_engine(self.url, echo=self._echo, future=True)
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as exc:
            await engine.dispose()
            raise StoreError(
                "Graph store is unreadable or corrupt", details={"path": str(self.path)}
            ) from exc

        self._engine = engine
        self._session_factory = async_sessionmaker(engine, expire_on_commit=False)
        logger.debug("graph_store_opened", path=str(self.path))

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
        self._engine = None
        self._session_factory = None

    async def __aenter__(self) -> GraphStore:
        await self.open()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def _sessions(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            raise StoreError("Graph store is not open", details={"path": str(self.path)})
        return self._session_factory

    async def commit(
        self,
        statements: Iterable[Statement],
        scan: ScanRecord | None = None,
    ) -> int:
        """
        Upsert statements (and an optional scan record) in one transaction.

        Either every statement becomes visible or none does.

        Returns:
            Number of statements written
        """
        now = utcnow()
        scan_id = scan.scan_id if scan else None
        rows = [_to_row(statement, scan_id, now) for statement in statements]

        try:
            async with self._sessions()() as session:
                async with session.begin():
                    upsert = _upsert_statement()
                    for batch in _batches(rows, _BATCH_SIZE):
                        await session.execute(upsert, batch)
                    if scan is not None:
                        session.add(
                            ScanModel(
                                scan_id=scan.scan_id,
                                namespace=scan.namespace,
                                started_at=scan.started_at,
                                finished_at=scan.finished_at,
                                targets_discovered=scan.targets_discovered,
                                targets_scraped=scan.targets_scraped,
                                skipped_targets=scan.skipped_targets,
                                skipped_lines=scan.skipped_lines,
                                statement_count=scan.statement_count,
                            )
                        )
        except SQLAlchemyError as exc:
            raise StoreError(
                f"Graph store commit failed: {exc}", details={"path": str(self.path)}
            ) from exc

        logger.info("graph_store_committed", statements=len(rows), scan_id=scan_id)
        return len(rows)

    async def all(self) -> Graph:
        """Snapshot of the committed graph."""
        try:
            async with self._sessions()() as session:
                async with session.begin():
                    result = await session.execute(select(StatementModel))
                    models = result.scalars().all()
        except SQLAlchemyError as exc:
            raise StoreError(
                f"Graph store read failed: {exc}", details={"path": str(self.path)}
            ) from exc

        return Graph(_from_model(model) for model in models)

    async def scans(self, limit: int = 10) -> list[ScanRecord]:
        """Most recent scan records, newest first."""
        try:
            async with self._sessions()() as session:
                result = await session.execute(
                    select(ScanModel).order_by(ScanModel.started_at.desc()).limit(limit)
                )
                models = result.scalars().all()
        except SQLAlchemyError as exc:
            raise StoreError(
                f"Graph store read failed: {exc}", details={"path": str(self.path)}
            ) from exc

        return [
            ScanRecord(
                scan_id=model.scan_id,
                namespace=model.namespace,
                started_at=model.started_at,
                finished_at=model.finished_at,
                targets_discovered=model.targets_discovered,
                targets_scraped=model.targets_scraped,
                skipped_targets=model.skipped_targets,
                skipped_lines=model.skipped_lines,
                statement_count=model.statement_count,
            )
            for model in models
        ]
