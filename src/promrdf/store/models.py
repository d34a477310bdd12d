from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import BigInteger, DateTime, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    """Naive UTC timestamp; SQLite keeps no zone information."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    pass


class StatementModel(Base):
    __tablename__ = "statements"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    subject: Mapped[str] = mapped_column(Text, nullable=False)
    predicate: Mapped[str] = mapped_column(Text, nullable=False)
    merge_key: Mapped[str] = mapped_column(Text, nullable=False)
    object_kind: Mapped[str] = mapped_column(String(16), nullable=False)  # iri | literal
    object_value: Mapped[str] = mapped_column(Text, nullable=False)
    datatype: Mapped[str | None] = mapped_column(Text)
    labels: Mapped[str] = mapped_column(Text, nullable=False, default="")
    timestamp_ms: Mapped[int | None] = mapped_column(BigInteger)
    scan_id: Mapped[str | None] = mapped_column(String(64))
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("subject", "predicate", "merge_key", name="uq_statement_key"),
        Index("idx_statements_subject", "subject"),
    )


class ScanModel(Base):
    __tablename__ = "scans"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    scan_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    namespace: Mapped[str | None] = mapped_column(String(255))
    started_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    finished_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    targets_discovered: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    targets_scraped: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    skipped_targets: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    skipped_lines: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    statement_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
