"""
Data models for scrape target discovery.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class WorkloadRecord:
    """A workload as listed by a provider, before the annotation policy is applied."""

    namespace: str
    name: str
    address: str | None = None  # network identity, e.g. pod IP
    annotations: dict[str, str] = field(default_factory=dict)
    owner_kind: str | None = None  # kind of the first owner reference


@dataclass(frozen=True)
class Target:
    """A single endpoint to scrape."""

    namespace: str
    name: str
    address: str
    port: int
    path: str = "/metrics"
    scheme: str = "http"
    owner_kind: str | None = None

    @property
    def url(self) -> str:
        host = f"[{self.address}]" if ":" in self.address else self.address
        return f"{self.scheme}://{host}:{self.port}{self.path}"

    @property
    def ref(self) -> str:
        """Short ``namespace/name`` reference for logs and reports."""
        return f"{self.namespace}/{self.name}"


@dataclass(frozen=True)
class SkippedWorkload:
    """A workload that opted in to scraping but could not become a target."""

    namespace: str
    name: str
    reason: str


@dataclass
class DiscoveryOutcome:
    """Result of applying the annotation policy to a provider listing."""

    targets: list[Target] = field(default_factory=list)
    skipped: list[SkippedWorkload] = field(default_factory=list)
    workloads_seen: int = 0
