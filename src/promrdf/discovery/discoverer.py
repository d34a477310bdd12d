"""
Scrape target discovery.

Applies the ``prometheus.io/*`` annotation convention to the workloads a
provider lists:

- ``scrape`` must be the literal string ``"true"``
- ``port`` is required and must be an integer in 1..65535
- ``path`` defaults to ``/metrics``
- ``scheme`` defaults to ``http``

A workload that opts in but fails these checks is skipped with a warning.
Only a failure to list workloads at all is fatal.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

import structlog

from promrdf.core.errors import DiscoveryError
from promrdf.discovery.models import DiscoveryOutcome, SkippedWorkload, Target, WorkloadRecord
from promrdf.discovery.providers.base import BaseWorkloadProvider, WorkloadProviderError

logger = structlog.get_logger()

DEFAULT_ANNOTATION_PREFIX = "prometheus.io/"
DEFAULT_PATH = "/metrics"
DEFAULT_SCHEME = "http"

_SCHEMES = ("http", "https")
_MAX_PORT = 65535
_PORT_RE = re.compile(r"[0-9]+")


class AnnotationError(ValueError):
    """Raised for an opted-in workload whose annotations cannot form a target."""


@dataclass
class Discoverer:
    """
    Turn a provider listing into scrape targets.

    Args:
        provider: Workload provider to list from
        annotation_prefix: Prefix of the scrape/port/path/scheme annotations
    """

    provider: BaseWorkloadProvider
    annotation_prefix: str = DEFAULT_ANNOTATION_PREFIX

    def _annotation(self, workload: WorkloadRecord, key: str) -> str | None:
        return workload.annotations.get(self.annotation_prefix + key)

    def wants_scrape(self, workload: WorkloadRecord) -> bool:
        return self._annotation(workload, "scrape") == "true"

    def to_target(self, workload: WorkloadRecord) -> Target:
        """
        Build a target from an opted-in workload.

        Raises:
            AnnotationError: If the port, scheme or address is unusable
        """
        raw_port = self._annotation(workload, "port")
        if raw_port is None:
            raise AnnotationError("missing port annotation")
        if not _PORT_RE.fullmatch(raw_port.strip()):
            raise AnnotationError(f"port annotation {raw_port!r} is not an integer")
        port = int(raw_port)
        if not 0 < port <= _MAX_PORT:
            raise AnnotationError(f"port annotation {raw_port!r} is out of range")

        path = (self._annotation(workload, "path") or "").strip() or DEFAULT_PATH
        if not path.startswith("/"):
            path = "/" + path

        scheme = (self._annotation(workload, "scheme") or DEFAULT_SCHEME).strip().lower()
        if scheme not in _SCHEMES:
            raise AnnotationError(f"unsupported scheme annotation {scheme!r}")

        if not workload.address:
            raise AnnotationError("workload has no network address")

        return Target(
            namespace=workload.namespace,
            name=workload.name,
            address=workload.address,
            port=port,
            path=path,
            scheme=scheme,
            owner_kind=workload.owner_kind,
        )

    async def discover(self, namespace: str | None = None) -> DiscoveryOutcome:
        """
        Discover scrape targets.

        Args:
            namespace: Namespace filter (None = all namespaces)

        Returns:
            DiscoveryOutcome with targets and skipped workloads

        Raises:
            DiscoveryError: If the provider is unhealthy or cannot list workloads
        """
        details = {"provider": self.provider.name, "namespace": namespace}

        health = await self.provider.health_check()
        if not health.healthy:
            raise DiscoveryError(health.message, details=details)
        logger.debug("provider_healthy", provider=self.provider.name, latency_ms=health.latency_ms)

        try:
            workloads = await self.provider.list_workloads(namespace)
        except WorkloadProviderError as e:
            raise DiscoveryError(str(e), details=details) from e

        outcome = DiscoveryOutcome(workloads_seen=len(workloads))
        for workload in workloads:
            if not self.wants_scrape(workload):
                continue
            try:
                outcome.targets.append(self.to_target(workload))
            except AnnotationError as e:
                outcome.skipped.append(
                    SkippedWorkload(namespace=workload.namespace, name=workload.name, reason=str(e))
                )
                logger.warning(
                    "workload_skipped",
                    namespace=workload.namespace,
                    workload=workload.name,
                    reason=str(e),
                )

        logger.info(
            "targets_discovered",
            namespace=namespace,
            workloads=outcome.workloads_seen,
            targets=len(outcome.targets),
            skipped=len(outcome.skipped),
        )
        return outcome
