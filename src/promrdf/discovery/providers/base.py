"""
Base class for workload listing providers.

A provider is the single narrow capability the discoverer needs from a
cluster: list workloads with their annotations and network identity.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from promrdf.discovery.models import WorkloadRecord


class WorkloadProviderError(RuntimeError):
    """Raised when a provider cannot list workloads (unreachable, unauthorized, misconfigured)."""


@dataclass
class ProviderHealth:
    """Health status of a provider."""

    healthy: bool
    message: str
    latency_ms: float | None = None


class BaseWorkloadProvider(ABC):
    """
    Abstract base class for workload providers.

    All providers must implement:
    - list_workloads(): List workloads with annotations in a namespace
    - health_check(): Verify provider connectivity

    Providers should:
    - Return raw records; the annotation policy is applied by the discoverer
    - Raise WorkloadProviderError for listing failures rather than returning
      partial results
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name for identification."""

    @abstractmethod
    async def list_workloads(self, namespace: str | None = None) -> list[WorkloadRecord]:
        """
        List workloads visible to this provider.

        Args:
            namespace: Namespace filter (None = all namespaces)

        Returns:
            List of workload records
        """

    @abstractmethod
    async def health_check(self) -> ProviderHealth:
        """
        Check provider connectivity and health.

        Returns:
            ProviderHealth status
        """
