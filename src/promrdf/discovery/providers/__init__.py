"""
Workload providers.

Providers list workloads (with annotations and network identity) from
a cluster API or a static inventory.
"""

from promrdf.discovery.providers.base import (
    BaseWorkloadProvider,
    ProviderHealth,
    WorkloadProviderError,
)
from promrdf.discovery.providers.kubernetes import KubernetesWorkloadProvider
from promrdf.discovery.providers.static import StaticWorkloadProvider

__all__ = [
    "BaseWorkloadProvider",
    "KubernetesWorkloadProvider",
    "ProviderHealth",
    "StaticWorkloadProvider",
    "WorkloadProviderError",
]
