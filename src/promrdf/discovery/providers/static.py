"""
Static workload provider.

Serves a fixed list of workloads, either built in code or loaded from a
YAML inventory file::

    workloads:
      - namespace: shop
        name: checkout-7d9f
        address: 10.0.3.17
        owner_kind: ReplicaSet
        annotations:
          prometheus.io/scrape: "true"
          prometheus.io/port: "8081"
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from promrdf.discovery.models import WorkloadRecord
from promrdf.discovery.providers.base import (
    BaseWorkloadProvider,
    ProviderHealth,
    WorkloadProviderError,
)


def _annotation_value(value: Any) -> str:
    # YAML turns unquoted true/8080 into bool/int; annotations are strings
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@dataclass
class StaticWorkloadProvider(BaseWorkloadProvider):
    """Provider over an in-memory list of workload records."""

    workloads: list[WorkloadRecord] = field(default_factory=list)

    @property
    def name(self) -> str:
        return "static"

    @classmethod
    def from_file(cls, path: str | Path) -> StaticWorkloadProvider:
        """Load workloads from a YAML inventory file."""
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise WorkloadProviderError(f"Cannot read workloads file {path}: {e}") from e

        entries = data.get("workloads", []) if isinstance(data, dict) else None
        if not isinstance(entries, list):
            raise WorkloadProviderError(f"Workloads file {path} must contain a 'workloads' list")

        workloads = []
        for index, entry in enumerate(entries):
            if not isinstance(entry, dict) or "namespace" not in entry or "name" not in entry:
                raise WorkloadProviderError(
                    f"Workload #{index} in {path} needs at least 'namespace' and 'name'"
                )
            annotations = entry.get("annotations") or {}
            if not isinstance(annotations, dict):
                raise WorkloadProviderError(
                    f"Workload #{index} in {path} has non-mapping 'annotations'"
                )
            workloads.append(
                WorkloadRecord(
                    namespace=str(entry["namespace"]),
                    name=str(entry["name"]),
                    address=str(entry["address"]) if entry.get("address") else None,
                    annotations={str(k): _annotation_value(v) for k, v in annotations.items()},
                    owner_kind=entry.get("owner_kind"),
                )
            )
        return cls(workloads=workloads)

    async def list_workloads(self, namespace: str | None = None) -> list[WorkloadRecord]:
        if namespace is None:
            return list(self.workloads)
        return [w for w in self.workloads if w.namespace == namespace]

    async def health_check(self) -> ProviderHealth:
        start = time.time()
        return ProviderHealth(
            healthy=True,
            message=f"{len(self.workloads)} static workloads",
            latency_ms=(time.time() - start) * 1000,
        )
