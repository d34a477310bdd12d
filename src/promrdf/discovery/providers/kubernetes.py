"""
Kubernetes workload provider.

Lists pods with their annotations, pod IP and owner kind through the
official Kubernetes client. The client is blocking, so every API call runs
in the default executor.
"""

from __future__ import annotations

import asyncio
import os
import time
from dataclasses import dataclass, field
from functools import partial
from typing import Any

import structlog

from promrdf.discovery.models import WorkloadRecord
from promrdf.discovery.providers.base import (
    BaseWorkloadProvider,
    ProviderHealth,
    WorkloadProviderError,
)

logger = structlog.get_logger()

# Pods in these phases have released their network identity
_FINISHED_PHASES = ("Succeeded", "Failed")


@dataclass
class KubernetesWorkloadProvider(BaseWorkloadProvider):
    """
    List pods from the Kubernetes API.

    Configuration:
        kubeconfig: Path to kubeconfig file (optional)
        context: Kubeconfig context to use (optional)
        timeout: API request timeout in seconds

    Environment variables:
        KUBECONFIG: Standard kubeconfig path
        PROMRDF_KUBE_CONTEXT: Kubeconfig context
    """

    kubeconfig: str | None = field(default_factory=lambda: os.environ.get("KUBECONFIG"))
    context: str | None = field(default_factory=lambda: os.environ.get("PROMRDF_KUBE_CONTEXT"))
    timeout: float = 30.0

    # Internal state
    _api_client: Any = field(default=None, repr=False, compare=False)
    _initialized: bool = field(default=False, repr=False, compare=False)

    @property
    def name(self) -> str:
        return "kubernetes"

    def _ensure_initialized(self) -> None:
        """Initialize Kubernetes client if not already done."""
        if self._initialized:
            return

        from kubernetes import client, config

        # Try in-cluster config first, then kubeconfig
        try:
            config.load_incluster_config()
        except config.ConfigException:
            try:
                config.load_kube_config(
                    config_file=self.kubeconfig,
                    context=self.context,
                )
            except (config.ConfigException, OSError) as e:
                raise WorkloadProviderError(f"Failed to load Kubernetes config: {e}") from e

        self._api_client = client.ApiClient()
        self._initialized = True

    def _get_core_api(self) -> Any:
        """Get CoreV1Api client."""
        self._ensure_initialized()
        from kubernetes import client

        return client.CoreV1Api(self._api_client)

    async def _run_sync(self, func: Any, *args: Any, **kwargs: Any) -> Any:
        """Run synchronous kubernetes API call in executor."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, *args, **kwargs))

    async def list_workloads(self, namespace: str | None = None) -> list[WorkloadRecord]:
        """List pods, in one namespace or across all namespaces."""
        core_api = self._get_core_api()

        try:
            if namespace:
                pods = await self._run_sync(
                    core_api.list_namespaced_pod,
                    namespace,
                    timeout_seconds=int(self.timeout),
                )
            else:
                pods = await self._run_sync(
                    core_api.list_pod_for_all_namespaces,
                    timeout_seconds=int(self.timeout),
                )
        except Exception as e:
            status = getattr(e, "status", None)
            if status in (401, 403):
                raise WorkloadProviderError(f"Not authorized to list pods: {e}") from e
            raise WorkloadProviderError(f"Failed to list pods: {e}") from e

        workloads: list[WorkloadRecord] = []
        for pod in pods.items:
            phase = pod.status.phase if pod.status else None
            if phase in _FINISHED_PHASES:
                continue
            workloads.append(self._to_record(pod))

        logger.debug("kubernetes_pods_listed", namespace=namespace, count=len(workloads))
        return workloads

    def _to_record(self, pod: Any) -> WorkloadRecord:
        metadata = pod.metadata
        owners = metadata.owner_references or []
        return WorkloadRecord(
            namespace=metadata.namespace,
            name=metadata.name,
            address=pod.status.pod_ip if pod.status else None,
            annotations=dict(metadata.annotations or {}),
            owner_kind=owners[0].kind if owners else None,
        )

    async def health_check(self) -> ProviderHealth:
        """Check Kubernetes API connectivity."""
        start = time.time()

        try:
            core_api = self._get_core_api()

            # Cheap authenticated round trip
            await self._run_sync(core_api.get_api_resources)
            latency = (time.time() - start) * 1000

            return ProviderHealth(
                healthy=True,
                message="Connected to Kubernetes API",
                latency_ms=latency,
            )

        except WorkloadProviderError as e:
            return ProviderHealth(
                healthy=False,
                message=str(e),
            )
        except Exception as e:
            return ProviderHealth(
                healthy=False,
                message=f"Kubernetes connection failed: {e}",
            )
