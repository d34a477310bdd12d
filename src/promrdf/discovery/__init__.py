"""
Scrape target discovery.

Lists workloads through a provider and applies the prometheus.io
annotation convention to decide what to scrape.
"""

from .discoverer import AnnotationError, Discoverer
from .models import DiscoveryOutcome, SkippedWorkload, Target, WorkloadRecord

__all__ = [
    "AnnotationError",
    "Discoverer",
    "DiscoveryOutcome",
    "SkippedWorkload",
    "Target",
    "WorkloadRecord",
]
