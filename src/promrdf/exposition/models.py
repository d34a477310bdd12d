"""
Data models for the Prometheus text exposition format.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping


class MetricType(str, Enum):
    """Prometheus metric family types."""

    COUNTER = "counter"
    GAUGE = "gauge"
    HISTOGRAM = "histogram"
    SUMMARY = "summary"
    UNTYPED = "untyped"


@dataclass(frozen=True)
class Sample:
    """A single measurement line from an exposition document."""

    name: str
    labels: Mapping[str, str] = field(default_factory=dict)
    value: float = 0.0
    timestamp: int | None = None  # milliseconds since epoch
    family_type: MetricType = MetricType.UNTYPED

    def __post_init__(self) -> None:
        # Read-only view so a frozen sample cannot be mutated through its labels
        object.__setattr__(self, "labels", MappingProxyType(dict(self.labels)))

    def __hash__(self) -> int:
        return hash((self.name, tuple(sorted(self.labels.items())), self.value, self.timestamp))


@dataclass(frozen=True)
class SkippedLine:
    """A malformed exposition line that was dropped."""

    line_number: int
    reason: str
