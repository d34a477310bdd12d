"""
Prometheus text exposition parsing.

Turns a scraped /metrics document into flat, typed samples.
"""

from .models import MetricType, Sample, SkippedLine
from .parser import ExpositionParser, ExpositionSyntaxError, parse

__all__ = [
    "ExpositionParser",
    "ExpositionSyntaxError",
    "MetricType",
    "Sample",
    "SkippedLine",
    "parse",
]
