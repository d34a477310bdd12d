"""
Scan sessions: discovery, concurrent scraping and one atomic commit.
"""

from .session import CancelPolicy, ScanReport, ScanSession, TargetResult

__all__ = [
    "CancelPolicy",
    "ScanReport",
    "ScanSession",
    "TargetResult",
]
