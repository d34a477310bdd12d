"""
Durable graph store backed by SQLite.
"""

from .repository import GraphStore, ScanRecord

__all__ = [
    "GraphStore",
    "ScanRecord",
]
