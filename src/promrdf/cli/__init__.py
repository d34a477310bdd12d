"""
CLI commands for promrdf.
"""

from promrdf.cli.export import export_triples_command, export_turtle_command
from promrdf.cli.report import report_command
from promrdf.cli.scan import scan_metrics_command

__all__ = [
    "export_triples_command",
    "export_turtle_command",
    "report_command",
    "scan_metrics_command",
]
