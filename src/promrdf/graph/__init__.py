"""
Statement graph: data model, identifier construction and upsert merge.
"""

from .builder import GraphBuilder
from .model import IRI, Graph, LabelSet, Literal, Statement, Term, label_set, merge

__all__ = [
    "Graph",
    "GraphBuilder",
    "IRI",
    "LabelSet",
    "Literal",
    "Statement",
    "Term",
    "label_set",
    "merge",
]
