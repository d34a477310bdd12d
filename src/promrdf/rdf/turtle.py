"""
Turtle writer.

Prefixes are declared once at the top, statements are grouped by subject
and repeated subjects are abbreviated with ``;``. Terms fall back to full
``<IRI>`` form whenever a prefixed name would not be a safe ``PN_LOCAL``,
so the output always re-parses to the same statement set.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Sequence

from promrdf.graph import vocabulary as vocab
from promrdf.graph.model import IRI, Graph, Term
from promrdf.rdf.escaping import escape_literal, iri_ref

_SAFE_LOCAL_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

INDENT = "    "


def default_prefixes(metric_base: str = vocab.DEFAULT_METRIC_BASE) -> list[tuple[str, str]]:
    return [
        ("metric", metric_base),
        ("prv", vocab.PRV),
        ("rdf", vocab.RDF),
        ("xsd", vocab.XSD),
    ]


class _TermWriter:
    def __init__(self, prefixes: Sequence[tuple[str, str]]) -> None:
        # Longest namespace first so nested bases pick the most specific prefix
        self._prefixes = sorted(prefixes, key=lambda item: len(item[1]), reverse=True)

    def iri(self, value: str) -> str:
        for prefix, namespace in self._prefixes:
            if value.startswith(namespace):
                local = value[len(namespace) :]
                if _SAFE_LOCAL_RE.fullmatch(local):
                    return f"{prefix}:{local}"
        return iri_ref(value)

    def predicate(self, predicate: IRI) -> str:
        if predicate.value == vocab.RDF_TYPE:
            return "a"
        return self.iri(predicate.value)

    def term(self, term: Term) -> str:
        if isinstance(term, IRI):
            return self.iri(term.value)
        return f'"{escape_literal(term.lexical)}"^^{self.iri(term.datatype)}'


def serialize_turtle(
    graph: Graph,
    prefixes: Sequence[tuple[str, str]] | None = None,
) -> str:
    """
    Serialize a graph as Turtle.

    Args:
        graph: Graph to render
        prefixes: ``(prefix, namespace)`` pairs; defaults to metric/prv/rdf/xsd

    Returns:
        Turtle document text
    """
    prefixes = list(prefixes) if prefixes is not None else default_prefixes()
    writer = _TermWriter(prefixes)

    lines: list[str] = [
        f"@prefix {prefix}: {iri_ref(namespace)} ." for prefix, namespace in prefixes
    ]

    for subject, statements in graph.by_subject().items():
        lines.append("")
        lines.append(writer.iri(subject.value))
        last = len(statements) - 1
        for index, statement in enumerate(statements):
            terminator = " ." if index == last else " ;"
            lines.append(
                f"{INDENT}{writer.predicate(statement.predicate)} "
                f"{writer.term(statement.object)}{terminator}"
            )

    return "\n".join(lines) + "\n"


def write_turtle(
    graph: Graph,
    path: str | Path,
    prefixes: Sequence[tuple[str, str]] | None = None,
) -> int:
    """Write a graph to ``path`` as UTF-8 Turtle. Returns the statement count."""
    Path(path).write_text(serialize_turtle(graph, prefixes), encoding="utf-8", newline="\n")
    return len(graph)
