"""
N-Triples writer.

One ``<subject> <predicate> <object> .`` line per statement, no
abbreviation, every literal with an explicit datatype.
"""

from __future__ import annotations

from pathlib import Path

from promrdf.graph.model import IRI, Graph, Statement, Term
from promrdf.rdf.escaping import escape_literal, iri_ref


def format_term(term: Term) -> str:
    if isinstance(term, IRI):
        return iri_ref(term.value)
    return f'"{escape_literal(term.lexical)}"^^{iri_ref(term.datatype)}'


def format_statement(statement: Statement) -> str:
    return (
        f"{iri_ref(statement.subject.value)} "
        f"{iri_ref(statement.predicate.value)} "
        f"{format_term(statement.object)} ."
    )


def serialize_ntriples(graph: Graph) -> str:
    """Serialize a graph as N-Triples, sorted by statement key."""
    return "".join(format_statement(statement) + "\n" for statement in graph)


def write_ntriples(graph: Graph, path: str | Path) -> int:
    """Write a graph to ``path`` as UTF-8 N-Triples. Returns the statement count."""
    target = Path(path)
    with target.open("w", encoding="utf-8", newline="\n") as f:
        for statement in graph:
            f.write(format_statement(statement))
            f.write("\n")
    return len(graph)
