"""
Graph data model: identifiers, literals, statements and the upsert graph.

A statement's merge key is ``(subject, predicate, discriminator)``. For
measurement statements (``xsd:double`` objects) the discriminator is the
sample's label set, so a re-scrape replaces the value and timestamp. For
every other statement the discriminator is the object itself, which makes
those statements idempotent by triple.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Iterator, Mapping, Union
from urllib.parse import urlencode

from promrdf.graph.vocabulary import LABEL_PAIR, XSD_DOUBLE, XSD_STRING

LabelSet = tuple[tuple[str, str], ...]
StatementKey = tuple[str, str, str]


def label_set(labels: Mapping[str, str]) -> LabelSet:
    """Canonical, order-independent form of a label mapping."""
    return tuple(sorted(labels.items()))


def format_double(value: float) -> str:
    """Lexical form of an ``xsd:double``."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "INF" if value > 0 else "-INF"
    return repr(float(value))


@dataclass(frozen=True, order=True)
class IRI:
    """An absolute resource identifier."""

    value: str

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, order=True)
class Literal:
    """A typed literal value."""

    lexical: str
    datatype: str = XSD_STRING

    @classmethod
    def double(cls, value: float) -> Literal:
        return cls(format_double(value), XSD_DOUBLE)

    @classmethod
    def label_pair(cls, name: str, value: str) -> Literal:
        return cls(f"{name}={value}", LABEL_PAIR)

    @property
    def is_double(self) -> bool:
        return self.datatype == XSD_DOUBLE

    def __str__(self) -> str:
        return self.lexical


Term = Union[IRI, Literal]


@dataclass(frozen=True)
class Statement:
    """One subject-predicate-object fact plus its mutable payload."""

    subject: IRI
    predicate: IRI
    object: Term
    labels: LabelSet = ()
    timestamp: int | None = None  # milliseconds since epoch

    @property
    def is_measurement(self) -> bool:
        return isinstance(self.object, Literal) and self.object.is_double

    @property
    def merge_key(self) -> str:
        if self.is_measurement:
            return "labels:" + urlencode(self.labels)
        if isinstance(self.object, IRI):
            return "iri:" + self.object.value
        return f"literal:{self.object.datatype}:{self.object.lexical}"

    @property
    def key(self) -> StatementKey:
        return (self.subject.value, self.predicate.value, self.merge_key)

    @property
    def triple(self) -> tuple[IRI, IRI, Term]:
        return (self.subject, self.predicate, self.object)


class Graph:
    """
    A set of statements with upsert semantics.

    Never holds two statements with the same key, nor two statements with
    the same ``(subject, predicate, object)`` triple. Iteration order is
    sorted by key, so serializations are deterministic.
    """

    def __init__(self, statements: Iterable[Statement] = ()) -> None:
        self._statements: dict[StatementKey, Statement] = {}
        self._keys_by_triple: dict[tuple[IRI, IRI, Term], StatementKey] = {}
        self.update(statements)

    def upsert(self, statement: Statement) -> bool:
        """Insert or replace by key. Returns True if the key was new."""
        key = statement.key
        previous = self._statements.get(key)
        if previous is not None:
            self._keys_by_triple.pop(previous.triple, None)

        clashing = self._keys_by_triple.get(statement.triple)
        if clashing is not None and clashing != key:
            del self._statements[clashing]

        self._statements[key] = statement
        self._keys_by_triple[statement.triple] = key
        return previous is None

    def update(self, statements: Iterable[Statement]) -> None:
        for statement in statements:
            self.upsert(statement)

    def measurement(
        self, subject: IRI, predicate: IRI, labels: Mapping[str, str] | None = None
    ) -> Statement | None:
        """Look up the value statement for a (subject, predicate, label set) key."""
        merge_key = "labels:" + urlencode(label_set(labels or {}))
        return self._statements.get((subject.value, predicate.value, merge_key))

    def subjects(self) -> list[IRI]:
        return sorted({statement.subject for statement in self._statements.values()})

    def triples(self) -> set[tuple[IRI, IRI, Term]]:
        return set(self._keys_by_triple)

    def by_subject(self) -> dict[IRI, list[Statement]]:
        """Statements grouped by subject, both in sorted order."""
        grouped: dict[IRI, list[Statement]] = {}
        for statement in self:
            grouped.setdefault(statement.subject, []).append(statement)
        return grouped

    def copy(self) -> Graph:
        return Graph(self._statements.values())

    def __iter__(self) -> Iterator[Statement]:
        for key in sorted(self._statements):
            yield self._statements[key]

    def __len__(self) -> int:
        return len(self._statements)

    def __contains__(self, item: object) -> bool:
        if isinstance(item, Statement):
            return self._statements.get(item.key) == item
        return item in self._keys_by_triple

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Graph):
            return NotImplemented
        return self._statements == other._statements

    def __repr__(self) -> str:
        return f"Graph(statements={len(self)})"


def merge(existing: Graph, incoming: Iterable[Statement]) -> Graph:
    """Return a new graph with ``incoming`` upserted over ``existing``."""
    merged = existing.copy()
    merged.update(incoming)
    return merged
