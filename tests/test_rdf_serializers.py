"""Tests for N-Triples and Turtle serialization."""

import rdflib
from promrdf.discovery import Target
from promrdf.exposition import Sample
from promrdf.graph import IRI, Graph, GraphBuilder, Literal, Statement
from promrdf.graph import vocabulary as vocab
from promrdf.rdf import (
    default_prefixes,
    escape_iri,
    escape_literal,
    serialize_ntriples,
    serialize_turtle,
    write_ntriples,
    write_turtle,
)

TARGET = Target("shop", "checkout-7d9f", "10.0.3.17", 8081, owner_kind="ReplicaSet")


def sample_graph():
    samples = [
        Sample("jvm_threads_live", {}, 42),
        Sample("http_requests_total", {"method": "post", "code": "200"}, 1027, 1395066363000),
        Sample("http_requests_total", {"method": "post", "code": "400"}, 3),
        Sample("weird:metric-name", {"path": 'a "quoted"\nvalue\\x'}, float("nan")),
        Sample("bounds", {"le": "+Inf"}, float("inf")),
    ]
    return Graph(GraphBuilder().build(TARGET, samples))


def to_rdflib(graph):
    """Expected triple set, built through rdflib's own term constructors."""

    def term(t):
        if isinstance(t, IRI):
            return rdflib.URIRef(t.value)
        return rdflib.Literal(t.lexical, datatype=rdflib.URIRef(t.datatype))

    return {(term(s), term(p), term(o)) for s, p, o in graph.triples()}


class TestEscaping:
    """Escaping is total."""

    def test_iri_percent_encodes_forbidden_characters(self):
        """Test characters not allowed in IRIs are percent-encoded."""
        assert escape_iri("urn:x:a b<c>") == "urn:x:a%20b%3Cc%3E"
        assert escape_iri('urn:x:{"|^`\\}') == "urn:x:%7B%22%7C%5E%60%5C%7D"

    def test_iri_keeps_unicode(self):
        """Test non-ASCII IRI characters are kept."""
        assert escape_iri("urn:x:café") == "urn:x:café"

    def test_iri_replaces_lone_surrogate(self):
        """Test lone surrogates are replaced in IRIs."""
        assert escape_iri("urn:x:\ud800") == "urn:x:\ufffd"

    def test_literal_echars(self):
        """Test literal escape sequences."""
        assert escape_literal('a"b\\c\nd\re\tf') == 'a\\"b\\\\c\\nd\\re\\tf'

    def test_literal_control_characters(self):
        """Test control characters in literals use unicode escapes."""
        assert escape_literal("\x00\x1f\x7f") == "\\u0000\\u001F\\u007F"


class TestNTriples:
    """Tests for the N-Triples writer."""

    def test_line_format(self):
        """Test the N-Triples line format."""
        graph = Graph(
            [
                Statement(
                    IRI("https://promrdf.dev/workload/shop/checkout-7d9f"),
                    IRI("https://promrdf.dev/metric/jvm_threads_live"),
                    Literal.double(42),
                )
            ]
        )

        assert serialize_ntriples(graph) == (
            "<https://promrdf.dev/workload/shop/checkout-7d9f> "
            "<https://promrdf.dev/metric/jvm_threads_live> "
            '"42.0"^^<http://www.w3.org/2001/XMLSchema#double> .\n'
        )

    def test_one_line_per_statement(self):
        """Test one line is written per statement."""
        graph = sample_graph()

        lines = serialize_ntriples(graph).splitlines()

        assert len(lines) == len(graph)
        assert all(line.endswith(" .") for line in lines)

    def test_deterministic(self):
        """Test N-Triples output is deterministic."""
        assert serialize_ntriples(sample_graph()) == serialize_ntriples(sample_graph())

    def test_empty_graph(self):
        """Test an empty graph serializes to nothing."""
        assert serialize_ntriples(Graph()) == ""

    def test_parses_with_rdflib(self):
        """Test N-Triples output parses with rdflib."""
        graph = sample_graph()

        parsed = rdflib.Graph().parse(data=serialize_ntriples(graph), format="nt")

        assert set(parsed) == to_rdflib(graph)

    def test_write_file(self, tmp_path):
        """Test writing N-Triples to a file."""
        path = tmp_path / "metrics.nt"

        count = write_ntriples(sample_graph(), path)

        assert count == len(sample_graph())
        data = path.read_bytes()
        assert b"\r\n" not in data
        assert data.decode("utf-8") == serialize_ntriples(sample_graph())


class TestTurtle:
    """Tests for the Turtle writer."""

    def test_prefixes_declared_once_at_top(self):
        """Test prefixes are declared once before any statement."""
        text = serialize_turtle(sample_graph())
        lines = text.splitlines()

        assert lines[:4] == [
            "@prefix metric: <https://promrdf.dev/metric/> .",
            "@prefix prv: <https://promrdf.dev/vocab#> .",
            "@prefix rdf: <http://www.w3.org/1999/02/22-rdf-syntax-ns#> .",
            "@prefix xsd: <http://www.w3.org/2001/XMLSchema#> .",
        ]
        assert text.count("@prefix") == 4

    def test_subject_grouping(self):
        """Test statements are grouped by subject."""
        text = serialize_turtle(sample_graph())

        subject = "<https://promrdf.dev/workload/shop/checkout-7d9f>"
        assert text.count(f"\n{subject}\n") == 1
        assert "    a prv:Workload ;" in text
        assert "    metric:jvm_threads_live \"42.0\"^^xsd:double ;" in text

    def test_unsafe_local_names_use_full_iri(self):
        """Test unsafe local names fall back to full IRIs."""
        text = serialize_turtle(sample_graph())

        assert "<https://promrdf.dev/metric/weird%3Ametric-name>" in text

    def test_round_trip_with_rdflib(self):
        """Test Turtle output re-parses to the same graph."""
        graph = sample_graph()

        parsed = rdflib.Graph().parse(data=serialize_turtle(graph), format="turtle")

        assert set(parsed) == to_rdflib(graph)
        assert len(parsed) == len(graph)

    def test_round_trip_with_custom_metric_base(self):
        """Test Turtle round trip with a custom metric base."""
        builder = GraphBuilder(metric_base="https://example.org/m/")
        graph = Graph(builder.build(TARGET, [Sample("up", {}, 1)]))

        text = serialize_turtle(graph, default_prefixes("https://example.org/m/"))
        parsed = rdflib.Graph().parse(data=text, format="turtle")

        assert "metric:up" in text
        assert set(parsed) == to_rdflib(graph)

    def test_matches_ntriples(self):
        """Test Turtle and N-Triples describe the same statements."""
        graph = sample_graph()

        from_turtle = rdflib.Graph().parse(data=serialize_turtle(graph), format="turtle")
        from_nt = rdflib.Graph().parse(data=serialize_ntriples(graph), format="nt")

        assert set(from_turtle) == set(from_nt)

    def test_empty_graph_has_only_prefixes(self):
        """Test an empty graph renders only prefixes."""
        lines = serialize_turtle(Graph()).splitlines()

        assert len(lines) == 4
        assert len(rdflib.Graph().parse(data="\n".join(lines), format="turtle")) == 0

    def test_write_file(self, tmp_path):
        """Test writing Turtle to a file."""
        path = tmp_path / "metrics.ttl"

        count = write_turtle(sample_graph(), path)

        assert count == len(sample_graph())
        assert path.read_text(encoding="utf-8") == serialize_turtle(sample_graph())

    def test_rdf_type_uses_keyword(self):
        """Test rdf:type is written as "a"."""
        graph = Graph(
            [Statement(IRI("urn:x:w"), IRI(vocab.RDF_TYPE), IRI(vocab.WORKLOAD_CLASS))]
        )

        assert "    a prv:Workload ." in serialize_turtle(graph)
