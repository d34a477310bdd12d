"""
RDF text serializers: N-Triples and Turtle.
"""

from .escaping import escape_iri, escape_literal
from .ntriples import serialize_ntriples, write_ntriples
from .turtle import default_prefixes, serialize_turtle, write_turtle

__all__ = [
    "default_prefixes",
    "escape_iri",
    "escape_literal",
    "serialize_ntriples",
    "serialize_turtle",
    "write_ntriples",
    "write_turtle",
]
