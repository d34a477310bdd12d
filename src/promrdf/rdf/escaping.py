"""
Escaping shared by the N-Triples and Turtle writers.

Both functions are total: every input string has a valid rendering, so
serialization never fails because of content.
"""

from __future__ import annotations

# Characters excluded from IRIREF besides the 0x00-0x20 range
_IRI_FORBIDDEN = frozenset('<>"{}|^`\\')

_ECHAR = {
    '"': '\\"',
    "\\": "\\\\",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\b": "\\b",
    "\f": "\\f",
}

_REPLACEMENT = "\ufffd"


def _is_surrogate(code: int) -> bool:
    return 0xD800 <= code <= 0xDFFF


def escape_iri(value: str) -> str:
    """Percent-encode every character that may not appear inside ``<...>``."""
    out: list[str] = []
    for ch in value:
        code = ord(ch)
        if _is_surrogate(code):
            ch, code = _REPLACEMENT, ord(_REPLACEMENT)
        if code <= 0x20 or ch in _IRI_FORBIDDEN:
            out.append("".join(f"%{byte:02X}" for byte in ch.encode("utf-8")))
        else:
            out.append(ch)
    return "".join(out)


def escape_literal(value: str) -> str:
    """Escape a string for a double-quoted literal."""
    out: list[str] = []
    for ch in value:
        escaped = _ECHAR.get(ch)
        if escaped is not None:
            out.append(escaped)
            continue
        code = ord(ch)
        if code < 0x20 or code == 0x7F:
            out.append(f"\\u{code:04X}")
        elif _is_surrogate(code):
            out.append(_REPLACEMENT)
        else:
            out.append(ch)
    return "".join(out)


def iri_ref(value: str) -> str:
    return f"<{escape_iri(value)}>"
