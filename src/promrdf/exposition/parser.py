"""
Tolerant parser for the Prometheus text exposition format (0.0.4).

Yields flat samples lazily. ``# HELP`` and ``# TYPE`` metadata classify
metric families but are never emitted. A malformed line is logged,
counted and skipped; it never aborts the rest of the document.
"""

from __future__ import annotations

import io
import re
from typing import Iterator

import structlog

from promrdf.exposition.models import MetricType, Sample, SkippedLine

logger = structlog.get_logger()

_METRIC_NAME_RE = re.compile(r"[a-zA-Z_:][a-zA-Z0-9_:]*")
_LABEL_NAME_RE = re.compile(r"[a-zA-Z_][a-zA-Z0-9_]*")
_VALUE_RE = re.compile(r"[+-]?(?:inf|nan|(?:\d+\.?\d*|\.\d+)(?:e[+-]?\d+)?)", re.IGNORECASE)
_TIMESTAMP_RE = re.compile(r"-?\d+")

_ESCAPES = {"\\": "\\", '"': '"', "n": "\n"}

# Suffixes under which histogram and summary families expose their series
_FAMILY_SUFFIXES = {
    "_bucket": (MetricType.HISTOGRAM,),
    "_sum": (MetricType.HISTOGRAM, MetricType.SUMMARY),
    "_count": (MetricType.HISTOGRAM, MetricType.SUMMARY),
}


class ExpositionSyntaxError(ValueError):
    """Raised internally for a line that does not follow the grammar."""


class ExpositionParser:
    """
    Stateful parser for one exposition document.

    Each instance tracks the ``# TYPE`` declarations it has seen and the
    lines it had to skip. Instances are cheap; use one per scrape.

    Args:
        source: Optional label for log events (usually the scrape URL)
    """

    def __init__(self, source: str | None = None) -> None:
        self.source = source
        self.skipped: list[SkippedLine] = []
        self._types: dict[str, MetricType] = {}

    @property
    def skipped_lines(self) -> int:
        return len(self.skipped)

    def parse(self, text: str) -> Iterator[Sample]:
        """
        Lazily parse exposition text into samples.

        The returned iterator is single-use. ``skipped`` is complete once
        the iterator is exhausted.
        """
        for number, raw in enumerate(io.StringIO(text), start=1):
            line = raw.strip()
            if not line:
                continue
            try:
                if line.startswith("#"):
                    self._parse_comment(line)
                    continue
                sample = self._parse_sample(line)
            except ExpositionSyntaxError as exc:
                self._skip(number, str(exc))
                continue
            yield sample

    def family_type(self, name: str) -> MetricType:
        """Classify a sample name using the ``# TYPE`` lines seen so far."""
        declared = self._types.get(name)
        if declared is not None:
            return declared

        for suffix, allowed in _FAMILY_SUFFIXES.items():
            if name.endswith(suffix):
                base_type = self._types.get(name[: -len(suffix)])
                if base_type in allowed:
                    return base_type
        return MetricType.UNTYPED

    def _skip(self, line_number: int, reason: str) -> None:
        self.skipped.append(SkippedLine(line_number=line_number, reason=reason))
        logger.warning(
            "exposition_line_skipped",
            source=self.source,
            line_number=line_number,
            reason=reason,
        )

    def _parse_comment(self, line: str) -> None:
        parts = line[1:].split(None, 3)
        if not parts or parts[0] not in ("HELP", "TYPE"):
            return  # free-form comment

        keyword = parts[0]
        if len(parts) < 2 or not _METRIC_NAME_RE.fullmatch(parts[1]):
            raise ExpositionSyntaxError(f"malformed {keyword} line")

        if keyword == "HELP":
            return

        if len(parts) != 3:
            raise ExpositionSyntaxError("TYPE line must name exactly one type")
        try:
            metric_type = MetricType(parts[2])
        except ValueError:
            raise ExpositionSyntaxError(f"unknown metric type {parts[2]!r}") from None

        name = parts[1]
        previous = self._types.get(name)
        if previous is not None and previous is not metric_type:
            raise ExpositionSyntaxError(f"conflicting TYPE for {name}")
        self._types[name] = metric_type

    def _parse_sample(self, line: str) -> Sample:
        match = _METRIC_NAME_RE.match(line)
        if match is None:
            raise ExpositionSyntaxError("invalid metric name")
        name = match.group()
        pos = _skip_spaces(line, match.end())

        labels: dict[str, str] = {}
        if pos < len(line) and line[pos] == "{":
            labels, pos = _parse_labels(line, pos + 1)
        elif pos == match.end():
            raise ExpositionSyntaxError("expected whitespace after metric name")

        fields = line[pos:].split()
        if not fields:
            raise ExpositionSyntaxError("missing sample value")
        if len(fields) > 2:
            raise ExpositionSyntaxError("unexpected trailing tokens")

        value = _parse_value(fields[0])
        timestamp = None
        if len(fields) == 2:
            if not _TIMESTAMP_RE.fullmatch(fields[1]):
                raise ExpositionSyntaxError(f"invalid timestamp {fields[1]!r}")
            timestamp = int(fields[1])

        family_type = self.family_type(name)
        if family_type is MetricType.HISTOGRAM and name.endswith("_bucket") and "le" not in labels:
            raise ExpositionSyntaxError("histogram bucket without 'le' label")

        return Sample(
            name=name,
            labels=labels,
            value=value,
            timestamp=timestamp,
            family_type=family_type,
        )


def parse(text: str, source: str | None = None) -> Iterator[Sample]:
    """Parse exposition text with a fresh parser."""
    return ExpositionParser(source).parse(text)


def _skip_spaces(line: str, pos: int) -> int:
    while pos < len(line) and line[pos] in " \t":
        pos += 1
    return pos


def _parse_labels(line: str, pos: int) -> tuple[dict[str, str], int]:
    """Parse a label set starting just after ``{``; return labels and the position after ``}``."""
    labels: dict[str, str] = {}
    while True:
        pos = _skip_spaces(line, pos)
        if pos >= len(line):
            raise ExpositionSyntaxError("unterminated label set")
        if line[pos] == "}":
            return labels, pos + 1

        match = _LABEL_NAME_RE.match(line, pos)
        if match is None:
            raise ExpositionSyntaxError("invalid label name")
        label_name = match.group()

        pos = _skip_spaces(line, match.end())
        if pos >= len(line) or line[pos] != "=":
            raise ExpositionSyntaxError(f"expected '=' after label {label_name}")
        pos = _skip_spaces(line, pos + 1)
        if pos >= len(line) or line[pos] != '"':
            raise ExpositionSyntaxError(f"expected quoted value for label {label_name}")

        label_value, pos = _read_quoted(line, pos + 1)
        if label_name in labels:
            raise ExpositionSyntaxError(f"duplicate label {label_name}")
        labels[label_name] = label_value

        pos = _skip_spaces(line, pos)
        if pos < len(line) and line[pos] == ",":
            pos += 1
            continue
        if pos < len(line) and line[pos] == "}":
            return labels, pos + 1
        raise ExpositionSyntaxError("expected ',' or '}' in label set")


def _read_quoted(line: str, pos: int) -> tuple[str, int]:
    """Read an escaped label value starting after the opening quote."""
    chars: list[str] = []
    while pos < len(line):
        ch = line[pos]
        if ch == '"':
            return "".join(chars), pos + 1
        if ch == "\\" and pos + 1 < len(line):
            nxt = line[pos + 1]
            # Unknown escapes are kept verbatim
            chars.append(_ESCAPES.get(nxt, "\\" + nxt))
            pos += 2
            continue
        chars.append(ch)
        pos += 1
    raise ExpositionSyntaxError("unterminated label value")


def _parse_value(token: str) -> float:
    if not _VALUE_RE.fullmatch(token):
        raise ExpositionSyntaxError(f"invalid sample value {token!r}")
    return float(token)
