"""
Mapping of scraped samples to graph statements.

Identifiers are pure functions of their inputs:

- subject:   ``workload_base + namespace/workload``
- predicate: ``metric_base + metric name``
- instance:  ``subject/metric?label=value&...`` for labeled samples

Every path segment and label is percent-escaped, so the identifiers are
valid absolute IRIs whatever the workload or label contents.
"""

from __future__ import annotations

from typing import Iterable, Iterator
from urllib.parse import quote, urlencode

from promrdf.discovery.models import Target
from promrdf.exposition.models import Sample
from promrdf.graph import vocabulary as vocab
from promrdf.graph.model import IRI, Literal, Statement, label_set


def _escape(segment: str) -> str:
    return quote(segment, safe="")


class GraphBuilder:
    """
    Build statements for (target, sample) pairs.

    Args:
        workload_base: Base IRI for workload subjects
        metric_base: Vocabulary base IRI for metric predicates
    """

    def __init__(
        self,
        workload_base: str = vocab.DEFAULT_WORKLOAD_BASE,
        metric_base: str = vocab.DEFAULT_METRIC_BASE,
    ) -> None:
        self.workload_base = workload_base
        self.metric_base = metric_base

    def subject_for(self, namespace: str, workload: str) -> IRI:
        return IRI(f"{self.workload_base}{_escape(namespace)}/{_escape(workload)}")

    def predicate_for(self, metric_name: str) -> IRI:
        return IRI(self.metric_base + _escape(metric_name))

    def instance_for(self, subject: IRI, sample: Sample) -> IRI:
        """Synthetic identifier for one label combination of one metric."""
        query = urlencode(label_set(sample.labels), quote_via=quote, safe="")
        return IRI(f"{subject.value}/{_escape(sample.name)}?{query}")

    def map(self, target: Target, sample: Sample) -> list[Statement]:
        """
        Map one sample of one target to statements.

        An unlabeled sample becomes a single value statement on the workload
        subject. A labeled sample hangs off a synthetic instance node so that
        distinct label combinations never collapse onto one key::

            <workload> prv:hasSample <instance>
            <instance> metric:<name> "value"^^xsd:double
            <instance> prv:hasLabel "name=value"^^prv:LabelPair   (one per label)
        """
        subject = self.subject_for(target.namespace, target.name)
        predicate = self.predicate_for(sample.name)
        labels = label_set(sample.labels)
        value = Literal.double(sample.value)

        if not labels:
            return [Statement(subject, predicate, value, timestamp=sample.timestamp)]

        instance = self.instance_for(subject, sample)
        statements = [
            Statement(subject, IRI(vocab.HAS_SAMPLE), instance),
            Statement(instance, predicate, value, labels=labels, timestamp=sample.timestamp),
        ]
        statements.extend(
            Statement(instance, IRI(vocab.HAS_LABEL), Literal.label_pair(name, label_value))
            for name, label_value in labels
        )
        return statements

    def describe(self, target: Target) -> list[Statement]:
        """Statements describing the workload itself."""
        subject = self.subject_for(target.namespace, target.name)
        statements = [
            Statement(subject, IRI(vocab.RDF_TYPE), IRI(vocab.WORKLOAD_CLASS)),
            Statement(subject, IRI(vocab.NAMESPACE), Literal(target.namespace)),
            Statement(subject, IRI(vocab.WORKLOAD_NAME), Literal(target.name)),
        ]
        if target.owner_kind:
            statements.append(Statement(subject, IRI(vocab.OWNER_KIND), Literal(target.owner_kind)))
        return statements

    def build(self, target: Target, samples: Iterable[Sample]) -> Iterator[Statement]:
        """Description plus mapped statements for every sample of a target."""
        yield from self.describe(target)
        for sample in samples:
            yield from self.map(target, sample)
