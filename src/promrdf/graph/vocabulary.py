"""
Fixed vocabulary terms used by the metric graph.
"""

from __future__ import annotations

XSD = "http://www.w3.org/2001/XMLSchema#"
RDF = "http://www.w3.org/1999/02/22-rdf-syntax-ns#"
PRV = "https://promrdf.dev/vocab#"

DEFAULT_WORKLOAD_BASE = "https://promrdf.dev/workload/"
DEFAULT_METRIC_BASE = "https://promrdf.dev/metric/"

XSD_DOUBLE = XSD + "double"
XSD_STRING = XSD + "string"
RDF_TYPE = RDF + "type"

# Workload description
WORKLOAD_CLASS = PRV + "Workload"
NAMESPACE = PRV + "namespace"
WORKLOAD_NAME = PRV + "workloadName"
OWNER_KIND = PRV + "ownerKind"

# Labeled sample instances
HAS_SAMPLE = PRV + "hasSample"
HAS_LABEL = PRV + "hasLabel"
LABEL_PAIR = PRV + "LabelPair"
