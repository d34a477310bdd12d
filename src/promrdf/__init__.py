"""promrdf: scrape annotated Kubernetes workloads into an RDF graph."""

__version__ = "0.3.0"
