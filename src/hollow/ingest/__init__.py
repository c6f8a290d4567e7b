"""Graph and probe payload ingestion for hollow."""

from hollow.ingest.json_payload import (
    JsonGraphProvider,
    JsonUsageSearch,
    graph_from_payload,
    graph_to_payload,
    probes_from_payload,
    write_graph_payload,
)

__all__ = [
    "JsonGraphProvider",
    "JsonUsageSearch",
    "graph_from_payload",
    "graph_to_payload",
    "probes_from_payload",
    "write_graph_payload",
]
