"""Canonical form and content hash of a graph.

Sort contract:
- Mapping keys are sorted at every nesting level, including inside `meta`.
- Nodes sort by id, subgraphs by id.
- Edges sort by (from, to, label), then type, then canonical meta text.
- Subgraph `nodeIds` keep their declared order.
- Tuples and lists both normalize to JSON lists; sets become sorted lists.
"""

import hashlib
import json
import logging
from typing import Any, Mapping

from ..ir.graph import Graph

logger = logging.getLogger(__name__)

PRIMITIVE_TYPES = (str, int, float, bool, type(None))


def canonical_value(value: Any) -> Any:
    """Recursively normalize a JSON-like value into a deterministic carrier."""
    if isinstance(value, PRIMITIVE_TYPES):
        return value
    if isinstance(value, Mapping):
        return {
            str(key): canonical_value(value[key])
            for key in sorted(value, key=str)
        }
    if isinstance(value, (list, tuple)):
        return [canonical_value(item) for item in value]
    if isinstance(value, (set, frozenset)):
        items = [canonical_value(item) for item in value]
        return sorted(items, key=_compact_text)
    raise TypeError(
        f"Cannot canonicalize value of type {type(value).__name__}"
    )


def _compact_text(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), sort_keys=True, ensure_ascii=False)


def canonicalize(graph: Graph) -> dict:
    """Return the canonical document form of `graph`."""
    document = graph.to_document()

    nodes = sorted(document["nodes"], key=lambda n: (n["id"], _compact_text(canonical_value(n))))
    edges = sorted(
        document["edges"],
        key=lambda e: (
            e["from"], e["to"], e["label"], e["type"],
            _compact_text(canonical_value(e["meta"])),
        ),
    )
    subgraphs = sorted(
        document["subgraphs"], key=lambda s: (s["id"], _compact_text(canonical_value(s)))
    )

    return canonical_value({
        "kind": document["kind"],
        "direction": document["direction"],
        "nodes": nodes,
        "edges": edges,
        "subgraphs": subgraphs,
    })


def canonical_bytes(graph: Graph) -> bytes:
    return _compact_text(canonicalize(graph)).encode("utf-8")


def content_hash(graph: Graph) -> str:
    """SHA-256 hex digest of the canonical form."""
    digest = hashlib.sha256(canonical_bytes(graph)).hexdigest()
    logger.debug(
        "content hash computed",
        extra={"content_hash": digest, "node_count": len(graph.nodes),
               "edge_count": len(graph.edges)},
    )
    return digest
