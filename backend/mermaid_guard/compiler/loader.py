"""
Load pre-assembled graph documents.

Unlike GraphBuilder, loading performs no invariant checks: duplicate ids,
dangling edges and budget overruns are left for the validator so that a
single pass can report all of them. Only documents that are not graphs at
all (missing `nodes`/`edges`, wrong field types) are rejected here.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import ValidationError

from ..ir.errors import (
    DocumentReadError,
    MalformedDocumentError,
    describe_validation_error,
)
from ..ir.graph import Graph
from ..ir.snapshot import AstSnapshot
from .canonical import content_hash

logger = logging.getLogger(__name__)

REQUIRED_KEYS = ("nodes", "edges")
BUDGET_KEYS = ("maxNodes", "maxEdges", "maxDepth")


@dataclass(frozen=True)
class LoadedDocument:
    graph: Graph
    # Effective budgets: embedded document budgets overridden by the caller's.
    budgets: Dict[str, int] = field(default_factory=dict)


def _unwrap(document: Any) -> Mapping[str, Any]:
    if not isinstance(document, Mapping):
        raise MalformedDocumentError(
            "Graph document must be a JSON object",
            [f"expected object, got {type(document).__name__}"],
        )
    inner = document.get("graph", document)
    if not isinstance(inner, Mapping):
        raise MalformedDocumentError(
            "'graph' must be a JSON object",
            [f"graph: expected object, got {type(inner).__name__}"],
        )
    return inner


def _merge_budgets(document: Any, budgets: Optional[Mapping[str, Any]]) -> Dict[str, int]:
    merged: Dict[str, int] = {}
    embedded = document.get("budgets") if isinstance(document, Mapping) else None
    for source in (embedded or {}, budgets or {}):
        for key in BUDGET_KEYS:
            value = source.get(key)
            if value is None:
                continue
            try:
                merged[key] = int(value)
            except (TypeError, ValueError) as exc:
                raise MalformedDocumentError(
                    f"Budget '{key}' must be an integer",
                    [f"budgets.{key}: expected integer, got {value!r}"],
                ) from exc
    return merged


def load_graph(document: Any, budgets: Optional[Mapping[str, Any]] = None) -> LoadedDocument:
    """Turn a JSON value into an immutable Graph without structural checks.

    `document` is either a graph object or `{graph: {...}, budgets?: {...}}`.
    Caller-supplied `budgets` win over budgets embedded in the document.
    """
    inner = _unwrap(document)

    missing = [key for key in REQUIRED_KEYS if key not in inner]
    if missing:
        raise MalformedDocumentError(
            f"Graph document is missing required field(s): {', '.join(missing)}",
            [f"{key}: field required" for key in missing],
        )

    try:
        graph = Graph.model_validate(dict(inner))
    except ValidationError as exc:
        problems = describe_validation_error(exc, root="graph")
        raise MalformedDocumentError(
            f"Graph document failed schema checks ({len(problems)} problem(s))",
            problems,
        ) from exc

    effective = _merge_budgets(document, budgets)
    logger.debug(
        "graph document loaded",
        extra={"node_count": len(graph.nodes), "edge_count": len(graph.edges)},
    )
    return LoadedDocument(graph=graph, budgets=effective)


def load_snapshot(document: Any) -> AstSnapshot:
    """Load a stored `{graph, contentHash, tier, capturedAt?}` snapshot.

    The graph goes through load_graph, so a snapshot holding something that
    is not a graph fails the same way a new document would. A missing hash
    is recomputed; a stored hash that disagrees with the graph is logged
    and replaced by the recomputed one.
    """
    if not isinstance(document, Mapping):
        raise MalformedDocumentError(
            "Snapshot must be a JSON object",
            [f"expected object, got {type(document).__name__}"],
        )
    graph_doc = document.get("graph", document.get("ast"))
    if graph_doc is None:
        raise MalformedDocumentError("Snapshot is missing 'graph'", ["graph: field required"])
    graph = load_graph(graph_doc).graph

    recomputed = content_hash(graph)
    stored = document.get("contentHash") or document.get("hash")
    if stored and stored != recomputed:
        logger.warning(
            "stored snapshot hash %s does not match recomputed %s", stored, recomputed,
            extra={"content_hash": recomputed},
        )

    payload = {"graph": graph, "contentHash": recomputed,
               "tier": document.get("tier") or "T1"}
    if document.get("capturedAt"):
        payload["capturedAt"] = document["capturedAt"]
    try:
        return AstSnapshot.model_validate(payload)
    except ValidationError as exc:
        problems = describe_validation_error(exc, root="snapshot")
        raise MalformedDocumentError("Snapshot failed schema checks", problems) from exc


def read_json(path: Union[str, Path]) -> Any:
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise DocumentReadError(f"Failed to read {path}: {exc}", {"path": str(path)}) from exc
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise DocumentReadError(
            f"Failed to parse JSON in {path}: {exc}", {"path": str(path)}
        ) from exc


def load_graph_file(
    path: Union[str, Path], budgets: Optional[Mapping[str, Any]] = None
) -> LoadedDocument:
    return load_graph(read_json(path), budgets)
