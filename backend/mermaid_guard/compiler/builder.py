"""
Incremental, fail-fast graph construction.

Every mutation is checked the moment it happens and raises StructuralError;
a rejected mutation leaves the builder untouched. build() freezes the
current state into an immutable Graph.

Usage:
    graph = (
        GraphBuilder(max_nodes=10)
        .add_node({"id": "A", "label": "Start"})
        .add_node({"id": "B", "shape": "rhombus"})
        .add_edge({"from": "A", "to": "B", "label": "next"})
        .build()
    )
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import ValidationError

from ..ir.errors import StructuralError, describe_validation_error
from ..ir.graph import (
    ALLOWED_DIRECTIONS,
    ALLOWED_EDGE_TYPES,
    ALLOWED_SHAPES,
    Edge,
    Graph,
    Node,
    Subgraph,
    normalize_direction,
)

logger = logging.getLogger(__name__)

NodeInput = Union[Node, Mapping[str, Any]]
EdgeInput = Union[Edge, Mapping[str, Any]]
SubgraphInput = Union[Subgraph, Mapping[str, Any]]

# Input keys accepted for each field, camelCase first.
_SOURCE_KEYS = ("from", "source")
_TARGET_KEYS = ("to", "target")
_NODE_IDS_KEYS = ("nodeIds", "node_ids", "nodes")


def _first(data: Mapping[str, Any], keys, default=None):
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return default


class GraphBuilder:
    def __init__(
        self,
        max_nodes: int = 80,
        max_edges: int = 120,
        max_subgraphs: Optional[int] = None,
        direction: str = "TD",
    ):
        self.max_nodes = max_nodes
        self.max_edges = max_edges
        self.max_subgraphs = max_subgraphs
        self._direction = "TD"
        self._nodes: Dict[str, Node] = {}
        self._edges: List[Edge] = []
        self._subgraphs: Dict[str, Subgraph] = {}
        self.set_direction(direction)

    @classmethod
    def from_profile(cls, profile, direction: str = "TD") -> "GraphBuilder":
        return cls(
            max_nodes=profile.max_nodes,
            max_edges=profile.max_edges,
            max_subgraphs=profile.max_subgraphs,
            direction=direction,
        )

    # -------------------------
    # Mutations
    # -------------------------

    def add_node(self, node: NodeInput) -> "GraphBuilder":
        data = node.model_dump(by_alias=True) if isinstance(node, Node) else dict(node)
        node_id = data.get("id")
        shape = data.get("shape") or "rect"

        if not isinstance(node_id, str) or not node_id:
            raise StructuralError("Node must have a non-empty string id")
        if node_id in self._nodes:
            raise StructuralError(f"Duplicate node id '{node_id}'", {"node_id": node_id})
        if shape not in ALLOWED_SHAPES:
            raise StructuralError(
                f"Unsupported node shape '{shape}' on node '{node_id}'",
                {"node_id": node_id, "shape": shape},
            )
        if len(self._nodes) + 1 > self.max_nodes:
            raise StructuralError(
                f"Node budget exceeded (maxNodes={self.max_nodes})",
                {"node_id": node_id, "max_nodes": self.max_nodes},
            )

        data["shape"] = shape
        self._nodes[node_id] = self._construct(Node, data, f"node '{node_id}'")
        return self

    def add_edge(self, edge: EdgeInput) -> "GraphBuilder":
        data = edge.model_dump(by_alias=True) if isinstance(edge, Edge) else dict(edge)
        source = _first(data, _SOURCE_KEYS)
        target = _first(data, _TARGET_KEYS)
        edge_type = data.get("type") or "arrow"

        if not source or not target:
            raise StructuralError("Edge must have 'from' and 'to'")
        if source not in self._nodes or target not in self._nodes:
            raise StructuralError(
                f"Edge references unknown nodes: {source} -> {target}",
                {"from": source, "to": target},
            )
        if edge_type not in ALLOWED_EDGE_TYPES:
            raise StructuralError(
                f"Unsupported edge type '{edge_type}' on {source} -> {target}",
                {"type": edge_type},
            )
        if len(self._edges) + 1 > self.max_edges:
            raise StructuralError(
                f"Edge budget exceeded (maxEdges={self.max_edges})",
                {"max_edges": self.max_edges},
            )

        payload = {
            "from": source,
            "to": target,
            "type": edge_type,
            "label": data.get("label") or "",
            "meta": data.get("meta") or {},
        }
        self._edges.append(self._construct(Edge, payload, f"edge {source} -> {target}"))
        return self

    def add_subgraph(self, subgraph: SubgraphInput) -> "GraphBuilder":
        data = (
            subgraph.model_dump(by_alias=True)
            if isinstance(subgraph, Subgraph) else dict(subgraph)
        )
        subgraph_id = data.get("id")
        node_ids = list(_first(data, _NODE_IDS_KEYS, default=[]))

        if not isinstance(subgraph_id, str) or not subgraph_id:
            raise StructuralError("Subgraph must have a non-empty string id")
        if subgraph_id in self._subgraphs:
            raise StructuralError(
                f"Duplicate subgraph id '{subgraph_id}'", {"subgraph_id": subgraph_id}
            )
        missing = [n for n in node_ids if n not in self._nodes]
        if missing:
            raise StructuralError(
                f"Subgraph '{subgraph_id}' references unknown nodes: {', '.join(missing)}",
                {"subgraph_id": subgraph_id, "missing": missing},
            )
        if self.max_subgraphs is not None and len(self._subgraphs) + 1 > self.max_subgraphs:
            raise StructuralError(
                f"Subgraph budget exceeded (maxSubgraphs={self.max_subgraphs})",
                {"max_subgraphs": self.max_subgraphs},
            )

        payload = {
            "id": subgraph_id,
            "title": data.get("title") or data.get("label") or subgraph_id,
            "nodeIds": node_ids,
            "tier": data.get("tier"),
        }
        self._subgraphs[subgraph_id] = self._construct(
            Subgraph, payload, f"subgraph '{subgraph_id}'"
        )
        return self

    def set_direction(self, direction: str) -> "GraphBuilder":
        normalized = normalize_direction(direction)
        if normalized not in ALLOWED_DIRECTIONS:
            raise StructuralError(
                f"Unsupported graph direction '{direction}'", {"direction": direction}
            )
        self._direction = normalized
        return self

    # -------------------------
    # Inspection
    # -------------------------

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def edge_count(self) -> int:
        return len(self._edges)

    def build(self) -> Graph:
        graph = Graph(
            direction=self._direction,
            nodes=tuple(self._nodes.values()),
            edges=tuple(self._edges),
            subgraphs=tuple(self._subgraphs.values()),
        )
        logger.debug(
            "graph built",
            extra={"node_count": len(graph.nodes), "edge_count": len(graph.edges)},
        )
        return graph

    @staticmethod
    def _construct(model, data: Dict[str, Any], what: str):
        # Field-level problems (bad tier, non-string label, ...) are structural too.
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            problems = describe_validation_error(exc)
            raise StructuralError(
                f"Invalid {what}: " + "; ".join(problems), {"problems": problems}
            ) from exc
