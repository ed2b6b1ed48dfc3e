from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class BudgetStats:
    """Raw counts and utilization, reported whether or not validation passed."""
    node_count: int
    edge_count: int
    max_nodes: int
    max_edges: int
    max_depth: int

    @property
    def node_utilization(self) -> float:
        return self.node_count / self.max_nodes if self.max_nodes else 0.0

    @property
    def edge_utilization(self) -> float:
        return self.edge_count / self.max_edges if self.max_edges else 0.0

    def to_dict(self) -> dict:
        return {
            "nodeCount": self.node_count,
            "edgeCount": self.edge_count,
            "maxNodes": self.max_nodes,
            "maxEdges": self.max_edges,
            "maxDepth": self.max_depth,
            "nodeUtilization": self.node_utilization,
            "edgeUtilization": self.edge_utilization,
        }


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    errors: Tuple[str, ...]
    warnings: Tuple[str, ...]
    budget: BudgetStats

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def warning_count(self) -> int:
        return len(self.warnings)

    def get_summary(self) -> str:
        status = "OK" if self.ok else "FAILED"
        return (
            f"{status} | Errors: {self.error_count}, Warnings: {self.warning_count} | "
            f"nodes {self.budget.node_count}/{self.budget.max_nodes}, "
            f"edges {self.budget.edge_count}/{self.budget.max_edges}"
        )

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "budget": self.budget.to_dict(),
        }


@dataclass(frozen=True)
class GraphSummary:
    """Structural measurements of a graph, as checked by a SafetyProfile."""
    node_count: int
    edge_count: int
    subgraph_count: int
    max_depth: int = 0
    deepest_node: Optional[str] = None
    # node id -> degree, only for known nodes
    fan_out: Dict[str, int] = field(default_factory=dict)
    fan_in: Dict[str, int] = field(default_factory=dict)
    # (owner kind, owner id, tier) for every tier present on a node or subgraph
    tiers: Tuple[Tuple[str, str, str], ...] = ()
    cycles: Tuple[str, ...] = ()
    depth_violations: Tuple[Tuple[str, int], ...] = ()

    def to_dict(self) -> dict:
        return {
            "nodeCount": self.node_count,
            "edgeCount": self.edge_count,
            "subgraphCount": self.subgraph_count,
            "maxDepth": self.max_depth,
            "deepestNode": self.deepest_node,
            "fanOut": dict(self.fan_out),
            "fanIn": dict(self.fan_in),
            "tiers": sorted({tier for _, _, tier in self.tiers}),
            "cycles": list(self.cycles),
        }


@dataclass(frozen=True)
class BudgetCheck:
    ok: bool
    violations: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"ok": self.ok, "violations": list(self.violations)}
