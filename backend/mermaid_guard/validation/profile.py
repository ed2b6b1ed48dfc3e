"""
SafetyProfile - structural budgets and the trust-tier ceiling for diagrams.

check_budgets() is the single budget check. enforce_budgets() wraps it for
call sites that want an exception instead of a result.
"""

import logging
from collections import Counter
from typing import Any, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from .. import config
from ..ir.errors import BudgetViolationError
from ..ir.graph import Graph, Tier, tier_exceeds
from ..ir.validation import BudgetCheck, GraphSummary
from .traversal import TraversalResult, build_adjacency, walk_depths

logger = logging.getLogger(__name__)

# Keys accepted from document/caller budget overrides.
BUDGET_OVERRIDE_FIELDS = {
    "maxNodes": "max_nodes",
    "maxEdges": "max_edges",
    "maxDepth": "max_depth",
    "maxSubgraphs": "max_subgraphs",
    "maxFanOutPerNode": "max_fan_out_per_node",
    "maxFanInPerNode": "max_fan_in_per_node",
}


class _CamelModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


class ProfileContext(_CamelModel):
    """Who/where a profile applies to. Carried for audit only."""
    role: str = "citizen"
    device_class: str = "edge-unknown"
    network_trust: str = "unknown"
    consent_level: str = "minimal"
    location_hint: Optional[str] = None


class SafetyProfile(_CamelModel):
    profile_name: str = "mermaid-default-t1"
    max_nodes: int = 32
    max_edges: int = 96
    max_subgraphs: int = 4
    max_depth: int = 3
    max_fan_out_per_node: int = 12
    max_fan_in_per_node: int = 12
    max_tier: Tier = "T2"
    context: ProfileContext = ProfileContext()

    def with_budgets(self, overrides: Optional[Mapping[str, Any]]) -> "SafetyProfile":
        """Copy of this profile with camelCase or snake_case budget overrides applied."""
        if not overrides:
            return self
        update = {}
        for key, value in overrides.items():
            if value is None:
                continue
            field_name = BUDGET_OVERRIDE_FIELDS.get(key, key)
            if field_name in BUDGET_OVERRIDE_FIELDS.values():
                update[field_name] = int(value)
        return self.model_copy(update=update)

    def summarize(self, graph: Graph) -> GraphSummary:
        return summarize(graph, self.max_depth)

    def check_budgets(self, summary: GraphSummary) -> BudgetCheck:
        """Return every budget and tier violation in `summary`. Never raises."""
        violations: List[str] = []

        if summary.node_count > self.max_nodes:
            violations.append(f"Node budget exceeded: {summary.node_count} > {self.max_nodes}")
        if summary.edge_count > self.max_edges:
            violations.append(f"Edge budget exceeded: {summary.edge_count} > {self.max_edges}")
        if summary.subgraph_count > self.max_subgraphs:
            violations.append(
                f"Subgraph budget exceeded: {summary.subgraph_count} > {self.max_subgraphs}"
            )

        if summary.depth_violations:
            for node_id, depth in summary.depth_violations:
                violations.append(
                    f"Depth budget exceeded at node '{node_id}': depth {depth} > maxDepth {self.max_depth}"
                )
        elif summary.max_depth > self.max_depth:
            violations.append(f"Depth budget exceeded: {summary.max_depth} > {self.max_depth}")

        for node_id, count in summary.fan_out.items():
            if count > self.max_fan_out_per_node:
                violations.append(
                    f"Fan-out exceeded on node '{node_id}': {count} > {self.max_fan_out_per_node}"
                )
        for node_id, count in summary.fan_in.items():
            if count > self.max_fan_in_per_node:
                violations.append(
                    f"Fan-in exceeded on node '{node_id}': {count} > {self.max_fan_in_per_node}"
                )

        for owner_kind, owner_id, tier in summary.tiers:
            if tier_exceeds(tier, self.max_tier):
                violations.append(
                    f"Trust tier {tier} on {owner_kind} '{owner_id}' not allowed "
                    f"under profile maxTier={self.max_tier}"
                )

        return BudgetCheck(ok=not violations, violations=violations)

    def enforce_budgets(self, summary: GraphSummary) -> BudgetCheck:
        """Like check_budgets, but raise BudgetViolationError on any violation."""
        result = self.check_budgets(summary)
        if not result.ok:
            logger.info(
                "safety profile %s rejected graph with %d violation(s)",
                self.profile_name, len(result.violations),
            )
            raise BudgetViolationError(result.violations, self.profile_name)
        return result

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


def summarize(graph: Graph, max_depth: int) -> GraphSummary:
    """Measure counts, degrees, tiers, cycles and depth of `graph`."""
    return measure(graph, max_depth)[0]


def measure(graph: Graph, max_depth: int) -> Tuple[GraphSummary, TraversalResult]:
    """Summary plus the raw traversal, for callers that also report roots."""
    node_ids = graph.node_ids()
    pairs = [(edge.source, edge.target) for edge in graph.edges]
    adjacency, reverse = build_adjacency(node_ids, pairs)

    out_degree = Counter(source for source, _ in pairs)
    in_degree = Counter(target for _, target in pairs)
    known = dict.fromkeys(node_ids)

    traversal = walk_depths(node_ids, adjacency, reverse, max_depth)

    tiers = [("node", node.id, node.tier) for node in graph.nodes if node.tier]
    tiers.extend(("subgraph", sg.id, sg.tier) for sg in graph.subgraphs if sg.tier)

    summary = GraphSummary(
        node_count=len(graph.nodes),
        edge_count=len(graph.edges),
        subgraph_count=len(graph.subgraphs),
        max_depth=traversal.max_depth,
        deepest_node=traversal.deepest_node,
        fan_out={node_id: out_degree.get(node_id, 0) for node_id in known},
        fan_in={node_id: in_degree.get(node_id, 0) for node_id in known},
        tiers=tuple(tiers),
        cycles=traversal.cycle_nodes,
        depth_violations=traversal.depth_violations,
    )
    return summary, traversal


def default_profile() -> SafetyProfile:
    """Profile built from environment configuration."""
    return SafetyProfile(
        profile_name=config.PROFILE_NAME,
        max_nodes=config.MAX_NODES,
        max_edges=config.MAX_EDGES,
        max_subgraphs=config.MAX_SUBGRAPHS,
        max_depth=config.MAX_DEPTH,
        max_fan_out_per_node=config.MAX_FAN_OUT,
        max_fan_in_per_node=config.MAX_FAN_IN,
        max_tier=config.MAX_TIER,
    )
