"""
Graph Validator - checks an assembled graph against a SafetyProfile.

Catches issues like:
- Node/edge/subgraph budget overruns
- Edges pointing at missing nodes, duplicate ids, unknown subgraph members
- Fan-in / fan-out overruns
- Trust tiers above the profile ceiling
- Paths deeper than maxDepth
- Unreachable (isolated) nodes, cycles and duplicate edges (warnings only)

validate() never raises for problems found in the graph: every error and
warning is collected and returned in one ValidationResult.
"""

import logging
from collections import Counter, defaultdict
from typing import Dict, List, Optional, Set

from ..ir.errors import BudgetViolationError
from ..ir.graph import Graph
from ..ir.validation import BudgetStats, ValidationResult
from .profile import SafetyProfile, default_profile, measure
from .traversal import TraversalResult

logger = logging.getLogger(__name__)


class GraphValidator:
    """
    Validates graphs for structural safety.

    Usage:
        validator = GraphValidator(profile)
        result = validator.validate(graph)

        if not result.ok:
            for error in result.errors:
                print(error)
    """

    def __init__(self, profile: Optional[SafetyProfile] = None, strict: bool = False):
        self.profile = profile or default_profile()
        self.strict = strict

    def validate(self, graph: Graph) -> ValidationResult:
        summary, traversal = measure(graph, self.profile.max_depth)
        node_ids: Set[str] = set(graph.node_ids())

        errors: List[str] = []
        errors.extend(self.profile.check_budgets(summary).violations)
        errors.extend(self._check_duplicate_ids(graph))
        errors.extend(self._check_edge_endpoints(graph, node_ids))
        errors.extend(self._check_subgraph_members(graph, node_ids))

        warnings: List[str] = []
        warnings.extend(self._check_unreachable(graph))
        warnings.extend(self._check_roots(graph, traversal))
        warnings.extend(self._check_cycles(traversal))
        warnings.extend(self._check_duplicate_edges(graph))

        ok = not errors
        if self.strict:
            ok = ok and not warnings

        logger.debug(
            "[VALIDATOR] %d error(s), %d warning(s) for %d nodes / %d edges",
            len(errors), len(warnings), len(graph.nodes), len(graph.edges),
            extra={"error_count": len(errors), "warning_count": len(warnings)},
        )

        return ValidationResult(
            ok=ok,
            errors=tuple(errors),
            warnings=tuple(warnings),
            budget=self._budget_stats(graph),
        )

    def _check_duplicate_ids(self, graph: Graph) -> List[str]:
        issues = []
        for node_id, count in Counter(graph.node_ids()).items():
            if count > 1:
                issues.append(f"Duplicate node id '{node_id}' appears {count} times")
        for subgraph_id, count in Counter(sg.id for sg in graph.subgraphs).items():
            if count > 1:
                issues.append(f"Duplicate subgraph id '{subgraph_id}' appears {count} times")
        return issues

    def _check_edge_endpoints(self, graph: Graph, node_ids: Set[str]) -> List[str]:
        issues = []
        for edge in graph.edges:
            if edge.source not in node_ids:
                issues.append(
                    f"Edge {edge.source} -> {edge.target} references missing source node '{edge.source}'"
                )
            if edge.target not in node_ids:
                issues.append(
                    f"Edge {edge.source} -> {edge.target} references missing target node '{edge.target}'"
                )
        return issues

    def _check_subgraph_members(self, graph: Graph, node_ids: Set[str]) -> List[str]:
        issues = []
        for sg in graph.subgraphs:
            missing = [n for n in sg.node_ids if n not in node_ids]
            if missing:
                issues.append(
                    f"Subgraph '{sg.id}' references unknown nodes: {', '.join(missing)}"
                )
        return issues

    def _check_unreachable(self, graph: Graph) -> List[str]:
        connected: Set[str] = set()
        for edge in graph.edges:
            connected.add(edge.source)
            connected.add(edge.target)

        issues = []
        for node_id in dict.fromkeys(graph.node_ids()):
            if node_id not in connected:
                issues.append(f"Unreachable node '{node_id}': no incoming or outgoing edges")
        return issues

    def _check_roots(self, graph: Graph, traversal: TraversalResult) -> List[str]:
        if not graph.nodes:
            return []
        if not traversal.roots:
            return ["No root nodes detected (every node has an incoming edge)"]
        if traversal.rootless_nodes:
            return [
                "Nodes not reachable from any root: " + ", ".join(traversal.rootless_nodes)
            ]
        return []

    def _check_cycles(self, traversal: TraversalResult) -> List[str]:
        return [f"Cycle detected involving node '{node_id}'" for node_id in traversal.cycle_nodes]

    def _check_duplicate_edges(self, graph: Graph) -> List[str]:
        counts: Dict[str, int] = defaultdict(int)
        for edge in graph.edges:
            counts[edge.key] += 1
        return [
            f"Duplicate edge '{key}' appears {count} times"
            for key, count in counts.items()
            if count > 1
        ]

    def _budget_stats(self, graph: Graph) -> BudgetStats:
        return BudgetStats(
            node_count=len(graph.nodes),
            edge_count=len(graph.edges),
            max_nodes=self.profile.max_nodes,
            max_edges=self.profile.max_edges,
            max_depth=self.profile.max_depth,
        )


def validate(graph: Graph, profile: Optional[SafetyProfile] = None) -> ValidationResult:
    """Convenience function to validate a graph."""
    return GraphValidator(profile).validate(graph)


def get_validation_summary(graph: Graph, profile: Optional[SafetyProfile] = None) -> str:
    return validate(graph, profile).get_summary()


def raise_on_errors(graph: Graph, profile: Optional[SafetyProfile] = None) -> ValidationResult:
    """Validate and raise BudgetViolationError listing every error found."""
    profile = profile or default_profile()
    result = validate(graph, profile)
    if not result.ok:
        raise BudgetViolationError(list(result.errors), profile.profile_name)
    return result
