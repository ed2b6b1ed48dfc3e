"""
Drift between two versions of a diagram, and the trust-tier policy it feeds.

Tier escalation is one-way: T1 -> T2 -> T3. Nothing here lowers a tier;
restoring a lower tier is an external re-certification step.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .. import config
from ..compiler.canonical import content_hash
from ..ir.graph import Graph
from ..ir.snapshot import AstSnapshot, DriftReport

logger = logging.getLogger(__name__)

INITIAL_ANCHOR_REASON = "no previous snapshot; treat as initial anchor candidate"
NO_CHANGE_REASON = "within tier thresholds; no change"
DEFAULT_TIER = "T1"


@dataclass(frozen=True)
class DriftThresholds:
    max_allowed_drift_for_t1: float = 0.15
    max_allowed_drift_for_t2: float = 0.35
    force_reanchor_threshold: float = 0.40

    @classmethod
    def from_config(cls) -> "DriftThresholds":
        return cls(
            max_allowed_drift_for_t1=config.DRIFT_T1_LIMIT,
            max_allowed_drift_for_t2=config.DRIFT_T2_LIMIT,
            force_reanchor_threshold=config.REANCHOR_THRESHOLD,
        )


@dataclass(frozen=True)
class GraphDiff:
    added_nodes: Tuple[str, ...]
    removed_nodes: Tuple[str, ...]
    added_edges: Tuple[str, ...]
    removed_edges: Tuple[str, ...]
    base_nodes: int
    base_edges: int

    @property
    def node_drift(self) -> float:
        return (len(self.added_nodes) + len(self.removed_nodes)) / self.base_nodes

    @property
    def edge_drift(self) -> float:
        return (len(self.added_edges) + len(self.removed_edges)) / self.base_edges

    @property
    def drift_score(self) -> float:
        return min(1.0, max(0.0, 0.5 * self.node_drift + 0.5 * self.edge_drift))

    @property
    def magnitude(self) -> int:
        return (
            len(self.added_nodes) + len(self.removed_nodes)
            + len(self.added_edges) + len(self.removed_edges)
        )

    def metrics(self) -> dict:
        return {
            "nodeDrift": self.node_drift,
            "edgeDrift": self.edge_drift,
            "baseNodes": self.base_nodes,
            "baseEdges": self.base_edges,
            "magnitude": self.magnitude,
        }


class DriftMeter:
    def __init__(self, thresholds: Optional[DriftThresholds] = None):
        self.thresholds = thresholds or DriftThresholds()

    def diff(self, prior: Graph, current: Graph) -> GraphDiff:
        """Symmetric differences over node ids and edge keys."""
        prior_nodes = set(prior.node_ids())
        current_nodes = set(current.node_ids())
        prior_edges = set(prior.edge_keys())
        current_edges = set(current.edge_keys())

        return GraphDiff(
            added_nodes=tuple(sorted(current_nodes - prior_nodes)),
            removed_nodes=tuple(sorted(prior_nodes - current_nodes)),
            added_edges=tuple(sorted(current_edges - prior_edges)),
            removed_edges=tuple(sorted(prior_edges - current_edges)),
            base_nodes=max(1, len(prior.nodes)),
            base_edges=max(1, len(prior.edges)),
        )

    def evaluate(self, current_tier: str, drift_score: float) -> Tuple[str, bool, List[str]]:
        """Apply the tier state machine. Returns (new_tier, force_reanchor, reasons)."""
        t = self.thresholds
        new_tier = current_tier
        reasons: List[str] = []

        if current_tier == "T1" and drift_score > t.max_allowed_drift_for_t1:
            new_tier = "T2"
            reasons.append(
                f"driftScore {drift_score:.3f} exceeded T1 limit {t.max_allowed_drift_for_t1}"
            )
        elif current_tier == "T2" and drift_score > t.max_allowed_drift_for_t2:
            new_tier = "T3"
            reasons.append(
                f"driftScore {drift_score:.3f} exceeded T2 limit {t.max_allowed_drift_for_t2}"
            )

        force_reanchor = drift_score > t.force_reanchor_threshold
        if force_reanchor:
            reasons.append(
                f"driftScore {drift_score:.3f} exceeded reanchor threshold {t.force_reanchor_threshold}"
            )

        return new_tier, force_reanchor, reasons

    def analyze(self, prior: Optional[AstSnapshot], current: Graph) -> DriftReport:
        current_hash = content_hash(current)

        if prior is None:
            logger.info(
                "no previous snapshot; initial anchor required",
                extra={"content_hash": current_hash},
            )
            return DriftReport(
                added_nodes=(),
                removed_nodes=(),
                added_edges=(),
                removed_edges=(),
                drift_score=0.0,
                previous_tier=None,
                new_tier=DEFAULT_TIER,
                force_reanchor=True,
                reason=INITIAL_ANCHOR_REASON,
                content_hash=current_hash,
                metrics={"nodeDrift": 0.0, "edgeDrift": 0.0,
                         "baseNodes": 0, "baseEdges": 0, "magnitude": 0},
            )

        diff = self.diff(prior.graph, current)
        score = diff.drift_score
        new_tier, force_reanchor, reasons = self.evaluate(prior.tier, score)

        if new_tier != prior.tier or force_reanchor:
            logger.info(
                "drift %.3f: tier %s -> %s, reanchor=%s",
                score, prior.tier, new_tier, force_reanchor,
                extra={"drift_score": score, "previous_tier": prior.tier,
                       "new_tier": new_tier, "content_hash": current_hash},
            )

        return DriftReport(
            added_nodes=diff.added_nodes,
            removed_nodes=diff.removed_nodes,
            added_edges=diff.added_edges,
            removed_edges=diff.removed_edges,
            drift_score=score,
            previous_tier=prior.tier,
            new_tier=new_tier,
            force_reanchor=force_reanchor,
            reason="; ".join(reasons) if reasons else NO_CHANGE_REASON,
            content_hash=current_hash,
            metrics=diff.metrics(),
        )


def analyze(prior: Optional[AstSnapshot], current: Graph,
            thresholds: Optional[DriftThresholds] = None) -> DriftReport:
    return DriftMeter(thresholds).analyze(prior, current)
