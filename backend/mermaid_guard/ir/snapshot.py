from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .graph import Graph, Tier


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AstSnapshot(BaseModel):
    """One accepted version of a diagram. Superseded, never mutated."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    graph: Graph
    content_hash: str = Field(alias="contentHash")
    tier: Tier = "T1"
    captured_at: datetime = Field(default_factory=_utcnow, alias="capturedAt")

    @model_validator(mode="before")
    @classmethod
    def _accept_legacy_keys(cls, data: Any) -> Any:
        # Older snapshot files stored {ast, hash, tier}.
        if isinstance(data, dict):
            data = dict(data)
            if "graph" not in data and "ast" in data:
                data["graph"] = data.pop("ast")
            if "contentHash" not in data and "content_hash" not in data and "hash" in data:
                data["contentHash"] = data.pop("hash")
        return data

    @classmethod
    def capture(cls, graph: Graph, tier: str = "T1",
                captured_at: Optional[datetime] = None) -> "AstSnapshot":
        from ..compiler.canonical import content_hash

        return cls(
            graph=graph,
            content_hash=content_hash(graph),
            tier=tier,
            captured_at=captured_at or _utcnow(),
        )

    def supersede(self, graph: Graph, tier: Optional[str] = None) -> "AstSnapshot":
        return AstSnapshot.capture(graph, tier or self.tier)

    def to_document(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


@dataclass(frozen=True)
class DriftReport:
    added_nodes: Tuple[str, ...]
    removed_nodes: Tuple[str, ...]
    added_edges: Tuple[str, ...]
    removed_edges: Tuple[str, ...]
    drift_score: float
    previous_tier: Optional[str]
    new_tier: str
    force_reanchor: bool
    reason: str
    content_hash: str = ""
    metrics: Dict[str, float] = field(default_factory=dict)

    @property
    def escalated(self) -> bool:
        return self.previous_tier is not None and self.previous_tier != self.new_tier

    def to_dict(self) -> dict:
        return {
            "addedNodes": list(self.added_nodes),
            "removedNodes": list(self.removed_nodes),
            "addedEdges": list(self.added_edges),
            "removedEdges": list(self.removed_edges),
            "driftScore": self.drift_score,
            "metrics": dict(self.metrics),
            "previousTier": self.previous_tier,
            "newTier": self.new_tier,
            "forceReanchor": self.force_reanchor,
            "reason": self.reason,
            "contentHash": self.content_hash,
        }
