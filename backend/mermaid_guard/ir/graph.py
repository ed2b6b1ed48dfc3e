from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Any, Dict, List, Literal, Optional, Tuple, get_args


Shape = Literal[
    "rect", "round", "stadium", "subroutine", "rhombus",
    "hexagon", "circle", "doublecircle", "cyl",
]
EdgeType = Literal["arrow", "dotted", "thick"]
Direction = Literal["TD", "LR", "BT", "RL"]
Tier = Literal["T0", "T1", "T2", "T3"]

ALLOWED_SHAPES = frozenset(get_args(Shape))
ALLOWED_EDGE_TYPES = frozenset(get_args(EdgeType))
ALLOWED_DIRECTIONS = frozenset(get_args(Direction))
ALLOWED_TIERS = frozenset(get_args(Tier))
TIER_ORDER: Tuple[str, ...] = ("T0", "T1", "T2", "T3")

# Mermaid treats TB and TD as the same top-down direction.
DIRECTION_SYNONYMS = {"TB": "TD"}


def tier_rank(tier: str) -> int:
    return TIER_ORDER.index(tier)


def tier_exceeds(tier: str, ceiling: str) -> bool:
    """True when `tier` sits strictly above `ceiling` in T0 < T1 < T2 < T3."""
    return tier_rank(tier) > tier_rank(ceiling)


def normalize_direction(direction: Any) -> Any:
    if isinstance(direction, str):
        upper = direction.strip().upper()
        return DIRECTION_SYNONYMS.get(upper, upper)
    return direction


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class Node(_Frozen):
    id: str
    label: str
    shape: Shape = "rect"
    tier: Optional[Tier] = None
    meta: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _label_defaults_to_id(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("label"):
            data = {**data, "label": data.get("id", "")}
        return data


class Edge(_Frozen):
    source: str = Field(alias="from")
    target: str = Field(alias="to")
    type: EdgeType = "arrow"
    label: str = ""
    meta: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("label", mode="before")
    @classmethod
    def _none_label_is_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @property
    def key(self) -> str:
        """Canonical edge identity used for diffing."""
        return edge_key(self.source, self.target, self.label)


class Subgraph(_Frozen):
    id: str
    title: str
    node_ids: Tuple[str, ...] = Field(default=(), alias="nodeIds")
    tier: Optional[Tier] = None

    @model_validator(mode="before")
    @classmethod
    def _title_defaults_to_id(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("title"):
            data = {**data, "title": data.get("id", "")}
        return data


class Graph(_Frozen):
    kind: Literal["flowchart"] = "flowchart"
    direction: Direction = "TD"
    nodes: Tuple[Node, ...] = ()
    edges: Tuple[Edge, ...] = ()
    subgraphs: Tuple[Subgraph, ...] = ()

    @field_validator("direction", mode="before")
    @classmethod
    def _direction_synonyms(cls, value: Any) -> Any:
        return normalize_direction(value)

    def node_ids(self) -> List[str]:
        return [node.id for node in self.nodes]

    def edge_keys(self) -> List[str]:
        return [edge.key for edge in self.edges]

    def tiers(self) -> List[str]:
        """Every tier attached to a node or subgraph, in declaration order."""
        found = [node.tier for node in self.nodes if node.tier]
        found.extend(sg.tier for sg in self.subgraphs if sg.tier)
        return found

    def to_document(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


def edge_key(source: str, target: str, label: str = "") -> str:
    return f"{source}->{target}#{label or ''}"
