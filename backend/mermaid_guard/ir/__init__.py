from .errors import (
    BudgetViolationError,
    DocumentReadError,
    MalformedDocumentError,
    MermaidGuardError,
    MermaidSyntaxError,
    StructuralError,
)
from .graph import (
    ALLOWED_DIRECTIONS,
    ALLOWED_EDGE_TYPES,
    ALLOWED_SHAPES,
    ALLOWED_TIERS,
    TIER_ORDER,
    Edge,
    Graph,
    Node,
    Subgraph,
    edge_key,
    tier_exceeds,
    tier_rank,
)
from .snapshot import AstSnapshot, DriftReport
from .validation import BudgetCheck, BudgetStats, GraphSummary, ValidationResult

__all__ = [
    "ALLOWED_DIRECTIONS",
    "ALLOWED_EDGE_TYPES",
    "ALLOWED_SHAPES",
    "ALLOWED_TIERS",
    "TIER_ORDER",
    "AstSnapshot",
    "BudgetCheck",
    "BudgetStats",
    "BudgetViolationError",
    "DocumentReadError",
    "DriftReport",
    "Edge",
    "Graph",
    "GraphSummary",
    "MalformedDocumentError",
    "MermaidGuardError",
    "MermaidSyntaxError",
    "Node",
    "StructuralError",
    "Subgraph",
    "ValidationResult",
    "edge_key",
    "tier_exceeds",
    "tier_rank",
]
