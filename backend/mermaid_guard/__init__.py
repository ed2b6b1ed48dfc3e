"""Deterministic validation, hashing and drift measurement for Mermaid flowcharts."""

__version__ = "0.1.0"

from mermaid_guard.compiler import (
    GraphBuilder,
    LoadedDocument,
    canonical_bytes,
    canonicalize,
    content_hash,
    load_graph,
    load_graph_file,
    load_snapshot,
    render_mermaid,
)
from mermaid_guard.drift import DriftMeter, DriftThresholds, GraphDiff, analyze
from mermaid_guard.dsl import extract_mermaid_blocks, normalize_mermaid, parse_to_ast
from mermaid_guard.ir import (
    AstSnapshot,
    BudgetCheck,
    BudgetStats,
    BudgetViolationError,
    DocumentReadError,
    DriftReport,
    Edge,
    Graph,
    GraphSummary,
    MalformedDocumentError,
    MermaidGuardError,
    MermaidSyntaxError,
    Node,
    StructuralError,
    Subgraph,
    ValidationResult,
)
from mermaid_guard.validation import (
    GraphValidator,
    ProfileContext,
    SafetyProfile,
    default_profile,
    raise_on_errors,
    summarize,
    validate,
)

__all__ = [
    "AstSnapshot",
    "BudgetCheck",
    "BudgetStats",
    "BudgetViolationError",
    "DocumentReadError",
    "DriftMeter",
    "DriftReport",
    "DriftThresholds",
    "Edge",
    "Graph",
    "GraphBuilder",
    "GraphDiff",
    "GraphSummary",
    "GraphValidator",
    "LoadedDocument",
    "MalformedDocumentError",
    "MermaidGuardError",
    "MermaidSyntaxError",
    "Node",
    "ProfileContext",
    "SafetyProfile",
    "StructuralError",
    "Subgraph",
    "ValidationResult",
    "analyze",
    "canonical_bytes",
    "canonicalize",
    "content_hash",
    "default_profile",
    "extract_mermaid_blocks",
    "load_graph",
    "load_graph_file",
    "load_snapshot",
    "normalize_mermaid",
    "parse_to_ast",
    "raise_on_errors",
    "render_mermaid",
    "summarize",
    "validate",
]
