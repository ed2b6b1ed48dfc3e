from .mermaid import (
    MermaidBlock,
    extract_mermaid_blocks,
    normalize_mermaid,
    parse_to_ast,
    quick_validate,
    validate_mermaid,
)

__all__ = [
    "MermaidBlock",
    "extract_mermaid_blocks",
    "normalize_mermaid",
    "parse_to_ast",
    "quick_validate",
    "validate_mermaid",
]
