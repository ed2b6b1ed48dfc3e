from mermaid_guard.compiler.builder import GraphBuilder
from mermaid_guard.compiler.canonical import canonical_bytes, canonicalize, content_hash
from mermaid_guard.compiler.loader import (
    LoadedDocument,
    load_graph,
    load_graph_file,
    load_snapshot,
    read_json,
)
from mermaid_guard.compiler.render_mermaid import render_mermaid

__all__ = [
    "GraphBuilder",
    "LoadedDocument",
    "canonical_bytes",
    "canonicalize",
    "content_hash",
    "load_graph",
    "load_graph_file",
    "load_snapshot",
    "read_json",
    "render_mermaid",
]
