# backend/mermaid_guard/compiler/render_mermaid.py

from typing import Dict, List, Set

from mermaid_guard.compiler.layout import apply_layout
from mermaid_guard.ir.graph import Graph, Node

# shape -> (open, close); parse_to_ast recognizes the same delimiters
SHAPE_DELIMITERS: Dict[str, tuple] = {
    "rect": ("[", "]"),
    "round": ("(", ")"),
    "rhombus": ("{", "}"),
    "stadium": ("([", "])"),
    "subroutine": ("[[", "]]"),
    "cyl": ("[(", ")]"),
    "circle": ("((", "))"),
    "doublecircle": ("(((", ")))"),
    "hexagon": ("{{", "}}"),
}

EDGE_OPERATORS = {
    "arrow": "-->",
    "dotted": "-.->",
    "thick": "==>",
}

_NEEDS_QUOTES = set('[](){}|"')


def escape_label(label: str) -> str:
    text = label.replace("\n", "<br/>")
    if (
        text != text.strip()
        or any(ch in _NEEDS_QUOTES for ch in text)
        or any(op in text for op in EDGE_OPERATORS.values())
    ):
        return '"' + text.replace('"', "#quot;") + '"'
    return text


def render_node(node: Node) -> str:
    open_, close = SHAPE_DELIMITERS.get(node.shape, SHAPE_DELIMITERS["rect"])
    return f"{node.id}{open_}{escape_label(node.label)}{close}"


def render_mermaid(graph: Graph) -> str:
    """Render a graph as flowchart text in canonical order.

    Subgraph blocks come first (by id, members by id), then the remaining
    nodes by id, then edges by (from, to, label). Rendering the parse of
    this output reproduces it exactly.
    """
    graph = apply_layout(graph)
    nodes_by_id = {node.id: node for node in graph.nodes}
    lines = [f"flowchart {graph.direction}"]

    # -------------------------
    # Subgraph blocks
    # -------------------------
    placed: Set[str] = set()
    for sg in graph.subgraphs:
        lines.append(f"subgraph {sg.id} {escape_label(sg.title)}")
        for node_id in sorted(set(sg.node_ids)):
            node = nodes_by_id.get(node_id)
            if node is None or node_id in placed:
                continue
            placed.add(node_id)
            lines.append(f"  {render_node(node)}")
        lines.append("end")

    # -------------------------
    # Standalone nodes
    # -------------------------
    for node in graph.nodes:
        if node.id not in placed:
            lines.append(render_node(node))

    # -------------------------
    # Edges
    # -------------------------
    for edge in graph.edges:
        op = EDGE_OPERATORS.get(edge.type, "-->")
        label = f"|{escape_label(edge.label)}|" if edge.label else ""
        lines.append(f"{edge.source} {op}{label} {edge.target}")

    return "\n".join(lines)


def render_lines(graph: Graph) -> List[str]:
    return render_mermaid(graph).splitlines()
