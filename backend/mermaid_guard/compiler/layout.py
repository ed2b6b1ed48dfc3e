from mermaid_guard.ir.graph import Graph


def apply_layout(graph: Graph) -> Graph:
    """Copy of `graph` with nodes, edges and subgraphs in canonical order."""
    return graph.model_copy(update={
        "nodes": tuple(sorted(graph.nodes, key=lambda n: n.id)),
        "edges": tuple(sorted(
            graph.edges,
            key=lambda e: (e.source, e.target, e.label, e.type),
        )),
        "subgraphs": tuple(sorted(graph.subgraphs, key=lambda s: s.id)),
    })
