import logging

import pytest

from mermaid_guard.compiler.builder import GraphBuilder
from mermaid_guard.validation.profile import SafetyProfile


@pytest.fixture(autouse=True)
def _drop_cli_log_handler():
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        if handler.get_name() == "mermaid_guard":
            root.removeHandler(handler)


@pytest.fixture
def profile():
    return SafetyProfile(
        profile_name="test-profile",
        max_nodes=32,
        max_edges=96,
        max_subgraphs=4,
        max_depth=3,
        max_fan_out_per_node=12,
        max_fan_in_per_node=12,
        max_tier="T2",
    )


@pytest.fixture
def checkout_doc():
    """Small, valid flowchart document."""
    return {
        "kind": "flowchart",
        "direction": "LR",
        "nodes": [
            {"id": "user", "label": "User", "shape": "circle"},
            {"id": "api", "label": "API Gateway"},
            {"id": "orders", "label": "Order Service", "shape": "round", "tier": "T1"},
            {"id": "db", "label": "Orders DB", "shape": "cyl"},
        ],
        "edges": [
            {"from": "user", "to": "api", "label": "HTTPS"},
            {"from": "api", "to": "orders"},
            {"from": "orders", "to": "db", "type": "thick", "label": "writes"},
        ],
        "subgraphs": [
            {"id": "backend", "title": "Backend", "nodeIds": ["orders", "db"]},
        ],
    }


@pytest.fixture
def make_chain():
    """Factory for a straight chain n0 -> n1 -> ... -> n{count-1}."""
    def _make(count, max_nodes=None, max_edges=None):
        builder = GraphBuilder(
            max_nodes=max_nodes or max(count, 1),
            max_edges=max_edges or max(count, 1),
        )
        for i in range(count):
            builder.add_node({"id": f"n{i}"})
        for i in range(count - 1):
            builder.add_edge({"from": f"n{i}", "to": f"n{i + 1}"})
        return builder.build()
    return _make


@pytest.fixture
def ten_by_ten():
    """Baseline with 10 nodes and 10 edges: a ring n0 -> ... -> n9 -> n0."""
    builder = GraphBuilder(max_nodes=20, max_edges=20)
    for i in range(10):
        builder.add_node({"id": f"n{i}"})
    for i in range(10):
        builder.add_edge({"from": f"n{i}", "to": f"n{(i + 1) % 10}"})
    return builder.build()
