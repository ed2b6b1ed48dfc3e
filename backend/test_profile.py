import pytest

from mermaid_guard.compiler.loader import load_graph
from mermaid_guard.ir.errors import BudgetViolationError
from mermaid_guard.validation.profile import SafetyProfile, default_profile, summarize


def test_defaults():
    profile = SafetyProfile()
    assert (profile.max_nodes, profile.max_edges, profile.max_depth) == (32, 96, 3)
    assert profile.max_tier == "T2"
    assert profile.context.role == "citizen"


def test_camel_case_document():
    profile = SafetyProfile.model_validate({
        "profileName": "strict",
        "maxNodes": 5,
        "maxFanOutPerNode": 2,
        "context": {"role": "operator", "networkTrust": "internal"},
    })
    assert profile.max_nodes == 5
    assert profile.max_fan_out_per_node == 2
    assert profile.context.network_trust == "internal"
    assert profile.to_dict()["maxNodes"] == 5


def test_with_budgets_accepts_both_spellings(profile):
    updated = profile.with_budgets({"maxNodes": 3, "max_edges": 4, "maxDepth": None, "bogus": 1})
    assert (updated.max_nodes, updated.max_edges, updated.max_depth) == (3, 4, 3)
    assert profile.max_nodes == 32
    assert profile.with_budgets(None) is profile


def test_default_profile_reads_config(monkeypatch):
    from mermaid_guard import config

    monkeypatch.setattr(config, "MAX_NODES", 7)
    monkeypatch.setattr(config, "PROFILE_NAME", "from-env")
    profile = default_profile()
    assert profile.max_nodes == 7
    assert profile.profile_name == "from-env"


def test_summarize_measures_degrees_tiers_and_depth(checkout_doc):
    summary = summarize(load_graph(checkout_doc).graph, max_depth=3)

    assert summary.node_count == 4
    assert summary.edge_count == 3
    assert summary.subgraph_count == 1
    assert summary.max_depth == 3
    assert summary.deepest_node == "db"
    assert summary.fan_out == {"user": 1, "api": 1, "orders": 1, "db": 0}
    assert summary.fan_in["user"] == 0
    assert summary.tiers == (("node", "orders", "T1"),)
    assert summary.to_dict()["tiers"] == ["T1"]


def test_check_budgets_returns_all_violations(profile):
    tight = profile.with_budgets({"maxNodes": 1, "maxEdges": 0})
    graph = load_graph({
        "nodes": [{"id": "A"}, {"id": "B"}],
        "edges": [{"from": "A", "to": "B"}],
    }).graph
    check = tight.check_budgets(tight.summarize(graph))

    assert not check.ok
    assert check.violations == ["Node budget exceeded: 2 > 1", "Edge budget exceeded: 1 > 0"]


def test_subgraph_tier_ceiling(profile):
    graph = load_graph({
        "nodes": [{"id": "A"}],
        "edges": [],
        "subgraphs": [{"id": "vault", "nodeIds": ["A"], "tier": "T3"}],
    }).graph
    check = profile.check_budgets(profile.summarize(graph))
    assert check.violations == [
        "Trust tier T3 on subgraph 'vault' not allowed under profile maxTier=T2"
    ]


def test_enforce_budgets_raises_with_same_violations(profile):
    graph = load_graph({"nodes": [{"id": f"n{i}"} for i in range(33)], "edges": []}).graph
    summary = profile.summarize(graph)

    with pytest.raises(BudgetViolationError) as excinfo:
        profile.enforce_budgets(summary)
    assert excinfo.value.violations == profile.check_budgets(summary).violations
    assert excinfo.value.profile_name == "test-profile"


def test_enforce_budgets_passes(profile, checkout_doc):
    summary = profile.summarize(load_graph(checkout_doc).graph)
    assert profile.enforce_budgets(summary).ok
