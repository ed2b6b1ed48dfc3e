import json

import pytest
from typer.testing import CliRunner

from mermaid_guard import cli
from mermaid_guard.compiler.loader import load_graph
from mermaid_guard.ir.snapshot import AstSnapshot

runner = CliRunner()


def _invoke(args):
    # Keep INFO logs out of the captured output so JSON stays parseable.
    return runner.invoke(cli.app, ["--log-level", "ERROR", *args])


def _write(path, payload):
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_check_ok(tmp_path, checkout_doc):
    result = _invoke(["check", str(_write(tmp_path / "g.json", checkout_doc))])

    assert result.exit_code == 0, result.output
    assert result.output.startswith("OK | Errors: 0")
    assert "contentHash: " in result.output


def test_check_reports_every_error_and_exits_2(tmp_path):
    document = {
        "nodes": [{"id": f"n{i}"} for i in range(5)],
        "edges": [{"from": "n0", "to": "ghost"}],
    }
    result = _invoke(["check", str(_write(tmp_path / "g.json", document)), "--max-nodes", "3"])

    assert result.exit_code == 2
    assert "ERROR: Node budget exceeded: 5 > 3" in result.output
    assert "ERROR: Edge n0 -> ghost references missing target node 'ghost'" in result.output
    assert "WARNING: Unreachable node 'n1'" in result.output


def test_check_json_and_embedded_budgets(tmp_path, checkout_doc):
    path = _write(tmp_path / "g.json", {"graph": checkout_doc, "budgets": {"maxEdges": 2}})
    result = _invoke(["check", str(path), "--json"])

    assert result.exit_code == 2
    payload = json.loads(result.output)
    assert payload["ok"] is False
    assert payload["errors"] == ["Edge budget exceeded: 3 > 2"]
    assert payload["budget"]["maxEdges"] == 2
    assert len(payload["contentHash"]) == 64


@pytest.mark.parametrize("content", [None, "{broken", json.dumps({"nodes": []})])
def test_check_io_and_malformed_exit_1(tmp_path, content):
    path = tmp_path / "doc.json"
    if content is not None:
        path.write_text(content, encoding="utf-8")
    result = _invoke(["check", str(path)])
    assert result.exit_code == 1


def test_drift_check_without_snapshot_is_initial_anchor(tmp_path, checkout_doc):
    result = _invoke(["drift-check", str(_write(tmp_path / "g.json", checkout_doc))])

    assert result.exit_code == 2
    report = json.loads(result.output)
    assert report["forceReanchor"] is True
    assert report["previousTier"] is None


def test_drift_check_small_change_exits_0_and_writes_snapshot(tmp_path, checkout_doc):
    baseline = load_graph(checkout_doc).graph
    snapshot_path = _write(tmp_path / "snap.json", AstSnapshot.capture(baseline).to_document())

    checkout_doc["nodes"][1]["label"] = "Edge Gateway"
    current = _write(tmp_path / "g.json", checkout_doc)
    out = tmp_path / "next.json"

    result = _invoke([
        "drift-check", str(current), "--snapshot", str(snapshot_path), "--write-snapshot", str(out),
    ])

    assert result.exit_code == 0, result.output
    report = json.loads(result.output)
    assert report["driftScore"] == 0.0
    assert report["newTier"] == "T1"

    written = json.loads(out.read_text(encoding="utf-8"))
    assert written["tier"] == "T1"
    assert written["contentHash"] == report["contentHash"]
    assert written["contentHash"] != json.loads(snapshot_path.read_text())["contentHash"]


def test_drift_check_large_change_exits_2(tmp_path, checkout_doc):
    snapshot_path = _write(
        tmp_path / "snap.json",
        AstSnapshot.capture(load_graph(checkout_doc).graph, "T1").to_document(),
    )
    current = _write(tmp_path / "g.json", {"nodes": [{"id": "solo"}], "edges": []})

    result = _invoke(["drift-check", str(current), "--snapshot", str(snapshot_path)])

    assert result.exit_code == 2
    report = json.loads(result.output)
    assert report["newTier"] == "T2"
    assert report["forceReanchor"] is True


def test_drift_check_missing_snapshot_exits_1(tmp_path, checkout_doc):
    current = _write(tmp_path / "g.json", checkout_doc)
    result = _invoke(["drift-check", str(current), "--snapshot", str(tmp_path / "nope.json")])
    assert result.exit_code == 1


def test_render_and_parse(tmp_path, checkout_doc):
    rendered = _invoke(["render", str(_write(tmp_path / "g.json", checkout_doc))])
    assert rendered.exit_code == 0
    assert rendered.output.startswith("flowchart LR\n")

    source = tmp_path / "diagram.mmd"
    source.write_text(rendered.output, encoding="utf-8")
    parsed = _invoke(["parse", str(source)])

    assert parsed.exit_code == 0, parsed.output
    graph = json.loads(parsed.output)
    assert sorted(n["id"] for n in graph["nodes"]) == ["api", "db", "orders", "user"]


def test_parse_syntax_error_exits_1(tmp_path):
    source = tmp_path / "bad.mmd"
    source.write_text("flowchart TD\nA[open --> B\n", encoding="utf-8")
    result = _invoke(["parse", str(source)])
    assert result.exit_code == 1


def test_scan_markdown(tmp_path):
    readme = tmp_path / "README.md"
    readme.write_text("\n".join([
        "# Docs",
        "```mermaid",
        "flowchart TD",
        "A --> B",
        "```",
        "",
        "```mermaid",
        "flowchart TD",
        "A --> B --> C --> D --> E",
        "```",
    ]), encoding="utf-8")

    relaxed = _invoke(["scan", str(readme), "--json"])
    assert relaxed.exit_code == 0
    payload = json.loads(relaxed.output)
    assert [block["ok"] for block in payload["blocks"]] == [True, False]
    assert payload["failed"] == 1
    assert payload["blocks"][1]["startLine"] == 7

    strict = _invoke(["scan", str(readme), "--strict"])
    assert strict.exit_code == 2
    assert "block 1: FAILED" in strict.output


def test_main_maps_usage_errors_to_exit_1(monkeypatch):
    monkeypatch.setattr("sys.argv", ["mermaid-guard", "check", "--no-such-flag"])
    with pytest.raises(SystemExit) as excinfo:
        cli.main()
    assert excinfo.value.code == 1
