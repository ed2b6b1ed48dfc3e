import logging

from mermaid_guard import config


def test_malformed_int_falls_back_to_default(monkeypatch, caplog):
    monkeypatch.setenv("MERMAID_GUARD_MAX_NODES", "lots")
    with caplog.at_level(logging.WARNING, logger="mermaid_guard.config"):
        assert config._int_env("MERMAID_GUARD_MAX_NODES", 32) == 32
    assert "MERMAID_GUARD_MAX_NODES" in caplog.text


def test_malformed_float_falls_back_to_default(monkeypatch, caplog):
    monkeypatch.setenv("MERMAID_GUARD_DRIFT_T1", "high")
    with caplog.at_level(logging.WARNING, logger="mermaid_guard.config"):
        assert config._float_env("MERMAID_GUARD_DRIFT_T1", 0.15) == 0.15
    assert "MERMAID_GUARD_DRIFT_T1" in caplog.text


def test_env_values_are_parsed(monkeypatch):
    monkeypatch.setenv("MERMAID_GUARD_MAX_DEPTH", "7")
    monkeypatch.setenv("MERMAID_GUARD_DRIFT_T2", "0.5")
    monkeypatch.delenv("MERMAID_GUARD_MAX_EDGES", raising=False)

    assert config._int_env("MERMAID_GUARD_MAX_DEPTH", 3) == 7
    assert config._float_env("MERMAID_GUARD_DRIFT_T2", 0.35) == 0.5
    assert config._int_env("MERMAID_GUARD_MAX_EDGES", 96) == 96
