import json
import logging

from mermaid_guard.observability import JSONFormatter, setup_logging


def test_json_formatter_includes_extra_fields():
    record = logging.LogRecord(
        "mermaid_guard.drift", logging.INFO, __file__, 1, "tier %s -> %s", ("T1", "T2"), None,
    )
    record.drift_score = 0.2
    record.new_tier = "T2"

    payload = json.loads(JSONFormatter().format(record))
    assert payload["message"] == "tier T1 -> T2"
    assert payload["level"] == "INFO"
    assert payload["drift_score"] == 0.2
    assert payload["new_tier"] == "T2"
    assert "content_hash" not in payload


def test_setup_logging_is_idempotent():
    setup_logging("DEBUG", "json")
    setup_logging("WARNING", "text")

    root = logging.getLogger()
    ours = [h for h in root.handlers if h.get_name() == "mermaid_guard"]
    assert len(ours) == 1
    assert not isinstance(ours[0].formatter, JSONFormatter)
    assert root.level == logging.WARNING
