import json
import logging

from usage_analyzer.app.core.logging import JSONFormatter, setup_logging
from usage_analyzer.app.services.report import build_report


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("usage_analyzer.test", logging.INFO, __file__, 1, "hello %s", ("world",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_emits_json() -> None:
    payload = json.loads(JSONFormatter().format(_record(data={"rows": 2}, path="/usage/analyze")))
    assert payload["message"] == "hello world"
    assert payload["level"] == "INFO"
    assert payload["name"] == "usage_analyzer.test"
    assert payload["data"] == {"rows": 2}
    assert payload["path"] == "/usage/analyze"


def test_formatter_includes_exception() -> None:
    try:
        raise ValueError("boom")
    except ValueError:
        import sys

        record = logging.LogRecord("x", logging.ERROR, __file__, 1, "failed", (), sys.exc_info())
    payload = json.loads(JSONFormatter().format(record))
    assert "ValueError: boom" in payload["exception"]


def test_setup_logging_installs_single_json_handler() -> None:
    root = setup_logging()
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0].formatter, JSONFormatter)
    assert logging.getLogger("uvicorn.access").disabled


def test_report_build_is_logged(example_csv, caplog) -> None:
    with caplog.at_level(logging.INFO, logger="usage_analyzer.app.services.report"):
        build_report(example_csv.splitlines(keepends=True))
    (record,) = [r for r in caplog.records if r.name == "usage_analyzer.app.services.report"]
    assert record.data["rows"] == 2
    assert record.data["Per Repository"] == 2
