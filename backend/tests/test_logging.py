# ruff: noqa: INP001
"""Formatter output for text and JSON log modes."""

from __future__ import annotations

import json
import logging

from personal_crm.core.logging import JsonFormatter, KeyValueFormatter


def _record(message: str, **extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="personal_crm.services.urgent_tasks",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_key_value_formatter_appends_sorted_extras() -> None:
    formatter = KeyValueFormatter(fmt="%(levelname)s %(message)s")

    line = formatter.format(_record("urgent_tasks.reorder.applied", moved=2, requested=3))

    assert line == "INFO urgent_tasks.reorder.applied moved=2 requested=3"


def test_key_value_formatter_without_extras_is_plain() -> None:
    formatter = KeyValueFormatter(fmt="%(message)s")

    assert formatter.format(_record("app.cors.disabled")) == "app.cors.disabled"


def test_json_formatter_emits_structured_fields() -> None:
    formatter = JsonFormatter(use_utc=True)

    payload = json.loads(
        formatter.format(_record("urgent_tasks.created", urgent_task_id="abc", order_index=0)),
    )

    assert payload["message"] == "urgent_tasks.created"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "personal_crm.services.urgent_tasks"
    assert payload["urgent_task_id"] == "abc"
    assert payload["order_index"] == 0
    assert payload["timestamp"].endswith("+00:00")
