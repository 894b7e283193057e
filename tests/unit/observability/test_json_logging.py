"""JSON log lines carry correlation and cycle IDs plus structured extras."""

import json
import logging

from autoscaler.config.logging import JsonFormatter
from autoscaler.core.context import correlation_id_ctx, cycle_id_ctx


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("autoscaler.scaling", logging.INFO, __file__, 1, "scaling_decision", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_extras_and_context_ids_are_rendered():
    cid = correlation_id_ctx.set("cid-1")
    cyc = cycle_id_ctx.set("cycle-1")
    try:
        line = json.loads(JsonFormatter().format(make_record(reason="scale_up", target=3)))
    finally:
        cycle_id_ctx.reset(cyc)
        correlation_id_ctx.reset(cid)
    assert line["message"] == "scaling_decision"
    assert line["level"] == "INFO"
    assert line["correlation_id"] == "cid-1"
    assert line["cycle_id"] == "cycle-1"
    assert line["reason"] == "scale_up"
    assert line["target"] == 3
    assert "lineno" not in line


def test_extras_cannot_overwrite_core_fields():
    line = json.loads(JsonFormatter().format(make_record(level="spoofed")))
    assert line["level"] == "INFO"
    assert line["cycle_id"] is None
