from __future__ import annotations

import json
import logging

import pytest

from localbiz.telemetry import SearchTrace, instrument_stage, reset_current_trace, set_current_trace, timed_stage
from localbiz.telemetry.logging_utils import PERF_LEVEL_NUM, RequestIdFilter, resolve_log_level


def test_stage_timings_accumulate_on_current_trace() -> None:
    trace = SearchTrace()
    token = set_current_trace(trace)
    try:
        with timed_stage("ranking"):
            pass
        with timed_stage("ranking"):
            pass

        @instrument_stage("fetch")
        def fetch() -> list[str]:
            return ["a"]

        assert fetch() == ["a"]
    finally:
        reset_current_trace(token)

    assert trace.stage_time_ms("ranking") is not None
    assert trace.stage_time_ms("fetch") is not None
    assert trace.stage_time_ms("radius") is None


def test_unknown_stage_is_rejected() -> None:
    with pytest.raises(ValueError):
        with timed_stage("embedding"):
            pass


def test_finalize_fills_search_summary() -> None:
    trace = SearchTrace(path="/api/search")
    trace.mark_search("  legal ", location_known=True)
    trace.finalize()

    assert trace.query_text == "legal"
    assert trace.total_time_ms is not None
    assert trace.result_count == 0
    assert trace.top_score == 0.0
    assert trace.missing_required_stages() == ["fetch", "ranking"]


def test_header_value_is_compact_json() -> None:
    trace = SearchTrace()
    trace.mark_search("legal", location_known=False)
    trace.record_stage_time("fetch", 1.23456)
    trace.set_result_summary(candidate_count=8, result_count=2, top_score=1.7)
    trace.finalize()

    payload = json.loads(trace.to_header_value())
    assert payload["fetch_time_ms"] == 1.235
    assert payload["text_filter_time_ms"] is None
    assert payload["candidate_count"] == 8
    assert payload["top_score"] == 1.0


def test_resolve_log_level() -> None:
    assert resolve_log_level("perf") == PERF_LEVEL_NUM
    assert resolve_log_level("warning") == logging.WARNING
    assert resolve_log_level("bogus", fallback=logging.ERROR) == logging.ERROR
    assert resolve_log_level(None) == logging.INFO


def test_log_records_carry_the_traced_request_id() -> None:
    record = logging.LogRecord("localbiz.test", logging.INFO, __file__, 1, "hello", None, None)
    RequestIdFilter().filter(record)
    assert record.request_id == "-"

    trace = SearchTrace()
    token = set_current_trace(trace)
    try:
        traced = logging.LogRecord("localbiz.test", logging.INFO, __file__, 1, "hello", None, None)
        RequestIdFilter().filter(traced)
    finally:
        reset_current_trace(token)
    assert traced.request_id == str(trace.request_id)
