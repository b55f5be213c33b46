from __future__ import annotations

import json
from contextvars import ContextVar, Token
from dataclasses import dataclass, field
from datetime import datetime, timezone
from time import perf_counter
from uuid import UUID, uuid4

_TRACE_CONTEXT: ContextVar["SearchTrace | None"] = ContextVar("search_trace", default=None)

SEARCH_STAGES: tuple[str, ...] = ("lookup", "fetch", "text_filter", "radius", "ranking")


def _round_or_none(value: float | None) -> float | None:
    if value is None:
        return None
    return round(value, 3)


@dataclass
class SearchTrace:
    request_id: UUID = field(default_factory=uuid4)
    path: str = ""
    method: str = "GET"
    request_start_timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    query_text: str | None = None
    location_known: bool = False
    stage_times_ms: dict[str, float] = field(default_factory=dict)
    total_time_ms: float | None = None
    candidate_count: int | None = None
    result_count: int | None = None
    top_score: float | None = None
    search_active: bool = False
    _request_perf_counter_start: float = field(default_factory=perf_counter, repr=False)

    def mark_search(self, query_text: str | None, location_known: bool) -> None:
        self.query_text = (query_text or "").strip()
        self.location_known = location_known
        self.search_active = True

    def record_stage_time(self, stage: str, duration_ms: float) -> None:
        if stage not in SEARCH_STAGES:
            return
        self.stage_times_ms[stage] = self.stage_times_ms.get(stage, 0.0) + duration_ms

    def set_result_summary(self, candidate_count: int, result_count: int, top_score: float | None) -> None:
        self.candidate_count = candidate_count
        self.result_count = result_count
        if top_score is None:
            self.top_score = 0.0
            return
        self.top_score = min(1.0, max(0.0, float(top_score)))

    def stage_time_ms(self, stage: str) -> float | None:
        return self.stage_times_ms.get(stage)

    def finalize(self) -> None:
        if self.total_time_ms is None:
            elapsed_ms = (perf_counter() - self._request_perf_counter_start) * 1000.0
            self.total_time_ms = elapsed_ms

        if self.search_active:
            if self.candidate_count is None:
                self.candidate_count = 0
            if self.result_count is None:
                self.result_count = 0
            if self.top_score is None:
                self.top_score = 0.0

    def to_header_value(self) -> str:
        payload = {
            "request_id": str(self.request_id),
            **{f"{stage}_time_ms": _round_or_none(self.stage_times_ms.get(stage)) for stage in SEARCH_STAGES},
            "total_time_ms": _round_or_none(self.total_time_ms),
            "candidate_count": self.candidate_count,
            "result_count": self.result_count,
            "top_score": _round_or_none(self.top_score),
        }
        return json.dumps(payload, separators=(",", ":"))

    def missing_required_stages(self) -> list[str]:
        if not self.search_active:
            return []
        # A failed fetch ends the pipeline before any later stage runs.
        required = ("fetch", "ranking")
        return [stage for stage in required if stage not in self.stage_times_ms]


def get_current_trace() -> SearchTrace | None:
    return _TRACE_CONTEXT.get()


def set_current_trace(trace: SearchTrace) -> Token:
    return _TRACE_CONTEXT.set(trace)


def reset_current_trace(token: Token) -> None:
    _TRACE_CONTEXT.reset(token)
