from __future__ import annotations

import logging

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from ..config import settings
from .logging_utils import PERF_LEVEL_NUM, get_perf_logger
from .trace import SearchTrace, reset_current_trace, set_current_trace

logger = logging.getLogger(__name__)
perf_logger = get_perf_logger()


class TelemetryMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        trace = SearchTrace(path=request.url.path, method=request.method)
        request.state.request_id = str(trace.request_id)
        token = set_current_trace(trace)

        response: Response | None = None
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            trace.finalize()
            if response is not None and request.url.path.startswith("/api/"):
                response.headers["X-Search-Performance"] = trace.to_header_value()
                response.headers["X-Request-Id"] = str(trace.request_id)

            if settings.telemetry_enabled:
                self._log_trace(trace, status_code)
            reset_current_trace(token)

    def _log_trace(self, trace: SearchTrace, status_code: int) -> None:
        if not trace.search_active:
            return

        missing_stages = trace.missing_required_stages()
        if missing_stages and status_code < 400:
            logger.warning(
                "Search trace missing stage timing(s): %s",
                ", ".join(missing_stages),
                extra={"request_id": str(trace.request_id)},
            )

        perf_logger.log(
            PERF_LEVEL_NUM,
            "search_trace request_id=%s status=%s query=%r location=%s lookup_ms=%s fetch_ms=%s text_filter_ms=%s radius_ms=%s ranking_ms=%s total_ms=%s candidates=%s results=%s top_score=%s",
            trace.request_id,
            status_code,
            trace.query_text,
            trace.location_known,
            trace.stage_time_ms("lookup"),
            trace.stage_time_ms("fetch"),
            trace.stage_time_ms("text_filter"),
            trace.stage_time_ms("radius"),
            trace.stage_time_ms("ranking"),
            trace.total_time_ms,
            trace.candidate_count,
            trace.result_count,
            trace.top_score,
        )
