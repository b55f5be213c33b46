from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, replace

from ..config import settings
from ..errors import BackendUnavailable, BusinessNotFound
from ..telemetry import get_current_trace, instrument_stage
from .business_record_service import BusinessRecord, Coordinates
from .business_repository import BusinessFilters, BusinessRepository
from .distance_service import distance_km
from .ranking_service import attach_distance, rank_and_sort
from .text_match_service import all_terms_present, tokenize

logger = logging.getLogger(__name__)


@dataclass
class SearchRequest:
    category_id: str | None = None
    query: str | None = None
    user_coords: Coordinates | None = None
    radius_km: float | None = None
    remote_only: bool | None = None
    limit: int | None = None


def filter_by_terms(records: Sequence[BusinessRecord], terms: Sequence[str]) -> list[BusinessRecord]:
    if not terms:
        return list(records)
    return [record for record in records if all_terms_present(record, terms)]


def filter_by_radius(
    records: Sequence[BusinessRecord],
    user_coords: Coordinates,
    radius_km: float,
) -> list[BusinessRecord]:
    """Keep records within `radius_km`, annotated with their distance.

    A record without a pinned location has no real position to measure, so it
    can never be shown to lie inside the radius and is dropped.
    """
    kept: list[BusinessRecord] = []
    for record in records:
        location = record.coordinates
        if location is None:
            continue
        distance = distance_km(user_coords, location)
        if distance <= radius_km:
            kept.append(replace(record, distance_km=distance))
    return kept


class SearchService:
    def __init__(self, max_result_limit: int = settings.max_result_limit) -> None:
        self.max_result_limit = max_result_limit

    def _effective_limit(self, limit: int | None) -> int:
        if not limit or limit < 0:
            return self.max_result_limit
        return min(limit, self.max_result_limit)

    @staticmethod
    @instrument_stage("fetch")
    def _fetch(repository: BusinessRepository, filters: BusinessFilters) -> list[BusinessRecord]:
        try:
            return repository.fetch_businesses(filters)
        except BackendUnavailable:
            raise
        except Exception as exc:
            logger.exception("Business fetch failed", extra={"filters": repr(filters)})
            raise BackendUnavailable("Business storage is unavailable") from exc

    @staticmethod
    @instrument_stage("lookup")
    def _lookup(repository: BusinessRepository, business_id: str) -> BusinessRecord:
        try:
            record = repository.get_business(business_id)
        except BackendUnavailable:
            raise
        except Exception as exc:
            logger.exception("Business lookup failed", extra={"business_id": business_id})
            raise BackendUnavailable("Business storage is unavailable") from exc
        if record is None:
            raise BusinessNotFound(business_id)
        return record

    @staticmethod
    def _record_trace_search(request: SearchRequest) -> None:
        trace = get_current_trace()
        if trace is None:
            return
        trace.mark_search(request.query, location_known=request.user_coords is not None)

    @staticmethod
    def _record_trace_results(candidate_count: int, results: list[BusinessRecord]) -> None:
        trace = get_current_trace()
        if trace is None:
            return
        top_score = results[0].score if results else None
        trace.set_result_summary(candidate_count, len(results), top_score)

    @instrument_stage("text_filter")
    def _apply_text_filter(self, records: list[BusinessRecord], terms: list[str]) -> list[BusinessRecord]:
        return filter_by_terms(records, terms)

    @instrument_stage("radius")
    def _apply_radius_filter(
        self,
        records: list[BusinessRecord],
        user_coords: Coordinates | None,
        radius_km: float | None,
    ) -> list[BusinessRecord]:
        if user_coords is None or radius_km is None:
            return records
        return filter_by_radius(records, user_coords, radius_km)

    @instrument_stage("ranking")
    def _rank(
        self,
        records: list[BusinessRecord],
        user_coords: Coordinates | None,
        terms: list[str] | None = None,
    ) -> list[BusinessRecord]:
        return rank_and_sort(records, user_coords, terms)

    def search(self, repository: BusinessRepository, request: SearchRequest) -> list[BusinessRecord]:
        """Fetch, filter, rank and truncate business records for one request.

        Only the fetch can fail (BackendUnavailable); every later step works on
        the in-memory list.
        """
        self._record_trace_search(request)
        terms = tokenize(request.query)

        records = self._fetch(
            repository,
            BusinessFilters(category_id=request.category_id or None, remote_only=request.remote_only or None),
        )
        candidate_count = len(records)

        records = self._apply_text_filter(records, terms)
        after_text = len(records)
        records = self._apply_radius_filter(records, request.user_coords, request.radius_km)
        after_radius = len(records)

        ranked = self._rank(records, request.user_coords, terms)
        results = ranked[: self._effective_limit(request.limit)]

        logger.info(
            "business_search: category=%s terms=%s location=%s radius_km=%s candidates=%s "
            "after_text=%s after_radius=%s returned=%s",
            request.category_id,
            len(terms),
            request.user_coords is not None,
            request.radius_km,
            candidate_count,
            after_text,
            after_radius,
            len(results),
        )
        self._record_trace_results(candidate_count, results)
        return results

    def get_business(
        self,
        repository: BusinessRepository,
        business_id: str,
        user_coords: Coordinates | None = None,
    ) -> BusinessRecord:
        return attach_distance(self._lookup(repository, business_id), user_coords)

    def featured_businesses(
        self,
        repository: BusinessRepository,
        user_coords: Coordinates | None = None,
    ) -> list[BusinessRecord]:
        # Over-fetch so ranking has room to reorder.
        records = self._fetch(
            repository,
            BusinessFilters(featured_only=True, limit=settings.featured_fetch_limit),
        )
        return self._rank(records, user_coords)[: settings.featured_result_limit]

    def similar_businesses(
        self,
        repository: BusinessRepository,
        business_id: str,
        user_coords: Coordinates | None = None,
        limit: int = settings.similar_result_limit,
    ) -> list[BusinessRecord]:
        current = self._lookup(repository, business_id)
        if not current.category_id:
            return []
        records = self._fetch(
            repository,
            BusinessFilters(category_id=current.category_id, limit=settings.similar_fetch_limit),
        )
        others = [record for record in records if record.id != business_id]
        return self._rank(others, user_coords)[: self._effective_limit(limit)]


search_service = SearchService()
