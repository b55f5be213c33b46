from collections.abc import Sequence

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..errors import BackendUnavailable, BusinessNotFound
from ..schemas import BusinessDetail, BusinessListResponse, BusinessResult, SearchFilters, SearchResponse
from ..services.business_record_service import BusinessRecord, Coordinates
from ..services.business_repository import BusinessRepository, SqlBusinessRepository
from ..services.completeness_service import completeness, missing_profile_fields
from ..services.distance_service import format_distance
from ..services.location_service import RequestLocationProvider, location_service
from ..services.ranking_service import score_breakdown
from ..services.search_service import SearchRequest, search_service
from ..services.text_match_service import tokenize

router = APIRouter(tags=["search"])


def get_business_repository(db: Session = Depends(get_db)) -> BusinessRepository:
    return SqlBusinessRepository(db)


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


async def _resolve_user_coords(location: str | None, lat: float | None, lng: float | None) -> Coordinates | None:
    provider = RequestLocationProvider(location=location, lat=lat, lng=lng)
    return await location_service.resolve_or_none(provider)


def _to_result(
    record: BusinessRecord,
    user_coords: Coordinates | None,
    terms: Sequence[str] | None = None,
) -> BusinessResult:
    breakdown = score_breakdown(record, user_coords, terms)
    return BusinessResult(
        id=record.id,
        name=record.name,
        category=record.category,
        category_id=record.category_id,
        description=record.description,
        city=record.city,
        address=record.address,
        lat=record.lat,
        lng=record.lng,
        is_verified=record.is_verified,
        is_featured=record.is_featured,
        is_premium=record.is_premium,
        is_remote=record.is_remote,
        rating=record.rating,
        review_count=record.review_count,
        years_of_experience=record.years_of_experience,
        images=list(record.images),
        phone=record.phone,
        email=record.email,
        website=record.website,
        owner_id=record.owner_id,
        distance_km=round(record.distance_km, 2) if record.distance_km is not None else None,
        distance_label=format_distance(record.distance_km) if record.distance_km is not None else None,
        score=round(record.score, 4) if record.score is not None else None,
        score_breakdown=breakdown.as_dict(),
    )


@router.get("/search", response_model=SearchResponse)
async def search(
    request: Request,
    q: str | None = Query(default=None),
    category: str | None = Query(default=None),
    location: str | None = Query(default=None),
    lat: float | None = Query(default=None),
    lng: float | None = Query(default=None),
    radius_km: float | None = Query(default=None, gt=0),
    remote_only: bool = Query(default=False),
    limit: int = Query(default=settings.search_result_limit, ge=1, le=settings.max_result_limit),
    repository: BusinessRepository = Depends(get_business_repository),
) -> SearchResponse:
    user_coords = await _resolve_user_coords(location, lat, lng)
    clean_query = (q or "").strip() or None
    search_request = SearchRequest(
        category_id=(category or "").strip() or None,
        query=clean_query,
        user_coords=user_coords,
        radius_km=radius_km,
        remote_only=remote_only,
        limit=limit,
    )
    try:
        records = await run_in_threadpool(search_service.search, repository, search_request)
    except BackendUnavailable as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc

    terms = tokenize(clean_query)
    return SearchResponse(
        query=clean_query,
        terms=terms,
        location_used=user_coords is not None,
        filters=SearchFilters(
            category_id=search_request.category_id,
            remote_only=remote_only,
            radius_km=radius_km if user_coords is not None else None,
            limit=limit,
        ),
        results=[_to_result(record, user_coords, terms) for record in records],
        request_id=_request_id(request),
    )


@router.get("/businesses/featured", response_model=BusinessListResponse)
async def featured_businesses(
    request: Request,
    location: str | None = Query(default=None),
    lat: float | None = Query(default=None),
    lng: float | None = Query(default=None),
    repository: BusinessRepository = Depends(get_business_repository),
) -> BusinessListResponse:
    user_coords = await _resolve_user_coords(location, lat, lng)
    try:
        records = await run_in_threadpool(search_service.featured_businesses, repository, user_coords)
    except BackendUnavailable as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return BusinessListResponse(
        location_used=user_coords is not None,
        results=[_to_result(record, user_coords) for record in records],
        request_id=_request_id(request),
    )


@router.get("/businesses/{business_id}", response_model=BusinessDetail)
async def business_detail(
    business_id: str,
    location: str | None = Query(default=None),
    lat: float | None = Query(default=None),
    lng: float | None = Query(default=None),
    repository: BusinessRepository = Depends(get_business_repository),
) -> BusinessDetail:
    user_coords = await _resolve_user_coords(location, lat, lng)
    try:
        record = await run_in_threadpool(search_service.get_business, repository, business_id, user_coords)
    except BusinessNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except BackendUnavailable as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc

    result = _to_result(record, user_coords)
    return BusinessDetail(
        **result.model_dump(),
        profile_completeness=completeness(record),
        missing_profile_fields=missing_profile_fields(record),
    )


@router.get("/businesses/{business_id}/similar", response_model=BusinessListResponse)
async def similar_businesses(
    request: Request,
    business_id: str,
    location: str | None = Query(default=None),
    lat: float | None = Query(default=None),
    lng: float | None = Query(default=None),
    limit: int = Query(default=settings.similar_result_limit, ge=1, le=settings.similar_fetch_limit),
    repository: BusinessRepository = Depends(get_business_repository),
) -> BusinessListResponse:
    user_coords = await _resolve_user_coords(location, lat, lng)
    try:
        records = await run_in_threadpool(
            search_service.similar_businesses,
            repository,
            business_id,
            user_coords,
            limit,
        )
    except BusinessNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except BackendUnavailable as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return BusinessListResponse(
        location_used=user_coords is not None,
        results=[_to_result(record, user_coords) for record in records],
        request_id=_request_id(request),
    )
