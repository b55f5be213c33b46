from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace

from .business_record_service import MAX_RATING, BusinessRecord, Coordinates
from .completeness_service import completeness
from .distance_service import distance_km
from .text_match_service import match_fraction

RATING_WEIGHT = 0.25
EXPERIENCE_WEIGHT = 0.15
COMPLETENESS_WEIGHT = 0.20
DISTANCE_WEIGHT = 0.30
TEXT_MATCH_WEIGHT = 0.10

EXPERIENCE_CAP_YEARS = 20
DISTANCE_DECAY_KM = 50.0
REMOTE_DISTANCE_SCORE = 0.85
NEUTRAL_DISTANCE_SCORE = 0.5


@dataclass(frozen=True)
class ScoreBreakdown:
    rating: float
    experience: float
    completeness: float
    distance: float
    text_match: float

    @property
    def total(self) -> float:
        return (
            self.rating * RATING_WEIGHT
            + self.experience * EXPERIENCE_WEIGHT
            + self.completeness * COMPLETENESS_WEIGHT
            + self.distance * DISTANCE_WEIGHT
            + self.text_match * TEXT_MATCH_WEIGHT
        )

    def as_dict(self) -> dict[str, float]:
        return {
            "rating": round(self.rating, 4),
            "experience": round(self.experience, 4),
            "completeness": round(self.completeness, 4),
            "distance": round(self.distance, 4),
            "text_match": round(self.text_match, 4),
        }


def _rating_score(record: BusinessRecord) -> float:
    return max(0.0, min(MAX_RATING, record.rating)) / MAX_RATING


def _experience_score(record: BusinessRecord) -> float:
    years = max(0, record.years_of_experience)
    return min(years, EXPERIENCE_CAP_YEARS) / EXPERIENCE_CAP_YEARS


def _distance_score(record: BusinessRecord, user_coords: Coordinates | None) -> float:
    # Remote businesses serve everyone; unknown distance stays neutral.
    if record.is_remote:
        return REMOTE_DISTANCE_SCORE
    if user_coords is not None and record.distance_km is not None:
        return max(0.0, 1.0 - record.distance_km / DISTANCE_DECAY_KM)
    return NEUTRAL_DISTANCE_SCORE


def score_breakdown(
    record: BusinessRecord,
    user_coords: Coordinates | None = None,
    terms: Sequence[str] | None = None,
) -> ScoreBreakdown:
    return ScoreBreakdown(
        rating=_rating_score(record),
        experience=_experience_score(record),
        completeness=completeness(record),
        distance=_distance_score(record, user_coords),
        text_match=match_fraction(record, terms or []),
    )


def score(
    record: BusinessRecord,
    user_coords: Coordinates | None = None,
    terms: Sequence[str] | None = None,
) -> float:
    return score_breakdown(record, user_coords, terms).total


def attach_distance(record: BusinessRecord, user_coords: Coordinates | None) -> BusinessRecord:
    location = record.coordinates
    if user_coords is None or location is None:
        return replace(record)
    return replace(record, distance_km=distance_km(user_coords, location))


def rank_and_sort(
    records: Iterable[BusinessRecord],
    user_coords: Coordinates | None = None,
    terms: Sequence[str] | None = None,
) -> list[BusinessRecord]:
    """Annotate distance and score on copies of `records`, best first.

    `sorted` is stable, so records with equal scores keep their input order.
    """
    scored: list[BusinessRecord] = []
    for record in records:
        annotated = attach_distance(record, user_coords)
        annotated.score = score(annotated, user_coords, terms)
        scored.append(annotated)
    return sorted(scored, key=lambda item: item.score or 0.0, reverse=True)
