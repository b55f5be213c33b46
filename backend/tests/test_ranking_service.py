from __future__ import annotations

import random

import pytest

from localbiz.services.business_record_service import Coordinates
from localbiz.services.ranking_service import (
    NEUTRAL_DISTANCE_SCORE,
    REMOTE_DISTANCE_SCORE,
    rank_and_sort,
    score,
    score_breakdown,
)

SANDTON = Coordinates(lat=-26.1067, lng=28.0567)


def _by_id(records, business_id):
    return next(record for record in records if record.id == business_id)


def test_sandton_legal_group_scores_0_905(seed_records) -> None:
    sandton = _by_id(seed_records, "sandton-legal-group")
    breakdown = score_breakdown(sandton)

    assert breakdown.rating == pytest.approx(0.98)
    assert breakdown.experience == pytest.approx(0.70)
    assert breakdown.completeness == pytest.approx(1.0)
    assert breakdown.distance == pytest.approx(0.85)
    assert breakdown.text_match == pytest.approx(1.0)
    assert score(sandton) == pytest.approx(0.905)


def test_remote_records_always_get_fixed_distance_score(make_record) -> None:
    remote_far = make_record(is_remote=True, lat=-33.9249, lng=18.4241, distance_km=1270.0)
    remote_unpinned = make_record(is_remote=True)

    for record in (remote_far, remote_unpinned):
        assert score_breakdown(record).distance == REMOTE_DISTANCE_SCORE
        assert score_breakdown(record, SANDTON).distance == REMOTE_DISTANCE_SCORE


def test_distance_score_decays_linearly_to_zero_at_50_km(make_record) -> None:
    assert score_breakdown(make_record(distance_km=0.0), SANDTON).distance == 1.0
    assert score_breakdown(make_record(distance_km=25.0), SANDTON).distance == pytest.approx(0.5)
    assert score_breakdown(make_record(distance_km=50.0), SANDTON).distance == 0.0
    assert score_breakdown(make_record(distance_km=400.0), SANDTON).distance == 0.0


def test_unknown_distance_is_neutral(make_record) -> None:
    assert score_breakdown(make_record(distance_km=5.0)).distance == NEUTRAL_DISTANCE_SCORE
    assert score_breakdown(make_record(), SANDTON).distance == NEUTRAL_DISTANCE_SCORE


def test_experience_is_capped_at_twenty_years(make_record) -> None:
    assert score_breakdown(make_record(years_of_experience=40)).experience == 1.0
    assert score_breakdown(make_record(years_of_experience=5)).experience == 0.25


def test_score_stays_within_bounds(make_record, seed_records) -> None:
    rng = random.Random(7)
    records = list(seed_records)
    for index in range(200):
        records.append(
            make_record(
                id=f"r{index}",
                name=rng.choice(["", "Legal Eagles", "Wealth Co"]),
                rating=rng.uniform(0, 5),
                years_of_experience=rng.randint(0, 60),
                is_remote=rng.random() < 0.3,
                lat=rng.uniform(-90, 90),
                lng=rng.uniform(-180, 180),
            )
        )
    terms = ["legal", "wealth"]
    for record in rank_and_sort(records, SANDTON, terms):
        assert record.score is not None
        assert 0.0 <= record.score <= 1.0


def test_rank_and_sort_attaches_distance_without_mutating_input(seed_records) -> None:
    ranked = rank_and_sort(seed_records, SANDTON)

    assert all(record.distance_km is None and record.score is None for record in seed_records)
    assert all(record.distance_km is not None for record in ranked)
    scores = [record.score for record in ranked]
    assert scores == sorted(scores, reverse=True)


def test_unpinned_records_get_no_distance(make_record) -> None:
    ranked = rank_and_sort([make_record(id="unpinned")], SANDTON)
    assert ranked[0].distance_km is None
    assert score_breakdown(ranked[0], SANDTON).distance == NEUTRAL_DISTANCE_SCORE


def test_supplied_distance_is_kept_when_location_cannot_be_measured(make_record) -> None:
    ranked = rank_and_sort([make_record(id="pre", distance_km=12.5)])
    assert ranked[0].distance_km == 12.5


def test_ties_keep_input_order(make_record) -> None:
    records = [make_record(id=f"tie-{index}", rating=3.0) for index in range(6)]
    ranked = rank_and_sort(records)
    assert [record.id for record in ranked] == [f"tie-{index}" for index in range(6)]


def test_ranking_is_deterministic(seed_records) -> None:
    first = rank_and_sort(seed_records, SANDTON, ["johannesburg"])
    second = rank_and_sort(seed_records, SANDTON, ["johannesburg"])
    assert [record.id for record in first] == [record.id for record in second]
    assert [record.score for record in first] == [record.score for record in second]


def test_text_match_contributes_to_score(make_record) -> None:
    record = make_record(name="Legal", rating=4.0)
    full = score(record, terms=["legal"])
    half = score(record, terms=["legal", "finance"])
    assert full - half == pytest.approx(0.05)
