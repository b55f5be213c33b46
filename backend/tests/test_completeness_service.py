from __future__ import annotations

import pytest

from localbiz.services.business_record_service import normalize_business
from localbiz.services.completeness_service import completeness, missing_profile_fields


def _full_profile(make_record, **overrides):
    fields = {
        "name": "Vitality Health Specialists",
        "description": "Private specialist practice offering integrative medicine.",
        "phone": "+27 11 456 7890",
        "email": "info@vitalityhealth.co.za",
        "website": "https://vitalityhealth.co.za",
        "address": "Morningside Medical Village",
        "city": "Johannesburg",
        "images": ["https://img.example/clinic.jpg"],
        "lat": -26.085,
        "lng": 28.0625,
        "years_of_experience": 18,
    }
    fields.update(overrides)
    return make_record(**fields)


def test_empty_record_scores_zero(make_record) -> None:
    assert completeness(make_record()) == 0.0
    assert len(missing_profile_fields(make_record())) == 10


def test_full_profile_scores_one(make_record) -> None:
    record = _full_profile(make_record)
    assert completeness(record) == 1.0
    assert missing_profile_fields(record) == []


@pytest.mark.parametrize(
    ("overrides", "missing"),
    [
        ({"description": "x" * 30}, "description"),
        ({"images": []}, "images"),
        ({"lat": 0.0, "lng": 0.0}, "location"),
        ({"years_of_experience": 0}, "years_of_experience"),
        ({"website": ""}, "website"),
    ],
)
def test_each_item_is_a_strict_predicate(make_record, overrides, missing) -> None:
    record = _full_profile(make_record, **overrides)
    assert completeness(record) == pytest.approx(0.9)
    assert missing_profile_fields(record) == [missing]


def test_description_of_31_characters_counts(make_record) -> None:
    assert "description" not in missing_profile_fields(make_record(description="x" * 31))


def test_description_length_is_measured_after_trimming(make_record) -> None:
    padded = "   " + "x" * 28 + "   "
    record = normalize_business({"id": "padded", "description": padded})

    assert record.description == "x" * 28
    assert "description" in missing_profile_fields(record)
    assert "description" in missing_profile_fields(make_record(description="x" * 28))
