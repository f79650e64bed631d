"""
Facet and period-ordering tests.

Run: pytest scripts/test_facets.py
"""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from conftest import add_institution, add_placement
from tus_guide.core.errors import FacetsUnavailableError
from tus_guide.services.facet_service import compute_facets
from tus_guide.services.periods import active_period_window, period_sort_key, sort_periods


def test_periods_sort_by_year_then_half():
    tokens = ["2024/1", "2023/2", "2025/1", "2024/2"]
    assert sort_periods(tokens, descending=True) == ["2025/1", "2024/2", "2024/1", "2023/2"]
    assert period_sort_key("2024/2") > period_sort_key("2024/1")


def test_malformed_periods_sort_below_real_ones():
    assert sort_periods(["2024/1", "draft", "2023/2"]) == ["draft", "2023/2", "2024/1"]


def test_active_window_takes_latest_four(seeded_db):
    assert active_period_window(seeded_db) == ["2024/2", "2024/1", "2023/1", "2022/2"]
    assert active_period_window(seeded_db, size=1) == ["2024/2"]


def test_facets_over_seed_data(seeded_db):
    facets = compute_facets(seeded_db)

    assert facets.city == ["Ankara", "İzmir"]
    assert facets.ownership_type == ["DEVLET", "ÖZEL"]
    assert facets.institution_kind == ["Hastane", "Tıp Fakültesi"]
    assert facets.branch == ["Cardiology", "Neurology", "Pediatrics"]
    assert facets.period == ["2022/1", "2022/2", "2023/1", "2024/1", "2024/2"]

    assert facets.ranges.min_score.min == 50.0
    assert facets.ranges.min_score.max == 80.0
    assert facets.ranges.quota.min == 2
    assert facets.ranges.quota.max == 20


def test_facets_skip_blank_values(db):
    add_institution(db, 1, "Blank City Hospital", city="")
    add_institution(db, 2, "Real Hospital", city="Bursa")
    db.commit()

    assert compute_facets(db).city == ["Bursa"]


def test_empty_dataset_uses_fallback_ranges(db):
    facets = compute_facets(db)

    assert facets.city == []
    assert facets.period == []
    assert (facets.ranges.min_score.min, facets.ranges.min_score.max) == (0, 100)
    assert (facets.ranges.quota.min, facets.ranges.quota.max) == (0, 1000)


def test_all_null_scores_use_score_fallback_only(db):
    add_institution(db, 1, "No Score Hospital")
    add_placement(db, 1, "Cardiology", "2025/1", quota=7, min_score=None)
    add_placement(db, 1, "Neurology", "2025/1", quota=3, min_score=None)
    db.commit()

    facets = compute_facets(db)
    assert (facets.ranges.min_score.min, facets.ranges.min_score.max) == (0, 100)
    assert (facets.ranges.quota.min, facets.ranges.quota.max) == (3, 7)


def test_zero_minimum_is_kept(db):
    add_institution(db, 1, "Zero Hospital")
    add_placement(db, 1, "Cardiology", "2025/1", quota=0, min_score=0.0)
    add_placement(db, 1, "Neurology", "2025/1", quota=5, min_score=55.0)
    db.commit()

    facets = compute_facets(db)
    assert facets.ranges.min_score.min == 0
    assert facets.ranges.quota.min == 0


def test_facet_failure_is_reported_whole():
    bare = create_engine("sqlite://")
    session = sessionmaker(bind=bare)()
    try:
        with pytest.raises(FacetsUnavailableError):
            compute_facets(session)
    finally:
        session.close()
        bare.dispose()
