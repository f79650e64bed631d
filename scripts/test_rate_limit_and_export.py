"""
Unit tests for the rate limiter and CSV rendering.

Run: pytest scripts/test_rate_limit_and_export.py
"""

import pytest

from tus_guide.core.rate_limit import SlidingWindowRateLimiter
from tus_guide.schemas.schemas import MultiPeriodRow, MultiPeriodSearchResponse, PeriodData
from tus_guide.services.export_service import csv_headers, render_csv


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_limiter_blocks_after_capacity_then_recovers():
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(max_requests=2, window_seconds=60, clock=clock)

    assert limiter.hit("1.2.3.4")
    assert limiter.hit("1.2.3.4")
    assert not limiter.hit("1.2.3.4")
    assert limiter.retry_after("1.2.3.4") == 60

    clock.now += 30
    assert not limiter.hit("1.2.3.4")
    assert limiter.retry_after("1.2.3.4") == 30

    clock.now += 30
    assert limiter.hit("1.2.3.4")


def test_limiter_keys_are_independent():
    limiter = SlidingWindowRateLimiter(max_requests=1, window_seconds=60, clock=FakeClock())
    assert limiter.hit("a")
    assert limiter.hit("b")
    assert not limiter.hit("a")

    limiter.reset()
    assert limiter.hit("a")



def test_limiter_forgets_idle_clients():
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(max_requests=1, window_seconds=60, clock=clock)
    for i in range(50):
        assert limiter.hit(f"10.0.0.{i}")
    assert limiter.tracked_keys == 50

    clock.now += 60
    assert limiter.hit("10.0.0.200")
    assert limiter.tracked_keys == 1


def test_limiter_keeps_active_clients_on_sweep():
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(max_requests=1, window_seconds=60, clock=clock)
    assert limiter.hit("idle")
    clock.now += 30
    assert limiter.hit("busy")

    clock.now += 30
    assert limiter.hit("other")
    assert limiter.tracked_keys == 2
    assert not limiter.hit("busy")

@pytest.mark.parametrize("kwargs", [
    {"max_requests": 0, "window_seconds": 60},
    {"max_requests": 5, "window_seconds": 0},
])
def test_limiter_rejects_bad_configuration(kwargs):
    with pytest.raises(ValueError):
        SlidingWindowRateLimiter(**kwargs)


def test_csv_headers_have_a_block_per_period():
    headers = csv_headers(["2025/1", "2024/2"])
    assert headers[6:10] == ["2025/1 Quota", "2025/1 Filled", "2025/1 Min Score", "2025/1 Rank"]
    assert len(headers) == 6 + 8


def test_render_csv_quotes_and_keeps_zero():
    row = MultiPeriodRow(
        id="1-Kardiyoloji-Uzmanlık",
        institution_code=1,
        name="Hospital, Main Campus",
        city="Ankara",
        ownership_type="DEVLET",
        institution_kind="Hastane",
        branch="Kardiyoloji",
        level="Uzmanlık",
        periods={
            "2025/1": PeriodData(quota=0, filled=0, min_score=None, min_score_rank=None),
        },
    )
    result = MultiPeriodSearchResponse(
        rows=[row], periods=["2025/1"], total=1, page=1, page_size=20, total_pages=1,
    )

    lines = render_csv(result).splitlines()
    assert len(lines) == 2
    assert lines[1] == '"Hospital, Main Campus",Ankara,DEVLET,Hastane,Kardiyoloji,Uzmanlık,0,0,,'


def test_render_csv_with_no_rows():
    result = MultiPeriodSearchResponse(
        rows=[], periods=[], total=0, page=1, page_size=20, total_pages=0,
    )
    assert render_csv(result) == "Institution,City,Ownership Type,Institution Kind,Branch,Level\n"
