from datetime import datetime, timedelta, timezone

import pytest

from conftest import T0
from sharing.expiration import (
    DEFAULT_SELECTOR,
    canonical_selector,
    compute_expiration,
    describe_duration,
    resolve_duration,
)


def test_one_hour():
    assert compute_expiration("1hr", now=T0) == T0 + timedelta(seconds=3600)


def test_one_day():
    assert compute_expiration("1d", now=T0) == T0 + timedelta(seconds=86400)


def test_unknown_selector_falls_back_to_one_day():
    assert compute_expiration("bogus", now=T0) == T0 + timedelta(seconds=86400)


def test_missing_selector_falls_back_to_one_day():
    assert DEFAULT_SELECTOR == "1d"
    assert compute_expiration(None, now=T0) == T0 + timedelta(days=1)
    assert compute_expiration("", now=T0) == T0 + timedelta(days=1)


@pytest.mark.parametrize(
    "selector, expected",
    [
        ("1h", timedelta(hours=1)),
        ("1hr", timedelta(hours=1)),
        ("1 hour", timedelta(hours=1)),
        ("5hr", timedelta(hours=5)),
        ("5h", timedelta(hours=5)),
        ("1 day", timedelta(days=1)),
        ("1w", timedelta(weeks=1)),
        ("1 week", timedelta(weeks=1)),
        ("  1  WEEK ", timedelta(weeks=1)),
        ("1HR", timedelta(hours=1)),
    ],
)
def test_recognised_selectors(selector, expected):
    assert resolve_duration(selector) == expected


def test_canonical_selector_maps_aliases():
    assert canonical_selector("1hr") == "1h"
    assert canonical_selector("1 week") == "1w"
    assert canonical_selector("forever") == "1d"


def test_describe_duration_for_display():
    assert describe_duration("5hr") == "5 hours"
    assert describe_duration("nonsense") == "1 day"


def test_compute_expiration_defaults_now_to_current_utc_time():
    before = datetime.now(timezone.utc)
    expires_at = compute_expiration("1h")
    after = datetime.now(timezone.utc)

    assert before + timedelta(hours=1) <= expires_at <= after + timedelta(hours=1)
    assert expires_at.tzinfo is not None
