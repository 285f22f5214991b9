from datetime import datetime, timedelta, timezone

DEFAULT_SELECTOR = "1d"

# Canonical selectors first; the rest are accepted spellings
_DURATIONS = {
    "1h": timedelta(hours=1),
    "5h": timedelta(hours=5),
    "1d": timedelta(days=1),
    "1w": timedelta(weeks=1),
}

_ALIASES = {
    "1hr": "1h",
    "1 hour": "1h",
    "5hr": "5h",
    "5 hours": "5h",
    "1 day": "1d",
    "1 week": "1w",
}

_LABELS = {
    "1h": "1 hour",
    "5h": "5 hours",
    "1d": "1 day",
    "1w": "1 week",
}

SELECTORS = list(_DURATIONS)


def canonical_selector(selector: str | None) -> str:
    """
    Map any accepted spelling to its canonical selector.

    Unknown or missing selectors fall back to the default rather than failing:
    the duration is a client preference, not a trusted parameter.
    """
    key = " ".join((selector or "").lower().split())
    key = _ALIASES.get(key, key)
    return key if key in _DURATIONS else DEFAULT_SELECTOR


def resolve_duration(selector: str | None) -> timedelta:
    return _DURATIONS[canonical_selector(selector)]


def compute_expiration(selector: str | None, now: datetime | None = None) -> datetime:
    if now is None:
        now = datetime.now(timezone.utc)
    return now + resolve_duration(selector)


def describe_duration(selector: str | None) -> str:
    return _LABELS[canonical_selector(selector)]
