"""Event type and recency filtering."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable

from events import Event
from report_config import FilterMode

log = logging.getLogger(__name__)

EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


def recency_cutoff(since_days: int, now: datetime) -> datetime:
    """Oldest instant still outside the window; events must be strictly newer.

    Windows reaching past the earliest representable datetime clamp to it.
    """
    try:
        return now - timedelta(days=since_days)
    except OverflowError:
        return EARLIEST


def type_predicate(mode: FilterMode, type_set: frozenset[str]):
    if mode is FilterMode.INCLUDE:
        return lambda event: event.type in type_set
    if mode is FilterMode.EXCLUDE:
        return lambda event: event.type not in type_set
    return lambda event: True


def filter_events(
    events: Iterable[Event],
    mode: FilterMode,
    type_set: frozenset[str],
    since_days: int,
    now: datetime,
) -> list[Event]:
    """Keep events matching the type rule and newer than the recency cutoff."""
    keep_type = type_predicate(mode, type_set)
    cutoff = recency_cutoff(since_days, now)

    by_type = [e for e in events if keep_type(e)]
    kept = [e for e in by_type if e.created_at > cutoff]
    log.debug(
        f"Filter mode={mode.value} types={sorted(type_set)}: "
        f"{len(by_type)} matched by type, {len(by_type) - len(kept)} at or before {cutoff.isoformat()}, "
        f"{len(kept)} kept"
    )
    return kept
