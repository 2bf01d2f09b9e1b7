from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from quakewatch.core.contracts import FilterState, HazardEvent, Statistics
from quakewatch.core.geo_registry import point_in_bbox, region_bbox
from quakewatch.core.time import utc_now
from quakewatch.services.classifier import CRITICAL_MAGNITUDE, classify


@dataclass
class EventView:
    visible: List[HazardEvent] = field(default_factory=list)
    stats: Statistics = field(default_factory=Statistics)


def compute_stats(events: Sequence[HazardEvent]) -> Statistics:
    """Catalog-wide numbers for the stats panel. Empty input gives zeros, never NaN."""
    total = len(events)
    if total == 0:
        return Statistics()
    major = sum(1 for ev in events if ev.magnitude >= CRITICAL_MAGNITUDE)
    avg = sum(ev.magnitude for ev in events) / total
    return Statistics(total_count=total, critical_count=major, average_magnitude=round(avg, 1))


def major_count(events: Sequence[HazardEvent]) -> int:
    return sum(1 for ev in events if ev.magnitude >= CRITICAL_MAGNITUDE)


def recent_count(events: Sequence[HazardEvent], *, days: int = 30, now: Optional[datetime] = None) -> int:
    """Events strictly newer than `now - days`."""
    cutoff = (now or utc_now()) - timedelta(days=days)
    return sum(1 for ev in events if ev.occurred_at > cutoff)


def _matches(ev: HazardEvent, f: FilterState, bbox) -> bool:
    if classify(ev.magnitude) not in f.selected_classes:
        return False
    day = ev.occurred_at.date()
    if f.start_date is not None and day < f.start_date:
        return False
    if f.end_date is not None and day > f.end_date:
        return False
    if bbox is not None and not point_in_bbox(ev.location, bbox):
        return False
    return True


def compute_view(events: Sequence[HazardEvent], f: FilterState) -> EventView:
    """
    Visible subset under `f` plus stats over the full `events`.

    The predicates (class, inclusive date window, region box) are
    independent, so their order is irrelevant. The visible list keeps
    the input order. `f.min_magnitude` is a query parameter and is not
    re-applied here.
    """
    bbox = region_bbox(f.region)
    visible = [ev for ev in events if _matches(ev, f, bbox)]
    return EventView(visible=visible, stats=compute_stats(events))
