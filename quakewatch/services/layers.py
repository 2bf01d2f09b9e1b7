# quakewatch/services/layers.py
"""
Rendering / reporting collaborators.

The pipeline only talks to the Protocols below. The in-memory
implementations hold what the dashboard page should currently show;
the HTTP routes serve their contents and the browser draws them.
"""
from __future__ import annotations

from typing import List, Literal, Protocol, Sequence

from quakewatch.core.contracts import (
    EventDetail,
    GeoJSON,
    HazardEvent,
    RenderedEvent,
    Statistics,
    StatsReport,
    StatusReport,
    feature_collection,
)
from quakewatch.core.time import utc_now_iso
from quakewatch.services.classifier import classify, color, is_pulse, marker_radius, threat_label

ERROR_MARKER = "ERR"

DataStatusKind = Literal["loading", "success", "error"]


# ──────────────────────────────────────────────────────────────
# Protocols
# ──────────────────────────────────────────────────────────────

class FeatureRenderer(Protocol):
    def replace(self, items: Sequence) -> None: ...

    def clear(self) -> None: ...


class StatsReporter(Protocol):
    def report(self, stats: Statistics) -> None: ...

    def report_error(self) -> None: ...


class StatusReporter(Protocol):
    def update(self, message: str, online: bool) -> None: ...

    def data_status(self, message: str, kind: DataStatusKind) -> None: ...


# ──────────────────────────────────────────────────────────────
# Event → display payloads
# ──────────────────────────────────────────────────────────────

def render_event(ev: HazardEvent) -> RenderedEvent:
    cls = classify(ev.magnitude)
    coords = [ev.location.lng, ev.location.lat]
    if ev.location.depth_km is not None:
        coords.append(ev.location.depth_km)
    return RenderedEvent(
        geometry={"type": "Point", "coordinates": coords},
        event_id=ev.id,
        magnitude=ev.magnitude,
        severity=cls,
        threat_label=threat_label(cls),
        color=color(cls),
        radius=marker_radius(ev.magnitude),
        pulse=is_pulse(ev.magnitude),
        place=ev.place,
        occurred_at=ev.occurred_at,
        depth_km=ev.location.depth_km or 0.0,
        url=ev.detail_url,
    )


def event_detail(ev: HazardEvent) -> EventDetail:
    cls = classify(ev.magnitude)
    return EventDetail(
        id=ev.id,
        place=ev.place,
        magnitude=f"{ev.magnitude:.2f}",
        threat_label=threat_label(cls),
        color=color(cls),
        depth_km=f"{(ev.location.depth_km or 0.0):.2f}",
        occurred_at=ev.occurred_at,
        coordinates=f"{ev.location.lat:.6f}°N, {ev.location.lng:.6f}°E",
        magnitude_type=ev.magnitude_type or "N/A",
        status=ev.status or "N/A",
        url=ev.detail_url,
    )


def stats_report(stats: Statistics) -> StatsReport:
    avg = f"{stats.average_magnitude:.1f}" if stats.total_count > 0 else "0"
    return StatsReport(
        ok=True,
        total=str(stats.total_count),
        critical=str(stats.critical_count),
        average=avg,
        stats=stats,
    )


def error_stats_report() -> StatsReport:
    return StatsReport(ok=False, total=ERROR_MARKER, critical=ERROR_MARKER, average=ERROR_MARKER)


# ──────────────────────────────────────────────────────────────
# In-memory collaborators
# ──────────────────────────────────────────────────────────────

class GeoJSONLayer:
    """A layer group: whatever was last handed to `replace`, nothing merged."""

    def __init__(self, name: str):
        self.name = name
        self.items: List = []
        self.revision = 0

    def replace(self, items: Sequence) -> None:
        self.items = list(items)
        self.revision += 1

    def clear(self) -> None:
        self.items = []
        self.revision += 1

    def __len__(self) -> int:
        return len(self.items)

    def to_geojson(self) -> GeoJSON:
        return feature_collection([it.to_feature() for it in self.items])


class StatsBoard:
    def __init__(self) -> None:
        self.current = stats_report(Statistics())

    def report(self, stats: Statistics) -> None:
        self.current = stats_report(stats)

    def report_error(self) -> None:
        self.current = error_stats_report()


class StatusBoard:
    def __init__(self) -> None:
        self.current = StatusReport(updated_at=utc_now_iso())

    def update(self, message: str, online: bool) -> None:
        self.current = self.current.model_copy(
            update={"message": message, "online": online, "updated_at": utc_now_iso()}
        )

    def data_status(self, message: str, kind: DataStatusKind) -> None:
        self.current = self.current.model_copy(
            update={"data_status": message, "data_status_kind": kind, "updated_at": utc_now_iso()}
        )
