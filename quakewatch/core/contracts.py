from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


# ──────────────────────────────────────────────────────────────
# Shared
# ──────────────────────────────────────────────────────────────

GeoJSON = Dict[str, Any]


class BBox4(BaseModel):
    minLng: float
    minLat: float
    maxLng: float
    maxLat: float


class GeoPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float
    lng: float
    depth_km: Optional[float] = None


# ──────────────────────────────────────────────────────────────
# Seismic events
# ──────────────────────────────────────────────────────────────

class SeverityClass(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


ALL_CLASSES: FrozenSet[SeverityClass] = frozenset(SeverityClass)


class HazardEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    location: GeoPoint
    magnitude: float = 0.0          # missing upstream `mag` → 0
    occurred_at: datetime           # UTC
    place: str = "Unknown Location"
    detail_url: Optional[str] = None
    status: Optional[str] = None
    magnitude_type: Optional[str] = None


class Statistics(BaseModel):
    total_count: int = 0
    critical_count: int = 0
    average_magnitude: float = 0.0  # one decimal, over the full fetched set


class StatsReport(BaseModel):
    """What the statistics panel shows: numbers, or the error marker on every field."""

    ok: bool
    total: str
    critical: str
    average: str
    stats: Optional[Statistics] = None


# ──────────────────────────────────────────────────────────────
# Filters + fetch lifecycle
# ──────────────────────────────────────────────────────────────

class FilterState(BaseModel):
    model_config = ConfigDict(frozen=True)

    start_date: Optional[date] = None   # inclusive
    end_date: Optional[date] = None     # inclusive
    min_magnitude: float = 4.0
    region: str = "global"              # "global" or a key of geo_registry
    selected_classes: FrozenSet[SeverityClass] = ALL_CLASSES


class FetchParams(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: date
    end: date
    min_magnitude: float = 4.0
    region: str = "global"


FetchState = Literal["idle", "in_flight", "success", "failure"]
OutcomeStatus = Literal["success", "failure", "skipped"]


class FetchOutcome(BaseModel):
    status: OutcomeStatus
    count: int = 0
    error: Optional[str] = None
    status_code: Optional[int] = None
    fetch_key: Optional[str] = None


# Notifications published by the fetch coordinator / filter handlers

class DataLoaded(BaseModel):
    count: int
    params: FetchParams


class DataLoadFailed(BaseModel):
    reason: str
    status_code: Optional[int] = None


class FilterChanged(BaseModel):
    filter: FilterState


# ──────────────────────────────────────────────────────────────
# Rendering / reporting payloads
# ──────────────────────────────────────────────────────────────

class RenderedEvent(BaseModel):
    geometry: GeoJSON               # Point [lng, lat, depth?]
    event_id: str
    magnitude: float
    severity: SeverityClass
    threat_label: str
    color: str
    radius: float
    pulse: bool = False
    place: str
    occurred_at: datetime
    depth_km: float = 0.0
    url: Optional[str] = None

    def to_feature(self) -> GeoJSON:
        props = self.model_dump(mode="json", exclude={"geometry"})
        return {"type": "Feature", "id": self.event_id, "geometry": self.geometry, "properties": props}


class EventDetail(BaseModel):
    id: str
    place: str
    magnitude: str                  # two decimals
    threat_label: str
    color: str
    depth_km: str
    occurred_at: datetime
    coordinates: str                # "28.1234°N, 84.5678°E"
    magnitude_type: str = "N/A"
    status: str = "N/A"
    url: Optional[str] = None


class StatusReport(BaseModel):
    message: str = "SYSTEM ONLINE"
    online: bool = True
    data_status: Optional[str] = None
    data_status_kind: Literal["loading", "success", "error"] = "success"
    updated_at: Optional[str] = None


# ──────────────────────────────────────────────────────────────
# Rivers + flood buffers
# ──────────────────────────────────────────────────────────────

class LinearFeature(BaseModel):
    id: str
    name: Optional[str] = None
    risk_level: Optional[str] = None   # "HIGH" or absent
    geometry: GeoJSON
    properties: Dict[str, Any] = Field(default_factory=dict)


class BufferedZone(BaseModel):
    source_feature_id: str
    distance_meters: float
    geometry: GeoJSON               # Polygon | MultiPolygon
    name: Optional[str] = None
    risk_level: str = "MODERATE"

    def to_feature(self) -> GeoJSON:
        return {
            "type": "Feature",
            "geometry": self.geometry,
            "properties": {
                "source_feature_id": self.source_feature_id,
                "distance_meters": self.distance_meters,
                "name": self.name,
                "risk_level": self.risk_level,
            },
        }


def feature_collection(features: List[GeoJSON]) -> GeoJSON:
    return {"type": "FeatureCollection", "features": features}
