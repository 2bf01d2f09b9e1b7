# quakewatch/services/catalog.py
"""
Seismic catalog fetch coordinator (USGS FDSN event service).

  - One fetch in flight at a time. A second request while one is
    outstanding is dropped with a "skipped" outcome, never queued.
  - Success swaps the whole EventStore collection in one step and
    publishes DataLoaded.
  - Any upstream problem (transport error, timeout, non-2xx, body that is
    not a usable FeatureCollection) publishes DataLoadFailed and leaves
    the store alone. No retries.
"""
from __future__ import annotations

import logging
import math
from typing import Any, Callable, Dict, List, Optional, Union

import httpx
import orjson

from quakewatch.core.contracts import (
    DataLoaded,
    DataLoadFailed,
    FetchOutcome,
    FetchParams,
    FetchState,
    GeoPoint,
    HazardEvent,
)
from quakewatch.core.errors import InvalidRangeError, UpstreamError
from quakewatch.core.geo_registry import region_bbox
from quakewatch.core.keying import event_id_from_feature, fetch_key
from quakewatch.core.settings import settings
from quakewatch.core.time import epoch_ms_to_utc
from quakewatch.services.event_store import EventStore
from quakewatch.services.filters import major_count, recent_count

logger = logging.getLogger(__name__)

Notification = Union[DataLoaded, DataLoadFailed]
Listener = Callable[[Notification], None]


def _safe_float(x: Any) -> Optional[float]:
    try:
        f = float(x)
        if math.isfinite(f):
            return f
    except Exception:
        return None
    return None


# ══════════════════════════════════════════════════════════════
# Feed parsing
# ══════════════════════════════════════════════════════════════

def validate_fetch_params(params: FetchParams) -> None:
    """Raise InvalidRangeError / UnknownRegionError for a window no fetch should start with."""
    if params.start > params.end:
        raise InvalidRangeError(
            f"start date {params.start.isoformat()} is after end date {params.end.isoformat()}"
        )
    region_bbox(params.region)


def build_query(params: FetchParams, *, limit: int) -> Dict[str, Any]:
    q: Dict[str, Any] = {
        "format": "geojson",
        "starttime": params.start.isoformat(),
        "endtime": params.end.isoformat(),
        "minmagnitude": params.min_magnitude,
        "limit": int(limit),
    }
    bbox = region_bbox(params.region)
    if bbox is not None:
        q["minlatitude"] = bbox.minLat
        q["maxlatitude"] = bbox.maxLat
        q["minlongitude"] = bbox.minLng
        q["maxlongitude"] = bbox.maxLng
    return q


_TEXT_PROPS = ("place", "url", "status", "magType")


def _event_from_feature(feat: Any, idx: int) -> HazardEvent:
    if not isinstance(feat, dict):
        raise UpstreamError(f"feature {idx} is not an object")

    props = feat.get("properties") or {}
    if not isinstance(props, dict):
        raise UpstreamError(f"feature {idx} has non-object properties")
    for name in _TEXT_PROPS:
        if props.get(name) is not None and not isinstance(props[name], str):
            raise UpstreamError(f"feature {idx} has a non-text {name!r}")

    geom = feat.get("geometry") or {}
    coords = geom.get("coordinates") if isinstance(geom, dict) else None
    if not isinstance(coords, list) or len(coords) < 2:
        raise UpstreamError(f"feature {idx} has no point geometry")

    lng = _safe_float(coords[0])
    lat = _safe_float(coords[1])
    if lng is None or lat is None:
        raise UpstreamError(f"feature {idx} has invalid coordinates")
    depth = _safe_float(coords[2]) if len(coords) > 2 else None

    time_ms = _safe_float(props.get("time"))
    if time_ms is None:
        raise UpstreamError(f"feature {idx} has no origin time")

    try:
        return HazardEvent(
            id=str(feat.get("id") or event_id_from_feature(feat)),
            location=GeoPoint(lat=lat, lng=lng, depth_km=depth),
            # Missing magnitude is classified as 0, never dropped
            magnitude=_safe_float(props.get("mag")) or 0.0,
            occurred_at=epoch_ms_to_utc(time_ms),
            place=props.get("place") or "Unknown Location",
            detail_url=props.get("url"),
            status=props.get("status"),
            magnitude_type=props.get("magType"),
        )
    except (ValueError, TypeError, OverflowError, OSError) as e:
        # pydantic ValidationError is a ValueError
        raise UpstreamError(f"feature {idx} is malformed: {e}")


def parse_feature_collection(body: bytes) -> List[HazardEvent]:
    try:
        data = orjson.loads(body)
    except orjson.JSONDecodeError as e:
        raise UpstreamError(f"malformed response body: {e}")

    if not isinstance(data, dict):
        raise UpstreamError("response is not a GeoJSON FeatureCollection")
    if data.get("type", "FeatureCollection") != "FeatureCollection":
        raise UpstreamError(f"expected FeatureCollection, got {data.get('type')!r}")
    features = data.get("features")
    if not isinstance(features, list):
        raise UpstreamError("FeatureCollection has no features array")

    return [_event_from_feature(f, i) for i, f in enumerate(features)]


# ══════════════════════════════════════════════════════════════
# Coordinator
# ══════════════════════════════════════════════════════════════

class Catalog:
    def __init__(
        self,
        *,
        store: EventStore,
        feed_url: Optional[str] = None,
        timeout_s: Optional[float] = None,
        limit: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.store = store
        self.feed_url = feed_url or settings.usgs_feed_url
        self.timeout_s = float(timeout_s or settings.fetch_timeout_s)
        self.limit = int(limit or settings.fetch_limit)
        self.transport = transport

        self.state: FetchState = "idle"
        self.last_error: Optional[str] = None
        self._listeners: List[Listener] = []

    @property
    def in_flight(self) -> bool:
        return self.state == "in_flight"

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def _publish(self, note: Notification) -> None:
        for listener in list(self._listeners):
            listener(note)

    async def _request(self, params: FetchParams) -> List[HazardEvent]:
        query = build_query(params, limit=self.limit)
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_s,
                follow_redirects=True,
                transport=self.transport,
            ) as client:
                r = await client.get(
                    self.feed_url,
                    params=query,
                    headers={"User-Agent": settings.fetch_user_agent},
                )
        except httpx.TimeoutException:
            raise UpstreamError(f"request timed out after {self.timeout_s:.0f}s")
        except httpx.HTTPError as e:
            raise UpstreamError(f"request failed: {e}")

        if not r.is_success:
            raise UpstreamError(r.reason_phrase or "request failed", status_code=r.status_code)

        return parse_feature_collection(r.content)

    async def fetch(self, params: FetchParams) -> FetchOutcome:
        """
        Load one window of the catalog into the store.

        Raises InvalidRangeError (and UnknownRegionError) before any I/O.
        Upstream failures are returned, not raised.
        """
        validate_fetch_params(params)

        if self.state == "in_flight":
            logger.info("[catalog] fetch already in flight, dropping request %s..%s", params.start, params.end)
            return FetchOutcome(status="skipped")

        # Claimed before the first await: nothing else can interleave here
        self.state = "in_flight"
        key = fetch_key(params, self.feed_url)
        try:
            logger.info(
                "[catalog] fetching %s..%s minmag=%s region=%s",
                params.start, params.end, params.min_magnitude, params.region,
            )
            try:
                events = await self._request(params)
            except UpstreamError as e:
                self.state = "failure"
                self.last_error = str(e)
                logger.error("[catalog] load failed: %s", e)
                self._publish(DataLoadFailed(reason=str(e), status_code=e.status_code))
                return FetchOutcome(
                    status="failure",
                    error=str(e),
                    status_code=e.status_code,
                    fetch_key=key,
                )

            self.store.replace(events, params=params, fetch_key=key)
            self.state = "success"
            self.last_error = None

            logger.info("[catalog] %d seismic events loaded (key=%s)", len(events), key)
            major = major_count(events)
            if major:
                logger.warning("[catalog] %d major earthquake(s) (7.0+) in window", major)
            recent = recent_count(events, days=settings.recent_activity_days)
            if recent:
                logger.info(
                    "[catalog] recent activity: %d events in the last %d days",
                    recent, settings.recent_activity_days,
                )

            self._publish(DataLoaded(count=len(events), params=params))
            return FetchOutcome(status="success", count=len(events), fetch_key=key)
        finally:
            self.state = "idle"
