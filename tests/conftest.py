from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Callable, List, Optional

import httpx
import orjson
import pytest

from quakewatch.core.contracts import GeoPoint, HazardEvent
from quakewatch.services.dashboard import Dashboard


def epoch_ms(y: int, m: int, d: int, hh: int = 12) -> int:
    return int(datetime(y, m, d, hh, tzinfo=timezone.utc).timestamp() * 1000)


def make_feature(
    eid: Optional[str],
    mag: Any,
    *,
    when: int = epoch_ms(2024, 5, 1),
    lng: float = 85.3,
    lat: float = 27.7,
    depth: Optional[float] = 10.0,
    place: str = "10 km NE of Kathmandu, Nepal",
) -> dict:
    coords: List[Any] = [lng, lat]
    if depth is not None:
        coords.append(depth)
    feat = {
        "type": "Feature",
        "properties": {
            "mag": mag,
            "time": when,
            "place": place,
            "url": f"https://earthquake.usgs.gov/earthquakes/eventpage/{eid}",
            "magType": "mb",
            "status": "reviewed",
        },
        "geometry": {"type": "Point", "coordinates": coords},
    }
    if eid is not None:
        feat["id"] = eid
    return feat


def feed_body(features: List[dict]) -> bytes:
    return orjson.dumps({"type": "FeatureCollection", "features": features})


def make_event(
    eid: str,
    mag: float,
    *,
    when: datetime = datetime(2024, 5, 1, 12, tzinfo=timezone.utc),
    lng: float = 85.3,
    lat: float = 27.7,
) -> HazardEvent:
    return HazardEvent(
        id=eid,
        location=GeoPoint(lat=lat, lng=lng, depth_km=10.0),
        magnitude=mag,
        occurred_at=when,
        place=f"event {eid}",
    )


class FeedStub:
    """Scripted catalog responses, consumed in order; records every request."""

    def __init__(self, *responses: Callable[[httpx.Request], httpx.Response]):
        self.responses = list(responses)
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses.pop(0)(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


def ok(features: List[dict]) -> Callable[[httpx.Request], httpx.Response]:
    return lambda request: httpx.Response(200, content=feed_body(features))


def status(code: int) -> Callable[[httpx.Request], httpx.Response]:
    return lambda request: httpx.Response(code, content=b"upstream unavailable")


THREE_QUAKES = [
    make_feature("us1", 4.2, when=epoch_ms(2024, 5, 1)),
    make_feature("us2", 6.5, when=epoch_ms(2024, 5, 2)),
    make_feature("us3", 7.8, when=epoch_ms(2024, 5, 3)),
]

WINDOW = (date(2024, 1, 1), date(2024, 12, 31))


@pytest.fixture
def rivers_file(tmp_path):
    path = tmp_path / "rivers.geojson"
    path.write_bytes(
        orjson.dumps(
            {
                "type": "FeatureCollection",
                "features": [
                    {
                        "type": "Feature",
                        "properties": {"name": "Koshi", "risk_level": "HIGH"},
                        "geometry": {"type": "LineString", "coordinates": [[87.0, 27.0], [87.1, 26.8]]},
                    },
                    {
                        "type": "Feature",
                        "properties": {"name": "Bagmati"},
                        "geometry": {"type": "LineString", "coordinates": [[85.3, 27.7], [85.5, 27.2]]},
                    },
                    {"type": "Feature", "properties": {"name": "no geometry"}, "geometry": None},
                ],
            }
        )
    )
    return path


@pytest.fixture
def make_dashboard(rivers_file):
    from quakewatch.services.rivers import RiverDataset

    def _make(stub: FeedStub) -> Dashboard:
        return Dashboard(rivers=RiverDataset(str(rivers_file)), transport=stub.transport)

    return _make
