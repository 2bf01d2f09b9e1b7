import asyncio
from datetime import date

import httpx
import pytest

from conftest import THREE_QUAKES, WINDOW, FeedStub, feed_body, make_feature, ok, status

from quakewatch.core.contracts import DataLoaded, DataLoadFailed, FetchParams, SeverityClass
from quakewatch.core.errors import InvalidRangeError
from quakewatch.core.keying import fetch_key
from quakewatch.services.catalog import Catalog, build_query, parse_feature_collection
from quakewatch.services.classifier import classify
from quakewatch.services.event_store import EventStore

PARAMS = FetchParams(start=WINDOW[0], end=WINDOW[1], min_magnitude=4.0, region="nepal")


def _catalog(stub):
    store = EventStore()
    cat = Catalog(store=store, feed_url="https://catalog.test/query", transport=stub.transport)
    notes = []
    cat.subscribe(notes.append)
    return cat, store, notes


def test_success_replaces_store_and_publishes():
    stub = FeedStub(ok(THREE_QUAKES))
    cat, store, notes = _catalog(stub)

    outcome = asyncio.run(cat.fetch(PARAMS))

    assert outcome.status == "success"
    assert outcome.count == 3
    assert [ev.id for ev in store.events] == ["us1", "us2", "us3"]
    assert store.last_params == PARAMS
    assert store.fetch_key == outcome.fetch_key
    assert notes == [DataLoaded(count=3, params=PARAMS)]
    assert cat.state == "idle"


def test_query_carries_window_magnitude_and_region_box():
    stub = FeedStub(ok([]))
    cat, _, _ = _catalog(stub)
    asyncio.run(cat.fetch(PARAMS))

    q = stub.requests[0].url.params
    assert q["format"] == "geojson"
    assert q["starttime"] == "2024-01-01"
    assert q["endtime"] == "2024-12-31"
    assert float(q["minmagnitude"]) == 4.0
    assert q["limit"] == "10000"
    assert float(q["minlatitude"]) == 25.0
    assert float(q["maxlatitude"]) == 31.0
    assert float(q["minlongitude"]) == 78.0
    assert float(q["maxlongitude"]) == 90.0


def test_global_region_sends_no_bounding_box():
    q = build_query(FetchParams(start=date(2024, 1, 1), end=date(2024, 1, 2), region="global"), limit=50)
    assert "minlatitude" not in q
    assert q["limit"] == 50


def test_invalid_range_raises_before_any_request():
    stub = FeedStub(ok(THREE_QUAKES))
    cat, store, notes = _catalog(stub)
    bad = FetchParams(start=date(2024, 2, 1), end=date(2024, 1, 1))

    with pytest.raises(InvalidRangeError):
        asyncio.run(cat.fetch(bad))

    assert stub.requests == []
    assert notes == []
    assert cat.state == "idle"


def test_second_fetch_while_in_flight_is_skipped():
    requests = []
    other = FetchParams(start=date(2020, 1, 1), end=date(2020, 12, 31), region="global")

    async def scenario():
        release = asyncio.Event()

        async def handler(request):
            requests.append(request)
            await release.wait()
            return httpx.Response(200, content=feed_body(THREE_QUAKES))

        store = EventStore()
        cat = Catalog(store=store, transport=httpx.MockTransport(handler))

        first = asyncio.create_task(cat.fetch(PARAMS))
        await asyncio.sleep(0)
        assert cat.in_flight

        second = await cat.fetch(other)
        assert second.status == "skipped"
        assert len(store) == 0

        release.set()
        first_outcome = await first
        return store, first_outcome, second

    store, first_outcome, second = asyncio.run(scenario())

    assert first_outcome.status == "success"
    assert len(requests) == 1
    assert store.last_params == PARAMS
    assert second.count == 0


def test_http_503_leaves_store_untouched():
    stub = FeedStub(ok(THREE_QUAKES), status(503))
    cat, store, notes = _catalog(stub)

    asyncio.run(cat.fetch(PARAMS))
    before = store.events
    outcome = asyncio.run(cat.fetch(PARAMS))

    assert outcome.status == "failure"
    assert outcome.status_code == 503
    assert "503" in outcome.error
    assert store.events is before
    assert isinstance(notes[-1], DataLoadFailed)
    assert notes[-1].status_code == 503
    assert cat.last_error == outcome.error
    assert len(stub.requests) == 2


@pytest.mark.parametrize(
    "body",
    [
        b"<html>not json</html>",
        b"[1, 2, 3]",
        b'{"type": "Feature", "features": []}',
        b'{"type": "FeatureCollection"}',
        b'{"type": "FeatureCollection", "features": [{"properties": {"mag": 5, "time": 1}}]}',
        b'{"type": "FeatureCollection", "features": [{"properties": [1], "geometry": {"type": "Point", "coordinates": [85.3, 27.7]}}]}',
        b'{"type": "FeatureCollection", "features": [{"properties": {"mag": 5, "time": 1, "place": 123}, "geometry": {"type": "Point", "coordinates": [85.3, 27.7]}}]}',
        b'{"type": "FeatureCollection", "features": [{"properties": {"mag": 5, "time": 1e20}, "geometry": {"type": "Point", "coordinates": [85.3, 27.7]}}]}',
    ],
)
def test_malformed_bodies_are_upstream_failures(body):
    stub = FeedStub(lambda request: httpx.Response(200, content=body))
    cat, store, notes = _catalog(stub)

    outcome = asyncio.run(cat.fetch(PARAMS))

    assert outcome.status == "failure"
    assert outcome.status_code is None
    assert not store.has_data
    assert isinstance(notes[0], DataLoadFailed)


def test_timeout_is_a_failure_without_retry():
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ReadTimeout("timed out", request=request)

    cat = Catalog(store=EventStore(), transport=httpx.MockTransport(handler), timeout_s=5)
    outcome = asyncio.run(cat.fetch(PARAMS))

    assert outcome.status == "failure"
    assert "timed out" in outcome.error
    assert len(calls) == 1


def test_missing_magnitude_is_coerced_not_dropped():
    events = parse_feature_collection(
        feed_body([make_feature("nomag", None), make_feature("low", 3.1), make_feature(None, 5.5, depth=None)])
    )

    assert [ev.magnitude for ev in events] == [0.0, 3.1, 5.5]
    assert classify(events[0].magnitude) is SeverityClass.LOW
    assert events[2].id.startswith("qw_")
    assert events[2].location.depth_km is None
    assert events[0].occurred_at.tzinfo is not None


def test_fetch_key_is_stable_for_equal_params():
    same = FetchParams(start=WINDOW[0], end=WINDOW[1], min_magnitude=4.0, region="Nepal")
    assert fetch_key(PARAMS, "u") == fetch_key(same, "u")
    assert fetch_key(PARAMS, "u") != fetch_key(PARAMS, "v")
