import orjson
import pytest
from fastapi.testclient import TestClient

from conftest import THREE_QUAKES, FeedStub, ok, status

from quakewatch.api import buffers as buffers_api
from quakewatch.api import events as events_api
from quakewatch.api import health as health_api
from quakewatch.main import app
from quakewatch.services.rivers import RiverDataset

LOAD = {"start_date": "2024-01-01", "end_date": "2024-12-31", "min_magnitude": 4, "region": "nepal"}


@pytest.fixture
def client_for(make_dashboard):
    saved = dict(app.dependency_overrides)

    def _client(stub):
        dash = make_dashboard(stub)
        for mod in (events_api, buffers_api, health_api):
            app.dependency_overrides[mod.get_dashboard] = lambda: dash
        return TestClient(app), dash

    yield _client
    app.dependency_overrides.clear()
    app.dependency_overrides.update(saved)


def test_load_layer_stats_and_detail(client_for):
    client, _ = client_for(FeedStub(ok(THREE_QUAKES)))

    r = client.post("/events/load", json=LOAD)
    assert r.status_code == 200
    assert r.json()["status"] == "success"
    assert r.json()["count"] == 3

    layer = client.get("/events/layer").json()
    assert layer["type"] == "FeatureCollection"
    assert [f["properties"]["severity"] for f in layer["features"]] == ["LOW", "HIGH", "CRITICAL"]

    stats = client.get("/events/stats").json()
    assert (stats["total"], stats["critical"], stats["average"]) == ("3", "1", "6.2")

    detail = client.get("/events/us2").json()
    assert detail["threat_label"] == "HIGH"
    assert detail["magnitude_type"] == "mb"
    assert client.get("/events/nope").status_code == 404


def test_filter_update_narrows_layer(client_for):
    client, _ = client_for(FeedStub(ok(THREE_QUAKES)))
    client.post("/events/load", json=LOAD)

    r = client.put("/events/filter", json={"classes": ["7-8"]})
    assert r.status_code == 200
    assert r.json()["selected_classes"] == ["CRITICAL"]
    assert len(client.get("/events/layer").json()["features"]) == 1

    r = client.put("/events/filter", json={"classes": ["bogus"]})
    assert r.status_code == 400
    assert r.json()["detail"]["code"] == "quakewatch_error"


def test_invalid_range_is_a_bad_request(client_for):
    stub = FeedStub(ok(THREE_QUAKES))
    client, _ = client_for(stub)

    r = client.post("/events/load", json={"start_date": "2024-03-01", "end_date": "2024-01-01"})
    assert r.status_code == 400
    assert r.json()["detail"]["code"] == "invalid_range"
    assert stub.requests == []


def test_upstream_failure_is_reported_not_raised(client_for):
    client, _ = client_for(FeedStub(status(503)))

    r = client.post("/events/load", json=LOAD)
    assert r.status_code == 200
    assert r.json()["status"] == "failure"
    assert r.json()["status_code"] == 503

    assert client.get("/events/stats").json()["total"] == "ERR"
    health = client.get("/health").json()
    assert health["fetch_state"] == "idle"
    assert health["events_loaded"] == 0
    assert health["status"]["online"] is False


def test_buffer_lifecycle(client_for):
    client, _ = client_for(FeedStub())

    r = client.post("/buffers", json={"distance": "500"})
    assert r.status_code == 200
    assert r.json()["distance_meters"] == 500.0
    assert len(r.json()["zones"]) == 2

    assert len(client.get("/buffers").json()["features"]) == 2
    assert client.post("/buffers", json={"distance": "-3"}).status_code == 400

    assert client.delete("/buffers").status_code == 204
    assert client.get("/buffers").json()["features"] == []

    rivers = client.get("/rivers").json()
    assert len(rivers["features"]) == 2


def test_buffer_reports_missing_river_dataset(client_for, tmp_path):
    client, dash = client_for(FeedStub())
    dash.rivers = RiverDataset(str(tmp_path / "missing.geojson"))

    r = client.post("/buffers", json={"distance": 500})
    assert r.status_code == 503
    assert r.json()["detail"]["code"] == "rivers_unavailable"


def test_buffer_geometry_errors_are_not_dataset_errors(client_for, tmp_path):
    path = tmp_path / "empty_line.geojson"
    path.write_bytes(
        orjson.dumps(
            {
                "type": "FeatureCollection",
                "features": [
                    {"type": "Feature", "properties": {"name": "Dry"}, "geometry": {"type": "LineString", "coordinates": []}},
                ],
            }
        )
    )
    client, dash = client_for(FeedStub())
    dash.rivers = RiverDataset(str(path))

    with pytest.raises(ValueError, match="empty geometry"):
        client.post("/buffers", json={"distance": 500})
