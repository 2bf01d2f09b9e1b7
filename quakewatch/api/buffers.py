from __future__ import annotations

from typing import List, Optional, Union

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from quakewatch.core.contracts import BufferedZone, GeoJSON
from quakewatch.core.errors import InvalidDistanceError, bad_request, service_unavailable
from quakewatch.services.dashboard import Dashboard

router = APIRouter()


def get_dashboard() -> Dashboard:
    raise RuntimeError("Dashboard must be provided by app dependency override")


class BufferRequest(BaseModel):
    # raw text box value is accepted ("500", "500m")
    distance: Optional[Union[float, str]] = None


class BufferResponse(BaseModel):
    distance_meters: float
    zones: List[BufferedZone]


@router.get("/rivers")
def rivers_get(dash: Dashboard = Depends(get_dashboard)) -> GeoJSON:
    try:
        return dash.rivers.to_geojson()
    except (OSError, ValueError) as e:
        service_unavailable("rivers_unavailable", f"river dataset could not be loaded: {e}")


@router.post("/buffers", response_model=BufferResponse)
def buffers_create(
    req: BufferRequest,
    dash: Dashboard = Depends(get_dashboard),
) -> BufferResponse:
    try:
        dash.rivers.features()
    except (OSError, ValueError) as e:
        service_unavailable("rivers_unavailable", f"river dataset could not be loaded: {e}")

    try:
        zones = dash.create_buffer(req.distance)
    except InvalidDistanceError as e:
        bad_request(e.code, str(e))
    return BufferResponse(distance_meters=zones[0].distance_meters if zones else 0.0, zones=zones)


@router.get("/buffers")
def buffers_get(dash: Dashboard = Depends(get_dashboard)) -> GeoJSON:
    return dash.buffer_layer.to_geojson()


@router.delete("/buffers", status_code=204)
def buffers_clear(dash: Dashboard = Depends(get_dashboard)) -> None:
    dash.clear_buffer()
