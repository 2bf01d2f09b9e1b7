from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from quakewatch.core.contracts import (
    EventDetail,
    FetchOutcome,
    FilterState,
    GeoJSON,
    StatsReport,
)
from quakewatch.core.errors import QuakewatchError, bad_request, not_found
from quakewatch.services.dashboard import Dashboard

router = APIRouter(prefix="/events")


def get_dashboard() -> Dashboard:
    raise RuntimeError("Dashboard must be provided by app dependency override")


class LoadRequest(BaseModel):
    start_date: date
    end_date: date
    min_magnitude: float | None = None
    region: str | None = None


class FilterUpdateRequest(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    min_magnitude: Optional[float] = None
    region: Optional[str] = None
    # checkbox values ("7-8") or class names ("CRITICAL")
    classes: Optional[List[str]] = None


@router.post("/load", response_model=FetchOutcome)
async def events_load(
    req: LoadRequest,
    dash: Dashboard = Depends(get_dashboard),
) -> FetchOutcome:
    try:
        return await dash.load_range(
            req.start_date,
            req.end_date,
            min_magnitude=req.min_magnitude,
            region=req.region,
        )
    except QuakewatchError as e:
        bad_request(e.code, str(e))


@router.post("/realtime", response_model=FetchOutcome)
async def events_realtime(dash: Dashboard = Depends(get_dashboard)) -> FetchOutcome:
    return await dash.load_realtime()


@router.get("/layer")
def events_layer(dash: Dashboard = Depends(get_dashboard)) -> GeoJSON:
    return dash.event_layer.to_geojson()


@router.get("/stats", response_model=StatsReport)
def events_stats(dash: Dashboard = Depends(get_dashboard)) -> StatsReport:
    return dash.stats_board.current


@router.get("/filter", response_model=FilterState)
def events_filter(dash: Dashboard = Depends(get_dashboard)) -> FilterState:
    return dash.filter_state


@router.put("/filter", response_model=FilterState)
def events_filter_update(
    req: FilterUpdateRequest,
    dash: Dashboard = Depends(get_dashboard),
) -> FilterState:
    try:
        classes = dash.parse_classes(req.classes) if req.classes is not None else None
        return dash.update_filter(
            start_date=req.start_date,
            end_date=req.end_date,
            min_magnitude=req.min_magnitude,
            region=req.region,
            selected_classes=classes,
        )
    except QuakewatchError as e:
        bad_request(e.code, str(e))


@router.get("/{event_id}", response_model=EventDetail)
def events_detail(event_id: str, dash: Dashboard = Depends(get_dashboard)) -> EventDetail:
    detail = dash.detail(event_id)
    if not detail:
        not_found("event_missing", f"no loaded event with id {event_id}")
    return detail
