from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from quakewatch.core.contracts import FetchState, StatusReport
from quakewatch.services.dashboard import Dashboard

router = APIRouter()


def get_dashboard() -> Dashboard:
    raise RuntimeError("Dashboard must be provided by app dependency override")


class HealthResponse(BaseModel):
    ok: bool = True
    fetch_state: FetchState
    events_loaded: int
    loaded_at: Optional[str] = None
    last_error: Optional[str] = None
    status: StatusReport


@router.get("/health", response_model=HealthResponse)
def health(dash: Dashboard = Depends(get_dashboard)) -> HealthResponse:
    return HealthResponse(
        fetch_state=dash.catalog.state,
        events_loaded=len(dash.store),
        loaded_at=dash.store.loaded_at,
        last_error=dash.catalog.last_error,
        status=dash.status_board.current,
    )
