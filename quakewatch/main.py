# quakewatch/main.py
from __future__ import annotations

import logging
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.gzip import GZipMiddleware

# Load the repo-level .env (main.py is <repo>/quakewatch/main.py)
BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")

from quakewatch.core.settings import settings
from quakewatch.api import api_router
from quakewatch.services.dashboard import Dashboard

logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger(__name__)

app = FastAPI(title="Quakewatch Dashboard Backend", version="1.0.0")

# ── Compression (must be added before CORS) ──
app.add_middleware(GZipMiddleware, minimum_size=1000)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.dashboard_origins.split(",") if o.strip()],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ──────────────────────────────────────────────────────────────
# Application state (one dashboard per process)
# ──────────────────────────────────────────────────────────────

_dashboard = Dashboard()


def provide_dashboard() -> Dashboard:
    return _dashboard


# ──────────────────────────────────────────────────────────────
# Dependency overrides
# ──────────────────────────────────────────────────────────────

from quakewatch.api import buffers as buffers_api
from quakewatch.api import events as events_api
from quakewatch.api import health as health_api

app.dependency_overrides[events_api.get_dashboard] = provide_dashboard
app.dependency_overrides[buffers_api.get_dashboard] = provide_dashboard
app.dependency_overrides[health_api.get_dashboard] = provide_dashboard

# Routes
app.include_router(api_router)


# ──────────────────────────────────────────────────────────────
# Startup
# ──────────────────────────────────────────────────────────────

@app.on_event("startup")
async def startup():
    logger.info("[app] Emergency response backend starting")
    if settings.autoload_on_startup:
        outcome = await _dashboard.load_realtime()
        logger.info("[app] initial catalog load: %s (%d events)", outcome.status, outcome.count)
