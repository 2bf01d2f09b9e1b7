from __future__ import annotations

import logging
from datetime import date
from typing import Any, Iterable, List, Optional

import httpx

from quakewatch.core.contracts import (
    ALL_CLASSES,
    BufferedZone,
    DataLoaded,
    EventDetail,
    FetchOutcome,
    FetchParams,
    FilterChanged,
    FilterState,
    SeverityClass,
)
from quakewatch.core.errors import InvalidRangeError, QuakewatchError
from quakewatch.core.geo_registry import region_bbox
from quakewatch.core.settings import settings
from quakewatch.core.time import parse_iso_date
from quakewatch.services.buffers import buffer_features, coerce_distance
from quakewatch.services.catalog import Catalog, validate_fetch_params
from quakewatch.services.classifier import class_for_value
from quakewatch.services.event_store import EventStore
from quakewatch.services.layer_sync import LayerSync
from quakewatch.services.layers import GeoJSONLayer, StatsBoard, StatusBoard, event_detail
from quakewatch.services.rivers import RiverDataset

logger = logging.getLogger(__name__)


def default_filter() -> FilterState:
    return FilterState(
        start_date=parse_iso_date(settings.default_start_date),
        end_date=date.today(),
        min_magnitude=settings.default_min_magnitude,
        region=settings.default_region,
        selected_classes=ALL_CLASSES,
    )


class Dashboard:
    """
    Application state for one dashboard: the event store, the filter,
    the fetch coordinator, the layer sync and the flood-buffer layer.

    Filter state is only changed by the UI-action methods here and by
    successful loads;
    the store is only written by the catalog.
    """

    def __init__(
        self,
        *,
        rivers: Optional[RiverDataset] = None,
        feed_url: Optional[str] = None,
        timeout_s: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        filter_state: Optional[FilterState] = None,
    ):
        self.store = EventStore()
        self.filter_state = filter_state or default_filter()

        self.event_layer = GeoJSONLayer("earthquakes")
        self.buffer_layer = GeoJSONLayer("flood_buffers")
        self.stats_board = StatsBoard()
        self.status_board = StatusBoard()

        self.catalog = Catalog(store=self.store, feed_url=feed_url, timeout_s=timeout_s, transport=transport)
        self.sync = LayerSync(
            store=self.store,
            filter_source=lambda: self.filter_state,
            renderer=self.event_layer,
            stats=self.stats_board,
            status=self.status_board,
        )
        # Window first, so the render triggered by DataLoaded sees it
        self.catalog.subscribe(self._adopt_loaded_window)
        self.catalog.subscribe(self.sync.handle)

        self.rivers = rivers or RiverDataset()

    # ──────────────────────────────────────────────────────────
    # Event loading
    # ──────────────────────────────────────────────────────────

    async def load_range(
        self,
        start: date,
        end: date,
        *,
        min_magnitude: Optional[float] = None,
        region: Optional[str] = None,
    ) -> FetchOutcome:
        params = FetchParams(
            start=start,
            end=end,
            min_magnitude=self.filter_state.min_magnitude if min_magnitude is None else min_magnitude,
            region=region or self.filter_state.region,
        )
        validate_fetch_params(params)

        if not self.catalog.in_flight:
            self.status_board.data_status(f"Fetching data from {params.start} to {params.end}...", "loading")

        return await self.catalog.fetch(params)

    async def load_realtime(self) -> FetchOutcome:
        """Everything from the default start date up to today."""
        start = parse_iso_date(settings.default_start_date) or date(2015, 1, 1)
        return await self.load_range(
            start,
            date.today(),
            min_magnitude=settings.default_min_magnitude,
            region=settings.default_region,
        )

    def _adopt_loaded_window(self, note: Any) -> None:
        # The view window follows the loaded window; a failed load keeps the old one
        if not isinstance(note, DataLoaded):
            return
        p = note.params
        self.filter_state = self.filter_state.model_copy(
            update={
                "start_date": p.start,
                "end_date": p.end,
                "min_magnitude": p.min_magnitude,
                "region": p.region,
            }
        )

    def detail(self, event_id: str) -> Optional[EventDetail]:
        ev = self.store.get(event_id)
        return event_detail(ev) if ev else None

    # ──────────────────────────────────────────────────────────
    # Filter actions
    # ──────────────────────────────────────────────────────────

    def update_filter(self, **changes: Any) -> FilterState:
        changes = {k: v for k, v in changes.items() if v is not None}
        if "selected_classes" in changes:
            changes["selected_classes"] = frozenset(changes["selected_classes"])
        if "region" in changes:
            region_bbox(changes["region"])

        new_state = self.filter_state.model_copy(update=changes)
        if new_state.start_date and new_state.end_date and new_state.start_date > new_state.end_date:
            raise InvalidRangeError(
                f"start date {new_state.start_date.isoformat()} is after end date {new_state.end_date.isoformat()}"
            )

        self.filter_state = new_state
        self.sync.handle(FilterChanged(filter=new_state))
        return new_state

    @staticmethod
    def parse_classes(values: Iterable[str]) -> List[SeverityClass]:
        """Checkbox values ("7-8") or class names ("CRITICAL")."""
        selected: List[SeverityClass] = []
        for v in values:
            cls = class_for_value(v)
            if cls is None:
                raise QuakewatchError(f"unknown magnitude class: {v!r}")
            selected.append(cls)
        return selected

    def select_classes(self, values: Iterable[str]) -> FilterState:
        return self.update_filter(selected_classes=self.parse_classes(values))

    # ──────────────────────────────────────────────────────────
    # Flood buffers
    # ──────────────────────────────────────────────────────────

    def create_buffer(self, distance: Any = None) -> List[BufferedZone]:
        d = coerce_distance(settings.default_buffer_m if distance is None else distance)
        zones = buffer_features(self.rivers.features(), d)
        self.buffer_layer.replace(zones)
        return zones

    def clear_buffer(self) -> None:
        self.buffer_layer.clear()
        logger.info("[buffers] buffer zones cleared")
