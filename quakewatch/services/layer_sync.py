from __future__ import annotations

import logging
from typing import Callable, Union

from quakewatch.core.contracts import DataLoaded, DataLoadFailed, FilterChanged, FilterState
from quakewatch.services.event_store import EventStore
from quakewatch.services.filters import EventView, compute_view
from quakewatch.services.layers import FeatureRenderer, StatsReporter, StatusReporter, render_event

logger = logging.getLogger(__name__)

SyncNotification = Union[DataLoaded, DataLoadFailed, FilterChanged]


class LayerSync:
    """
    Keeps the event layer, stats panel and status line in step with the
    store and the current filter.

    Every recomputation hands the renderer the complete visible set.
    A failed load never touches the layer: the last good map stays up.
    """

    def __init__(
        self,
        *,
        store: EventStore,
        filter_source: Callable[[], FilterState],
        renderer: FeatureRenderer,
        stats: StatsReporter,
        status: StatusReporter,
    ):
        self.store = store
        self.filter_source = filter_source
        self.renderer = renderer
        self.stats = stats
        self.status = status

    def handle(self, note: SyncNotification) -> None:
        if isinstance(note, DataLoaded):
            self.on_data_loaded(note)
        elif isinstance(note, DataLoadFailed):
            self.on_data_load_failed(note)
        elif isinstance(note, FilterChanged):
            self.on_filter_changed(note)

    def _render(self, f: FilterState) -> EventView:
        view = compute_view(self.store.events, f)
        self.renderer.replace([render_event(ev) for ev in view.visible])
        self.status.update(f"{len(view.visible)} EVENTS TRACKED", True)
        logger.info("[layers] %d of %d seismic events visualized", len(view.visible), len(self.store))
        return view

    def on_data_loaded(self, note: DataLoaded) -> None:
        view = self._render(self.filter_source())
        self.stats.report(view.stats)
        self.status.data_status(f"Successfully loaded {note.count} earthquake events", "success")

    def on_data_load_failed(self, note: DataLoadFailed) -> None:
        self.stats.report_error()
        self.status.data_status(f"Error: {note.reason}", "error")
        self.status.update("DATA LINK FAILED", False)
        logger.warning("[layers] keeping previous event layer after failed load: %s", note.reason)

    def on_filter_changed(self, note: FilterChanged) -> None:
        if not self.store.has_data:
            return
        self._render(note.filter)
