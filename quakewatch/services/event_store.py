from __future__ import annotations

from typing import Optional, Sequence, Tuple

from quakewatch.core.contracts import FetchParams, HazardEvent
from quakewatch.core.time import utc_now_iso


class EventStore:
    """
    In-memory set of the last successfully fetched events.

    Written only by the fetch coordinator, through `replace`. Readers
    always see either the previous collection or the new one: the events,
    params and key are swapped together in a single assignment.
    """

    def __init__(self) -> None:
        self._snapshot: Tuple[Tuple[HazardEvent, ...], Optional[FetchParams], Optional[str], Optional[str]] = (
            (),
            None,
            None,
            None,
        )

    @property
    def events(self) -> Tuple[HazardEvent, ...]:
        return self._snapshot[0]

    @property
    def last_params(self) -> Optional[FetchParams]:
        return self._snapshot[1]

    @property
    def fetch_key(self) -> Optional[str]:
        return self._snapshot[2]

    @property
    def loaded_at(self) -> Optional[str]:
        return self._snapshot[3]

    @property
    def has_data(self) -> bool:
        """True once any fetch has succeeded, even one that returned zero events."""
        return self._snapshot[1] is not None

    def __len__(self) -> int:
        return len(self._snapshot[0])

    def get(self, event_id: str) -> Optional[HazardEvent]:
        for ev in self._snapshot[0]:
            if ev.id == event_id:
                return ev
        return None

    def replace(
        self,
        events: Sequence[HazardEvent],
        *,
        params: FetchParams,
        fetch_key: Optional[str] = None,
    ) -> None:
        self._snapshot = (tuple(events), params, fetch_key, utc_now_iso())
