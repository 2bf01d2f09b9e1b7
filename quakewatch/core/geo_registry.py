# quakewatch/core/geo_registry.py
"""
Named areas of interest for region filtering.

"global" is the unconstrained region. Every other entry is a fixed
bounding box used both as the catalog query window and as the
client-side region predicate. Edges are inclusive.
"""
from __future__ import annotations

from typing import List, Optional, Tuple

from quakewatch.core.contracts import BBox4, GeoPoint
from quakewatch.core.errors import QuakewatchError

GLOBAL = "global"

# (minLng, minLat, maxLng, maxLat)
_REGION_BOUNDS: dict[str, Tuple[float, float, float, float]] = {
    "nepal": (78.0, 25.0, 90.0, 31.0),
}


class UnknownRegionError(QuakewatchError):
    code = "unknown_region"


def region_names() -> List[str]:
    return [GLOBAL] + sorted(_REGION_BOUNDS)


def region_bbox(name: str) -> Optional[BBox4]:
    """
    Bounding box for a named region, or None for the global region.

    >>> region_bbox("nepal").minLat
    25.0
    """
    key = (name or GLOBAL).strip().lower()
    if key == GLOBAL:
        return None
    bounds = _REGION_BOUNDS.get(key)
    if bounds is None:
        raise UnknownRegionError(f"unknown region: {name}")
    return BBox4(minLng=bounds[0], minLat=bounds[1], maxLng=bounds[2], maxLat=bounds[3])


def point_in_bbox(p: GeoPoint, b: BBox4) -> bool:
    return b.minLat <= p.lat <= b.maxLat and b.minLng <= p.lng <= b.maxLng


def region_label(name: str) -> str:
    """Human-readable region name."""
    return {
        "global": "Global",
        "nepal": "Nepal and surroundings",
    }.get(name, name.upper())
