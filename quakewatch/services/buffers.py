from __future__ import annotations

import logging
import math
import numbers
import re
from functools import lru_cache
from typing import Any, Callable, Iterable, List, Optional, Tuple

from pyproj import CRS, Transformer
from shapely.geometry import mapping, shape
from shapely.ops import transform

from quakewatch.core.contracts import BufferedZone, GeoJSON, LinearFeature
from quakewatch.core.errors import InvalidDistanceError
from quakewatch.core.settings import settings

logger = logging.getLogger(__name__)

_WGS84 = CRS.from_epsg(4326)

# Lines and points have no area: a zero-distance buffer of them would be
# empty, so they get a hair-width sliver instead.
_ZERO_RADIUS_M = 0.01

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


# ──────────────────────────────────────────────────────────────
# Distance validation
# ──────────────────────────────────────────────────────────────

def validate_distance(distance: Any, unit: str = "meters") -> float:
    if unit not in ("meters", "m"):
        raise InvalidDistanceError(f"unsupported buffer unit: {unit!r}")
    if isinstance(distance, bool) or not isinstance(distance, numbers.Real):
        raise InvalidDistanceError(f"buffer distance must be a number, got {distance!r}")
    d = float(distance)
    if not math.isfinite(d):
        raise InvalidDistanceError("buffer distance must be finite")
    if d < 0:
        raise InvalidDistanceError(f"buffer distance must be >= 0, got {d:g}")
    return d


def coerce_distance(value: Any) -> float:
    """
    Turn the dashboard's text box value into meters.

    Plain numbers pass through; other strings are read the way the
    browser's parseInt reads them ("500m" → 500). Anything else raises
    InvalidDistanceError.
    """
    if isinstance(value, str):
        try:
            d: Any = float(value.strip())
        except ValueError:
            m = _LEADING_INT.match(value)
            if not m:
                raise InvalidDistanceError(f"buffer distance is not a number: {value!r}")
            d = int(m.group(1))
        return validate_distance(d)
    return validate_distance(value)


# ──────────────────────────────────────────────────────────────
# Geodesic dilation
# ──────────────────────────────────────────────────────────────

@lru_cache(maxsize=256)
def _aeqd_fns(center_lon: float, center_lat: float) -> Tuple[Callable, Callable]:
    """Forward/inverse transforms for an azimuthal-equidistant plane centered on the feature."""
    center_lat = float(max(-89.9, min(89.9, center_lat)))
    aeqd = CRS.from_proj4(
        f"+proj=aeqd +lat_0={center_lat:.8f} +lon_0={center_lon:.8f} +x_0=0 +y_0=0 +datum=WGS84 +units=m +no_defs"
    )
    fwd = Transformer.from_crs(_WGS84, aeqd, always_xy=True).transform
    inv = Transformer.from_crs(aeqd, _WGS84, always_xy=True).transform
    return fwd, inv


def buffer_geometry(geom: GeoJSON, distance_m: float, *, quad_segs: Optional[int] = None) -> GeoJSON:
    """Dilate a lon/lat GeoJSON geometry by `distance_m` meters. Returns Polygon or MultiPolygon GeoJSON."""
    g = shape(geom)
    if g.is_empty:
        raise ValueError("cannot buffer an empty geometry")

    c = g.centroid
    fwd, inv = _aeqd_fns(round(c.x, 8), round(c.y, 8))
    g_m = transform(fwd, g)

    radius = float(distance_m)
    if radius == 0 and g_m.geom_type not in ("Polygon", "MultiPolygon"):
        radius = _ZERO_RADIUS_M

    out_m = g_m.buffer(radius, quad_segs=int(quad_segs or settings.buffer_quad_segs))
    return mapping(transform(inv, out_m))


def buffer_feature(
    feature: LinearFeature,
    distance: Any,
    unit: str = "meters",
    *,
    quad_segs: Optional[int] = None,
) -> BufferedZone:
    d = validate_distance(distance, unit)
    return BufferedZone(
        source_feature_id=feature.id,
        distance_meters=d,
        geometry=buffer_geometry(feature.geometry, d, quad_segs=quad_segs),
        name=feature.name,
    )


def buffer_features(
    features: Iterable[LinearFeature],
    distance: Any,
    unit: str = "meters",
    *,
    quad_segs: Optional[int] = None,
) -> List[BufferedZone]:
    """
    One zone per source feature. Overlapping zones are left as-is,
    nothing is dissolved.
    """
    d = validate_distance(distance, unit)
    zones: List[BufferedZone] = []
    for feat in features:
        zones.append(buffer_feature(feat, d, unit, quad_segs=quad_segs))
    logger.info("[buffers] %d buffer zone(s) created at %gm", len(zones), d)
    return zones
