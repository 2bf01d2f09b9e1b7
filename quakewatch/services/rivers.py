from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import orjson

from quakewatch.core.contracts import GeoJSON, LinearFeature, feature_collection
from quakewatch.core.settings import settings

logger = logging.getLogger(__name__)

_LINEAR_TYPES = {"LineString", "MultiLineString", "Polygon", "MultiPolygon"}


def parse_linear_features(data: Any) -> List[LinearFeature]:
    if not isinstance(data, dict) or not isinstance(data.get("features"), list):
        raise ValueError("river dataset is not a GeoJSON FeatureCollection")

    out: List[LinearFeature] = []
    for i, feat in enumerate(data["features"]):
        geom = (feat or {}).get("geometry")
        if not isinstance(geom, dict) or geom.get("type") not in _LINEAR_TYPES:
            logger.warning("[rivers] skipping feature %d: no line/polygon geometry", i)
            continue
        props: Dict[str, Any] = feat.get("properties") or {}
        fid = feat.get("id") or props.get("id") or props.get("name") or f"river-{i}"
        out.append(
            LinearFeature(
                id=str(fid),
                name=props.get("name"),
                risk_level=props.get("risk_level"),
                geometry=geom,
                properties=props,
            )
        )
    return out


def style_for(feature: LinearFeature) -> Dict[str, Any]:
    """Line style hints; HIGH-risk rivers are drawn thicker and dashed."""
    high = feature.risk_level == "HIGH"
    return {
        "color": "#00ffff",
        "weight": 4 if high else 2,
        "opacity": 0.9,
        "dashArray": "10, 5" if high else None,
    }


def _default_rivers_path() -> Path:
    # This file lives at: quakewatch/services/rivers.py
    # The bundled dataset at: quakewatch/data/nepal_rivers.geojson
    return Path(__file__).resolve().parents[1] / "data" / "nepal_rivers.geojson"


def _rivers_path() -> Path:
    if settings.rivers_path:
        return Path(settings.rivers_path).resolve()
    return _default_rivers_path()


class RiverDataset:
    """
    Static river network, read from disk once on first use.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path) if path else _rivers_path()
        self._features: Optional[List[LinearFeature]] = None

    @property
    def loaded(self) -> bool:
        return self._features is not None

    def features(self) -> List[LinearFeature]:
        if self._features is None:
            data = orjson.loads(self.path.read_bytes())
            self._features = parse_linear_features(data)
            logger.info("[rivers] %d river features loaded from %s", len(self._features), self.path)
        return self._features

    def to_geojson(self) -> GeoJSON:
        feats = []
        for f in self.features():
            props = dict(f.properties)
            props["style"] = style_for(f)
            feats.append({"type": "Feature", "id": f.id, "geometry": f.geometry, "properties": props})
        return feature_collection(feats)
