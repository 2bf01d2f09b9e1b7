from __future__ import annotations

import base64
import hashlib
from typing import Any, Dict

import orjson

from quakewatch.core.contracts import FetchParams


def _canonical_json(obj: Any) -> bytes:
    # sorted keys so equal params always hash the same
    return orjson.dumps(obj, option=orjson.OPT_SORT_KEYS)


def digest_key(data: bytes) -> str:
    h = hashlib.sha256(data).digest()
    # urlsafe base64, padding stripped so keys stay path- and header-safe
    return base64.urlsafe_b64encode(h).decode("ascii").rstrip("=")


def normalize_fetch_params(params: FetchParams) -> Dict[str, Any]:
    """
    Canonicalize fetch parameters:
    - ISO calendar dates
    - magnitude rounded to 0.01
    - lower-cased region key
    """
    return {
        "start": params.start.isoformat(),
        "end": params.end.isoformat(),
        "min_magnitude": round(float(params.min_magnitude), 2),
        "region": (params.region or "global").strip().lower(),
    }


def fetch_key(params: FetchParams, feed_url: str) -> str:
    payload = {"feed_url": feed_url, "params": normalize_fetch_params(params)}
    blob = _canonical_json(payload)
    return digest_key(blob)


def event_id_from_feature(feature: Dict[str, Any]) -> str:
    """Stable id for a feed feature that arrives without one."""
    props = feature.get("properties") or {}
    geom = feature.get("geometry") or {}
    payload = {
        "time": props.get("time"),
        "mag": props.get("mag"),
        "place": props.get("place"),
        "coordinates": geom.get("coordinates"),
    }
    return "qw_" + digest_key(_canonical_json(payload))[:20]
