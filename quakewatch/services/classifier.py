from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from quakewatch.core.contracts import SeverityClass


# ══════════════════════════════════════════════════════════════
# Magnitude → severity class
# ══════════════════════════════════════════════════════════════

# Inclusive lower bounds, highest first. LOW is the catch-all.
_BOUNDS: List[Tuple[float, SeverityClass]] = [
    (7.0, SeverityClass.CRITICAL),
    (6.0, SeverityClass.HIGH),
    (5.0, SeverityClass.MEDIUM),
    (0.0, SeverityClass.LOW),
]

_COLORS: Dict[SeverityClass, str] = {
    SeverityClass.CRITICAL: "#ff0000",  # red
    SeverityClass.HIGH: "#ff4500",      # orange
    SeverityClass.MEDIUM: "#ffa500",    # yellow
    SeverityClass.LOW: "#0080ff",       # blue
}

# Values of the dashboard's threat-level checkboxes
_FILTER_VALUES: Dict[SeverityClass, str] = {
    SeverityClass.CRITICAL: "7-8",
    SeverityClass.HIGH: "6-7",
    SeverityClass.MEDIUM: "5-6",
    SeverityClass.LOW: "4-5",
}

CRITICAL_MAGNITUDE = 7.0


def classify(magnitude: float) -> SeverityClass:
    """
    Highest class whose lower bound is <= magnitude.

    Anything below the MEDIUM bound (negative magnitudes included) is LOW.
    """
    for bound, cls in _BOUNDS:
        if magnitude >= bound:
            return cls
    return SeverityClass.LOW


def lower_bound(cls: SeverityClass) -> float:
    for bound, c in _BOUNDS:
        if c is cls:
            return bound
    return 0.0


def threat_label(cls: SeverityClass) -> str:
    return cls.value


def color(cls: SeverityClass) -> str:
    return _COLORS[cls]


def filter_value(cls: SeverityClass) -> str:
    return _FILTER_VALUES[cls]


def class_for_value(value: str) -> Optional[SeverityClass]:
    """Accepts either a class name ("HIGH") or a checkbox value ("6-7")."""
    v = (value or "").strip()
    if not v:
        return None
    try:
        return SeverityClass(v.upper())
    except ValueError:
        pass
    for cls, fv in _FILTER_VALUES.items():
        if fv == v:
            return cls
    return None


# ══════════════════════════════════════════════════════════════
# Marker styling hints for the rendering layer
# ══════════════════════════════════════════════════════════════

def marker_radius(magnitude: float) -> float:
    return max(4.0, magnitude * 1.5)


def is_pulse(magnitude: float) -> bool:
    return magnitude >= CRITICAL_MAGNITUDE
