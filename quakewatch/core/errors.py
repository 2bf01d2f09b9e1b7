from __future__ import annotations

from typing import Optional

from fastapi import HTTPException


# ──────────────────────────────────────────────────────────────
# Domain errors
# ──────────────────────────────────────────────────────────────

class QuakewatchError(ValueError):
    code = "quakewatch_error"


class InvalidRangeError(QuakewatchError):
    """Fetch window whose start date falls after its end date."""

    code = "invalid_range"


class InvalidDistanceError(QuakewatchError):
    """Buffer distance that is not a finite, non-negative number of meters."""

    code = "invalid_distance"


class UpstreamError(Exception):
    """
    Catalog request that did not produce a usable feature collection.

    Never raised past the fetch coordinator: it travels inside the
    failure outcome and the DataLoadFailed notification.
    """

    def __init__(self, message: str, *, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"USGS API Error: {self.status_code} - {self.message}"
        return self.message


# ──────────────────────────────────────────────────────────────
# HTTP helpers
# ──────────────────────────────────────────────────────────────

def bad_request(code: str, message: str):
    raise HTTPException(status_code=400, detail={"code": code, "message": message})


def not_found(code: str, message: str):
    raise HTTPException(status_code=404, detail={"code": code, "message": message})


def service_unavailable(code: str, message: str):
    raise HTTPException(status_code=503, detail={"code": code, "message": message})
