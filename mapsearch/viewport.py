"""Camera transitions for resolved entities.

The controller is a pure function: it never sees the renderer's current
camera, and computing a transition twice for the same entity yields equal
commands. Features whose bounding box cannot be computed, or collapses to a
single point, produce ``NoOp`` rather than an error.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
import math

from .config import DEFAULT_DURATION_SECONDS, DEFAULT_POINT_ZOOM, ViewportSettings
from .entities import (
    BoundaryFeature,
    DistrictResolved,
    NotFound,
    PointResolved,
    ResolvedEntity,
    StateResolved,
)
from .geometry import geometry_bounds

__all__ = [
    "BoundingBox",
    "FlyToPoint",
    "FlyToBounds",
    "NoOp",
    "TransitionCommand",
    "compute_transition",
    "feature_box",
]


@dataclass(frozen=True, slots=True)
class BoundingBox:
    south: float
    west: float
    north: float
    east: float

    @classmethod
    def from_bounds(cls, bounds: tuple[float, float, float, float]) -> "BoundingBox":
        minx, miny, maxx, maxy = bounds
        return cls(south=miny, west=minx, north=maxy, east=maxx)

    def is_valid(self) -> bool:
        values = (self.south, self.west, self.north, self.east)
        if not all(isinstance(v, (int, float)) and math.isfinite(v) for v in values):
            return False
        if self.south > self.north or self.west > self.east:
            return False
        return not (self.south == self.north and self.west == self.east)

    def to_dict(self) -> dict:
        return {
            "south": self.south,
            "west": self.west,
            "north": self.north,
            "east": self.east,
        }


@dataclass(frozen=True, slots=True)
class FlyToPoint:
    lat: float
    lon: float
    zoom: float = DEFAULT_POINT_ZOOM
    duration_seconds: float = DEFAULT_DURATION_SECONDS

    def to_dict(self) -> dict:
        return {
            "type": "flyTo",
            "lat": self.lat,
            "lon": self.lon,
            "zoom": self.zoom,
            "durationSeconds": self.duration_seconds,
        }


@dataclass(frozen=True, slots=True)
class FlyToBounds:
    box: BoundingBox
    max_zoom: float
    animate: bool = True
    duration_seconds: float = DEFAULT_DURATION_SECONDS

    def to_dict(self) -> dict:
        return {
            "type": "flyToBounds",
            "box": self.box.to_dict(),
            "maxZoom": self.max_zoom,
            "animate": self.animate,
            "durationSeconds": self.duration_seconds,
        }


@dataclass(frozen=True, slots=True)
class NoOp:
    def to_dict(self) -> dict:
        return {"type": "noop"}


TransitionCommand = FlyToPoint | FlyToBounds | NoOp


def feature_box(feature: Optional[BoundaryFeature]) -> Optional[BoundingBox]:
    """Bounding box of a feature, or None when missing or degenerate."""
    if feature is None:
        return None
    bounds = geometry_bounds(getattr(feature, "polygon", None))
    if bounds is None:
        return None
    box = BoundingBox.from_bounds(bounds)
    return box if box.is_valid() else None


def _fly_to_bounds(
    feature: BoundaryFeature, max_zoom: float, settings: ViewportSettings
) -> TransitionCommand:
    box = feature_box(feature)
    if box is None:
        return NoOp()
    return FlyToBounds(
        box=box,
        max_zoom=max_zoom,
        animate=True,
        duration_seconds=settings.duration_seconds,
    )


def compute_transition(
    entity: Optional[ResolvedEntity], settings: Optional[ViewportSettings] = None
) -> TransitionCommand:
    settings = settings or ViewportSettings()
    match entity:
        case PointResolved(facility=facility):
            return FlyToPoint(
                lat=facility.latitude,
                lon=facility.longitude,
                zoom=settings.point_zoom,
                duration_seconds=settings.duration_seconds,
            )
        case DistrictResolved(feature=feature):
            return _fly_to_bounds(feature, settings.district_max_zoom, settings)
        case StateResolved(feature=feature):
            return _fly_to_bounds(feature, settings.state_max_zoom, settings)
        case NotFound() | None:
            return NoOp()
    raise TypeError(f"Cannot compute a transition for {type(entity)!r}")

