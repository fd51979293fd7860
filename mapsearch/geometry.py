"""Geometry helpers and descriptors used throughout the mapsearch package."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Tuple
import math

from shapely.errors import ShapelyError
from shapely.geometry import (
    MultiPolygon,
    Polygon as ShapelyPolygon,
    mapping as shapely_mapping,
    shape as shapely_shape,
)


__all__ = [
    "ShapelyPolygon",
    "MultiPolygon",
    "POLYGON_TYPES",
    "coerce_coordinate",
    "polygon_from_geojson",
    "geometry_to_geojson",
    "geometry_bounds",
    "GeoField",
]

POLYGON_TYPES = ("Polygon", "MultiPolygon")


def coerce_coordinate(value: Any, *, strict: bool = False) -> Optional[float]:
    """Return ``value`` as a finite float, or None when it cannot be one.

    With ``strict`` only real ints/floats are accepted; otherwise numeric
    looking strings such as ``" 12.9 "`` are parsed as well. Booleans are
    never coordinates.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        out = float(value)
    elif strict:
        return None
    elif isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        try:
            out = float(s)
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(out):
        return None
    return out


def polygon_from_geojson(geometry: Mapping[str, Any] | None) -> Any:
    """Build a Shapely Polygon/MultiPolygon from a GeoJSON geometry mapping.

    Returns None for missing geometries, non-polygonal types and coordinates
    Shapely refuses to build.
    """
    if not geometry or not isinstance(geometry, Mapping):
        return None
    if geometry.get("type") not in POLYGON_TYPES:
        return None
    try:
        geom = shapely_shape(geometry)
    except (ShapelyError, ValueError, TypeError, KeyError, IndexError):
        return None
    if not isinstance(geom, (ShapelyPolygon, MultiPolygon)):
        return None
    return geom


def geometry_to_geojson(geom: Any) -> dict | None:
    if geom is None:
        return None
    return dict(shapely_mapping(geom))


def geometry_bounds(geom: Any) -> Tuple[float, float, float, float] | None:
    """Return (minx, miny, maxx, maxy) or None when no usable box exists."""
    if geom is None:
        return None
    try:
        if geom.is_empty:
            return None
        bounds = tuple(float(v) for v in geom.bounds)
    except (AttributeError, ShapelyError, TypeError, ValueError):
        return None
    if len(bounds) != 4 or not all(math.isfinite(v) for v in bounds):
        return None
    return bounds  # type: ignore[return-value]


class GeoField:
    """Descriptor that accepts a Shapely polygon or a GeoJSON geometry mapping."""

    def __init__(self, geom_type: str):
        self.geom_type = geom_type
        self.private_name = None

    def __set_name__(self, owner, name):
        self.private_name = f"_{name}"

    def __get__(self, obj, objtype=None):
        if obj is None:
            return self
        return getattr(obj, self.private_name, None)

    def __set__(self, obj, value):
        target = None

        if self.geom_type == "polygon":
            if isinstance(value, (ShapelyPolygon, MultiPolygon)):
                target = value
            elif isinstance(value, Mapping):
                target = polygon_from_geojson(value)

        if target is None:
            raise TypeError(
                f"Invalid {self.geom_type} geometry for {obj.__class__.__name__}"
            )

        object.__setattr__(obj, self.private_name, target)
