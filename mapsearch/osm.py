"""Convert Overpass API JSON into GeoJSON polygon features.

Only areal objects become features: relations tagged ``type=boundary`` or
``type=multipolygon`` are assembled from their ``outer``/``inner`` way
members, and closed named ways become simple polygons. Way coordinates are
read from inline ``geometry`` arrays (``out geom``) or, failing that, from
node references resolved against the node elements in the same response.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from shapely.errors import ShapelyError
from shapely.geometry import LineString, MultiPolygon, Polygon
from shapely.ops import polygonize, unary_union

from .geometry import geometry_to_geojson

logger = logging.getLogger(__name__)

__all__ = ["overpass_to_features", "AREA_RELATION_TYPES"]

AREA_RELATION_TYPES = {"boundary", "multipolygon"}

Coords = List[Tuple[float, float]]


def _geometry_coords(geometry: Iterable[Any] | None) -> Coords:
    out: Coords = []
    if not isinstance(geometry, list):
        return out
    for pt in geometry:
        if not isinstance(pt, Mapping):
            continue
        lat, lon = pt.get("lat"), pt.get("lon")
        if isinstance(lat, (int, float)) and isinstance(lon, (int, float)):
            out.append((float(lon), float(lat)))
    return out


def _way_coords(
    way: Mapping[str, Any], nodes: Dict[int, Tuple[float, float]]
) -> Coords:
    coords = _geometry_coords(way.get("geometry"))
    if coords:
        return coords
    return [
        nodes[ref] for ref in way.get("nodes") or () if _is_id(ref) and ref in nodes
    ]


def _is_id(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _check_element(el: Mapping[str, Any]) -> None:
    """Raise ValueError for node/way/relation elements Overpass would never emit."""
    if not _is_id(el.get("id")):
        raise ValueError(f"element id must be an integer, got {el.get('id')!r}")
    tags = el.get("tags")
    if tags is not None and not isinstance(tags, Mapping):
        raise ValueError(f"{el.get('type')}/{el['id']}: tags must be an object")
    for key in ("nodes", "members", "geometry"):
        value = el.get(key)
        if value is not None and not isinstance(value, list):
            raise ValueError(f"{el.get('type')}/{el['id']}: {key} must be a list")


def _is_closed(coords: Coords) -> bool:
    return len(coords) >= 4 and coords[0] == coords[-1]


def _rings_to_area(lines: List[Coords]) -> Any:
    segments = [LineString(c) for c in lines if len(c) >= 2]
    if not segments:
        return None
    polys = list(polygonize(unary_union(segments)))
    if not polys:
        return None
    return unary_union(polys)


def _relation_geometry(
    relation: Mapping[str, Any],
    ways: Dict[int, Mapping[str, Any]],
    nodes: Dict[int, Tuple[float, float]],
) -> Any:
    outer: List[Coords] = []
    inner: List[Coords] = []
    for member in relation.get("members") or ():
        if not isinstance(member, Mapping) or member.get("type") != "way":
            continue
        coords = _geometry_coords(member.get("geometry"))
        ref = member.get("ref")
        if not coords and _is_id(ref) and ref in ways:
            coords = _way_coords(ways[ref], nodes)
        if not coords:
            continue
        (inner if member.get("role") == "inner" else outer).append(coords)

    area = _rings_to_area(outer)
    if area is None:
        return None
    holes = _rings_to_area(inner)
    if holes is not None:
        area = area.difference(holes)
    if area.is_empty or not isinstance(area, (Polygon, MultiPolygon)):
        return None
    return area


def _properties(element: Mapping[str, Any]) -> dict:
    tags = dict(element.get("tags") or {})
    props: Dict[str, Any] = {"id": f"{element.get('type')}/{element.get('id')}", "tags": tags}
    if tags.get("name"):
        props["name"] = tags["name"]
    return props


def _feature(element: Mapping[str, Any], geom: Any) -> dict:
    return {
        "type": "Feature",
        "id": f"{element.get('type')}/{element.get('id')}",
        "properties": _properties(element),
        "geometry": geometry_to_geojson(geom),
    }


def overpass_to_features(payload: Any) -> List[dict]:
    """Return the polygon features found in an Overpass JSON payload.

    Raises ValueError when the payload is not an Overpass document or one of
    its node/way/relation elements is malformed (non-integer id, non-object
    tags, non-list members).
    """
    if not isinstance(payload, Mapping):
        raise ValueError("Overpass payload must be a JSON object")
    elements = payload.get("elements")
    if elements is None:
        return []
    if not isinstance(elements, list):
        raise ValueError("Overpass 'elements' must be a list")

    nodes: Dict[int, Tuple[float, float]] = {}
    ways: Dict[int, Mapping[str, Any]] = {}
    relations: List[Mapping[str, Any]] = []
    for el in elements:
        if not isinstance(el, Mapping):
            continue
        kind = el.get("type")
        if kind in ("node", "way", "relation"):
            _check_element(el)
        if kind == "node":
            lat, lon = el.get("lat"), el.get("lon")
            if isinstance(lat, (int, float)) and isinstance(lon, (int, float)):
                nodes[el.get("id")] = (float(lon), float(lat))
        elif kind == "way":
            ways[el.get("id")] = el
        elif kind == "relation":
            relations.append(el)

    features: List[dict] = []
    for rel in relations:
        rel_type = (rel.get("tags") or {}).get("type")
        if rel_type not in AREA_RELATION_TYPES:
            continue
        try:
            geom = _relation_geometry(rel, ways, nodes)
        except (ShapelyError, ValueError) as exc:
            logger.warning("osm.relation_failed id=%s error=%s", rel.get("id"), exc)
            continue
        if geom is None:
            logger.debug("osm.relation_open id=%s", rel.get("id"))
            continue
        features.append(_feature(rel, geom))

    for way in ways.values():
        tags = way.get("tags") or {}
        if not tags.get("name") or tags.get("area") == "no":
            continue
        coords = _way_coords(way, nodes)
        if not _is_closed(coords):
            continue
        try:
            poly = Polygon(coords)
        except (ShapelyError, ValueError):
            continue
        if poly.is_empty:
            continue
        features.append(_feature(way, poly))

    return features
