"""Domain entities (Facility, BoundaryFeature, resolved variants) and collection helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional
import math

from .geometry import GeoField, geometry_to_geojson

__all__ = [
    "FEATURE_NAME_KEYS",
    "Facility",
    "BoundaryFeature",
    "FetchError",
    "PointResolved",
    "DistrictResolved",
    "StateResolved",
    "NotFound",
    "ResolvedEntity",
    "EntityList",
    "normalize_name",
    "resolve_feature_name",
]

# Checked in order; "tags.name" is the nested OSM tag.
FEATURE_NAME_KEYS = ("ST_NM", "name", "tags.name")


def normalize_name(value: Any) -> str:
    """Case-fold and trim a display name for exact comparisons."""
    if value is None:
        return ""
    return str(value).strip().casefold()


def resolve_feature_name(properties: Mapping[str, Any] | None) -> Optional[str]:
    """Return the first non-empty name found under FEATURE_NAME_KEYS."""
    if not isinstance(properties, Mapping):
        return None
    for key in FEATURE_NAME_KEYS:
        cur: Any = properties
        for part in key.split("."):
            if isinstance(cur, Mapping):
                cur = cur.get(part)
            else:
                cur = None
                break
        if isinstance(cur, str) and cur.strip():
            return cur
    return None


def validate_non_empty_str(name: str):
    """Decorator factory: enforce non-empty string attribute on __post_init__."""

    def deco(cls):
        orig_post = getattr(cls, "__post_init__", None)

        def post(self):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"{cls.__name__}.{name} must be a non-empty string")
            if orig_post:
                orig_post(self)

        cls.__post_init__ = post
        return cls

    return deco


@validate_non_empty_str("name")
@dataclass(frozen=True, slots=True)
class Facility:
    """A named point location from the facility directory."""

    id: int
    name: str
    latitude: float
    longitude: float
    campus: Optional[str] = None
    facility_type: Optional[str] = None

    def __post_init__(self):
        for attr, limit in (("latitude", 90.0), ("longitude", 180.0)):
            value = getattr(self, attr)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"Facility.{attr} must be a number")
            if not math.isfinite(value) or not -limit <= value <= limit:
                raise ValueError(f"Facility.{attr} out of range: {value!r}")
            object.__setattr__(self, attr, float(value))

    __match_args__ = ("name", "latitude", "longitude")

    @property
    def coords(self) -> tuple[float, float]:
        return (self.longitude, self.latitude)

    def to_dict(self, *, include_meta: bool = True, include_geometry: bool = False) -> dict:
        out = {
            "id": self.id,
            "name": self.name,
            "latitude": self.latitude,
            "longitude": self.longitude,
        }
        if include_meta:
            out["campus"] = self.campus
            out["facility_type"] = self.facility_type
        if include_geometry:
            out["geometry_point"] = self.coords
        return out


@dataclass(slots=True)
class BoundaryFeature:
    """A named Polygon/MultiPolygon with the GeoJSON properties it came with."""

    name: str
    boundary: Any = field(default=None, repr=False)
    properties: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)
    _polygon: Any = field(init=False, repr=False, default=None, compare=False)

    polygon = GeoField("polygon")

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValueError("BoundaryFeature.name must be a non-empty string")
        self.polygon = self.boundary

    @classmethod
    def from_geojson(cls, feature: Mapping[str, Any]) -> "BoundaryFeature":
        """Build from a GeoJSON Feature; raises ValueError/TypeError when unusable."""
        if not isinstance(feature, Mapping):
            raise TypeError("GeoJSON feature must be a mapping")
        props = feature.get("properties") or {}
        name = resolve_feature_name(props)
        if name is None:
            raise ValueError("feature has no resolvable name")
        geometry = feature.get("geometry")
        if not geometry:
            raise ValueError(f"feature {name!r} has no geometry")
        return cls(name=name, boundary=geometry, properties=dict(props))

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        return tuple(self.polygon.bounds)

    def to_geojson(self) -> dict:
        return {
            "type": "Feature",
            "properties": dict(self.properties) or {"name": self.name},
            "geometry": geometry_to_geojson(self.polygon),
        }

    def to_dict(self, *, include_meta: bool = True, include_geometry: bool = False) -> dict:
        out: dict[str, Any] = {"name": self.name}
        if include_meta:
            for k, v in self.properties.items():
                if k not in out:
                    out[k] = v
        if include_geometry:
            out["geometry_bounds"] = self.bounds
            out["geometry_wkt"] = self.polygon.wkt
        return out


class FetchError(Enum):
    BOUNDARY_NOT_FOUND = "boundary_not_found"
    NO_FEATURES_RETURNED = "no_features_returned"
    FETCH_FAILED = "fetch_failed"


@dataclass(frozen=True, slots=True)
class PointResolved:
    facility: Facility


@dataclass(frozen=True, slots=True)
class DistrictResolved:
    name: str
    feature: BoundaryFeature


@dataclass(frozen=True, slots=True)
class StateResolved:
    name: str
    feature: BoundaryFeature


@dataclass(frozen=True, slots=True)
class NotFound:
    query: str
    reason: Optional[FetchError] = None
    transient: bool = False


ResolvedEntity = PointResolved | DistrictResolved | StateResolved | NotFound


class EntityList(list):
    def to_dicts(
        self, *, include_meta: bool = True, include_geometry: bool = False
    ) -> list[dict]:
        rows = []
        for obj in self:
            if hasattr(obj, "to_dict"):
                rows.append(
                    obj.to_dict(
                        include_meta=include_meta, include_geometry=include_geometry
                    )
                )
            else:
                try:
                    d = dict(vars(obj))
                except TypeError:
                    d = {"value": obj}
                rows.append(d)
        return rows

    def to_df(
        self,
        columns: list[str] | None = None,
        *,
        include_meta: bool = True,
        include_geometry: bool = False,
    ):
        try:
            import pandas as pd  # type: ignore
        except ImportError as exc:
            raise ImportError(
                "pandas is required for .to_df(); install pandas to use this feature"
            ) from exc
        data = self.to_dicts(
            include_meta=include_meta, include_geometry=include_geometry
        )
        df = pd.DataFrame(data)
        if columns is not None:
            cols = [c for c in columns if c in df.columns]
            df = df[cols]
        return df

