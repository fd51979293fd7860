"""Preloaded state boundaries and deterministic per-name colours."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from .assets import ensure_local_asset
from .entities import BoundaryFeature, EntityList, normalize_name, resolve_feature_name

logger = logging.getLogger(__name__)

__all__ = ["StateBoundaryStore", "color_for", "style_for"]

SATURATION = 70
LIGHTNESS = 70
STATE_WEIGHT = 3
STATE_FILL_OPACITY = 0.1


def color_for(name: str) -> str:
    """Map a name to an HSL colour; the hue is the code-point sum modulo 360."""
    hue = sum(ord(ch) for ch in str(name or "")) % 360
    return f"hsl({hue}, {SATURATION}%, {LIGHTNESS}%)"


def style_for(feature: Any) -> dict:
    """Renderer style for one state feature (BoundaryFeature or GeoJSON mapping)."""
    if isinstance(feature, BoundaryFeature):
        name = feature.name
    else:
        props = feature.get("properties") if isinstance(feature, dict) else None
        name = resolve_feature_name(props) or "State"
    return {
        "color": color_for(name),
        "weight": STATE_WEIGHT,
        "fillOpacity": STATE_FILL_OPACITY,
    }


@dataclass
class StateBoundaryStore:
    features: EntityList = field(default_factory=EntityList)
    _by_name: dict[str, BoundaryFeature] = field(
        default_factory=dict, init=False, repr=False
    )

    def __post_init__(self):
        self.features = EntityList(self.features)
        for feature in self.features:
            self._by_name.setdefault(normalize_name(feature.name), feature)

    @classmethod
    def load(cls, raw_geojson: Any) -> "StateBoundaryStore":
        raw_features = (
            raw_geojson.get("features") if isinstance(raw_geojson, dict) else None
        )
        if not isinstance(raw_features, list):
            logger.error("state_store.invalid_payload reason=no feature list")
            return cls()

        kept: list[BoundaryFeature] = []
        for position, raw in enumerate(raw_features):
            try:
                kept.append(BoundaryFeature.from_geojson(raw))
            except (TypeError, ValueError) as exc:
                logger.debug(
                    "state_store.feature_skipped position=%d reason=%s", position, exc
                )

        if not kept:
            logger.warning(
                "state_store.empty total=%d reason=no valid state boundaries found",
                len(raw_features),
            )
        else:
            logger.info(
                "state_store.loaded kept=%d skipped=%d",
                len(kept),
                len(raw_features) - len(kept),
            )
        return cls(kept)

    @classmethod
    def from_source(
        cls, source: str | Path, *, timeout: float = 60
    ) -> "StateBoundaryStore":
        """Load from a local GeoJSON path or a URL; failures yield an empty store."""
        try:
            path = ensure_local_asset(source, label="state boundaries", timeout=timeout)
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.error("state_store.load_failed source=%s error=%s", source, exc)
            return cls()
        return cls.load(raw)

    def __len__(self) -> int:
        return len(self.features)

    def __iter__(self):
        return iter(self.features)

    @property
    def names(self) -> list[str]:
        return [f.name for f in self.features]

    def get(self, name: str) -> Optional[BoundaryFeature]:
        return self._by_name.get(normalize_name(name))

    def feature_collection(self) -> dict:
        return {
            "type": "FeatureCollection",
            "features": [f.to_geojson() for f in self.features],
        }

    color_for = staticmethod(color_for)
    style_for = staticmethod(style_for)
