"""
config.py

Config loader + validator for mapsearch deployments.

Features:
- YAML/TOML config describing the facility directory, boundary provider,
  state dataset and dashboard endpoints
- Viewport constants (zooms, animation duration) with validated overrides
- ~ and $ENV expansion for local paths; URLs are left untouched
- MAPSEARCH_CONFIG environment variable names a default config file
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from pathlib import Path
import json
import os

from .errors import ConfigError

DEFAULT_POINT_ZOOM = 15
DEFAULT_DISTRICT_MAX_ZOOM = 15
DEFAULT_STATE_MAX_ZOOM = 30
DEFAULT_DURATION_SECONDS = 1
DEFAULT_REQUEST_TIMEOUT = 15.0

CONFIG_ENV = "MAPSEARCH_CONFIG"

# ------------------------------
# Loading utilities (YAML/TOML)
# ------------------------------


def _load_yaml(text: str) -> dict:
    try:
        import yaml  # PyYAML
    except ImportError as e:
        raise RuntimeError(
            "PyYAML is required to read .yaml/.yml configs. pip install pyyaml"
        ) from e
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ConfigError("YAML root must be a mapping (dict).")
    return data


def _load_toml(text: str) -> dict:
    import tomllib

    data = tomllib.loads(text)
    if not isinstance(data, dict):
        raise ConfigError("TOML root must be a mapping (dict).")
    return data


def _detect_and_load(path: Path) -> dict:
    suffix = path.suffix.lower()
    text = path.read_text(encoding="utf-8")
    if suffix in (".yaml", ".yml"):
        return _load_yaml(text)
    if suffix == ".toml":
        return _load_toml(text)
    # Last resort: try YAML first, then TOML
    try:
        return _load_yaml(text)
    except Exception:
        return _load_toml(text)


# ------------------------------
# Helpers
# ------------------------------


def _expand_path(value: str) -> str:
    """Expand ~ and $ENV in a path-like string, but leave URLs untouched."""
    if isinstance(value, str) and ("://" not in value):
        return os.path.expandvars(os.path.expanduser(value))
    return value


def _rewrite_relative_path(value: Optional[str], base_dir: Path) -> Optional[str]:
    if not value or "://" in value:
        return value
    path = Path(_expand_path(value))
    if path.is_absolute():
        return str(path)
    return str(base_dir / path)


def _positive_number(section: str, key: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"[{section}.{key}] must be a number, got {value!r}")
    if value <= 0:
        raise ConfigError(f"[{section}.{key}] must be > 0, got {value!r}")
    return value


# ------------------------------
# Data model & validation
# ------------------------------


@dataclass
class Endpoints:
    """Where the external collaborators live."""

    facilities: Optional[str] = None
    boundaries: Optional[str] = None
    states: Optional[str] = None
    dashboard: Optional[str] = None

    @staticmethod
    def from_raw(raw: Dict[str, Any]) -> "Endpoints":
        if not isinstance(raw, dict):
            raise ConfigError("[endpoints] must be a mapping.")
        unknown = set(raw) - {"facilities", "boundaries", "states", "dashboard"}
        if unknown:
            raise ConfigError(f"[endpoints] unknown keys: {sorted(unknown)}")
        values: Dict[str, Optional[str]] = {}
        for key in ("facilities", "boundaries", "states", "dashboard"):
            v = raw.get(key)
            if v is not None and not isinstance(v, str):
                raise ConfigError(f"[endpoints.{key}] must be a string")
            values[key] = _expand_path(v) if v else None
        boundaries = values["boundaries"]
        if boundaries and "{name}" not in boundaries:
            raise ConfigError(
                "[endpoints.boundaries] must contain a '{name}' placeholder"
            )
        return Endpoints(**values)


@dataclass
class ViewportSettings:
    point_zoom: float = DEFAULT_POINT_ZOOM
    district_max_zoom: float = DEFAULT_DISTRICT_MAX_ZOOM
    state_max_zoom: float = DEFAULT_STATE_MAX_ZOOM
    duration_seconds: float = DEFAULT_DURATION_SECONDS

    @staticmethod
    def from_raw(raw: Dict[str, Any]) -> "ViewportSettings":
        if not isinstance(raw, dict):
            raise ConfigError("[viewport] must be a mapping.")
        out = ViewportSettings()
        for key, value in raw.items():
            if not hasattr(out, key):
                raise ConfigError(f"[viewport] unknown key '{key}'")
            setattr(out, key, _positive_number("viewport", key, value))
        return out


@dataclass
class Config:
    endpoints: Endpoints = field(default_factory=Endpoints)
    viewport: ViewportSettings = field(default_factory=ViewportSettings)
    options: Dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "Config":
        if not isinstance(d, dict):
            raise ConfigError("Config must be a mapping at the top level.")

        options = d.get("options")
        if options is None:
            options = {}
        if not isinstance(options, dict):
            raise ConfigError("[options] must be a mapping.")
        if "request_timeout" in options:
            _positive_number("options", "request_timeout", options["request_timeout"])
        strict = options.get("strict_coordinate_types", False)
        if not isinstance(strict, bool):
            raise ConfigError("[options.strict_coordinate_types] must be a boolean")

        return Config(
            endpoints=Endpoints.from_raw(d.get("endpoints", {}) or {}),
            viewport=ViewportSettings.from_raw(d.get("viewport", {}) or {}),
            options=options,
        )

    # ---------- Sugar ----------
    @property
    def strict_coordinate_types(self) -> bool:
        return bool(self.options.get("strict_coordinate_types", False))

    @property
    def request_timeout(self) -> float:
        return float(self.options.get("request_timeout", DEFAULT_REQUEST_TIMEOUT))

    @property
    def log_level(self) -> str:
        return str(self.options.get("log_level", "INFO")).upper()

    def to_json(self) -> str:
        return json.dumps(
            {
                "endpoints": vars(self.endpoints),
                "viewport": vars(self.viewport),
                "options": self.options,
            },
            indent=2,
            sort_keys=True,
        )


# ------------------------------
# Public API
# ------------------------------


def load_config(path: str | Path | None = None) -> Config:
    """Load a YAML/TOML config; falls back to $MAPSEARCH_CONFIG, then defaults."""
    if path is None:
        env = os.environ.get(CONFIG_ENV)
        if not env:
            return Config()
        path = env
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)
    raw = _detect_and_load(p)
    cfg = Config.from_dict(raw)
    cfg.endpoints.states = _rewrite_relative_path(
        cfg.endpoints.states, p.resolve().parent
    )
    return cfg


TEMPLATE_YAML = """\
# mapsearch configuration (YAML)
# 'boundaries' is formatted with the URL-encoded search text as {name}.

endpoints:
  facilities: http://localhost:8080/locations/getallbuildings
  boundaries: http://localhost:8080/locations/{name}
  states: http://localhost:8080/india-states.geojson
  dashboard: http://localhost:3000/dashboard/9

viewport:
  point_zoom: 15
  district_max_zoom: 15
  state_max_zoom: 30
  duration_seconds: 1

options:
  strict_coordinate_types: false
  request_timeout: 15
  log_level: INFO
"""
