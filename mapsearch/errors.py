from __future__ import annotations

__all__ = ["MapSearchError", "ConfigError", "DirectoryUnavailable"]


class MapSearchError(Exception):
    """Base class for errors raised by mapsearch."""


class ConfigError(MapSearchError, ValueError):
    """A configuration file or mapping failed validation."""


class DirectoryUnavailable(MapSearchError, RuntimeError):
    """The facility directory could not be fetched or decoded."""
