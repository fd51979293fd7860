# mapsearch/__init__.py
from importlib.metadata import PackageNotFoundError, version
import sys
import warnings

_MINIMUM_PYTHON = (3, 11)
_REQUIRED_DEPENDENCIES = {
    "shapely": "2.0",
    "requests": "2.31",
    "aiohttp": "3.9",
}

_OPTIONAL_DEPENDENCIES = {
    "pandas": "2.1",
}

if sys.version_info < _MINIMUM_PYTHON:
    raise RuntimeError(f"Python >= {'.'.join(map(str, _MINIMUM_PYTHON))} is required.")


def _gte(installed: str, required: str) -> bool:
    from packaging import version as pv

    return pv.parse(installed) >= pv.parse(required)


_required_issues: list[str] = []
for pkg, minv in _REQUIRED_DEPENDENCIES.items():
    try:
        v = version(pkg)
    except PackageNotFoundError:
        _required_issues.append(f"{pkg}>={minv} (not installed)")
        continue
    if not _gte(v, minv):
        _required_issues.append(f"{pkg}>={minv} (found {v})")

if _required_issues:
    raise ImportError(
        "mapsearch requires the following dependencies: "
        + ", ".join(_required_issues)
    ) from None


_optional_issues: list[str] = []
for pkg, minv in _OPTIONAL_DEPENDENCIES.items():
    try:
        v = version(pkg)
    except PackageNotFoundError:
        _optional_issues.append(f"{pkg}>={minv} (not installed)")
        continue
    if not _gte(v, minv):
        _optional_issues.append(f"{pkg}>={minv} (found {v})")

if _optional_issues:
    warnings.warn(
        "Optional dependencies are missing or out of date: "
        + ", ".join(_optional_issues)
        + ". Tabular exports (.to_df) may be unavailable.",
        RuntimeWarning,
        stacklevel=2,
    )


try:
    __version__ = version("mapsearch")
except PackageNotFoundError:
    __version__ = "0.0.0"

from .entities import (
    BoundaryFeature,
    DistrictResolved,
    Facility,
    NotFound,
    PointResolved,
    StateResolved,
)
from .facility_index import FacilityIndex
from .state_store import StateBoundaryStore, color_for
from .boundary_fetcher import BoundaryFetcher, FetchError, FetchResult
from .resolver import EntityResolver
from .viewport import BoundingBox, FlyToBounds, FlyToPoint, NoOp, compute_transition
from .session import MapSession, SearchOutcome, SessionState
from .styles import dashboard_url, marker_color, marker_payload, selected_feature_style

__all__ = [
    "BoundaryFeature",
    "BoundaryFetcher",
    "BoundingBox",
    "DistrictResolved",
    "EntityResolver",
    "Facility",
    "FacilityIndex",
    "FetchError",
    "FetchResult",
    "FlyToBounds",
    "FlyToPoint",
    "MapSession",
    "NoOp",
    "NotFound",
    "PointResolved",
    "SearchOutcome",
    "SessionState",
    "StateBoundaryStore",
    "StateResolved",
    "color_for",
    "compute_transition",
    "dashboard_url",
    "marker_color",
    "marker_payload",
    "selected_feature_style",
    "__version__",
]
