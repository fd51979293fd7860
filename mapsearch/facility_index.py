"""Validated point facilities and exact-name lookup."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional

import requests

from .entities import EntityList, Facility, normalize_name
from .errors import DirectoryUnavailable
from .geometry import coerce_coordinate

logger = logging.getLogger(__name__)

__all__ = ["FacilityIndex", "fetch_facility_records", "facility_from_record"]

# First present key wins; the directory service emits the first of each.
_NAME_KEYS = ("building_name", "name")
_CAMPUS_KEYS = ("campus_name", "campus")
_TYPE_KEYS = ("college_type", "facility_type")


def _first(record: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        value = record.get(key)
        if value is not None and value != "":
            return value
    return None


def facility_from_record(
    record: Any, *, facility_id: int, strict_types: bool = False
) -> Facility:
    """Validate one raw directory record; raises ValueError when it is unusable."""
    if not isinstance(record, Mapping):
        raise ValueError(f"record is not a mapping: {type(record).__name__}")
    name = _first(record, _NAME_KEYS)
    if not isinstance(name, str) or not name.strip():
        raise ValueError("missing name")
    lat = coerce_coordinate(record.get("latitude"), strict=strict_types)
    lon = coerce_coordinate(record.get("longitude"), strict=strict_types)
    if lat is None or lon is None:
        raise ValueError(
            f"non-numeric coordinates latitude={record.get('latitude')!r} "
            f"longitude={record.get('longitude')!r}"
        )
    campus = _first(record, _CAMPUS_KEYS)
    facility_type = _first(record, _TYPE_KEYS)
    return Facility(
        id=facility_id,
        name=name,
        latitude=lat,
        longitude=lon,
        campus=None if campus is None else str(campus),
        facility_type=None if facility_type is None else str(facility_type),
    )


class FacilityIndex:
    """Read-only collection of facilities, looked up by exact name."""

    def __init__(self, facilities: Iterable[Facility] = ()):
        self._facilities = EntityList(facilities)
        self._by_name: dict[str, Facility] = {}
        for facility in self._facilities:
            # setdefault keeps the first facility for duplicate names
            self._by_name.setdefault(normalize_name(facility.name), facility)

    @classmethod
    def load(cls, raw_records: Any, *, strict_types: bool = False) -> "FacilityIndex":
        if not isinstance(raw_records, list):
            logger.error(
                "facility_index.invalid_payload type=%s", type(raw_records).__name__
            )
            return cls()

        kept: list[Facility] = []
        skipped = 0
        for position, record in enumerate(raw_records):
            try:
                facility = facility_from_record(
                    record, facility_id=len(kept) + 1, strict_types=strict_types
                )
            except ValueError as exc:
                skipped += 1
                logger.warning(
                    "facility_index.record_skipped position=%d reason=%s", position, exc
                )
                continue
            kept.append(facility)

        logger.info(
            "facility_index.loaded kept=%d skipped=%d strict_types=%s",
            len(kept),
            skipped,
            strict_types,
        )
        return cls(kept)

    @classmethod
    def from_url(
        cls,
        url: str,
        *,
        strict_types: bool = False,
        timeout: float = 15,
        session: Optional[requests.Session] = None,
    ) -> "FacilityIndex":
        try:
            records = fetch_facility_records(url, timeout=timeout, session=session)
        except DirectoryUnavailable as exc:
            logger.error("facility_index.fetch_failed url=%s error=%s", url, exc)
            return cls()
        return cls.load(records, strict_types=strict_types)

    def lookup(self, query: str) -> Optional[Facility]:
        key = normalize_name(query)
        if not key:
            return None
        return self._by_name.get(key)

    @property
    def facilities(self) -> EntityList:
        return EntityList(self._facilities)

    def __len__(self) -> int:
        return len(self._facilities)

    def __iter__(self):
        return iter(self._facilities)

    def to_df(self, columns: list[str] | None = None):
        return self._facilities.to_df(columns)


def fetch_facility_records(
    url: str, *, timeout: float = 15, session: Optional[requests.Session] = None
) -> Any:
    """GET the facility directory and return its decoded JSON payload."""
    get = session.get if session is not None else requests.get
    try:
        r = get(url, timeout=timeout)
        r.raise_for_status()
        return r.json()
    except requests.RequestException as exc:
        raise DirectoryUnavailable(
            f"Failed fetching facilities from {url}: {exc}"
        ) from exc
    except ValueError as exc:
        raise DirectoryUnavailable(
            f"Facility directory at {url} is not JSON: {exc}"
        ) from exc
