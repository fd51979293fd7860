"""Turn a free-text query into exactly one resolved entity."""

from __future__ import annotations

import logging
from typing import Optional

from .boundary_fetcher import BoundaryFetcher
from .entities import (
    BoundaryFeature,
    DistrictResolved,
    FetchError,
    NotFound,
    PointResolved,
    ResolvedEntity,
    StateResolved,
)
from .facility_index import FacilityIndex

logger = logging.getLogger(__name__)

__all__ = ["EntityResolver", "resolve_state_click"]


def resolve_state_click(name: str, feature: BoundaryFeature) -> StateResolved:
    """A click on a drawn state polygon selects it directly; no lookup, no fetch."""
    return StateResolved(name=name, feature=feature)


class EntityResolver:
    """Facility lookup first, then a single boundary fetch on a miss."""

    def __init__(self, facilities: FacilityIndex, fetcher: BoundaryFetcher):
        self.facilities = facilities
        self.fetcher = fetcher

    async def resolve(self, query: str) -> Optional[ResolvedEntity]:
        """Resolve ``query``; returns None when the query is blank (rejected).

        Surrounding whitespace is trimmed before the boundary request and the
        district name, so " Goa " and "Goa" hit the same provider URL. Inner
        text and case are passed through unchanged.
        """
        if not isinstance(query, str) or not query.strip():
            return None

        facility = self.facilities.lookup(query)
        if facility is not None:
            logger.debug("resolver.point_hit query=%r id=%s", query, facility.id)
            return PointResolved(facility)

        name = query.strip()
        try:
            result = await self.fetcher.fetch(name)
        except Exception:
            logger.exception("resolver.fetch_raised query=%r", query)
            return NotFound(query=name, reason=FetchError.FETCH_FAILED, transient=True)

        if result.feature is not None:
            return DistrictResolved(name=name, feature=result.feature)
        return NotFound(
            query=name,
            reason=result.error,
            transient=result.error is FetchError.FETCH_FAILED,
        )
