"""Session state and last-submitted-wins search orchestration."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .boundary_fetcher import BoundaryFetcher
from .config import Config, ViewportSettings
from .entities import BoundaryFeature, FetchError, NotFound, ResolvedEntity
from .facility_index import FacilityIndex
from .resolver import EntityResolver, resolve_state_click
from .state_store import StateBoundaryStore
from .viewport import NoOp, TransitionCommand, compute_transition

logger = logging.getLogger(__name__)

__all__ = ["SessionState", "SearchOutcome", "SearchResult", "MapSession"]

_MESSAGES = {
    FetchError.BOUNDARY_NOT_FOUND: "Boundary not found",
    FetchError.NO_FEATURES_RETURNED: "No features found",
    FetchError.FETCH_FAILED: "Error fetching boundary",
}


class SearchOutcome(Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    TRANSIENT_FAILURE = "transient_failure"
    REJECTED = "rejected"
    SUPERSEDED = "superseded"


@dataclass
class SessionState:
    facilities: FacilityIndex = field(default_factory=FacilityIndex)
    state_boundaries: StateBoundaryStore = field(default_factory=StateBoundaryStore)
    resolved: Optional[ResolvedEntity] = None
    last_sequence: int = 0

    def next_sequence(self) -> int:
        self.last_sequence += 1
        return self.last_sequence


@dataclass(frozen=True)
class SearchResult:
    outcome: SearchOutcome
    sequence: int
    entity: Optional[ResolvedEntity] = None
    command: TransitionCommand = field(default_factory=NoOp)
    message: str = ""


def _outcome_for(entity: ResolvedEntity) -> tuple[SearchOutcome, str]:
    if isinstance(entity, NotFound):
        message = _MESSAGES.get(entity.reason, "Not found")
        if entity.transient:
            return SearchOutcome.TRANSIENT_FAILURE, message
        return SearchOutcome.NOT_FOUND, message
    return SearchOutcome.FOUND, ""


class MapSession:
    """Owns the SessionState and applies resolutions in submission order.

    Every search, state click and reset takes a new sequence number. A search
    only writes ``state.resolved`` if its number is still the latest when its
    fetch completes; older results are dropped.
    """

    def __init__(
        self,
        state: SessionState,
        fetcher: BoundaryFetcher,
        *,
        viewport: Optional[ViewportSettings] = None,
    ):
        self.state = state
        self.resolver = EntityResolver(state.facilities, fetcher)
        self.viewport = viewport or ViewportSettings()

    @classmethod
    def from_config(cls, cfg: Config) -> "MapSession":
        endpoints = cfg.endpoints
        if not endpoints.boundaries:
            raise ValueError("config has no boundary provider endpoint")
        facilities = (
            FacilityIndex.from_url(
                endpoints.facilities,
                strict_types=cfg.strict_coordinate_types,
                timeout=cfg.request_timeout,
            )
            if endpoints.facilities
            else FacilityIndex()
        )
        states = (
            StateBoundaryStore.from_source(endpoints.states, timeout=cfg.request_timeout)
            if endpoints.states
            else StateBoundaryStore()
        )
        fetcher = BoundaryFetcher(endpoints.boundaries, timeout=cfg.request_timeout)
        return cls(
            SessionState(facilities=facilities, state_boundaries=states),
            fetcher,
            viewport=cfg.viewport,
        )

    @property
    def resolved(self) -> Optional[ResolvedEntity]:
        return self.state.resolved

    def current_transition(self) -> TransitionCommand:
        return compute_transition(self.state.resolved, self.viewport)

    def _apply(self, entity: ResolvedEntity, sequence: int) -> SearchResult:
        self.state.resolved = entity
        outcome, message = _outcome_for(entity)
        return SearchResult(
            outcome=outcome,
            sequence=sequence,
            entity=entity,
            command=compute_transition(entity, self.viewport),
            message=message,
        )

    async def submit_search(self, query: str) -> SearchResult:
        if not isinstance(query, str) or not query.strip():
            return SearchResult(
                outcome=SearchOutcome.REJECTED, sequence=self.state.last_sequence
            )

        sequence = self.state.next_sequence()
        entity = await self.resolver.resolve(query)
        if sequence != self.state.last_sequence:
            logger.info(
                "session.result_discarded query=%r sequence=%d latest=%d",
                query,
                sequence,
                self.state.last_sequence,
            )
            return SearchResult(
                outcome=SearchOutcome.SUPERSEDED, sequence=sequence, entity=entity
            )
        if entity is None:
            return SearchResult(outcome=SearchOutcome.REJECTED, sequence=sequence)
        return self._apply(entity, sequence)

    def select_state(
        self, name: str, feature: Optional[BoundaryFeature] = None
    ) -> SearchResult:
        """Apply a click on a drawn state polygon."""
        sequence = self.state.next_sequence()
        feature = feature or self.state.state_boundaries.get(name)
        if feature is None:
            logger.warning("session.unknown_state name=%r", name)
            return SearchResult(
                outcome=SearchOutcome.NOT_FOUND,
                sequence=sequence,
                message="Boundary not found",
            )
        return self._apply(resolve_state_click(name, feature), sequence)

    def reset(self) -> None:
        self.state.next_sequence()
        self.state.resolved = None
