import asyncio

import pytest
from shapely.geometry import box

from mapsearch.boundary_fetcher import FetchResult
from mapsearch.entities import BoundaryFeature, FetchError
from mapsearch.facility_index import FacilityIndex


class FakeFetcher:
    """Stands in for BoundaryFetcher; results are keyed by name, gates let tests order completions."""

    def __init__(self, results=None):
        self.results = dict(results or {})
        self.calls = []
        self.gates: dict[str, asyncio.Event] = {}

    def hold(self, name):
        self.gates[name] = asyncio.Event()
        return self.gates[name]

    async def fetch(self, name):
        self.calls.append(name)
        gate = self.gates.get(name)
        if gate is not None:
            await gate.wait()
        outcome = self.results.get(name, FetchError.NO_FEATURES_RETURNED)
        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, FetchError):
            return FetchResult(error=outcome)
        return FetchResult(feature=outcome)


def district(name, bounds=(77.0, 28.0, 77.5, 28.5)):
    return BoundaryFeature(name=name, boundary=box(*bounds))


@pytest.fixture
def facilities():
    return FacilityIndex.load(
        [
            {
                "building_name": "Main Block",
                "latitude": 28.6,
                "longitude": 77.2,
                "campus_name": "North Campus",
                "college_type": "School",
            },
            {"building_name": "Library", "latitude": "12.97", "longitude": "77.59"},
        ]
    )


@pytest.fixture
def fake_fetcher():
    return FakeFetcher(
        {
            "New Delhi": district("New Delhi"),
            "Atlantis": FetchError.NO_FEATURES_RETURNED,
            "Delhi": FetchError.BOUNDARY_NOT_FOUND,
            "Flaky": FetchError.FETCH_FAILED,
        }
    )
