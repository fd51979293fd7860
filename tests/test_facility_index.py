import logging

import pytest

from mapsearch.facility_index import FacilityIndex, facility_from_record


RECORDS = [
    {
        "building_name": "Central Library",
        "latitude": "12.9716",
        "longitude": "77.5946",
        "campus_name": "North Campus",
        "college_type": "College",
    },
    {
        "building_name": "Model School",
        "latitude": 28.6,
        "longitude": 77.2,
        "campus_name": "Delhi",
        "college_type": "School",
    },
]


def test_lookup_ignores_case_and_surrounding_whitespace():
    index = FacilityIndex.load(RECORDS)

    for query in ("Central Library", "central library", "  CENTRAL LIBRARY\t"):
        hit = index.lookup(query)
        assert hit is not None
        assert hit.name == "Central Library"


def test_lookup_is_exact_not_prefix():
    index = FacilityIndex.load(RECORDS)

    assert index.lookup("Central") is None
    assert index.lookup("Central Library Annex") is None
    assert index.lookup("   ") is None


def test_load_assigns_ids_and_maps_directory_fields():
    index = FacilityIndex.load(RECORDS)

    lib, school = list(index)
    assert (lib.id, school.id) == (1, 2)
    assert lib.latitude == pytest.approx(12.9716)
    assert lib.campus == "North Campus"
    assert school.facility_type == "School"


def test_empty_name_is_excluded(caplog):
    with caplog.at_level(logging.WARNING, logger="mapsearch.facility_index"):
        index = FacilityIndex.load([{"name": "", "latitude": 12.9, "longitude": 77.6}])

    assert len(index) == 0
    assert any(
        "facility_index.record_skipped" in rec.getMessage() for rec in caplog.records
    )


def test_numeric_strings_are_coerced_by_default():
    index = FacilityIndex.load([{"name": "Lib", "latitude": "12.9", "longitude": "77.6"}])

    lib = index.lookup("lib")
    assert lib is not None
    assert isinstance(lib.latitude, float)
    assert (lib.latitude, lib.longitude) == (12.9, 77.6)


def test_numeric_strings_are_excluded_with_strict_types():
    index = FacilityIndex.load(
        [{"name": "Lib", "latitude": "12.9", "longitude": "77.6"}], strict_types=True
    )

    assert len(index) == 0
    assert index.lookup("Lib") is None


@pytest.mark.parametrize(
    "record",
    [
        {"name": "A", "latitude": "abc", "longitude": 77.6},
        {"name": "A", "latitude": None, "longitude": 77.6},
        {"name": "A", "latitude": float("nan"), "longitude": 77.6},
        {"name": "A", "latitude": 12.9, "longitude": float("inf")},
        {"name": "A", "latitude": 95.0, "longitude": 77.6},
        {"name": "A", "latitude": 12.9, "longitude": -181},
        {"name": "A", "latitude": True, "longitude": 77.6},
        "not a record",
    ],
)
def test_invalid_records_are_dropped(record):
    with pytest.raises(ValueError):
        facility_from_record(record, facility_id=1)

    assert len(FacilityIndex.load([record])) == 0


def test_ids_skip_over_dropped_records():
    index = FacilityIndex.load(
        [
            {"name": "", "latitude": 1, "longitude": 1},
            {"name": "Kept", "latitude": 1, "longitude": 1},
        ]
    )

    assert [f.id for f in index] == [1]


def test_duplicate_names_resolve_to_first():
    index = FacilityIndex.load(
        [
            {"name": "Hall", "latitude": 10.0, "longitude": 70.0},
            {"name": "hall ", "latitude": 20.0, "longitude": 80.0},
        ]
    )

    assert len(index) == 2
    assert index.lookup("HALL").latitude == 10.0


def test_non_list_payload_yields_empty_index(caplog):
    with caplog.at_level(logging.ERROR, logger="mapsearch.facility_index"):
        index = FacilityIndex.load({"error": "oops"})

    assert len(index) == 0
    assert any("invalid_payload" in rec.getMessage() for rec in caplog.records)


def test_facility_is_immutable():
    lib = FacilityIndex.load(RECORDS).lookup("central library")

    with pytest.raises(AttributeError):
        lib.name = "Other"


def test_to_df_lists_facilities():
    pytest.importorskip("pandas")
    index = FacilityIndex.load(RECORDS)

    df = index.to_df(columns=["name", "campus"])

    assert list(df.columns) == ["name", "campus"]
    assert list(df["name"]) == ["Central Library", "Model School"]


def test_to_dict_drops_directory_metadata_on_request():
    school = FacilityIndex.load(RECORDS).lookup("model school")

    assert school.to_dict()["campus"] == "Delhi"
    assert school.to_dict(include_meta=False) == {
        "id": 2,
        "name": "Model School",
        "latitude": 28.6,
        "longitude": 77.2,
    }
    assert school.to_dict(include_meta=False, include_geometry=True)["geometry_point"] == (
        77.2,
        28.6,
    )


class _FakeResponse:
    def __init__(self, payload=None, exc=None):
        self._payload = payload
        self._exc = exc

    def raise_for_status(self):
        if self._exc is not None:
            raise self._exc

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class _FakeSession:
    def __init__(self, response):
        self.response = response
        self.urls = []

    def get(self, url, timeout=None):
        self.urls.append(url)
        return self.response


def test_from_url_loads_directory_payload():
    session = _FakeSession(_FakeResponse(RECORDS))

    index = FacilityIndex.from_url("http://dir/buildings", session=session)

    assert session.urls == ["http://dir/buildings"]
    assert len(index) == 2


def test_from_url_logs_and_returns_empty_on_http_error(caplog):
    import requests

    session = _FakeSession(_FakeResponse(exc=requests.HTTPError("500")))

    with caplog.at_level(logging.ERROR, logger="mapsearch.facility_index"):
        index = FacilityIndex.from_url("http://dir/buildings", session=session)

    assert len(index) == 0
    assert any("facility_index.fetch_failed" in rec.getMessage() for rec in caplog.records)


def test_from_url_handles_non_json_body():
    session = _FakeSession(_FakeResponse(ValueError("Expecting value")))

    index = FacilityIndex.from_url("http://dir/buildings", session=session)

    assert len(index) == 0
