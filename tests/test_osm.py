import pytest

from mapsearch.osm import overpass_to_features


def _geom(coords):
    return [{"lat": lat, "lon": lon} for lon, lat in coords]


OUTER_A = [(77.0, 28.0), (77.5, 28.0), (77.5, 28.5)]
OUTER_B = [(77.5, 28.5), (77.0, 28.5), (77.0, 28.0)]
INNER = [(77.2, 28.2), (77.3, 28.2), (77.3, 28.3), (77.2, 28.3), (77.2, 28.2)]


def _relation(name="New Delhi", rel_type="boundary", members=None):
    return {
        "type": "relation",
        "id": 42,
        "tags": {"type": rel_type, "boundary": "administrative", "name": name},
        "members": members
        if members is not None
        else [
            {"type": "way", "ref": 1, "role": "outer", "geometry": _geom(OUTER_A)},
            {"type": "way", "ref": 2, "role": "outer", "geometry": _geom(OUTER_B)},
        ],
    }


def test_relation_with_split_outer_ways_becomes_polygon():
    features = overpass_to_features({"elements": [_relation()]})

    assert len(features) == 1
    feature = features[0]
    assert feature["properties"]["name"] == "New Delhi"
    assert feature["properties"]["tags"]["boundary"] == "administrative"
    assert feature["id"] == "relation/42"
    assert feature["geometry"]["type"] == "Polygon"


def test_inner_members_become_holes():
    members = [
        {"type": "way", "ref": 1, "role": "outer", "geometry": _geom(OUTER_A)},
        {"type": "way", "ref": 2, "role": "outer", "geometry": _geom(OUTER_B)},
        {"type": "way", "ref": 3, "role": "inner", "geometry": _geom(INNER)},
    ]

    features = overpass_to_features({"elements": [_relation(members=members)]})

    rings = features[0]["geometry"]["coordinates"]
    assert len(rings) == 2


def test_way_members_resolved_through_node_references():
    nodes = [
        {"type": "node", "id": 10, "lat": 28.0, "lon": 77.0},
        {"type": "node", "id": 11, "lat": 28.0, "lon": 77.5},
        {"type": "node", "id": 12, "lat": 28.5, "lon": 77.5},
    ]
    way = {"type": "way", "id": 5, "nodes": [10, 11, 12, 10]}
    members = [{"type": "way", "ref": 5, "role": "outer"}]

    features = overpass_to_features({"elements": nodes + [way, _relation(members=members)]})

    assert [f["properties"]["name"] for f in features] == ["New Delhi"]


def test_closed_named_way_becomes_polygon_and_open_way_is_ignored():
    closed = {
        "type": "way",
        "id": 8,
        "tags": {"name": "Lodhi Garden", "leisure": "park"},
        "geometry": _geom([(77.21, 28.59), (77.22, 28.59), (77.22, 28.60), (77.21, 28.59)]),
    }
    open_way = {
        "type": "way",
        "id": 9,
        "tags": {"name": "Rajpath"},
        "geometry": _geom([(77.2, 28.6), (77.23, 28.61)]),
    }

    features = overpass_to_features({"elements": [closed, open_way]})

    assert [f["id"] for f in features] == ["way/8"]


def test_non_area_relations_and_nodes_are_skipped():
    route = _relation(rel_type="route")
    node = {"type": "node", "id": 1, "lat": 28.6, "lon": 77.2, "tags": {"name": "New Delhi"}}

    assert overpass_to_features({"elements": [route, node]}) == []


def test_open_relation_rings_are_skipped():
    members = [{"type": "way", "ref": 1, "role": "outer", "geometry": _geom(OUTER_A)}]

    assert overpass_to_features({"elements": [_relation(members=members)]}) == []


def test_missing_elements_means_no_features():
    assert overpass_to_features({"version": 0.6}) == []


@pytest.mark.parametrize("payload", [[], "text", {"elements": "nope"}])
def test_malformed_payloads_raise_value_error(payload):
    with pytest.raises(ValueError):
        overpass_to_features(payload)


@pytest.mark.parametrize(
    "element",
    [
        {"type": "relation", "id": 1, "tags": ["x"]},
        {"type": "relation", "id": [1], "tags": {"type": "boundary"}},
        {"type": "way", "id": {"a": 1}, "tags": {"name": "Goa"}},
        {"type": "way", "id": 2, "tags": {"name": "Goa"}, "nodes": 7},
        {"type": "relation", "id": 3, "tags": {"type": "boundary"}, "members": "outer"},
    ],
)
def test_malformed_elements_raise_value_error(element):
    with pytest.raises(ValueError):
        overpass_to_features({"elements": [element]})


def test_unusable_member_refs_are_ignored():
    members = [
        "outer",
        {"type": "way", "ref": [1], "role": "outer"},
        {"type": "way", "ref": 1, "role": "outer", "geometry": 12},
    ]

    assert overpass_to_features({"elements": [_relation(members=members)]}) == []
