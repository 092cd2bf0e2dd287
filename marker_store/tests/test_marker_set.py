import logging

import pytest

from marker_store.core.config_node import ConfigNode
from marker_store.core.errors import InvalidArgumentError, MarkerFormatError
from marker_store.core.geometry import Vector3d
from marker_store.core.maps import MapRef, MapRegistry
from marker_store.core.marker_set import MarkerSet
from marker_store.core.markers import HtmlMarker, POIMarker

WORLD = MapRef("world", "World")
API = MapRegistry([WORLD])


def html(label: str, text: str = "<p>x</p>") -> dict:
    return {
        "type": "html",
        "map": "world",
        "position": {"x": 0, "y": 64, "z": 0},
        "label": label,
        "html": text,
    }


def set_node(markers: dict, **fields) -> ConfigNode:
    data = {"label": "Towns", "toggleable": True, "defaultHidden": False, "markers": markers}
    data.update(fields)
    return ConfigNode.from_data(data)


def loaded_set(markers: dict) -> MarkerSet:
    marker_set = MarkerSet("towns")
    marker_set.load(API, set_node(markers), overwrite_changes=True)
    return marker_set


def test_malformed_marker_is_skipped_and_siblings_load(caplog):
    markers = {
        "a": html("A"),
        "broken": {"type": "html", "map": "mars", "position": {"x": 0, "y": 0, "z": 0}},
        "b": html("B"),
    }
    marker_set = MarkerSet("towns")
    with caplog.at_level(logging.WARNING):
        report = marker_set.load(API, set_node(markers), overwrite_changes=True)

    assert report.loaded == 2
    assert report.skipped == [("broken", "Could not resolve map with id: mars")]
    assert sorted(m.id for m in marker_set.markers) == ["a", "b"]
    assert "broken" in caplog.text
    assert report.summary()["skipped"] == ["broken: Could not resolve map with id: mars"]


def test_set_fields_roundtrip_and_defaults():
    marker_set = loaded_set({})
    assert (marker_set.label, marker_set.toggleable, marker_set.default_hidden) == ("Towns", True, False)
    assert not marker_set.dirty

    bare = MarkerSet("bare")
    bare.load(API, ConfigNode.from_data({}), overwrite_changes=True)
    assert bare.label == "bare"
    assert bare.markers == []

    marker_set.default_hidden = True
    node = ConfigNode.empty()
    marker_set.save(node)
    assert node.to_data() == {"label": "Towns", "toggleable": True, "defaultHidden": True, "markers": {}}
    assert not marker_set.dirty


def test_non_overwriting_reload_keeps_new_markers_and_drops_clean_ones():
    marker_set = loaded_set({"a": html("A"), "b": html("B")})
    fresh = marker_set.create_html_marker("new", WORLD, Vector3d(1, 2, 3), "<p>new</p>")

    report = marker_set.load(API, set_node({"a": html("A2")}), overwrite_changes=False)

    assert marker_set.get_marker("new") is fresh
    assert marker_set.get_marker("b") is None
    assert report.removed == ["b"]
    assert marker_set.get_marker("a").label == "A2"


def test_reload_updates_existing_instance_in_place():
    marker_set = loaded_set({"a": html("A")})
    before = marker_set.get_marker("a")
    marker_set.load(API, set_node({"a": html("A", "<p>v2</p>")}))
    assert marker_set.get_marker("a") is before
    assert before.html == "<p>v2</p>"


def test_removed_marker_is_not_resurrected_until_overwrite():
    marker_set = loaded_set({"a": html("A"), "b": html("B")})
    assert marker_set.remove_marker("a")
    assert not marker_set.remove_marker("a")
    assert marker_set.dirty

    marker_set.load(API, set_node({"a": html("A"), "b": html("B")}))
    assert marker_set.get_marker("a") is None

    marker_set.load(API, set_node({"a": html("A"), "b": html("B")}), overwrite_changes=True)
    assert marker_set.get_marker("a") is not None


def test_persisted_type_change_replaces_clean_marker():
    marker_set = loaded_set({"a": html("A")})
    poi = dict(html("A"), type="poi", icon="assets/flag.svg")
    del poi["html"]

    marker_set.load(API, set_node({"a": poi}))
    assert isinstance(marker_set.get_marker("a"), POIMarker)


def test_persisted_type_change_keeps_dirty_marker_without_overwrite():
    marker_set = loaded_set({"a": html("A")})
    marker_set.get_marker("a").label = "Edited"
    poi = dict(html("A"), type="poi")

    marker_set.load(API, set_node({"a": poi}))
    assert isinstance(marker_set.get_marker("a"), HtmlMarker)

    marker_set.load(API, set_node({"a": poi}), overwrite_changes=True)
    assert isinstance(marker_set.get_marker("a"), POIMarker)


def test_markers_must_be_a_mapping():
    marker_set = MarkerSet("towns")
    with pytest.raises(MarkerFormatError, match="mapping"):
        marker_set.load(API, set_node([html("A")]), overwrite_changes=True)
    assert marker_set.label == "towns"


def test_save_writes_every_marker_and_clears_dirty():
    marker_set = MarkerSet("towns")
    marker_set.create_html_marker("a", WORLD, Vector3d(0, 0, 0), "<p>a</p>")
    marker_set.create_poi_marker("b", WORLD, Vector3d(0, 0, 0))
    assert marker_set.dirty

    node = ConfigNode.empty()
    marker_set.save(node)

    data = node.to_data()
    assert list(data["markers"]) == ["a", "b"]
    assert data["markers"]["b"]["type"] == "poi"
    assert not marker_set.dirty


def test_invalid_arguments():
    with pytest.raises(InvalidArgumentError):
        MarkerSet("")
    marker_set = MarkerSet("towns")
    with pytest.raises(InvalidArgumentError):
        marker_set.add_marker(None)
    with pytest.raises(InvalidArgumentError):
        marker_set.label = None


def test_number_too_large_for_float_skips_only_that_marker():
    huge = dict(html("Huge"), position={"x": 10 ** 400, "y": 0, "z": 0})
    marker_set = MarkerSet("towns")

    report = marker_set.load(API, set_node({"bad": huge, "good": html("Good")}), overwrite_changes=True)

    assert report.loaded == 1
    assert [marker_id for marker_id, _ in report.skipped] == ["bad"]
    assert marker_set.get_marker("good").label == "Good"
    assert marker_set.get_marker("bad") is None
