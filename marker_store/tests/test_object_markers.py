import pytest

from marker_store.core.config_node import ConfigNode
from marker_store.core.errors import InvalidArgumentError, MarkerFormatError
from marker_store.core.geometry import Color, Line, Shape, Vector2d, Vector2i, Vector3d
from marker_store.core.maps import MapRef, MapRegistry
from marker_store.core.markers import (
    ExtrudeMarker,
    HtmlMarker,
    LineMarker,
    POIMarker,
    ShapeMarker,
    create_marker,
    marker_class_for,
)

WORLD = MapRef("world", "World")
NETHER = MapRef("nether", "Nether")
API = MapRegistry([WORLD, NETHER])

SQUARE = Shape.rectangle(Vector2d(0, 0), Vector2d(10, 10))


def base(marker_type: str, **extra) -> ConfigNode:
    data = {"type": marker_type, "map": "world", "position": {"x": 5, "y": 64, "z": 5}}
    data.update(extra)
    return ConfigNode.from_data(data)


def roundtrip(marker):
    node = ConfigNode.empty()
    marker.save(node)
    return create_marker(API, marker.id, node), node


def test_poi_defaults_and_roundtrip():
    marker = create_marker(API, "spawn", base("poi"))
    assert isinstance(marker, POIMarker)
    assert marker.icon == "assets/poi.svg"
    assert marker.anchor == Vector2i(25, 45)

    marker.set_icon("assets/castle.png", Vector2i(16, 16))
    marker.label = "Castle"
    copy, _ = roundtrip(marker)
    assert (copy.icon, copy.anchor, copy.label) == ("assets/castle.png", Vector2i(16, 16), "Castle")
    assert not copy.dirty


def test_shape_height_defaults_to_position_y():
    points = [{"x": 0, "z": 0}, {"x": 4, "z": 0}, {"x": 4, "z": 4}]
    marker = create_marker(API, "plot", base("shape", shape=points))

    assert isinstance(marker, ShapeMarker)
    assert marker.height == 64.0
    assert marker.shape.points == (Vector2d(0, 0), Vector2d(4, 0), Vector2d(4, 4))
    assert marker.fill_color == Color(200, 0, 0, 100)
    assert marker.detail == "plot"


def test_shape_requires_three_points_with_x_and_z():
    with pytest.raises(MarkerFormatError, match="fewer than 3"):
        create_marker(API, "plot", base("shape", shape=[{"x": 0, "z": 0}]))
    broken = [{"x": 0, "z": 0}, {"x": 1}, {"x": 1, "z": 1}]
    with pytest.raises(MarkerFormatError, match="x or z"):
        create_marker(API, "plot", base("shape", shape=broken))


def test_shape_roundtrip_with_styling():
    marker = ShapeMarker("plot", WORLD, Vector3d(0, 70, 0), SQUARE, 70)
    marker.set_colors(Color(0, 255, 0, 255), Color(0, 128, 0, 51))
    marker.line_width = 4
    marker.depth_test = False
    marker.min_distance = 10
    marker.max_distance = 500
    marker.detail = "<p>Plot</p>"

    copy, node = roundtrip(marker)
    assert copy.shape == SQUARE
    assert copy.height == 70.0
    assert copy.line_color == Color(0, 255, 0, 255)
    assert copy.fill_color == Color(0, 128, 0, 51)
    assert (copy.line_width, copy.depth_test) == (4, False)
    assert (copy.min_distance, copy.max_distance) == (10.0, 500.0)
    assert copy.detail == "<p>Plot</p>"
    assert node.to_data()["shape"][1] == {"x": 10.0, "z": 0.0}


def test_extrude_heights_are_validated():
    with pytest.raises(InvalidArgumentError):
        ExtrudeMarker("tower", WORLD, Vector3d(0, 0, 0), SQUARE, 80, 60)

    marker = ExtrudeMarker("tower", WORLD, Vector3d(0, 0, 0), SQUARE, 60, 80)
    copy, _ = roundtrip(marker)
    assert (copy.min_height, copy.max_height) == (60.0, 80.0)

    node = ConfigNode.empty()
    marker.save(node)
    node.get_node("shapeMinY").set_value(100)
    with pytest.raises(MarkerFormatError):
        create_marker(API, "tower", node)


def test_negative_render_distance_is_rejected():
    marker = LineMarker("l", WORLD, Vector3d(0, 0, 0), Line([Vector3d(0, 0, 0)] * 3))
    with pytest.raises(InvalidArgumentError):
        marker.max_distance = -1
    node = ConfigNode.empty()
    marker.save(node)
    node.get_node("minDistance").set_value(-5)
    with pytest.raises(MarkerFormatError):
        create_marker(API, "l", node)


def test_roundtrip_every_marker_type():
    origin = Vector3d(1.5, 64, -2.25)
    markers = [
        HtmlMarker("h", NETHER, origin, "<p>hi</p>"),
        POIMarker("p", WORLD, origin, "assets/x.svg"),
        LineMarker("l", WORLD, origin, Line([origin, Vector3d(2, 64, 2), Vector3d(3.125, 65, 9)])),
        ShapeMarker("s", WORLD, origin, SQUARE, 64),
        ExtrudeMarker("e", WORLD, origin, SQUARE, 0, 255),
    ]
    for marker in markers:
        marker.set_link("https://example.org/" + marker.id, new_tab=False)
        copy, _ = roundtrip(marker)
        assert type(copy) is type(marker)
        assert copy.map == marker.map
        assert copy.position == marker.position
        assert (copy.label, copy.link, copy.new_tab) == (marker.label, marker.link, marker.new_tab)
        assert not copy.dirty
        assert not marker.dirty


def test_unknown_or_missing_type_is_a_format_error():
    with pytest.raises(MarkerFormatError, match="Unknown marker type"):
        create_marker(API, "x", base("banner"))
    node = base("poi")
    node.get_node("type").set_value(None)
    with pytest.raises(MarkerFormatError, match="no marker type"):
        create_marker(API, "x", node)
    with pytest.raises(MarkerFormatError):
        marker_class_for("banner")
