"""Flat polygon markers and their extruded variant."""
from __future__ import annotations

from typing import Any, Dict

from ..config_node import ConfigNode
from ..errors import InvalidArgumentError, MarkerFormatError
from ..geometry import Color, Shape, Vector3d
from ..maps import MapRef
from .base import ObjectMarker, require
from .codec import decoding, read_color, read_shape, write_color, write_shape
from .line import DEFAULT_LINE_COLOR, DEFAULT_LINE_WIDTH, check_line_width

DEFAULT_FILL_COLOR = Color(200, 0, 0, 100)
MIN_SHAPE_POINTS = 3


class _StyledShapeMarker(ObjectMarker):
    """Outline and fill styling shared by shape and extrude markers."""

    def __init__(self, marker_id: str, map_ref: MapRef, position: Vector3d, shape: Shape):
        super().__init__(marker_id, map_ref, position)
        self._shape = _check_shape(shape)
        self._depth_test = True
        self._line_width = DEFAULT_LINE_WIDTH
        self._line_color = DEFAULT_LINE_COLOR
        self._fill_color = DEFAULT_FILL_COLOR

    @property
    def shape(self) -> Shape:
        return self._shape

    @property
    def depth_test(self) -> bool:
        return self._depth_test

    @depth_test.setter
    def depth_test(self, enabled: bool) -> None:
        self._set_fields(depth_test=bool(enabled))

    @property
    def line_width(self) -> int:
        return self._line_width

    @line_width.setter
    def line_width(self, width: int) -> None:
        self._set_fields(line_width=check_line_width(width, InvalidArgumentError))

    @property
    def line_color(self) -> Color:
        return self._line_color

    @line_color.setter
    def line_color(self, color: Color) -> None:
        self._set_fields(line_color=require(color, "line color"))

    @property
    def fill_color(self) -> Color:
        return self._fill_color

    @fill_color.setter
    def fill_color(self, color: Color) -> None:
        self._set_fields(fill_color=require(color, "fill color"))

    def set_colors(self, line_color: Color, fill_color: Color) -> None:
        self._set_fields(
            line_color=require(line_color, "line color"),
            fill_color=require(fill_color, "fill color"),
        )

    def _read_fields(self, node: ConfigNode, core: Dict[str, Any]) -> Dict[str, Any]:
        fields = super()._read_fields(node, core)
        fields["shape"] = read_shape(node.get_node("shape"))
        fields["depth_test"] = node.get_node("depthTest").get_bool(True)
        fields["line_width"] = check_line_width(
            node.get_node("lineWidth").get_int(DEFAULT_LINE_WIDTH), MarkerFormatError
        )
        fields["line_color"] = read_color(node.get_node("lineColor"), DEFAULT_LINE_COLOR)
        fields["fill_color"] = read_color(node.get_node("fillColor"), DEFAULT_FILL_COLOR)
        return fields

    def _write_fields(self, node: ConfigNode) -> None:
        super()._write_fields(node)
        write_shape(node.get_node("shape"), self._shape)
        node.get_node("depthTest").set_value(self._depth_test)
        node.get_node("lineWidth").set_value(self._line_width)
        write_color(node.get_node("lineColor"), self._line_color)
        write_color(node.get_node("fillColor"), self._fill_color)


class ShapeMarker(_StyledShapeMarker):
    MARKER_TYPE = "shape"

    def __init__(self, marker_id: str, map_ref: MapRef, position: Vector3d, shape: Shape, height: float):
        super().__init__(marker_id, map_ref, position, shape)
        self._height = float(require(height, "height"))

    @property
    def height(self) -> float:
        return self._height

    def set_shape(self, shape: Shape, height: float) -> None:
        self._set_fields(shape=_check_shape(shape), height=float(require(height, "height")))

    def _read_fields(self, node: ConfigNode, core: Dict[str, Any]) -> Dict[str, Any]:
        fields = super()._read_fields(node, core)
        fields["height"] = node.get_node("height").get_float(core["position"].y)
        return fields

    def _write_fields(self, node: ConfigNode) -> None:
        super()._write_fields(node)
        node.get_node("height").set_value(self._height)


class ExtrudeMarker(_StyledShapeMarker):
    MARKER_TYPE = "extrude"

    def __init__(
        self,
        marker_id: str,
        map_ref: MapRef,
        position: Vector3d,
        shape: Shape,
        min_height: float,
        max_height: float,
    ):
        super().__init__(marker_id, map_ref, position, shape)
        self._min_height, self._max_height = _check_heights(min_height, max_height, InvalidArgumentError)

    @property
    def min_height(self) -> float:
        return self._min_height

    @property
    def max_height(self) -> float:
        return self._max_height

    def set_shape(self, shape: Shape, min_height: float, max_height: float) -> None:
        low, high = _check_heights(min_height, max_height, InvalidArgumentError)
        self._set_fields(shape=_check_shape(shape), min_height=low, max_height=high)

    def _read_fields(self, node: ConfigNode, core: Dict[str, Any]) -> Dict[str, Any]:
        fields = super()._read_fields(node, core)
        with decoding("extrude heights"):
            low = node.get_node("shapeMinY").get_float(core["position"].y)
            high = node.get_node("shapeMaxY").get_float(low)
        fields["min_height"], fields["max_height"] = _check_heights(low, high, MarkerFormatError)
        return fields

    def _write_fields(self, node: ConfigNode) -> None:
        super()._write_fields(node)
        node.get_node("shapeMinY").set_value(self._min_height)
        node.get_node("shapeMaxY").set_value(self._max_height)


def _check_shape(shape: Shape) -> Shape:
    require(shape, "shape")
    if shape.point_count < MIN_SHAPE_POINTS:
        raise InvalidArgumentError(f"a shape needs at least {MIN_SHAPE_POINTS} points, got {shape.point_count}")
    return shape


def _check_heights(min_height: float, max_height: float, error: type):
    if min_height is None or max_height is None:
        raise error("extrude heights must not be None")
    if not float(min_height) <= float(max_height):
        raise error(f"minimum height {min_height} exceeds maximum height {max_height}")
    return float(min_height), float(max_height)
