"""Polyline markers."""
from __future__ import annotations

from typing import Any, Dict

from ..config_node import ConfigNode
from ..errors import InvalidArgumentError, MarkerFormatError
from ..geometry import Color, Line, Vector3d
from ..maps import MapRef
from .base import ObjectMarker, require
from .codec import read_color, read_line, write_color, write_line

DEFAULT_LINE_WIDTH = 2
DEFAULT_LINE_COLOR = Color(255, 0, 0, 200)
MIN_LINE_POINTS = 3


def check_line_width(width: int, error: type) -> int:
    if isinstance(width, bool) or not isinstance(width, int) or width < 0:
        raise error(f"line width must be a non-negative integer, got {width!r}")
    return width


class LineMarker(ObjectMarker):
    MARKER_TYPE = "line"

    def __init__(self, marker_id: str, map_ref: MapRef, position: Vector3d, line: Line):
        super().__init__(marker_id, map_ref, position)
        self._line = _check_line(line)
        self._depth_test = True
        self._line_width = DEFAULT_LINE_WIDTH
        self._line_color = DEFAULT_LINE_COLOR

    @property
    def line(self) -> Line:
        return self._line

    @line.setter
    def line(self, line: Line) -> None:
        self._set_fields(line=_check_line(line))

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

    def _read_fields(self, node: ConfigNode, core: Dict[str, Any]) -> Dict[str, Any]:
        fields = super()._read_fields(node, core)
        fields["line"] = read_line(node.get_node("line"))
        fields["depth_test"] = node.get_node("depthTest").get_bool(True)
        fields["line_width"] = check_line_width(
            node.get_node("lineWidth").get_int(DEFAULT_LINE_WIDTH), MarkerFormatError
        )
        fields["line_color"] = read_color(node.get_node("lineColor"), DEFAULT_LINE_COLOR)
        return fields

    def _write_fields(self, node: ConfigNode) -> None:
        super()._write_fields(node)
        write_line(node.get_node("line"), self._line)
        node.get_node("depthTest").set_value(self._depth_test)
        node.get_node("lineWidth").set_value(self._line_width)
        write_color(node.get_node("lineColor"), self._line_color)


def _check_line(line: Line) -> Line:
    require(line, "line")
    if line.point_count < MIN_LINE_POINTS:
        raise InvalidArgumentError(f"a line needs at least {MIN_LINE_POINTS} points, got {line.point_count}")
    return line
