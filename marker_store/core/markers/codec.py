"""Encode and decode geometry and color values to and from config nodes."""
from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

from ..config_node import ConfigNode
from ..errors import MarkerFormatError
from ..geometry import Color, Line, Shape, Vector2d, Vector2i, Vector3d, round_coordinate

DEFAULT_ANCHOR = Vector2i(25, 45)


@contextmanager
def decoding(what: str) -> Iterator[None]:
    """Turn value errors raised while decoding into :class:`MarkerFormatError`."""

    try:
        yield
    except MarkerFormatError:
        raise
    except ValueError as err:
        raise MarkerFormatError(f"Failed to read {what}: {err}") from err


def read_vector3(node: ConfigNode, what: str = "position") -> Vector3d:
    nx, ny, nz = node.get_node("x"), node.get_node("y"), node.get_node("z")
    if nx.is_virtual() or ny.is_virtual() or nz.is_virtual():
        raise MarkerFormatError(f"Failed to read {what}: Node x, y or z is not set!")
    with decoding(what):
        return Vector3d(nx.get_float(), ny.get_float(), nz.get_float())


def write_vector3(node: ConfigNode, value: Vector3d, rounded: bool = False) -> None:
    coords = (value.x, value.y, value.z)
    if rounded:
        coords = tuple(round_coordinate(c) for c in coords)
    node.set_value({"x": coords[0], "y": coords[1], "z": coords[2]})


def read_anchor(node: ConfigNode) -> Vector2i:
    with decoding("anchor"):
        return Vector2i(
            node.get_node("x").get_int(DEFAULT_ANCHOR.x),
            node.get_node("y").get_int(DEFAULT_ANCHOR.y),
        )


def write_anchor(node: ConfigNode, anchor: Vector2i) -> None:
    node.set_value({"x": anchor.x, "y": anchor.y})


def read_line(node: ConfigNode) -> Line:
    point_nodes = node.get_children_list()
    if len(point_nodes) < 3:
        raise MarkerFormatError("Failed to read line: point-list has fewer than 2 entries!")
    return Line([read_vector3(point, "line position") for point in point_nodes])


def write_line(node: ConfigNode, line: Line) -> None:
    node.set_value([])
    for point in line:
        write_vector3(node.append_list_node(), point, rounded=True)


def read_shape(node: ConfigNode) -> Shape:
    point_nodes = node.get_children_list()
    if len(point_nodes) < 3:
        raise MarkerFormatError("Failed to read shape: point-list has fewer than 3 entries!")
    points = []
    for point in point_nodes:
        nx, nz = point.get_node("x"), point.get_node("z")
        if nx.is_virtual() or nz.is_virtual():
            raise MarkerFormatError("Failed to read shape position: Node x or z is not set!")
        with decoding("shape position"):
            points.append(Vector2d(nx.get_float(), nz.get_float()))
    return Shape(points)


def write_shape(node: ConfigNode, shape: Shape) -> None:
    node.set_value([])
    for point in shape:
        node.append_list_node().set_value({
            "x": round_coordinate(point.x),
            "z": round_coordinate(point.y),
        })


def read_color(node: ConfigNode, default: Optional[Color] = None) -> Color:
    """Decode ``{r, g, b, a}``; ``a`` is an opacity fraction in ``[0, 1]``.

    An entirely absent node yields ``default`` when one is given.
    """

    if node.is_virtual() and default is not None:
        return default
    nr, ng, nb, na = (node.get_node(c) for c in ("r", "g", "b", "a"))
    if nr.is_virtual() or ng.is_virtual() or nb.is_virtual():
        raise MarkerFormatError("Failed to read color: Node r,g or b is not set!")

    with decoding("color"):
        alpha = na.get_float(1.0)
        if alpha < 0 or alpha > 1:
            raise MarkerFormatError("Failed to read color: alpha value out of range (0-1)!")
        return Color.from_fraction(nr.get_int(), ng.get_int(), nb.get_int(), alpha)


def write_color(node: ConfigNode, color: Color) -> None:
    node.set_value({
        "r": color.r,
        "g": color.g,
        "b": color.b,
        "a": color.alpha_fraction,
    })
