"""Dispatch persisted marker nodes to the marker class named by their ``type``."""
from __future__ import annotations

from typing import Callable, Dict, Type

from ..config_node import ConfigNode
from ..errors import MarkerFormatError
from ..geometry import Line, Shape, Vector2d, Vector3d
from ..maps import MapRef
from .base import Marker, MarkerContext
from .codec import decoding, read_vector3
from .html import HtmlMarker
from .line import LineMarker
from .poi import POIMarker
from .shape import ExtrudeMarker, ShapeMarker

MARKER_TYPES: Dict[str, Type[Marker]] = {
    cls.MARKER_TYPE: cls
    for cls in (HtmlMarker, POIMarker, LineMarker, ShapeMarker, ExtrudeMarker)
}

_Placeholder = Callable[[str, MapRef, Vector3d], Marker]

# Minimal valid instances; ``create_marker`` overwrites every field on load.
_PLACEHOLDERS: Dict[str, _Placeholder] = {
    HtmlMarker.MARKER_TYPE: lambda i, m, p: HtmlMarker(i, m, p, ""),
    POIMarker.MARKER_TYPE: lambda i, m, p: POIMarker(i, m, p),
    LineMarker.MARKER_TYPE: lambda i, m, p: LineMarker(i, m, p, Line([p, p, p])),
    ShapeMarker.MARKER_TYPE: lambda i, m, p: ShapeMarker(i, m, p, _unit_shape(p), p.y),
    ExtrudeMarker.MARKER_TYPE: lambda i, m, p: ExtrudeMarker(i, m, p, _unit_shape(p), p.y, p.y),
}


def _unit_shape(position: Vector3d) -> Shape:
    return Shape.rectangle(Vector2d(position.x, position.z), Vector2d(position.x + 1, position.z + 1))


def read_marker_type(node: ConfigNode) -> str:
    with decoding("marker type"):
        marker_type = node.get_node("type").get_string()
    if marker_type is None:
        raise MarkerFormatError("There is no marker type defined!")
    return marker_type


def marker_class_for(marker_type: str) -> Type[Marker]:
    try:
        return MARKER_TYPES[marker_type]
    except KeyError:
        raise MarkerFormatError(f"Unknown marker type: {marker_type}") from None


def create_marker(api: MarkerContext, marker_id: str, node: ConfigNode) -> Marker:
    """Build a fresh marker of the persisted type and load it from ``node``."""

    marker_type = read_marker_type(node)
    marker_class_for(marker_type)
    map_ref = Marker.read_map(api, node)
    position = read_vector3(node.get_node("position"))
    marker = _PLACEHOLDERS[marker_type](marker_id, map_ref, position)
    marker.load(api, node, overwrite_changes=True)
    return marker
