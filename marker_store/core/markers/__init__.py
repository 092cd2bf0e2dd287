"""Marker types and their persisted form."""

from .base import Marker, MarkerContext, ObjectMarker
from .html import HtmlMarker
from .line import LineMarker
from .poi import POIMarker
from .registry import MARKER_TYPES, create_marker, marker_class_for, read_marker_type
from .shape import ExtrudeMarker, ShapeMarker

__all__ = [
    "MARKER_TYPES",
    "ExtrudeMarker",
    "HtmlMarker",
    "LineMarker",
    "Marker",
    "MarkerContext",
    "ObjectMarker",
    "POIMarker",
    "ShapeMarker",
    "create_marker",
    "marker_class_for",
    "read_marker_type",
]
