"""A named, toggleable group of markers and its persisted form."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from .config_node import ConfigNode
from .errors import InvalidArgumentError, MarkerFormatError
from .geometry import Line, Shape, Vector3d
from .maps import MapRef
from .markers import (
    ExtrudeMarker,
    HtmlMarker,
    LineMarker,
    Marker,
    MarkerContext,
    POIMarker,
    ShapeMarker,
    create_marker,
    read_marker_type,
)
from .markers.codec import decoding
from .markers.poi import DEFAULT_ICON

logger = logging.getLogger(__name__)


@dataclass
class LoadReport:
    loaded: int = 0
    skipped: List[Tuple[str, str]] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)

    def merge(self, other: "LoadReport", prefix: str = "") -> None:
        self.loaded += other.loaded
        self.skipped.extend((prefix + marker_id, message) for marker_id, message in other.skipped)
        self.removed.extend(prefix + marker_id for marker_id in other.removed)

    def summary(self) -> Dict[str, object]:
        return {
            "loaded": self.loaded,
            "skipped": [f"{marker_id}: {message}" for marker_id, message in self.skipped],
            "removed": list(self.removed),
        }


class MarkerSet:
    """Own a collection of markers keyed by id."""

    def __init__(self, set_id: str):
        if not isinstance(set_id, str) or not set_id:
            raise InvalidArgumentError("marker set id must be a non-empty string")
        self._id = set_id
        self._label = set_id
        self._toggleable = True
        self._default_hidden = False
        self._markers: Dict[str, Marker] = {}
        self._removed: set[str] = set()

        self._lock = threading.RLock()
        self._fields_dirty = True

    # ----------------------- fields -----------------------
    @property
    def id(self) -> str:
        return self._id

    @property
    def label(self) -> str:
        return self._label

    @label.setter
    def label(self, label: str) -> None:
        if label is None:
            raise InvalidArgumentError("label must not be None")
        with self._lock:
            self._label = label
            self._fields_dirty = True

    @property
    def toggleable(self) -> bool:
        return self._toggleable

    @toggleable.setter
    def toggleable(self, toggleable: bool) -> None:
        with self._lock:
            self._toggleable = bool(toggleable)
            self._fields_dirty = True

    @property
    def default_hidden(self) -> bool:
        return self._default_hidden

    @default_hidden.setter
    def default_hidden(self, hidden: bool) -> None:
        with self._lock:
            self._default_hidden = bool(hidden)
            self._fields_dirty = True

    @property
    def dirty(self) -> bool:
        with self._lock:
            if self._fields_dirty or self._removed:
                return True
            return any(marker.dirty for marker in self._markers.values())

    # ----------------------- markers -----------------------
    @property
    def markers(self) -> List[Marker]:
        with self._lock:
            return list(self._markers.values())

    def get_marker(self, marker_id: str) -> Optional[Marker]:
        with self._lock:
            return self._markers.get(marker_id)

    def add_marker(self, marker: Marker) -> Marker:
        if marker is None:
            raise InvalidArgumentError("marker must not be None")
        with self._lock:
            self._markers[marker.id] = marker
            self._removed.discard(marker.id)
        return marker

    def remove_marker(self, marker_id: str) -> bool:
        with self._lock:
            if self._markers.pop(marker_id, None) is None:
                return False
            self._removed.add(marker_id)
            return True

    def create_html_marker(self, marker_id: str, map_ref: MapRef, position: Vector3d, html: str) -> HtmlMarker:
        return self.add_marker(HtmlMarker(marker_id, map_ref, position, html))

    def create_poi_marker(
        self, marker_id: str, map_ref: MapRef, position: Vector3d, icon: str = DEFAULT_ICON
    ) -> POIMarker:
        return self.add_marker(POIMarker(marker_id, map_ref, position, icon))

    def create_line_marker(self, marker_id: str, map_ref: MapRef, position: Vector3d, line: Line) -> LineMarker:
        return self.add_marker(LineMarker(marker_id, map_ref, position, line))

    def create_shape_marker(
        self, marker_id: str, map_ref: MapRef, position: Vector3d, shape: Shape, height: float
    ) -> ShapeMarker:
        return self.add_marker(ShapeMarker(marker_id, map_ref, position, shape, height))

    def create_extrude_marker(
        self,
        marker_id: str,
        map_ref: MapRef,
        position: Vector3d,
        shape: Shape,
        min_height: float,
        max_height: float,
    ) -> ExtrudeMarker:
        return self.add_marker(ExtrudeMarker(marker_id, map_ref, position, shape, min_height, max_height))

    # ----------------------- persistence -----------------------
    def load(self, api: MarkerContext, node: ConfigNode, overwrite_changes: bool = False) -> LoadReport:
        """Load set fields and markers; a malformed marker is skipped, not fatal."""

        report = LoadReport()
        with self._lock:
            with decoding(f"marker set '{self._id}'"):
                label = node.get_node("label").get_string(self._id)
                toggleable = node.get_node("toggleable").get_bool(True)
                default_hidden = node.get_node("defaultHidden").get_bool(False)
            markers_node = node.get_node("markers")
            if not (markers_node.is_virtual() or markers_node.is_null() or markers_node.is_map()):
                raise MarkerFormatError(f"Failed to read marker set '{self._id}': markers must be a mapping")

            if overwrite_changes or not self._fields_dirty:
                self._label = label
                self._toggleable = toggleable
                self._default_hidden = default_hidden
                self._fields_dirty = False

            if overwrite_changes:
                self._removed.clear()

            seen = set()
            for marker_id, marker_node in markers_node.get_children_map().items():
                seen.add(marker_id)
                if marker_id in self._removed:
                    continue
                try:
                    self._load_marker(api, marker_id, marker_node, overwrite_changes)
                except MarkerFormatError as err:
                    logger.warning("Skipping marker %s in set %s: %s", marker_id, self._id, err)
                    report.skipped.append((marker_id, str(err)))
                    continue
                report.loaded += 1

            for marker_id in list(self._markers):
                if marker_id in seen:
                    continue
                if overwrite_changes or not self._markers[marker_id].dirty:
                    del self._markers[marker_id]
                    report.removed.append(marker_id)
        return report

    def _load_marker(self, api: MarkerContext, marker_id: str, node: ConfigNode, overwrite_changes: bool) -> None:
        existing = self._markers.get(marker_id)
        if existing is not None and existing.marker_type == read_marker_type(node):
            existing.load(api, node, overwrite_changes)
            return
        if existing is not None and existing.dirty and not overwrite_changes:
            logger.debug("Keeping unsaved marker %s despite persisted type change", marker_id)
            return
        self._markers[marker_id] = create_marker(api, marker_id, node)

    def save(self, node: ConfigNode) -> None:
        with self._lock:
            node.get_node("label").set_value(self._label)
            node.get_node("toggleable").set_value(self._toggleable)
            node.get_node("defaultHidden").set_value(self._default_hidden)
            markers_node = node.get_node("markers")
            markers_node.set_value({})
            for marker_id, marker in self._markers.items():
                marker.save(markers_node.get_node(marker_id))
            self._removed.clear()
            self._fields_dirty = False

    def dirty_state(self) -> Tuple[bool, Set[str], Dict[str, Tuple[bool, bool]]]:
        with self._lock:
            markers = {marker_id: marker.dirty_regions() for marker_id, marker in self._markers.items()}
            return self._fields_dirty, set(self._removed), markers

    def restore_dirty(self, state: Tuple[bool, Set[str], Dict[str, Tuple[bool, bool]]]) -> None:
        """Re-flag whatever was unsaved when ``state`` was taken."""
        fields_dirty, removed, markers = state
        with self._lock:
            self._fields_dirty = self._fields_dirty or fields_dirty
            self._removed |= {marker_id for marker_id in removed if marker_id not in self._markers}
            for marker_id, regions in markers.items():
                marker = self._markers.get(marker_id)
                if marker is not None:
                    marker.restore_dirty(regions)

    def __repr__(self) -> str:
        return f"MarkerSet(id={self._id!r}, markers={len(self._markers)})"
