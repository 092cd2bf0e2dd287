"""Base marker classes: identity, position, dirty tracking and the load/save template.

Every marker keeps two independently tracked regions of state:

* the *core* region (map, position, label, link, new tab), written by the
  setters defined here, and
* the *type* region (everything a subclass adds).

``load`` decodes the whole node first and only then applies each region,
skipping a region that has unsaved in-memory changes unless
``overwrite_changes`` is set. A decode failure leaves the marker untouched.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, ClassVar, Dict, Optional, Protocol, Tuple

from ..config_node import ConfigNode
from ..errors import InvalidArgumentError, MarkerFormatError
from ..geometry import Vector3d
from ..maps import MapRef
from .codec import decoding, read_vector3, write_vector3

logger = logging.getLogger(__name__)

DEFAULT_MAX_DISTANCE = 10_000_000.0


class MarkerContext(Protocol):
    def get_map(self, map_id: str) -> Optional[MapRef]:
        ...


def require(value: Any, name: str) -> Any:
    if value is None:
        raise InvalidArgumentError(f"{name} must not be None")
    return value


class Marker:
    """A point-of-interest annotation anchored to a map."""

    MARKER_TYPE: ClassVar[str] = ""

    def __init__(self, marker_id: str, map_ref: MapRef, position: Vector3d):
        if not isinstance(marker_id, str) or not marker_id:
            raise InvalidArgumentError("marker id must be a non-empty string")
        self._id = marker_id
        self._map = require(map_ref, "map")
        self._position = require(position, "position")
        self._label = marker_id
        self._link: Optional[str] = None
        self._new_tab = True

        self._lock = threading.RLock()
        self._core_dirty = True
        self._type_dirty = True

    # ----------------------- identity -----------------------
    @property
    def id(self) -> str:
        return self._id

    @property
    def marker_type(self) -> str:
        return self.MARKER_TYPE

    @property
    def dirty(self) -> bool:
        """True while in-memory state differs from the last load or save."""
        with self._lock:
            return self._core_dirty or self._type_dirty

    def dirty_regions(self) -> Tuple[bool, bool]:
        with self._lock:
            return self._core_dirty, self._type_dirty

    def restore_dirty(self, regions: Tuple[bool, bool]) -> None:
        core, fields = regions
        with self._lock:
            self._core_dirty = self._core_dirty or core
            self._type_dirty = self._type_dirty or fields

    # ----------------------- core fields -----------------------
    @property
    def map(self) -> MapRef:
        return self._map

    @map.setter
    def map(self, map_ref: MapRef) -> None:
        self._set_core(map=require(map_ref, "map"))

    @property
    def position(self) -> Vector3d:
        return self._position

    @position.setter
    def position(self, position: Vector3d) -> None:
        self._set_core(position=require(position, "position"))

    @property
    def label(self) -> str:
        return self._label

    @label.setter
    def label(self, label: str) -> None:
        self._set_core(label=require(label, "label"))

    @property
    def link(self) -> Optional[str]:
        return self._link

    @property
    def new_tab(self) -> bool:
        return self._new_tab

    def set_link(self, link: Optional[str], new_tab: bool = True) -> None:
        self._set_core(link=link, new_tab=bool(new_tab))

    def remove_link(self) -> None:
        self.set_link(None)

    # ----------------------- mutation helpers -----------------------
    def _set_core(self, **values: Any) -> None:
        with self._lock:
            self._assign(values)
            self._core_dirty = True

    def _set_fields(self, **values: Any) -> None:
        with self._lock:
            self._assign(values)
            self._type_dirty = True

    def _assign(self, values: Dict[str, Any]) -> None:
        for name, value in values.items():
            setattr(self, f"_{name}", value)

    # ----------------------- persistence -----------------------
    def load(self, api: MarkerContext, node: ConfigNode, overwrite_changes: bool = False) -> None:
        """Populate this marker from ``node``.

        Raises:
            MarkerFormatError: a required node is missing or a value is invalid.
        """
        with self._lock:
            core = self._read_core(api, node)
            with decoding(f"marker '{self._id}'"):
                fields = self._read_fields(node, core)

            if overwrite_changes or not self._core_dirty:
                self._assign(core)
                self._core_dirty = False
            else:
                logger.debug("Keeping unsaved core fields of marker %s", self._id)

            if overwrite_changes or not self._type_dirty:
                self._assign(fields)
                self._type_dirty = False
            else:
                logger.debug("Keeping unsaved %s fields of marker %s", self.MARKER_TYPE, self._id)

    def save(self, node: ConfigNode) -> None:
        with self._lock:
            node.get_node("type").set_value(self.MARKER_TYPE)
            node.get_node("map").set_value(self._map.id)
            write_vector3(node.get_node("position"), self._position)
            node.get_node("label").set_value(self._label)
            node.get_node("link").set_value(self._link)
            node.get_node("newTab").set_value(self._new_tab)
            self._write_fields(node)
            self._core_dirty = False
            self._type_dirty = False

    @classmethod
    def read_map(cls, api: MarkerContext, node: ConfigNode) -> MapRef:
        with decoding("map"):
            map_id = node.get_node("map").get_string()
        if map_id is None:
            raise MarkerFormatError("There is no map defined!")
        map_ref = api.get_map(map_id)
        if map_ref is None:
            raise MarkerFormatError(f"Could not resolve map with id: {map_id}")
        return map_ref

    def _read_core(self, api: MarkerContext, node: ConfigNode) -> Dict[str, Any]:
        map_ref = self.read_map(api, node)
        position = read_vector3(node.get_node("position"))
        with decoding("label"):
            return {
                "map": map_ref,
                "position": position,
                "label": node.get_node("label").get_string(self._id),
                "link": node.get_node("link").get_string(None),
                "new_tab": node.get_node("newTab").get_bool(True),
            }

    def _read_fields(self, node: ConfigNode, core: Dict[str, Any]) -> Dict[str, Any]:
        """Decode the type region; must not assign anything on ``self``."""
        return {}

    def _write_fields(self, node: ConfigNode) -> None:
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self._id!r}, map={self._map.id!r}, position={self._position!r})"


class ObjectMarker(Marker):
    """A marker with a detail text and a render-distance cutoff."""

    def __init__(self, marker_id: str, map_ref: MapRef, position: Vector3d):
        super().__init__(marker_id, map_ref, position)
        self._detail = self._label
        self._min_distance = 0.0
        self._max_distance = DEFAULT_MAX_DISTANCE

    @property
    def detail(self) -> str:
        return self._detail

    @detail.setter
    def detail(self, detail: str) -> None:
        self._set_fields(detail=require(detail, "detail"))

    @property
    def min_distance(self) -> float:
        return self._min_distance

    @min_distance.setter
    def min_distance(self, distance: float) -> None:
        self._set_fields(min_distance=_check_distance(distance, InvalidArgumentError))

    @property
    def max_distance(self) -> float:
        return self._max_distance

    @max_distance.setter
    def max_distance(self, distance: float) -> None:
        self._set_fields(max_distance=_check_distance(distance, InvalidArgumentError))

    def _read_fields(self, node: ConfigNode, core: Dict[str, Any]) -> Dict[str, Any]:
        fields = super()._read_fields(node, core)
        fields["detail"] = node.get_node("detail").get_string(core["label"])
        fields["min_distance"] = _check_distance(
            node.get_node("minDistance").get_float(0.0), MarkerFormatError
        )
        fields["max_distance"] = _check_distance(
            node.get_node("maxDistance").get_float(DEFAULT_MAX_DISTANCE), MarkerFormatError
        )
        return fields

    def _write_fields(self, node: ConfigNode) -> None:
        super()._write_fields(node)
        node.get_node("detail").set_value(self._detail)
        node.get_node("minDistance").set_value(self._min_distance)
        node.get_node("maxDistance").set_value(self._max_distance)


def _check_distance(distance: float, error: type) -> float:
    if distance is None or not distance >= 0:
        raise error(f"render distance must be a non-negative number, got {distance!r}")
    return float(distance)
