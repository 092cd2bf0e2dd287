"""Point-of-interest markers rendered as an icon."""
from __future__ import annotations

from typing import Any, Dict

from ..config_node import ConfigNode
from ..geometry import Vector2i, Vector3d
from ..maps import MapRef
from .base import Marker, require
from .codec import DEFAULT_ANCHOR, read_anchor, write_anchor

DEFAULT_ICON = "assets/poi.svg"


class POIMarker(Marker):
    MARKER_TYPE = "poi"

    def __init__(self, marker_id: str, map_ref: MapRef, position: Vector3d, icon: str = DEFAULT_ICON):
        super().__init__(marker_id, map_ref, position)
        self._icon = require(icon, "icon")
        self._anchor = DEFAULT_ANCHOR

    @property
    def icon(self) -> str:
        return self._icon

    @property
    def anchor(self) -> Vector2i:
        return self._anchor

    def set_icon(self, icon: str, anchor: Vector2i = DEFAULT_ANCHOR) -> None:
        """Replace the icon address together with its pixel anchor."""
        self._set_fields(icon=require(icon, "icon"), anchor=require(anchor, "anchor"))

    def _read_fields(self, node: ConfigNode, core: Dict[str, Any]) -> Dict[str, Any]:
        fields = super()._read_fields(node, core)
        fields["icon"] = node.get_node("icon").get_string(DEFAULT_ICON)
        fields["anchor"] = read_anchor(node.get_node("anchor"))
        return fields

    def _write_fields(self, node: ConfigNode) -> None:
        super()._write_fields(node)
        node.get_node("icon").set_value(self._icon)
        write_anchor(node.get_node("anchor"), self._anchor)
