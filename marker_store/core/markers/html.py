"""Markers that display free-form HTML at a pixel offset from their position."""
from __future__ import annotations

from typing import Any, Dict

from ..config_node import ConfigNode
from ..geometry import Vector2i, Vector3d
from ..maps import MapRef
from .base import Marker, require
from .codec import DEFAULT_ANCHOR, read_anchor, write_anchor


class HtmlMarker(Marker):
    MARKER_TYPE = "html"

    def __init__(self, marker_id: str, map_ref: MapRef, position: Vector3d, html: str):
        super().__init__(marker_id, map_ref, position)
        self._html = require(html, "html")
        self._anchor = DEFAULT_ANCHOR

    @property
    def html(self) -> str:
        return self._html

    @html.setter
    def html(self, html: str) -> None:
        self._set_fields(html=require(html, "html"))

    @property
    def anchor(self) -> Vector2i:
        return self._anchor

    @anchor.setter
    def anchor(self, anchor: Vector2i) -> None:
        self._set_fields(anchor=require(anchor, "anchor"))

    def _read_fields(self, node: ConfigNode, core: Dict[str, Any]) -> Dict[str, Any]:
        fields = super()._read_fields(node, core)
        fields["html"] = node.get_node("html").get_string("")
        fields["anchor"] = read_anchor(node.get_node("anchor"))
        return fields

    def _write_fields(self, node: ConfigNode) -> None:
        super()._write_fields(node)
        node.get_node("html").set_value(self._html)
        write_anchor(node.get_node("anchor"), self._anchor)
