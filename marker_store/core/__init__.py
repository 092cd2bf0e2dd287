"""Core layer: config tree, value types, markers and their persistence."""

from .config_node import ConfigNode
from .errors import InvalidArgumentError, MarkerFormatError, MarkerStoreError, NodeValueError
from .maps import MapRef, MapRegistry
from .marker_set import LoadReport, MarkerSet
from .state_store import StateStore, StoreMetrics
from .store import MarkerStore, StoreResult

__all__ = [
    "ConfigNode",
    "InvalidArgumentError",
    "LoadReport",
    "MapRef",
    "MapRegistry",
    "MarkerFormatError",
    "MarkerSet",
    "MarkerStore",
    "MarkerStoreError",
    "NodeValueError",
    "StateStore",
    "StoreMetrics",
    "StoreResult",
]
