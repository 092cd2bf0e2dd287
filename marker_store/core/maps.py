"""Map identities markers are anchored to, and the registry used to resolve them."""
from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional


@dataclass(frozen=True)
class MapRef:
    id: str
    name: str = ""
    world: str = ""


class MapRegistry:
    """Resolve map ids found in marker documents to known maps."""

    def __init__(self, maps: Iterable[MapRef] = ()):
        self._maps: Dict[str, MapRef] = {}
        self._lock = threading.Lock()
        for map_ref in maps:
            self.register(map_ref)

    @classmethod
    def from_mappings(cls, entries: Iterable[Mapping[str, Any]]) -> "MapRegistry":
        refs = []
        for entry in entries:
            map_id = str(entry["id"])
            refs.append(
                MapRef(
                    id=map_id,
                    name=str(entry.get("name", map_id)),
                    world=str(entry.get("world", "")),
                )
            )
        return cls(refs)

    def register(self, map_ref: MapRef) -> None:
        with self._lock:
            self._maps[map_ref.id] = map_ref

    def get_map(self, map_id: str) -> Optional[MapRef]:
        with self._lock:
            return self._maps.get(map_id)

    @property
    def maps(self) -> List[MapRef]:
        with self._lock:
            return list(self._maps.values())
