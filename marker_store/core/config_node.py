"""Hierarchical config tree backed by plain YAML-compatible data.

A :class:`ConfigNode` is either null, a scalar, a mapping of named child
nodes or an ordered list of child nodes. Looking up a child that does not
exist yields a *virtual* node: it reads as absent, and the first write to it
attaches it (and every virtual ancestor) to the tree.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional

from .errors import NodeValueError

_SCALARS = (str, int, float, bool)
_TRUE_WORDS = {"true", "yes", "on", "1"}
_FALSE_WORDS = {"false", "no", "off", "0"}


class ConfigNode:
    """A node in a mutable config tree."""

    def __init__(self, key: Optional[str] = None, parent: Optional["ConfigNode"] = None, attached: bool = True):
        self._key = key
        self._parent = parent
        self._attached = attached
        self._scalar: Any = None
        self._map: Optional[Dict[str, ConfigNode]] = None
        self._list: Optional[List[ConfigNode]] = None
        self._virtual: Dict[str, ConfigNode] = {}

    # ----------------------- construction -----------------------
    @classmethod
    def empty(cls) -> "ConfigNode":
        return cls()

    @classmethod
    def from_data(cls, data: Any) -> "ConfigNode":
        root = cls()
        root._assign(data)
        return root

    def to_data(self) -> Any:
        if self._map is not None:
            return {key: child.to_data() for key, child in self._map.items()}
        if self._list is not None:
            return [child.to_data() for child in self._list]
        return self._scalar

    # ----------------------- navigation -----------------------
    @property
    def key(self) -> Optional[str]:
        return self._key

    @property
    def parent(self) -> Optional["ConfigNode"]:
        return self._parent

    def path(self) -> str:
        if self._parent is None:
            return "<root>"
        parts: List[str] = []
        node: Optional[ConfigNode] = self
        while node is not None and node._parent is not None:
            if node._key is None:
                siblings = node._parent._list or []
                index = siblings.index(node) if node in siblings else -1
                parts.append(f"[{index}]")
            else:
                parts.append(node._key)
            node = node._parent
        return ".".join(reversed(parts)).replace(".[", "[")

    def get_node(self, *path: Any) -> "ConfigNode":
        node = self
        for name in path:
            node = node._child(str(name))
        return node

    def _child(self, name: str) -> "ConfigNode":
        if self._map is not None and name in self._map:
            return self._map[name]
        child = self._virtual.get(name)
        if child is None:
            child = ConfigNode(name, self, attached=False)
            self._virtual[name] = child
        return child

    def is_virtual(self) -> bool:
        if not self._attached:
            return True
        return self._parent is not None and self._parent.is_virtual()

    def is_null(self) -> bool:
        return self._map is None and self._list is None and self._scalar is None

    def is_map(self) -> bool:
        return self._map is not None

    def is_list(self) -> bool:
        return self._list is not None

    def get_children_list(self) -> List["ConfigNode"]:
        return list(self._list) if self._list is not None else []

    def get_children_map(self) -> Dict[str, "ConfigNode"]:
        return dict(self._map) if self._map is not None else {}

    # ----------------------- typed reads -----------------------
    def get_value(self, default: Any = None) -> Any:
        if self.is_virtual() or self.is_null():
            return default
        return self.to_data()

    def get_string(self, default: Optional[str] = None) -> Optional[str]:
        if self.is_virtual() or self.is_null():
            return default
        value = self._scalar_or_raise("string")
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)

    def get_int(self, default: int = 0) -> int:
        if self.is_virtual() or self.is_null():
            return default
        value = self._scalar_or_raise("integer")
        if isinstance(value, bool):
            raise NodeValueError(self.path(), "integer", value)
        if isinstance(value, int):
            return value
        if isinstance(value, str):
            try:
                return int(value.strip())
            except ValueError:
                try:
                    value = float(value)
                except ValueError:
                    raise NodeValueError(self.path(), "integer", value) from None
        if isinstance(value, float) and value.is_integer():
            return int(value)
        raise NodeValueError(self.path(), "integer", value)

    def get_float(self, default: float = 0.0) -> float:
        if self.is_virtual() or self.is_null():
            return default
        value = self._scalar_or_raise("number")
        if isinstance(value, bool):
            raise NodeValueError(self.path(), "number", value)
        try:
            return float(value)
        except (ValueError, OverflowError):
            raise NodeValueError(self.path(), "number", value) from None

    get_double = get_float

    def get_bool(self, default: bool = False) -> bool:
        if self.is_virtual() or self.is_null():
            return default
        value = self._scalar_or_raise("boolean")
        if isinstance(value, bool):
            return value
        if isinstance(value, int) and value in (0, 1):
            return bool(value)
        if isinstance(value, str):
            word = value.strip().lower()
            if word in _TRUE_WORDS:
                return True
            if word in _FALSE_WORDS:
                return False
        raise NodeValueError(self.path(), "boolean", value)

    def _scalar_or_raise(self, expected: str) -> Any:
        if self._map is not None or self._list is not None:
            raise NodeValueError(self.path(), expected, self.to_data())
        return self._scalar

    # ----------------------- writes -----------------------
    def set_value(self, value: Any) -> "ConfigNode":
        if value is None:
            self._detach()
            return self
        if isinstance(value, ConfigNode):
            value = value.to_data()
        self._assign(value)
        self._attach()
        return self

    def append_list_node(self) -> "ConfigNode":
        if self._list is None:
            self._clear()
            self._list = []
        child = ConfigNode(None, self, attached=True)
        self._list.append(child)
        self._attach()
        return child

    def remove_child(self, name: str) -> bool:
        if self._map is None or name not in self._map:
            return False
        self._map.pop(name)._attached = False
        return True

    def _assign(self, value: Any) -> None:
        self._clear()
        if isinstance(value, Mapping):
            self._map = {}
            for key, item in value.items():
                child = ConfigNode(str(key), self)
                child._assign(item)
                self._map[str(key)] = child
        elif isinstance(value, (list, tuple)):
            self._list = []
            for item in value:
                child = ConfigNode(None, self)
                child._assign(item)
                self._list.append(child)
        elif value is None or isinstance(value, _SCALARS):
            self._scalar = value
        elif isinstance(value, (date, datetime)):
            self._scalar = value.isoformat()
        else:
            raise TypeError(f"Unsupported config value type: {type(value).__name__}")

    def _clear(self) -> None:
        for child in (self._map or {}).values():
            child._attached = False
        for child in self._list or []:
            child._attached = False
        self._scalar = None
        self._map = None
        self._list = None
        self._virtual = {}

    def _attach(self) -> None:
        if self._attached or self._parent is None:
            self._attached = True
            return
        parent = self._parent
        parent._attach()
        if self._key is None:
            if parent._list is None:
                parent._clear()
                parent._list = []
            parent._list.append(self)
        else:
            if parent._map is None:
                pending = parent._virtual
                parent._clear()
                parent._virtual = pending
                parent._map = {}
            previous = parent._map.get(self._key)
            if previous is not None and previous is not self:
                previous._attached = False
            parent._map[self._key] = self
            parent._virtual.pop(self._key, None)
        self._attached = True

    def _detach(self) -> None:
        self._clear()
        parent = self._parent
        if parent is None or not self._attached:
            return
        if self._key is None:
            if parent._list is not None and self in parent._list:
                parent._list.remove(self)
        elif parent._map is not None and parent._map.get(self._key) is self:
            del parent._map[self._key]
        self._attached = False

    def __repr__(self) -> str:
        state = "virtual" if self.is_virtual() else "set"
        return f"ConfigNode({self.path()}, {state}, {self.to_data()!r})"
