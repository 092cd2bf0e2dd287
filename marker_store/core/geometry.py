"""Immutable geometry and color value types used as marker attributes."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Iterator, Tuple


def round_coordinate(value: float, places: int = 3) -> float:
    """Round half away from zero at the ``10 ** -places`` unit."""

    scale = 10 ** places
    if not math.isfinite(value * scale):
        return value
    return math.copysign(math.floor(abs(value) * scale + 0.5), value) / scale


@dataclass(frozen=True)
class Vector2i:
    x: int
    y: int


@dataclass(frozen=True)
class Vector2d:
    x: float
    y: float


@dataclass(frozen=True)
class Vector3d:
    x: float
    y: float
    z: float


class Line:
    """An ordered, immutable polyline in world space."""

    __slots__ = ("_points",)

    def __init__(self, points: Iterable[Vector3d]):
        if points is None:
            raise ValueError("points must not be None")
        collected = tuple(points)
        if any(point is None for point in collected):
            raise ValueError("line points must not be None")
        self._points: Tuple[Vector3d, ...] = collected

    @property
    def points(self) -> Tuple[Vector3d, ...]:
        return self._points

    @property
    def point_count(self) -> int:
        return len(self._points)

    def get_point(self, index: int) -> Vector3d:
        return self._points[index]

    def min(self) -> Vector3d:
        return Vector3d(
            min(p.x for p in self._points),
            min(p.y for p in self._points),
            min(p.z for p in self._points),
        )

    def max(self) -> Vector3d:
        return Vector3d(
            max(p.x for p in self._points),
            max(p.y for p in self._points),
            max(p.z for p in self._points),
        )

    def __iter__(self) -> Iterator[Vector3d]:
        return iter(self._points)

    def __len__(self) -> int:
        return len(self._points)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Line):
            return NotImplemented
        return self._points == other._points

    def __hash__(self) -> int:
        return hash(self._points)

    def __repr__(self) -> str:
        return f"Line({list(self._points)!r})"


class Shape:
    """A closed 2D outline on the x/z plane."""

    __slots__ = ("_points",)

    def __init__(self, points: Iterable[Vector2d]):
        if points is None:
            raise ValueError("points must not be None")
        collected = tuple(points)
        if any(point is None for point in collected):
            raise ValueError("shape points must not be None")
        self._points: Tuple[Vector2d, ...] = collected

    @property
    def points(self) -> Tuple[Vector2d, ...]:
        return self._points

    @property
    def point_count(self) -> int:
        return len(self._points)

    def get_point(self, index: int) -> Vector2d:
        return self._points[index]

    @staticmethod
    def rectangle(corner1: Vector2d, corner2: Vector2d) -> "Shape":
        return Shape([
            Vector2d(corner1.x, corner1.y),
            Vector2d(corner2.x, corner1.y),
            Vector2d(corner2.x, corner2.y),
            Vector2d(corner1.x, corner2.y),
        ])

    @staticmethod
    def circle(center: Vector2d, radius: float, points: int = 16) -> "Shape":
        if points < 3:
            raise ValueError("a circle needs at least 3 points")
        step = 2 * math.pi / points
        return Shape(
            Vector2d(
                center.x + math.cos(step * i) * radius,
                center.y + math.sin(step * i) * radius,
            )
            for i in range(points)
        )

    def __iter__(self) -> Iterator[Vector2d]:
        return iter(self._points)

    def __len__(self) -> int:
        return len(self._points)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Shape):
            return NotImplemented
        return self._points == other._points

    def __hash__(self) -> int:
        return hash(self._points)

    def __repr__(self) -> str:
        return f"Shape({list(self._points)!r})"


@dataclass(frozen=True)
class Color:
    """RGBA color with integer channels in ``0..255``."""

    r: int
    g: int
    b: int
    a: int = 255

    def __post_init__(self):
        bad = [
            name
            for name in ("r", "g", "b", "a")
            if not isinstance(getattr(self, name), int)
            or isinstance(getattr(self, name), bool)
            or not 0 <= getattr(self, name) <= 255
        ]
        if bad:
            raise ValueError(
                "Color parameter outside of expected range: "
                + ", ".join(f"{name}={getattr(self, name)!r}" for name in bad)
            )

    @property
    def alpha_fraction(self) -> float:
        return self.a / 255

    @classmethod
    def from_fraction(cls, r: int, g: int, b: int, alpha: float) -> "Color":
        if not 0.0 <= alpha <= 1.0:
            raise ValueError(f"alpha value out of range (0-1): {alpha}")
        return cls(r, g, b, int(math.floor(alpha * 255 + 0.5)))


__all__ = [
    "Color",
    "Line",
    "Shape",
    "Vector2d",
    "Vector2i",
    "Vector3d",
    "round_coordinate",
]
