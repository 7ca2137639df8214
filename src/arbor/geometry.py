"""Geometry primitives for segment placement and cone queries."""

from __future__ import annotations

from dataclasses import dataclass
from math import sqrt
from typing import Iterable, Tuple

Vector3 = Tuple[float, float, float]


@dataclass(frozen=True)
class Point:
    x: float
    y: float
    z: float

    def translate(self, dx: float, dy: float, dz: float) -> "Point":
        return Point(self.x + dx, self.y + dy, self.z + dz)

    def offset(self, vector: "Vector") -> "Point":
        return self.translate(vector.x, vector.y, vector.z)

    def as_tuple(self) -> Vector3:
        return (self.x, self.y, self.z)


@dataclass(frozen=True)
class Vector:
    x: float
    y: float
    z: float

    @classmethod
    def between(cls, start: Point, end: Point) -> "Vector":
        """Vector pointing from ``start`` to ``end``."""

        return cls(end.x - start.x, end.y - start.y, end.z - start.z)

    def scale(self, factor: float) -> "Vector":
        return Vector(self.x * factor, self.y * factor, self.z * factor)

    def dot(self, other: "Vector") -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def length(self) -> float:
        return sqrt(self.dot(self))

    def normalized(self) -> "Vector":
        """Unit vector along this one; the zero vector is returned unchanged."""

        length = self.length()
        if length == 0.0:
            return self
        return self.scale(1.0 / length)

    def as_tuple(self) -> Vector3:
        return (self.x, self.y, self.z)


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box used to frame a tree for display."""

    lower: Point
    upper: Point

    @classmethod
    def from_points(cls, points: Iterable[Point]) -> "BoundingBox":
        points = list(points)
        if not points:
            raise ValueError("Cannot bound an empty set of points")
        return cls(
            lower=Point(
                min(point.x for point in points),
                min(point.y for point in points),
                min(point.z for point in points),
            ),
            upper=Point(
                max(point.x for point in points),
                max(point.y for point in points),
                max(point.z for point in points),
            ),
        )

    @property
    def center(self) -> Point:
        return Point(
            (self.lower.x + self.upper.x) / 2.0,
            (self.lower.y + self.upper.y) / 2.0,
            (self.lower.z + self.upper.z) / 2.0,
        )

    @property
    def size(self) -> Vector:
        return Vector.between(self.lower, self.upper)
