"""Marker field: the spatial light model shared by every bud of a tree.

Markers are sample points of free space. Once per growth iteration every open
bud claims the unclaimed markers inside its perception cone; the claimed share
then tells the bud how much light it receives and where it should grow.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from math import cos
from typing import Iterable, Optional

import numpy as np

from .geometry import Point, Vector, Vector3

_LOGGER = logging.getLogger(__name__)

BudId = int

FREE = -1

# Slack on the cosine bound so markers on the cone edge survive rounding.
CONE_EDGE_TOLERANCE = 1e-9


@dataclass(frozen=True)
class ConeAnalysis:
    """Light estimate ``q`` and mean unit direction ``v`` of a bud's markers."""

    q: float
    v: Vector


def _as_array(points: Iterable[Point | Vector3] | np.ndarray) -> np.ndarray:
    if isinstance(points, np.ndarray):
        array = np.asarray(points, dtype=float)
    else:
        array = np.array(
            [point.as_tuple() if isinstance(point, Point) else tuple(point) for point in points],
            dtype=float,
        )
    if array.size == 0:
        return np.empty((0, 3), dtype=float)
    if array.ndim != 2 or array.shape[1] != 3:
        raise ValueError(f"Marker positions must have shape (N, 3), got {array.shape}")
    return array


class MarkerField:
    """Point markers with per-iteration, first-claim-wins bud ownership."""

    def __init__(
        self,
        positions: Iterable[Point | Vector3] | np.ndarray = (),
        saturation: int = 1,
    ) -> None:
        if saturation < 1:
            raise ValueError(f"saturation must be at least 1, got {saturation!r}")
        self.saturation = saturation
        self._positions = _as_array(positions).copy()
        self._owners = np.full(len(self._positions), FREE, dtype=np.int64)

    @classmethod
    def uniform_box(
        cls,
        count: int,
        lower: Point,
        upper: Point,
        seed: Optional[int] = None,
        saturation: int = 1,
    ) -> "MarkerField":
        rng = np.random.default_rng(seed)
        positions = rng.uniform(lower.as_tuple(), upper.as_tuple(), size=(count, 3))
        return cls(positions, saturation=saturation)

    def __len__(self) -> int:
        return len(self._positions)

    @property
    def positions(self) -> np.ndarray:
        view = self._positions.view()
        view.flags.writeable = False
        return view

    def add_markers(self, points: Iterable[Point | Vector3] | np.ndarray) -> None:
        """Repopulate the field; new markers start unclaimed."""

        added = _as_array(points)
        self._positions = np.concatenate([self._positions, added])
        self._owners = np.concatenate([self._owners, np.full(len(added), FREE, dtype=np.int64)])

    def reset_allocations(self) -> None:
        self._owners.fill(FREE)

    def _in_cone(self, origin: Point, direction: Vector, half_angle: float, radius: float) -> np.ndarray:
        axis_length = direction.length()
        if axis_length == 0.0 or len(self._positions) == 0:
            return np.zeros(len(self._positions), dtype=bool)
        offsets = self._positions - np.asarray(origin.as_tuple())
        distances = np.linalg.norm(offsets, axis=1)
        axis = np.asarray(direction.as_tuple()) / axis_length
        # Apex markers have no direction and never qualify.
        inside = (distances <= radius) & (distances > 0.0)
        cosines = np.zeros(len(self._positions), dtype=float)
        cosines[inside] = offsets[inside] @ axis / distances[inside]
        return inside & (cosines >= cos(half_angle) - CONE_EDGE_TOLERANCE)

    def update_allocated_in_cone(
        self,
        bud: BudId,
        origin: Point,
        direction: Vector,
        half_angle: float,
        radius: float,
    ) -> None:
        claimable = self._in_cone(origin, direction, half_angle, radius) & (self._owners == FREE)
        self._owners[claimable] = bud

    def get_allocated_in_cone(
        self,
        bud: BudId,
        origin: Point,
        direction: Vector,
        half_angle: float,
        radius: float,
    ) -> ConeAnalysis:
        claimed = self._in_cone(origin, direction, half_angle, radius) & (self._owners == bud)
        count = int(np.count_nonzero(claimed))
        if count == 0:
            return ConeAnalysis(q=0.0, v=Vector(0.0, 0.0, 0.0))
        offsets = self._positions[claimed] - np.asarray(origin.as_tuple())
        units = offsets / np.linalg.norm(offsets, axis=1, keepdims=True)
        mean = Vector(*(float(component) for component in units.sum(axis=0)))
        return ConeAnalysis(q=min(1.0, count / self.saturation), v=mean.normalized())

    def allocated_count(self, bud: BudId) -> int:
        return int(np.count_nonzero(self._owners == bud))

    def remove_markers_in_sphere(self, center: Point, radius: float) -> int:
        if len(self._positions) == 0:
            return 0
        distances = np.linalg.norm(self._positions - np.asarray(center.as_tuple()), axis=1)
        keep = distances > radius
        removed = len(keep) - int(np.count_nonzero(keep))
        if removed:
            self._positions = self._positions[keep]
            self._owners = self._owners[keep]
            _LOGGER.debug("Removed %d markers around %s (%d left)", removed, center, len(self._positions))
        return removed
