"""
Tests for the marker field.

These tests cover the cone geometry, the first-claim-wins allocation
and the permanent removal of markers around occupied space.
"""

from math import pi

import numpy as np
import pytest

from arbor.geometry import Point, Vector
from arbor.markers import MarkerField

ORIGIN = Point(0.0, 0.0, 0.0)
UP = Vector(0.0, 1.0, 0.0)


def claim_and_query(field: MarkerField, bud: int, direction: Vector = UP, angle: float = pi / 4.0, radius: float = 2.0):
    """Claim markers for a bud and return its cone analysis."""
    field.update_allocated_in_cone(bud, ORIGIN, direction, angle, radius)
    return field.get_allocated_in_cone(bud, ORIGIN, direction, angle, radius)


class TestConeGeometry:
    """Tests for which markers lie inside a perception cone."""

    def test_marker_on_axis_qualifies(self) -> None:
        """A marker straight ahead within the radius is perceived."""
        field = MarkerField([(0.0, 1.0, 0.0)])
        analysis = claim_and_query(field, bud=1)
        assert analysis.q == 1.0
        assert analysis.v.as_tuple() == pytest.approx((0.0, 1.0, 0.0))

    def test_marker_behind_or_aside_ignored(self) -> None:
        """Markers outside the half-angle are not perceived."""
        field = MarkerField([(0.0, -1.0, 0.0), (1.0, 0.1, 0.0)])
        analysis = claim_and_query(field, bud=1)
        assert analysis.q == 0.0
        assert field.allocated_count(1) == 0

    def test_marker_beyond_radius_ignored(self) -> None:
        """Markers farther than the perception radius are not perceived."""
        field = MarkerField([(0.0, 3.0, 0.0)])
        assert claim_and_query(field, bud=1).q == 0.0

    def test_direction_need_not_be_normalized(self) -> None:
        """Any positive multiple of the axis selects the same markers."""
        field = MarkerField([(0.0, 1.0, 0.0)])
        assert claim_and_query(field, bud=1, direction=Vector(0.0, 5.0, 0.0)).q == 1.0

    def test_zero_direction_selects_nothing(self) -> None:
        """A degenerate axis perceives no markers."""
        field = MarkerField([(0.0, 1.0, 0.0)])
        analysis = claim_and_query(field, bud=1, direction=Vector(0.0, 0.0, 0.0))
        assert analysis.q == 0.0
        assert field.allocated_count(1) == 0

    def test_marker_at_apex_ignored(self) -> None:
        """A marker at the bud itself has no direction."""
        field = MarkerField([(0.0, 0.0, 0.0)])
        assert claim_and_query(field, bud=1).q == 0.0

    def test_markers_on_cone_edge_qualify(self) -> None:
        """The half-angle bound is inclusive for markers lying exactly on it."""
        field = MarkerField([(1.0, 1.0, 0.0), (0.0, 0.3, 0.3), (-0.2, 0.2, 0.0), (1.0, 0.99, 0.0)])
        field.update_allocated_in_cone(1, ORIGIN, UP, pi / 4.0, 2.0)
        assert field.allocated_count(1) == 3
        assert field.get_allocated_in_cone(1, ORIGIN, UP, pi / 4.0, 2.0).q == 1.0

    def test_mean_direction(self) -> None:
        """The direction is the normalized mean of unit vectors to the markers."""
        field = MarkerField([(1.0, 1.0, 0.0), (-1.0, 1.0, 0.0), (0.0, 1.0, 1.0)])
        analysis = claim_and_query(field, bud=1, angle=pi / 3.0)
        # Unit vectors: (s, s, 0), (-s, s, 0), (0, s, s) with s = 1/sqrt(2).
        s = 1.0 / np.sqrt(2.0)
        total = np.array([0.0, 3.0 * s, s])
        assert analysis.v.as_tuple() == pytest.approx(tuple(total / np.linalg.norm(total)))
        assert analysis.v.length() == pytest.approx(1.0)


class TestAllocation:
    """Tests for per-iteration marker ownership."""

    def test_first_claim_wins(self) -> None:
        """A marker claimed by one bud cannot be claimed by another."""
        field = MarkerField([(0.0, 1.0, 0.0)])
        assert claim_and_query(field, bud=1).q == 1.0
        assert claim_and_query(field, bud=2).q == 0.0
        assert field.allocated_count(1) == 1
        assert field.allocated_count(2) == 0

    def test_reset_frees_markers(self) -> None:
        """Resetting allocations keeps markers but releases their owners."""
        field = MarkerField([(0.0, 1.0, 0.0)])
        claim_and_query(field, bud=1)
        field.reset_allocations()
        assert len(field) == 1
        assert field.allocated_count(1) == 0
        assert claim_and_query(field, bud=2).q == 1.0

    def test_query_does_not_claim(self) -> None:
        """Querying is side-effect free."""
        field = MarkerField([(0.0, 1.0, 0.0)])
        field.get_allocated_in_cone(1, ORIGIN, UP, pi / 4.0, 2.0)
        assert field.allocated_count(1) == 0

    def test_query_counts_only_markers_in_cone(self) -> None:
        """Claimed markers outside the queried cone do not count."""
        field = MarkerField([(0.0, 1.0, 0.0)])
        claim_and_query(field, bud=1)
        analysis = field.get_allocated_in_cone(1, ORIGIN, Vector(0.0, -1.0, 0.0), pi / 4.0, 2.0)
        assert analysis.q == 0.0

    def test_saturation_normalizes_light(self) -> None:
        """Light is the claimed count relative to the saturation count."""
        field = MarkerField([(0.0, 1.0, 0.0), (0.1, 1.0, 0.0)], saturation=3)
        analysis = claim_and_query(field, bud=1)
        assert analysis.q == pytest.approx(2.0 / 3.0)
        assert analysis.q < 1.0

    def test_saturation_caps_at_one(self) -> None:
        """More markers than the saturation count still give full light."""
        field = MarkerField([(0.0, 1.0, 0.0), (0.1, 1.0, 0.0), (-0.1, 1.0, 0.0)], saturation=2)
        assert claim_and_query(field, bud=1).q == 1.0

    def test_invalid_saturation(self) -> None:
        """Saturation must count at least one marker."""
        with pytest.raises(ValueError):
            MarkerField([], saturation=0)


class TestRemoval:
    """Tests for occupancy removal and repopulation."""

    def test_remove_markers_in_sphere(self) -> None:
        """Markers within the radius disappear, others remain."""
        field = MarkerField([(0.0, 1.0, 0.0), (0.0, 1.05, 0.0), (0.0, 2.0, 0.0)])
        removed = field.remove_markers_in_sphere(Point(0.0, 1.0, 0.0), 0.1)
        assert removed == 2
        assert len(field) == 1
        assert field.positions[0].tolist() == [0.0, 2.0, 0.0]

    def test_removed_markers_never_claimable(self) -> None:
        """Removal outlives allocation resets."""
        field = MarkerField([(0.0, 1.0, 0.0)])
        field.remove_markers_in_sphere(Point(0.0, 1.0, 0.0), 0.1)
        field.reset_allocations()
        assert claim_and_query(field, bud=1).q == 0.0

    def test_remove_claimed_marker(self) -> None:
        """A claimed marker that is removed stops counting for its bud."""
        field = MarkerField([(0.0, 1.0, 0.0), (0.0, 1.5, 0.0)])
        claim_and_query(field, bud=1)
        field.remove_markers_in_sphere(Point(0.0, 1.0, 0.0), 0.1)
        assert field.allocated_count(1) == 1

    def test_remove_from_empty_field(self) -> None:
        """Removing from an empty field is a no-op."""
        assert MarkerField().remove_markers_in_sphere(ORIGIN, 1.0) == 0

    def test_add_markers_start_free(self) -> None:
        """Repopulated markers are unclaimed."""
        field = MarkerField([(0.0, 1.0, 0.0)])
        claim_and_query(field, bud=1)
        field.add_markers([Point(0.1, 1.0, 0.0)])
        assert len(field) == 2
        assert field.allocated_count(1) == 1
        assert claim_and_query(field, bud=2).q == 1.0

    def test_positions_are_read_only(self) -> None:
        """Callers cannot move markers through the positions view."""
        field = MarkerField([(0.0, 1.0, 0.0)])
        with pytest.raises(ValueError):
            field.positions[0, 0] = 5.0

    def test_bad_shape_rejected(self) -> None:
        """Positions must be three-dimensional points."""
        with pytest.raises(ValueError):
            MarkerField(np.zeros((4, 2)))


class TestPopulation:
    """Tests for random marker fields."""

    def test_uniform_box_bounds(self) -> None:
        """Box markers stay inside the box."""
        field = MarkerField.uniform_box(500, Point(-1.0, 0.0, -1.0), Point(1.0, 2.0, 1.0), seed=3)
        positions = field.positions
        assert len(field) == 500
        assert np.all(positions >= [-1.0, 0.0, -1.0])
        assert np.all(positions <= [1.0, 2.0, 1.0])

    def test_uniform_box_seeded(self) -> None:
        """The same seed gives the same field."""
        first = MarkerField.uniform_box(50, ORIGIN, Point(1.0, 1.0, 1.0), seed=11)
        second = MarkerField.uniform_box(50, ORIGIN, Point(1.0, 1.0, 1.0), seed=11)
        assert np.array_equal(first.positions, second.positions)
