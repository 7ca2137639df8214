"""Growth engine: the environment and the five-phase growth iteration."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from itertools import count
from typing import Iterator, Optional

from .constants import ModelConstants
from .geometry import BoundingBox, Point, Vector
from .markers import BudId, ConeAnalysis, MarkerField
from .models import BUD_ORDER, BudSide, Metamer
from .physiology import BorchertHondaInputs, compute_borchert_honda_split, compute_pipe_width, leaf_width

_LOGGER = logging.getLogger(__name__)


@dataclass
class Environment:
    constants: ModelConstants
    markers: MarkerField = field(default_factory=MarkerField)
    _bud_ids: Iterator[int] = field(default_factory=count, init=False, repr=False)

    def new_bud_id(self) -> BudId:
        return next(self._bud_ids)

    def spawn_metamer(self, beginning: Point, end: Point) -> Metamer:
        return Metamer(
            beginning=beginning,
            end=end,
            terminal_id=self.new_bud_id(),
            axillary_id=self.new_bud_id(),
            width=leaf_width(self.constants),
        )


@dataclass(frozen=True)
class SimulationStepResult:
    iterations: int
    new_metamers: list[Metamer]
    root_light: float
    metamer_count: int
    markers_remaining: int


class Tree:
    """A plant grown from a seedling inside a shared environment."""

    def __init__(self, environment: Environment, seedling_position: Point):
        self.environment = environment
        end = seedling_position.translate(0.0, environment.constants.metamer_length, 0.0)
        self.root = environment.spawn_metamer(seedling_position, end)
        self.iterations = 0
        self.last_shoots: list[Metamer] = []

    @property
    def constants(self) -> ModelConstants:
        return self.environment.constants

    def perform_growth_iteration(self) -> None:
        markers = self.environment.markers
        # 1. Local environment of every bud.
        markers.reset_allocations()
        self._allocate_markers()
        # 2. Bud fate (extended Borchert-Honda model).
        self._propagate_light_basipetally()
        self.root.growth_resource = self.constants.borchert_honda_alpha * self.root.light
        self._propagate_growth_acropetally()
        # 3. New shoots.
        self.last_shoots = self._append_new_shoots()
        # 4. Branch shedding.
        self._shed_branches()
        # 5. Internode widths.
        self._update_internode_widths()
        self.iterations += 1
        if not _LOGGER.isEnabledFor(logging.DEBUG):
            return
        _LOGGER.debug(
            "Iteration %d: %d new shoots, %d metamers, root light %.3f, %d markers left",
            self.iterations,
            len(self.last_shoots),
            self.count_metamers(),
            self.root.light,
            len(markers),
        )

    def _analyse_bud(self, metamer: Metamer, side: BudSide) -> ConeAnalysis:
        # Both buds perceive along the parent segment; phyllotaxis is not modelled.
        return self.environment.markers.get_allocated_in_cone(
            metamer.bud_id(side),
            metamer.end,
            metamer.direction,
            self.constants.perception_angle,
            self.constants.perception_radius,
        )

    def _allocate_markers(self) -> None:
        for metamer, side in self.root.iter_open_buds():
            self.environment.markers.update_allocated_in_cone(
                metamer.bud_id(side),
                metamer.end,
                metamer.direction,
                self.constants.perception_angle,
                self.constants.perception_radius,
            )

    def _propagate_light_basipetally(self) -> None:
        for metamer in self.root.iter_postorder():
            metamer.light = 0.0
            for side in BUD_ORDER:
                if metamer.is_open(side):
                    metamer.set_bud_light(side, self._analyse_bud(metamer, side).q)
                metamer.light += metamer.side_light(side)

    def _propagate_growth_acropetally(self) -> None:
        lambda_factor = self.constants.borchert_honda_lambda
        for metamer in self.root.iter_preorder():
            # A metamer without children keeps its resource unsplit.
            if metamer.is_leaf:
                continue
            terminal = metamer.terminal
            axillary = metamer.axillary
            split = compute_borchert_honda_split(
                BorchertHondaInputs(
                    resource=metamer.growth_resource,
                    q_main=terminal.light if terminal is not None else 0.0,
                    q_lateral=axillary.light if axillary is not None else 0.0,
                    lambda_factor=lambda_factor,
                )
            )
            if split is None:
                continue
            v_main, v_lateral = split
            for side, share in ((BudSide.AXILLARY, v_lateral), (BudSide.TERMINAL, v_main)):
                child = metamer.child(side)
                if child is not None:
                    child.growth_resource = share
                    metamer.set_bud_growth_resource(side, 0.0)
                else:
                    metamer.set_bud_growth_resource(side, share)
            metamer.growth_resource = 0.0

    def _attempt_growth(self, bud: BudId, origin: Point, direction: Vector) -> Optional[Metamer]:
        constants = self.constants
        markers = self.environment.markers
        analysis = markers.get_allocated_in_cone(
            bud, origin, direction, constants.perception_angle, constants.perception_radius
        )
        if analysis.q != 1.0:
            return None
        heading = analysis.v if analysis.v.length() > 0.0 else direction.normalized()
        shoot_end = origin.offset(heading.scale(constants.metamer_length))
        markers.remove_markers_in_sphere(shoot_end, constants.occupancy_radius)
        return self.environment.spawn_metamer(origin, shoot_end)

    def _append_new_shoots(self) -> list[Metamer]:
        shoots: list[Metamer] = []
        for metamer, side in self.root.iter_open_buds():
            shoot = self._attempt_growth(metamer.bud_id(side), metamer.end, metamer.direction)
            if shoot is not None:
                metamer.attach(side, shoot)
                shoots.append(shoot)
        return shoots

    def _shed_branches(self) -> None:
        """Extension point for branch shedding; no branch is ever shed."""

    def _update_internode_widths(self) -> None:
        exponent = self.constants.pipe_model_exponent
        leaf_value = self.constants.pipe_model_leaf_value
        for metamer in self.root.iter_postorder():
            metamer.width = compute_pipe_width(
                (child.width for child in metamer.children()), exponent, leaf_value
            )

    def iter_metamers(self) -> Iterator[Metamer]:
        return self.root.iter_preorder()

    def count_metamers(self) -> int:
        return self.root.count_metamers()

    def bounding_box(self) -> BoundingBox:
        points = [self.root.beginning]
        points.extend(metamer.end for metamer in self.iter_metamers())
        return BoundingBox.from_points(points)


def simulate_step(tree: Tree, iterations: int = 1) -> SimulationStepResult:
    """Run growth iterations and summarise what grew."""

    new_metamers: list[Metamer] = []
    for _ in range(iterations):
        tree.perform_growth_iteration()
        new_metamers.extend(tree.last_shoots)
    return SimulationStepResult(
        iterations=iterations,
        new_metamers=new_metamers,
        root_light=tree.root.light,
        metamer_count=tree.count_metamers(),
        markers_remaining=len(tree.environment.markers),
    )
