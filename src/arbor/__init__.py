"""Self-organizing tree growth with a Borchert-Honda resource model."""

from .constants import MODEL_PRESETS, ModelConstants
from .geometry import BoundingBox, Point, Vector
from .markers import ConeAnalysis, MarkerField
from .models import BUD_ORDER, BudSide, Metamer
from .physiology import (
    BorchertHondaInputs,
    compute_borchert_honda_split,
    compute_pipe_width,
    leaf_width,
)
from .serialization import metamer_ids, metamer_to_dict, tree_to_dict
from .simulation import Environment, SimulationStepResult, Tree, simulate_step

__all__ = [
    "BUD_ORDER",
    "BorchertHondaInputs",
    "BoundingBox",
    "BudSide",
    "ConeAnalysis",
    "Environment",
    "MODEL_PRESETS",
    "MarkerField",
    "Metamer",
    "ModelConstants",
    "Point",
    "SimulationStepResult",
    "Tree",
    "Vector",
    "compute_borchert_honda_split",
    "compute_pipe_width",
    "leaf_width",
    "metamer_ids",
    "metamer_to_dict",
    "simulate_step",
    "tree_to_dict",
]
