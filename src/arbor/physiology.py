"""Resource allocation and structural rules of the growth model."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from .constants import ModelConstants

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class BorchertHondaInputs:
    resource: float
    q_main: float
    q_lateral: float
    lambda_factor: float


def compute_borchert_honda_split(inputs: BorchertHondaInputs) -> Optional[Tuple[float, float]]:
    """Split a metamer's growth resource between its main and lateral side.

    Returns ``(v_main, v_lateral)``, or ``None`` when neither side captured any
    light. The denominator is ``lambda * q_main + (1 - lambda * q_lateral)``;
    it is not the symmetric ``lambda * q_main + (1 - lambda) * q_lateral`` of
    Borchert and Honda (1984), so the two parts add up to ``resource`` only
    when ``q_lateral == 1``.
    """

    q_main = inputs.q_main
    q_lateral = inputs.q_lateral
    if q_main + q_lateral == 0.0:
        return None
    lam = inputs.lambda_factor
    denominator = lam * q_main + (1.0 - lam * q_lateral)
    if denominator == 0.0:
        _LOGGER.warning(
            "Borchert-Honda denominator vanished (q_main=%s, q_lateral=%s, lambda=%s); split skipped",
            q_main,
            q_lateral,
            lam,
        )
        return None
    v = inputs.resource
    v_main = v * (lam * q_main) / denominator
    v_lateral = v * ((1.0 - lam) * q_lateral) / denominator
    return v_main, v_lateral


def compute_pipe_width(child_widths: Iterable[float], exponent: float, leaf_value: float) -> float:
    """Pipe-model width from the widths of a metamer's children.

    Every metamer carries one ``leaf_value``; each child adds
    ``width ** exponent``. Open buds contribute nothing.
    """

    total = leaf_value
    for width in child_widths:
        total += width**exponent
    return total ** (1.0 / exponent)


def leaf_width(constants: ModelConstants) -> float:
    """Width of a metamer without children."""

    return compute_pipe_width((), constants.pipe_model_exponent, constants.pipe_model_leaf_value)
