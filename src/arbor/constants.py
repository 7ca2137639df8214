"""Model constants and named presets for the growth engine."""

from __future__ import annotations

from dataclasses import dataclass, replace
from math import pi


@dataclass(frozen=True)
class ModelConstants:
    metamer_length: float
    perception_angle: float
    perception_radius: float
    occupancy_radius: float
    borchert_honda_alpha: float
    borchert_honda_lambda: float
    pipe_model_exponent: float = 2.5
    pipe_model_leaf_value: float = 1.0e-8

    def __post_init__(self) -> None:
        positive = {
            "metamer_length": self.metamer_length,
            "perception_radius": self.perception_radius,
            "occupancy_radius": self.occupancy_radius,
            "borchert_honda_alpha": self.borchert_honda_alpha,
            "pipe_model_exponent": self.pipe_model_exponent,
            "pipe_model_leaf_value": self.pipe_model_leaf_value,
        }
        for name, value in positive.items():
            if not value > 0:
                raise ValueError(f"{name} must be positive, got {value!r}")
        if not 0 < self.perception_angle <= pi:
            raise ValueError(f"perception_angle must lie in (0, pi], got {self.perception_angle!r}")
        if not 0 <= self.borchert_honda_lambda <= 1:
            raise ValueError(f"borchert_honda_lambda must lie in [0, 1], got {self.borchert_honda_lambda!r}")

    def with_overrides(self, **overrides: float) -> "ModelConstants":
        return replace(self, **overrides)


MODEL_PRESETS: dict[str, ModelConstants] = {
    "default": ModelConstants(
        metamer_length=0.1,
        perception_angle=pi / 4.0,
        perception_radius=0.4,
        occupancy_radius=0.2,
        borchert_honda_alpha=2.0,
        borchert_honda_lambda=0.52,
    ),
    # Wide perception and a short reach: bushier growth in dense marker fields.
    "shrub": ModelConstants(
        metamer_length=0.05,
        perception_angle=pi / 2.0,
        perception_radius=0.2,
        occupancy_radius=0.1,
        borchert_honda_alpha=2.0,
        borchert_honda_lambda=0.48,
    ),
    "conifer": ModelConstants(
        metamer_length=0.1,
        perception_angle=pi / 6.0,
        perception_radius=0.5,
        occupancy_radius=0.2,
        borchert_honda_alpha=2.5,
        borchert_honda_lambda=0.7,
    ),
}
