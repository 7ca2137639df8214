"""FastAPI app exposing the growth engine to a display client."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from arbor import (
    MODEL_PRESETS,
    Environment,
    MarkerField,
    ModelConstants,
    Point,
    Tree,
    metamer_ids,
    simulate_step,
    tree_to_dict,
)

_LOGGER = logging.getLogger(__name__)

app = FastAPI(title="Arbor Growth API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class MarkerFieldPayload(BaseModel):
    count: int = Field(default=4000, ge=0, le=200_000)
    lower: tuple[float, float, float] = (-0.5, 0.1, -0.5)
    upper: tuple[float, float, float] = (0.5, 1.1, 0.5)
    seed: Optional[int] = 0
    saturation: int = Field(default=1, ge=1)


class TreeResetRequest(BaseModel):
    preset: str = "default"
    constants: dict[str, float] | None = Field(
        default=None,
        description="Overrides for model constants.",
    )
    seedling: tuple[float, float, float] = (0.0, 0.0, 0.0)
    markers: MarkerFieldPayload | None = None


class StepRequest(BaseModel):
    iterations: int = Field(default=1, ge=1, le=200)


class SimulationRequest(BaseModel):
    max_iterations: int = Field(default=50, ge=1, le=1000)
    max_metamers: int = Field(default=2000, ge=1)


def _build_constants(request: TreeResetRequest) -> ModelConstants:
    try:
        constants = MODEL_PRESETS[request.preset]
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown preset {request.preset!r}") from None
    if not request.constants:
        return constants
    try:
        return constants.with_overrides(**request.constants)
    except (TypeError, ValueError) as error:
        raise HTTPException(status_code=422, detail=str(error)) from error


def _build_tree(request: TreeResetRequest | None) -> Tree:
    request = request or TreeResetRequest()
    constants = _build_constants(request)
    marker_payload = request.markers or MarkerFieldPayload()
    markers = MarkerField.uniform_box(
        marker_payload.count,
        Point(*marker_payload.lower),
        Point(*marker_payload.upper),
        seed=marker_payload.seed,
        saturation=marker_payload.saturation,
    )
    environment = Environment(constants=constants, markers=markers)
    _LOGGER.info("New tree: preset=%s, %d markers", request.preset, len(markers))
    return Tree(environment, Point(*request.seedling))


CURRENT_TREE = _build_tree(None)


@app.get("/state")
def get_state() -> dict[str, object]:
    return {"tree": tree_to_dict(CURRENT_TREE)}


@app.post("/reset")
def reset_tree(request: TreeResetRequest | None = None) -> dict[str, object]:
    global CURRENT_TREE
    CURRENT_TREE = _build_tree(request)
    return {"tree": tree_to_dict(CURRENT_TREE)}


@app.post("/step")
def step_simulation(request: StepRequest | None = None) -> dict[str, object]:
    request = request or StepRequest()
    result = simulate_step(CURRENT_TREE, request.iterations)
    ids = metamer_ids(CURRENT_TREE)
    return {
        "result": {
            "iterations": result.iterations,
            "root_light": result.root_light,
            "metamer_count": result.metamer_count,
            "markers_remaining": result.markers_remaining,
            "new_metamer_ids": [ids[id(metamer)] for metamer in result.new_metamers],
        },
        "tree": tree_to_dict(CURRENT_TREE),
    }


@app.post("/simulate")
def simulate(request: SimulationRequest) -> dict[str, object]:
    iterations = 0
    new_metamers = 0
    while iterations < request.max_iterations and CURRENT_TREE.count_metamers() < request.max_metamers:
        result = simulate_step(CURRENT_TREE)
        iterations += 1
        new_metamers += len(result.new_metamers)
        # Without a new shoot the next iteration would replay this one.
        if not result.new_metamers:
            break
    return {
        "result": {
            "iterations": iterations,
            "new_metamers": new_metamers,
            "metamer_count": CURRENT_TREE.count_metamers(),
        },
        "tree": tree_to_dict(CURRENT_TREE),
    }
