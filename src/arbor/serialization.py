"""Read-only views of a grown tree for API and display clients."""

from __future__ import annotations

from dataclasses import asdict
from typing import Optional

from .geometry import BoundingBox
from .models import Metamer
from .simulation import Tree


def metamer_to_dict(
    metamer: Metamer,
    metamer_id: int,
    parent_id: Optional[int],
    child_ids: Optional[dict[str, int]] = None,
) -> dict[str, object]:
    return {
        "id": metamer_id,
        "parent_id": parent_id,
        "beginning": metamer.beginning.as_tuple(),
        "end": metamer.end.as_tuple(),
        "width": metamer.width,
        "light": metamer.light,
        "growth_resource": metamer.growth_resource,
        "terminal_bud": {
            "id": metamer.terminal_id,
            "open": metamer.terminal is None,
            "light": metamer.terminal_light,
            "growth_resource": metamer.terminal_growth_resource,
        },
        "axillary_bud": {
            "id": metamer.axillary_id,
            "open": metamer.axillary is None,
            "light": metamer.axillary_light,
            "growth_resource": metamer.axillary_growth_resource,
        },
        "children": child_ids or {},
    }


def bounding_box_to_dict(box: BoundingBox) -> dict[str, object]:
    return {
        "lower": box.lower.as_tuple(),
        "upper": box.upper.as_tuple(),
        "center": box.center.as_tuple(),
        "size": box.size.as_tuple(),
    }


def metamer_ids(tree: Tree) -> dict[int, int]:
    """Pre-order index of every metamer, keyed by object identity."""

    return {id(metamer): index for index, metamer in enumerate(tree.iter_metamers())}


def tree_to_dict(tree: Tree) -> dict[str, object]:
    """Flatten a tree into pre-order records linked by integer ids."""

    ids = metamer_ids(tree)
    parents: dict[int, int] = {}
    metamers: list[dict[str, object]] = []
    for metamer in tree.iter_metamers():
        metamer_id = ids[id(metamer)]
        child_ids = {}
        for side_name, child in (("axillary", metamer.axillary), ("terminal", metamer.terminal)):
            if child is not None:
                child_ids[side_name] = ids[id(child)]
                parents[ids[id(child)]] = metamer_id
        metamers.append(metamer_to_dict(metamer, metamer_id, parents.get(metamer_id), child_ids))
    return {
        "constants": asdict(tree.constants),
        "iterations": tree.iterations,
        "metamer_count": len(metamers),
        "marker_count": len(tree.environment.markers),
        "bounding_box": bounding_box_to_dict(tree.bounding_box()),
        "metamers": metamers,
    }
