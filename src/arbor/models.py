"""Core structural primitives: metamers and their buds."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator, Optional, Tuple, Union

from .geometry import Point, Vector
from .markers import BudId


class BudSide(str, Enum):
    AXILLARY = "Axillary"
    TERMINAL = "Terminal"


# Claim and extension order at every metamer.
BUD_ORDER: Tuple[BudSide, BudSide] = (BudSide.AXILLARY, BudSide.TERMINAL)


@dataclass(eq=False)
class Metamer:
    """One internode with a terminal and an axillary bud at its end.

    A bud is open while its child slot is empty. Open buds own their bud id in
    the marker field, their captured light (``*_light``) and their earmarked
    growth resource (``*_growth_resource``).
    """

    beginning: Point
    end: Point
    terminal_id: BudId
    axillary_id: BudId
    width: float
    terminal: Optional["Metamer"] = field(default=None, repr=False)
    axillary: Optional["Metamer"] = field(default=None, repr=False)
    light: float = 0.0
    growth_resource: float = 0.0
    terminal_light: float = 0.0
    axillary_light: float = 0.0
    terminal_growth_resource: float = 0.0
    axillary_growth_resource: float = 0.0

    def __post_init__(self) -> None:
        if self.terminal_id == self.axillary_id:
            raise ValueError(f"Sibling buds must have distinct ids, both are {self.terminal_id!r}")

    @property
    def direction(self) -> Vector:
        return Vector.between(self.beginning, self.end)

    @property
    def is_leaf(self) -> bool:
        return self.terminal is None and self.axillary is None

    def child(self, side: BudSide) -> Optional["Metamer"]:
        return self.terminal if side is BudSide.TERMINAL else self.axillary

    def bud_id(self, side: BudSide) -> BudId:
        return self.terminal_id if side is BudSide.TERMINAL else self.axillary_id

    def is_open(self, side: BudSide) -> bool:
        return self.child(side) is None

    def side_light(self, side: BudSide) -> float:
        """Light reaching this metamer through one side."""

        child = self.child(side)
        if child is not None:
            return child.light
        return self.terminal_light if side is BudSide.TERMINAL else self.axillary_light

    def set_bud_light(self, side: BudSide, q: float) -> None:
        if side is BudSide.TERMINAL:
            self.terminal_light = q
        else:
            self.axillary_light = q

    def set_bud_growth_resource(self, side: BudSide, resource: float) -> None:
        if side is BudSide.TERMINAL:
            self.terminal_growth_resource = resource
        else:
            self.axillary_growth_resource = resource

    def attach(self, side: BudSide, child: "Metamer") -> None:
        """Close a bud by giving it a child; buds never reopen."""

        if not self.is_open(side):
            raise ValueError(f"{side.value} bud {self.bud_id(side)} is already closed")
        if side is BudSide.TERMINAL:
            self.terminal = child
        else:
            self.axillary = child
        self.set_bud_light(side, 0.0)
        self.set_bud_growth_resource(side, 0.0)

    def children(self) -> Iterable["Metamer"]:
        for side in BUD_ORDER:
            child = self.child(side)
            if child is not None:
                yield child

    def iter_preorder(self) -> Iterator["Metamer"]:
        """Parents before children, axillary subtree before terminal subtree."""

        stack = [self]
        while stack:
            metamer = stack.pop()
            yield metamer
            stack.extend(reversed(list(metamer.children())))

    def iter_postorder(self) -> Iterator["Metamer"]:
        """Children before parents, axillary subtree before terminal subtree."""

        stack: list[Tuple["Metamer", bool]] = [(self, False)]
        while stack:
            metamer, expanded = stack.pop()
            if expanded:
                yield metamer
                continue
            stack.append((metamer, True))
            stack.extend((child, False) for child in reversed(list(metamer.children())))

    def iter_open_buds(self) -> Iterator[Tuple["Metamer", BudSide]]:
        """Open buds in claim order.

        At each metamer the axillary side is handled before the terminal side,
        and a closed side is walked completely before the next side is looked
        at. Children attached while the iterator is running are not entered.
        """

        stack: list[Union["Metamer", Tuple["Metamer", BudSide]]] = [self]
        while stack:
            item = stack.pop()
            if isinstance(item, tuple):
                yield item
                continue
            for side in reversed(BUD_ORDER):
                child = item.child(side)
                stack.append(child if child is not None else (item, side))

    def count_metamers(self) -> int:
        return sum(1 for _ in self.iter_preorder())
