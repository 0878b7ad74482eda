"""
Territory Classifier - regions of empty or removed points.

A region belongs to a color when every live stone around it has that
color. Regions touching both colors, or no stone at all, are dame.
"""

from __future__ import annotations
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .types import Point, StoneColor

if TYPE_CHECKING:
    from .position import BoardPosition


@dataclass
class TerritoryGroup:
    """A connected region of empty-or-removed points."""
    points: set[Point] = field(default_factory=set)
    bordering_colors: set[StoneColor] = field(default_factory=set)

    @property
    def territory_color(self) -> StoneColor:
        """The owning color, or EMPTY for dame."""
        if len(self.bordering_colors) == 1:
            return next(iter(self.bordering_colors))
        return StoneColor.EMPTY

    @property
    def is_territory(self) -> bool:
        return self.territory_color is not StoneColor.EMPTY

    @property
    def is_dame(self) -> bool:
        return not self.is_territory

    @property
    def size(self) -> int:
        return len(self.points)


def construct_territory_groups(
    position: BoardPosition,
    removed_stones: set[Point] | None = None,
) -> list[TerritoryGroup]:
    """
    Flood-fill the empty and removed points of `position` into regions.

    Removed stones (`removed_stones`, else the position's annotation) are
    treated as dead: their points join the surrounding region and they do
    not border it.
    """
    if removed_stones is None:
        removed_stones = position.removed_stones
    removed = removed_stones or set()

    def is_open(point: Point) -> bool:
        return position[point] is StoneColor.EMPTY or point in removed

    groups: list[TerritoryGroup] = []
    visited: set[Point] = set()

    for start in position.points():
        if start in visited or not is_open(start):
            continue

        group = TerritoryGroup(points={start})
        visited.add(start)
        queue = deque([start])
        while queue:
            current = queue.popleft()
            for adj in position.neighbors(current):
                if is_open(adj):
                    if adj not in visited:
                        visited.add(adj)
                        group.points.add(adj)
                        queue.append(adj)
                else:
                    group.bordering_colors.add(position[adj])
        groups.append(group)

    return groups
