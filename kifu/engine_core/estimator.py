"""
Territory Estimator - a quick, deterministic ownership guess.

Used to suggest dead stones when stone removal starts and to show a live
score estimate. It is a heuristic, not a life-and-death solver:

1. A group is guessed dead when opposing stones near it outnumber
   `dead_ratio` times its own nearby strength (friendly stones nearby
   plus the group's size).
2. With dead stones lifted, each region surrounded by a single color
   belongs to that color.
3. Points of contested regions go to the color with the strictly nearest
   live stone; ties stay empty.
"""

from __future__ import annotations
from collections import deque
from typing import TYPE_CHECKING

from ..config import KIFU_DEAD_STONE_RATIO, KIFU_ESTIMATE_RADIUS
from .types import Point, StoneColor

if TYPE_CHECKING:
    from .position import BoardPosition, Grid


def estimate_territory(
    position: BoardPosition,
    radius: int = KIFU_ESTIMATE_RADIUS,
    dead_ratio: float = KIFU_DEAD_STONE_RATIO,
) -> Grid:
    """Return a height x width grid of guessed owners (EMPTY if unsettled)."""
    dead = guess_dead_stones(position, radius, dead_ratio)
    live = {
        point: position[point]
        for point in position.points()
        if position[point].is_stone and point not in dead
    }

    ownership = [[StoneColor.EMPTY] * position.width for _ in range(position.height)]
    for (row, column), color in live.items():
        ownership[row][column] = color

    for region, bordering in _open_regions(position, live):
        if len(bordering) == 1:
            owner = next(iter(bordering))
            for row, column in region:
                ownership[row][column] = owner
            continue
        for row, column in region:
            ownership[row][column] = _nearest_owner((row, column), live)

    return ownership


def guess_dead_stones(
    position: BoardPosition,
    radius: int = KIFU_ESTIMATE_RADIUS,
    dead_ratio: float = KIFU_DEAD_STONE_RATIO,
) -> set[Point]:
    """Points of the stones the heuristic considers dead."""
    dead: set[Point] = set()
    seen: set[Point] = set()

    for point in position.points():
        color = position[point]
        if not color.is_stone or point in seen:
            continue
        group = position.group_at(point)
        seen |= group

        friendly = opposing = 0
        for nearby in _points_near(position, group, radius):
            if position[nearby] is color:
                friendly += 1
            elif position[nearby] is color.opponent:
                opposing += 1

        if opposing > dead_ratio * (friendly + len(group)):
            dead |= group

    return dead


def _points_near(position: BoardPosition, group: set[Point], radius: int) -> set[Point]:
    """Points within Manhattan `radius` of any stone of `group`, excluding it."""
    near: set[Point] = set()
    for row, column in group:
        for dr in range(-radius, radius + 1):
            span = radius - abs(dr)
            for dc in range(-span, span + 1):
                point = (row + dr, column + dc)
                if position.is_on_board(point):
                    near.add(point)
    return near - group


def _open_regions(
    position: BoardPosition,
    live: dict[Point, StoneColor],
) -> list[tuple[set[Point], set[StoneColor]]]:
    """Connected regions of points without a live stone, with their borders."""
    regions = []
    visited: set[Point] = set()
    for start in position.points():
        if start in live or start in visited:
            continue
        region, bordering = {start}, set()
        visited.add(start)
        queue = deque([start])
        while queue:
            current = queue.popleft()
            for adj in position.neighbors(current):
                if adj in live:
                    bordering.add(live[adj])
                elif adj not in visited:
                    visited.add(adj)
                    region.add(adj)
                    queue.append(adj)
        regions.append((region, bordering))
    return regions


def _nearest_owner(point: Point, live: dict[Point, StoneColor]) -> StoneColor:
    best = {StoneColor.BLACK: None, StoneColor.WHITE: None}
    for (row, column), color in live.items():
        distance = abs(row - point[0]) + abs(column - point[1])
        if best[color] is None or distance < best[color]:
            best[color] = distance

    black, white = best[StoneColor.BLACK], best[StoneColor.WHITE]
    if black is None and white is None:
        return StoneColor.EMPTY
    if white is None or (black is not None and black < white):
        return StoneColor.BLACK
    if black is None or white < black:
        return StoneColor.WHITE
    return StoneColor.EMPTY
