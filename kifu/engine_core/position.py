"""
Board Position - one immutable node of a game's move history.

Design principles:
- Immutable-friendly: moves return a new position, the parent is untouched
- Branchable: any position can be played from, siblings share their parent
- Back-references point to the parent only, never to children
- Annotations (removed stones, scores, estimates) are the only mutable fields
"""

from __future__ import annotations
from collections import deque
from dataclasses import dataclass, field
from itertools import count
from typing import TYPE_CHECKING, Any, Iterator

from .errors import IllegalMove
from .types import Move, Point, StoneColor

if TYPE_CHECKING:
    from .territory import TerritoryGroup

Grid = list[list[StoneColor]]

_uids = count(1)

_OFFSETS = ((-1, 0), (1, 0), (0, -1), (0, 1))


def _neighbors(grid: Grid, point: Point) -> Iterator[Point]:
    row, column = point
    height, width = len(grid), len(grid[0]) if grid else 0
    for dr, dc in _OFFSETS:
        r, c = row + dr, column + dc
        if 0 <= r < height and 0 <= c < width:
            yield (r, c)


def _group_and_liberties(grid: Grid, start: Point) -> tuple[set[Point], set[Point]]:
    """Scan the group at `start`, returning its stones and its liberties."""
    color = grid[start[0]][start[1]]
    if color is StoneColor.EMPTY:
        return set(), set()

    stones, liberties = {start}, set()
    queue = deque([start])
    while queue:
        current = queue.popleft()
        for adj in _neighbors(grid, current):
            adj_color = grid[adj[0]][adj[1]]
            if adj_color is StoneColor.EMPTY:
                liberties.add(adj)
            elif adj_color is color and adj not in stones:
                stones.add(adj)
                queue.append(adj)
    return stones, liberties


@dataclass(eq=False)
class BoardPosition:
    """
    A board position after some move.

    `last_move_number` counts the moves from the root; following
    `previous_position` reaches the root in exactly that many steps.
    Free handicap stones are placed on the root itself and counted in
    `handicap_placements` instead.

    `captures[color]` is the number of stones captured by `color`.
    """
    width: int
    height: int
    next_to_move: StoneColor = StoneColor.BLACK
    last_move: Move | None = None
    last_move_number: int = 0
    previous_position: BoardPosition | None = field(default=None, repr=False)
    captures: dict[StoneColor, int] = field(
        default_factory=lambda: {StoneColor.BLACK: 0, StoneColor.WHITE: 0}
    )
    handicap_placements: int = 0

    # Annotations, set by the game during stone removal and estimation
    removed_stones: set[Point] | None = field(default=None, repr=False)
    game_scores: Any | None = field(default=None, repr=False)
    estimated_scores: Grid | None = field(default=None, repr=False)

    grid: Grid = field(default=None, repr=False)
    uid: int = field(default_factory=lambda: next(_uids))

    def __post_init__(self):
        if self.grid is None:
            self.grid = [[StoneColor.EMPTY] * self.width for _ in range(self.height)]

    def __getitem__(self, point: Point) -> StoneColor:
        row, column = point
        return self.grid[row][column]

    def __str__(self) -> str:
        symbols = {StoneColor.BLACK: "X", StoneColor.WHITE: "O", StoneColor.EMPTY: "."}
        return "\n".join("".join(symbols[cell] for cell in row) for row in self.grid)

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    def is_on_board(self, point: Point) -> bool:
        row, column = point
        return 0 <= row < self.height and 0 <= column < self.width

    def points(self) -> Iterator[Point]:
        """All points of the board, row by row."""
        for row in range(self.height):
            for column in range(self.width):
                yield (row, column)

    def neighbors(self, point: Point) -> list[Point]:
        return list(_neighbors(self.grid, point))

    def group_at(self, point: Point) -> set[Point]:
        """Stones connected to the stone at `point` (empty set if no stone)."""
        return _group_and_liberties(self.grid, point)[0]

    def liberties_of(self, point: Point) -> set[Point]:
        """Liberties of the group containing the stone at `point`."""
        return _group_and_liberties(self.grid, point)[1]

    def stone_count(self, color: StoneColor) -> int:
        return sum(row.count(color) for row in self.grid)

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    @property
    def move_index(self) -> int:
        """Number of server move-list entries this position reflects."""
        return self.handicap_placements + self.last_move_number

    @property
    def last_move_color(self) -> StoneColor | None:
        """Color of the player who made `last_move`."""
        if self.last_move is None:
            return None
        if self.last_move_number == 0:
            # Handicap placement; the turn may have passed after the last stone
            return self[self.last_move.point]
        return self.next_to_move.opponent

    def ancestors(self) -> Iterator[BoardPosition]:
        """This position, then its predecessors back to the root."""
        position: BoardPosition | None = self
        while position is not None:
            yield position
            position = position.previous_position

    def same_position_as(self, other: BoardPosition | None) -> bool:
        """Whether both positions hold the same stones, ignoring history."""
        if other is None:
            return False
        return (
            self.width == other.width
            and self.height == other.height
            and self.grid == other.grid
        )

    # ------------------------------------------------------------------
    # Moves
    # ------------------------------------------------------------------

    def place(self, row: int, column: int, color: StoneColor) -> None:
        """Put a stone without any rule check. Only for setting up a root."""
        self.grid[row][column] = color

    def make_move(
        self,
        move: Move,
        allow_self_capture: bool = False,
        ignore_ko: bool = False,
    ) -> BoardPosition:
        """
        Play `move` for `next_to_move` and return the resulting position.

        Raises IllegalMove if the point is off the board or occupied, if the
        move retakes a ko (unless `ignore_ko`), or if it leaves its own group
        without liberties while `allow_self_capture` is False.
        """
        color = self.next_to_move
        captures = dict(self.captures)

        if move.is_pass:
            return self._child(move, [row[:] for row in self.grid], captures)

        point = move.point
        self._check_placeable(point)

        grid = [row[:] for row in self.grid]
        grid[point[0]][point[1]] = color

        for adj in _neighbors(grid, point):
            if grid[adj[0]][adj[1]] is color.opponent:
                group, liberties = _group_and_liberties(grid, adj)
                if not liberties:
                    for r, c in group:
                        grid[r][c] = StoneColor.EMPTY
                    captures[color] += len(group)

        own_group, own_liberties = _group_and_liberties(grid, point)
        if not own_liberties:
            if not allow_self_capture:
                raise IllegalMove(IllegalMove.SUICIDE, point)
            for r, c in own_group:
                grid[r][c] = StoneColor.EMPTY
            captures[color.opponent] += len(own_group)

        if not ignore_ko and self.previous_position is not None:
            if self.previous_position.grid == grid:
                raise IllegalMove(IllegalMove.KO, point)

        return self._child(move, grid, captures)

    def make_handicap_placement(self, move: Move) -> BoardPosition:
        """
        Place a handicap stone for `next_to_move` without passing the turn.

        The result replaces this position in the history: it keeps the same
        predecessor and move number.
        """
        if move.is_pass:
            raise IllegalMove(IllegalMove.PASS_NOT_ALLOWED)
        point = move.point
        self._check_placeable(point)

        grid = [row[:] for row in self.grid]
        grid[point[0]][point[1]] = self.next_to_move
        return BoardPosition(
            width=self.width,
            height=self.height,
            next_to_move=self.next_to_move,
            last_move=move,
            last_move_number=self.last_move_number,
            previous_position=self.previous_position,
            captures=dict(self.captures),
            handicap_placements=self.handicap_placements + 1,
            grid=grid,
        )

    def _check_placeable(self, point: Point) -> None:
        if not self.is_on_board(point):
            raise IllegalMove(IllegalMove.OUT_OF_BOUNDS, point)
        if self[point] is not StoneColor.EMPTY:
            raise IllegalMove(IllegalMove.OCCUPIED, point)

    def _child(self, move: Move, grid: Grid, captures: dict[StoneColor, int]) -> BoardPosition:
        return BoardPosition(
            width=self.width,
            height=self.height,
            next_to_move=self.next_to_move.opponent,
            last_move=move,
            last_move_number=self.last_move_number + 1,
            previous_position=self,
            captures=captures,
            handicap_placements=self.handicap_placements,
            grid=grid,
        )

    # ------------------------------------------------------------------
    # Territory
    # ------------------------------------------------------------------

    def construct_territory_groups(self) -> list[TerritoryGroup]:
        """Regions of empty or removed points with their owner, if any."""
        from .territory import construct_territory_groups
        return construct_territory_groups(self)

    def estimate_territory(self) -> Grid:
        """Best-guess ownership of every point. Does not modify the position."""
        from .estimator import estimate_territory
        return estimate_territory(self)
