"""
Move Tree - every registered position, laid out by move number and lane.

Positions live in an arena keyed by their uid; each remembers its parent
through `previous_position`, and the tree keeps the child lists. Each
branch is drawn on its own lane ("level"). A lane is handed out once and
never reassigned: a child continues its parent's lane when that slot is
free, otherwise it opens a brand-new lane.
"""

from __future__ import annotations
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .position import BoardPosition


class MoveTree:
    """
    Index of a game's positions for navigation and analysis.

    `positions_by_last_move_number[n]` lists the lane slots at move n;
    slot i holds the position drawn on lane i, or None.
    """

    def __init__(self):
        self.positions_by_last_move_number: dict[int, list[BoardPosition | None]] = {}
        self.level_by_position: dict[int, int] = {}
        self._positions: dict[int, BoardPosition] = {}
        self._children: dict[int, list[int]] = {}
        self._next_level = 0
        self.root: BoardPosition | None = None

    def __len__(self) -> int:
        return len(self._positions)

    def __contains__(self, position: BoardPosition) -> bool:
        return position.uid in self._positions

    def register(self, position: BoardPosition) -> int:
        """
        Add `position` and any unregistered ancestors. Returns its lane.

        Registering a position twice is a no-op.
        """
        if position.uid in self.level_by_position:
            return self.level_by_position[position.uid]

        chain = []
        node = position
        while node is not None and node.uid not in self.level_by_position:
            chain.append(node)
            node = node.previous_position

        for node in reversed(chain):
            self._insert(node)
        return self.level_by_position[position.uid]

    def _insert(self, position: BoardPosition) -> None:
        parent = position.previous_position
        depth = position.last_move_number
        slots = self.positions_by_last_move_number.setdefault(depth, [])

        if parent is None:
            if self.root is None:
                self.root = position
            level = 0 if self._next_level == 0 else None
        else:
            level = self.level_by_position[parent.uid]
            self._children.setdefault(parent.uid, []).append(position.uid)

        if level is None or (level < len(slots) and slots[level] is not None):
            level = self._next_level
        self._next_level = max(self._next_level, level + 1)

        if len(slots) <= level:
            slots.extend([None] * (level + 1 - len(slots)))
        slots[level] = position
        self.level_by_position[position.uid] = level
        self._positions[position.uid] = position

    def find_child(self, parent: BoardPosition, candidate: BoardPosition) -> BoardPosition | None:
        """A registered child of `parent` equivalent to `candidate`, if any."""
        for uid in self._children.get(parent.uid, []):
            child = self._positions[uid]
            if (
                child.last_move == candidate.last_move
                and child.next_to_move is candidate.next_to_move
                and child.same_position_as(candidate)
            ):
                return child
        return None

    def children_of(self, position: BoardPosition) -> list[BoardPosition]:
        return [self._positions[uid] for uid in self._children.get(position.uid, [])]

    def positions_at(self, move_number: int) -> list[BoardPosition | None]:
        return list(self.positions_by_last_move_number.get(move_number, []))

    def level_of(self, position: BoardPosition) -> int | None:
        return self.level_by_position.get(position.uid)

    def previous_level_of(self, position: BoardPosition) -> int | None:
        """Lane of the position's parent, used to draw the ancestry edge."""
        if position.previous_position is None:
            return None
        return self.level_by_position.get(position.previous_position.uid)

    @property
    def move_number_range(self) -> range:
        if not self.positions_by_last_move_number:
            return range(0)
        return range(0, max(self.positions_by_last_move_number) + 1)

    @property
    def max_level(self) -> int:
        return max(self._next_level - 1, 0)

    @staticmethod
    def main_line(position: BoardPosition) -> list[BoardPosition]:
        """Positions from the root down to `position`."""
        return list(reversed(list(position.ancestors())))

    def clear(self) -> None:
        self.positions_by_last_move_number.clear()
        self.level_by_position.clear()
        self._positions.clear()
        self._children.clear()
        self._next_level = 0
        self.root = None
