"""
Core value types - stone colors, points and moves.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum

Point = tuple[int, int]  # (row, column)


class StoneColor(Enum):
    """Content of a board cell, or the color of a player."""
    BLACK = "black"
    WHITE = "white"
    EMPTY = "empty"

    @property
    def opponent(self) -> StoneColor:
        if self is StoneColor.BLACK:
            return StoneColor.WHITE
        if self is StoneColor.WHITE:
            return StoneColor.BLACK
        return StoneColor.EMPTY

    @property
    def is_stone(self) -> bool:
        return self is not StoneColor.EMPTY

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class MoveType(Enum):
    """Kinds of moves."""
    PASS = "pass"
    PLACE = "place"


@dataclass(frozen=True)
class Move:
    """
    A single move: a pass, or a stone placed at (row, column).

    Use the factories rather than the constructor.
    """
    move_type: MoveType
    row: int | None = None
    column: int | None = None

    @classmethod
    def pass_(cls) -> Move:
        """Factory for a pass."""
        return cls(move_type=MoveType.PASS)

    @classmethod
    def place(cls, row: int, column: int) -> Move:
        """Factory for a stone placement."""
        return cls(move_type=MoveType.PLACE, row=row, column=column)

    @classmethod
    def from_coordinates(cls, coordinates: list[int] | tuple[int, ...]) -> Move:
        """
        Build a move from a server `[x, y, ...]` entry.

        x is the column and y the row; x == -1 encodes a pass.
        Extra trailing entries (move timing) are ignored.
        """
        x, y = int(coordinates[0]), int(coordinates[1])
        if x == -1:
            return cls.pass_()
        return cls.place(row=y, column=x)

    @property
    def is_pass(self) -> bool:
        return self.move_type is MoveType.PASS

    @property
    def point(self) -> Point | None:
        if self.is_pass:
            return None
        return (self.row, self.column)

    def to_coordinates(self) -> list[int]:
        """Server `[x, y]` form of this move."""
        if self.is_pass:
            return [-1, -1]
        return [self.column, self.row]

    def __str__(self) -> str:
        if self.is_pass:
            return "pass"
        return f"({self.row}, {self.column})"
