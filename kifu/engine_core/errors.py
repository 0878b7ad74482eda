"""
Engine errors.

- IllegalMove: a move the rules forbid (occupied, off-board, ko, suicide)
- DecodeError: a malformed snapshot or position string
- StateError: an operation the current game phase or turn does not permit
"""

from __future__ import annotations
from typing import Any


class KifuError(Exception):
    """Base class for all engine errors."""


class IllegalMove(KifuError):
    """Raised when a move violates the rules of Go."""

    OCCUPIED = "occupied"
    OUT_OF_BOUNDS = "out_of_bounds"
    KO = "ko"
    SUICIDE = "suicide"
    PASS_NOT_ALLOWED = "pass_not_allowed"

    def __init__(self, reason: str, point: tuple[int, int] | None = None):
        self.reason = reason
        self.point = point
        if point is None:
            super().__init__(f"Illegal move: {reason}")
        else:
            super().__init__(f"Illegal move at {point}: {reason}")


class DecodeError(KifuError):
    """Raised when snapshot data cannot be decoded."""

    def __init__(self, errors: list[str] | str, data: Any = None):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = errors
        self.data = data
        super().__init__(f"Decode failed with {len(errors)} error(s): {'; '.join(errors)}")


class StateError(KifuError):
    """Raised when an operation is not valid in the current game state."""
