"""
Position strings - the server's compact encoding of a set of points.

Each point is two letters, column first then row, with "a" standing for 0.
"dcab" is the set {(2, 3), (1, 0)}. The empty string is the empty set.
"""

from __future__ import annotations
from typing import Iterable

from .errors import DecodeError
from .types import Point

ALPHABET = "abcdefghijklmnopqrstuvwxyz"
_INDEX = {letter: index for index, letter in enumerate(ALPHABET)}


def points_from_position_string(position_string: str) -> set[Point]:
    """Decode a position string into a set of (row, column) points."""
    if len(position_string) % 2 != 0:
        raise DecodeError(f"Position string has odd length: {position_string!r}")

    points: set[Point] = set()
    for i in range(0, len(position_string), 2):
        column_char, row_char = position_string[i], position_string[i + 1]
        if column_char not in _INDEX or row_char not in _INDEX:
            raise DecodeError(
                f"Invalid coordinate {column_char + row_char!r} in position string"
            )
        points.add((_INDEX[row_char], _INDEX[column_char]))
    return points


def position_string_from_points(points: Iterable[Point]) -> str:
    """Encode points as a position string, ordered by row then column."""
    encoded = []
    for row, column in sorted(set(points)):
        if not (0 <= row < len(ALPHABET) and 0 <= column < len(ALPHABET)):
            raise ValueError(f"Point {(row, column)} cannot be encoded")
        encoded.append(ALPHABET[column] + ALPHABET[row])
    return "".join(encoded)
