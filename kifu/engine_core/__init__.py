"""
Engine Core - Go rules, positions, scoring and clocks.

The engine core is pure: it never performs I/O and never spawns work.
1. BoardPosition applies moves and enforces legality
2. The territory classifier and estimator read positions
3. Scoring combines territory with a Ruleset
4. Clock estimates remaining time between server updates
5. MoveTree lays out branches for analysis
"""

from .types import StoneColor, Point, Move, MoveType
from .errors import KifuError, IllegalMove, DecodeError, StateError
from .position import BoardPosition
from .territory import TerritoryGroup, construct_territory_groups
from .estimator import estimate_territory, guess_dead_stones
from .codec import points_from_position_string, position_string_from_points
from .clock import (
    Clock, ThinkingTime, TimeControlSystem,
    ByoYomi, Canadian, Fischer, Simple, Absolute, NoTimeLimit,
)
from .scoring import Ruleset, PlayerScore, GameScores, compute_score, finalize_totals
from .move_tree import MoveTree

__all__ = [
    "StoneColor",
    "Point",
    "Move",
    "MoveType",
    "KifuError",
    "IllegalMove",
    "DecodeError",
    "StateError",
    "BoardPosition",
    "TerritoryGroup",
    "construct_territory_groups",
    "estimate_territory",
    "guess_dead_stones",
    "points_from_position_string",
    "position_string_from_points",
    "Clock",
    "ThinkingTime",
    "TimeControlSystem",
    "ByoYomi",
    "Canadian",
    "Fischer",
    "Simple",
    "Absolute",
    "NoTimeLimit",
    "Ruleset",
    "PlayerScore",
    "GameScores",
    "compute_score",
    "finalize_totals",
    "MoveTree",
]
