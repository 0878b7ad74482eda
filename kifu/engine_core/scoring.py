"""
Scoring - combines territory, stones and prisoners under a ruleset.

White receives komi and the handicap compensation; black's entries for
both stay zero.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable

from .types import Point, StoneColor

if TYPE_CHECKING:
    from .position import BoardPosition
    from .territory import TerritoryGroup


@dataclass(frozen=True)
class Ruleset:
    """Scoring and legality flags of a game, as sent by the server."""
    komi: float = 0.0
    handicap: int = 0
    free_handicap_placement: bool = False
    allow_self_capture: bool = False
    score_stones: bool = False
    score_territory: bool = True
    score_prisoners: bool = True
    score_handicap: bool = False
    aga_handicap_scoring: bool = False


@dataclass
class PlayerScore:
    """Score breakdown of one player."""
    handicap: int = 0
    komi: float = 0.0
    scoring_positions: set[Point] = field(default_factory=set)
    stones: int = 0
    territory: int = 0
    prisoners: int = 0
    total: float = 0.0


@dataclass
class GameScores:
    """Scores of both players, plus the dame points to highlight."""
    black: PlayerScore = field(default_factory=PlayerScore)
    white: PlayerScore = field(default_factory=PlayerScore)
    dame_positions: set[Point] = field(default_factory=set)

    def of(self, color: StoneColor) -> PlayerScore:
        return self.black if color is StoneColor.BLACK else self.white

    @property
    def leader(self) -> StoneColor:
        """Color ahead on total, EMPTY on a tie."""
        if self.black.total > self.white.total:
            return StoneColor.BLACK
        if self.white.total > self.black.total:
            return StoneColor.WHITE
        return StoneColor.EMPTY


def compute_score(
    position: BoardPosition,
    rules: Ruleset,
    removed_stones: Iterable[Point] | None = None,
    territory_groups: list[TerritoryGroup] | None = None,
) -> GameScores:
    """
    Score `position` under `rules`.

    `removed_stones` defaults to the position's own annotation. Pass
    `territory_groups` to reuse an existing classification.
    """
    if removed_stones is None:
        removed = set(position.removed_stones or ())
    else:
        removed = set(removed_stones)

    scores = GameScores(white=PlayerScore(handicap=rules.handicap, komi=rules.komi))
    if rules.aga_handicap_scoring and scores.white.handicap > 0:
        scores.white.handicap -= 1

    if rules.score_territory:
        if territory_groups is None:
            from .territory import construct_territory_groups
            territory_groups = construct_territory_groups(position, removed)

        for group in territory_groups:
            if group.is_dame:
                scores.dame_positions |= group.points
                continue
            owner = scores.of(group.territory_color)
            owner.scoring_positions |= group.points
            owner.territory += group.size

    for point in position.points():
        color = position[point]
        if not color.is_stone:
            continue
        if point in removed:
            if rules.score_prisoners:
                scores.of(color.opponent).prisoners += 1
        elif rules.score_stones:
            player = scores.of(color)
            player.stones += 1
            player.scoring_positions.add(point)

    if rules.score_prisoners:
        scores.black.prisoners += position.captures.get(StoneColor.BLACK, 0)
        scores.white.prisoners += position.captures.get(StoneColor.WHITE, 0)

    return finalize_totals(scores, rules)


def finalize_totals(scores: GameScores, rules: Ruleset) -> GameScores:
    """Fill in `total` = stones + territory + prisoners + komi (+ handicap)."""
    for player in (scores.black, scores.white):
        player.total = player.stones + player.territory + player.prisoners + player.komi
        if rules.score_handicap:
            player.total += player.handicap
    return scores
