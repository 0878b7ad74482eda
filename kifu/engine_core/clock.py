"""
Clock - local countdown between authoritative clock updates.

The server is the timer of record. A Clock is replaced wholesale by every
snapshot; in between, `recompute_remaining` estimates what the player to
move has left. Nothing here ever decides a time-out.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
import math
import time

from .types import StoneColor


# =============================================================================
# Time control systems
# =============================================================================

class TimeControlSystem:
    """Base class of the time control systems a game may use."""
    name = "none"


@dataclass(frozen=True)
class ByoYomi(TimeControlSystem):
    """Main time, then `periods` periods of `period_time` seconds each."""
    main_time: float
    periods: int
    period_time: int
    name = "byoyomi"


@dataclass(frozen=True)
class Canadian(TimeControlSystem):
    """Main time, then `stones_per_period` moves within each `period_time` block."""
    main_time: float
    period_time: float
    stones_per_period: int
    name = "canadian"


@dataclass(frozen=True)
class Fischer(TimeControlSystem):
    initial_time: float
    time_increment: float
    max_time: float
    name = "fischer"


@dataclass(frozen=True)
class Simple(TimeControlSystem):
    per_move: float
    name = "simple"


@dataclass(frozen=True)
class Absolute(TimeControlSystem):
    total_time: float
    name = "absolute"


@dataclass(frozen=True)
class NoTimeLimit(TimeControlSystem):
    name = "none"


# =============================================================================
# Clock state
# =============================================================================

@dataclass
class ThinkingTime:
    """
    Time of one player.

    The plain fields are the values of the last snapshot; the `*_left`
    fields are the local estimate and never exceed their totals.
    """
    thinking_time: float | None = None
    thinking_time_left: float | None = None

    # Byo-yomi
    periods: int | None = None
    periods_left: int | None = None
    period_time: int | None = None
    period_time_left: int | None = None

    # Canadian
    moves_left: int | None = None
    block_time: float | None = None
    block_time_left: float | None = None

    def reset_remaining(self) -> ThinkingTime:
        """Copy with every `*_left` field set back to its snapshot value."""
        return replace(
            self,
            thinking_time_left=self.thinking_time,
            periods_left=self.periods,
            period_time_left=self.period_time,
            block_time_left=self.block_time,
        )

    @property
    def exhausted(self) -> bool:
        """Whether the local estimate has run out. Advisory only."""
        main = self.thinking_time_left if self.thinking_time_left is not None else self.thinking_time
        if main is None or main > 0:
            return False
        if self.periods is not None:
            return (self.periods_left or 0) == 0 and (self.period_time_left or 0) <= 0
        if self.block_time_left is not None:
            return self.block_time_left <= 0
        return True


@dataclass
class Clock:
    """
    Game clock as last reported by the server.

    `last_move_time` is in epoch milliseconds. `auto_resign_time` is set and
    cleared only by server events and shown as-is.
    """
    black_time: ThinkingTime
    white_time: ThinkingTime
    current_player: StoneColor
    last_move_time: float
    started: bool = False
    auto_resign_time: dict[StoneColor, float] = field(default_factory=dict)

    def time_of(self, color: StoneColor) -> ThinkingTime:
        return self.black_time if color is StoneColor.BLACK else self.white_time

    def recompute_remaining(
        self,
        system: TimeControlSystem,
        now: float | None = None,
    ) -> Clock:
        """
        Return a copy with the current player's remaining time estimated.

        `now` is epoch milliseconds and defaults to the wall clock. The
        estimate starts from the snapshot values, so calling this again
        later gives a fresh estimate rather than compounding.
        """
        if not self.started:
            return self
        if now is None:
            now = time.time() * 1000
        elapsed = (now - self.last_move_time) / 1000
        if elapsed <= 0:
            return self

        thinking = self.time_of(self.current_player)
        if isinstance(system, ByoYomi):
            thinking = _byoyomi_remaining(thinking, system, elapsed)
        elif isinstance(system, Canadian):
            thinking = _canadian_remaining(thinking, system, elapsed)
        elif isinstance(system, (Fischer, Simple, Absolute)):
            base = thinking.thinking_time or 0
            thinking = replace(thinking, thinking_time_left=max(0.0, base - elapsed))
        else:
            return self

        if self.current_player is StoneColor.BLACK:
            return replace(self, black_time=thinking)
        return replace(self, white_time=thinking)


def _byoyomi_remaining(thinking: ThinkingTime, system: ByoYomi, elapsed: float) -> ThinkingTime:
    remaining = (thinking.thinking_time or 0) - elapsed
    if remaining >= 0:
        return replace(thinking, thinking_time_left=remaining)

    periods_left = thinking.periods if thinking.periods is not None else system.periods
    # The overflow first eats into the period already running
    overflow = remaining + system.period_time
    while overflow < 0 and periods_left > 0:
        overflow += system.period_time
        periods_left -= 1

    return replace(
        thinking,
        thinking_time_left=0,
        periods_left=periods_left,
        period_time_left=0 if overflow < 0 else math.floor(overflow),
    )


def _canadian_remaining(thinking: ThinkingTime, system: Canadian, elapsed: float) -> ThinkingTime:
    remaining = (thinking.thinking_time or 0) - elapsed
    if remaining >= 0:
        return replace(thinking, thinking_time_left=remaining)

    block = thinking.block_time if thinking.block_time is not None else system.period_time
    moves_left = thinking.moves_left if thinking.moves_left is not None else system.stones_per_period
    # No renewal here: a new block only comes with the next snapshot
    return replace(
        thinking,
        thinking_time_left=0,
        moves_left=moves_left,
        block_time_left=max(0.0, block + remaining),
    )
