"""
Pydantic Schemas - the data contract with the game server.

Inbound: `GameSnapshot`, the authoritative game state sent on every update.
Outbound: intents the engine asks its host to deliver (moves, removed-stone
toggles and acceptance, undo negotiation).

Field names follow the server's snake_case JSON keys.
"""

from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field, ValidationError, model_validator

from ..engine_core.clock import (
    Absolute, ByoYomi, Canadian, Clock, Fischer, NoTimeLimit, Simple,
    ThinkingTime, TimeControlSystem,
)
from ..engine_core.codec import points_from_position_string
from ..engine_core.errors import DecodeError
from ..engine_core.scoring import GameScores, PlayerScore, Ruleset
from ..engine_core.types import StoneColor


# =============================================================================
# Enums
# =============================================================================

class GamePhase(str, Enum):
    """Phase of a game, as decided by the server."""
    PLAY = "play"
    STONE_REMOVAL = "stone removal"
    FINISHED = "finished"


# =============================================================================
# Players
# =============================================================================

class PlayerData(BaseModel):
    """One player of the game."""
    username: str
    id: int
    rank: Optional[float] = None
    professional: bool = False
    accepted_stones: Optional[str] = Field(
        None, description="Position string of the removed stones this player accepted"
    )
    icon: Optional[str] = Field(None, description="Avatar URL")


class PlayersData(BaseModel):
    black: PlayerData
    white: PlayerData


class InitialStateData(BaseModel):
    """Stones on the board before the first move, as position strings."""
    black: str = ""
    white: str = ""


# =============================================================================
# Clock
# =============================================================================

class ThinkingTimeData(BaseModel):
    thinking_time: Optional[float] = None
    periods: Optional[int] = None
    period_time: Optional[int] = None
    moves_left: Optional[int] = None
    block_time: Optional[float] = None

    def to_thinking_time(self) -> ThinkingTime:
        return ThinkingTime(
            thinking_time=self.thinking_time,
            periods=self.periods,
            period_time=self.period_time,
            moves_left=self.moves_left,
            block_time=self.block_time,
        ).reset_remaining()


class ClockData(BaseModel):
    """
    Clock payload.

    Each player's time is either a bare number of seconds or the full
    structure. The mere presence of `start_mode` means the clock has not
    started yet.
    """
    black_time: Union[float, ThinkingTimeData]
    white_time: Union[float, ThinkingTimeData]
    black_player_id: int
    white_player_id: Optional[int] = None
    current_player: int
    last_move: float = Field(..., description="Epoch milliseconds of the last move")
    start_mode: Optional[Any] = None

    @property
    def started(self) -> bool:
        return "start_mode" not in self.model_fields_set

    def to_clock(self) -> Clock:
        return Clock(
            black_time=_thinking_time(self.black_time),
            white_time=_thinking_time(self.white_time),
            current_player=(
                StoneColor.BLACK if self.current_player == self.black_player_id
                else StoneColor.WHITE
            ),
            last_move_time=self.last_move,
            started=self.started,
        )


def _thinking_time(value: Union[float, ThinkingTimeData]) -> ThinkingTime:
    if isinstance(value, ThinkingTimeData):
        return value.to_thinking_time()
    return ThinkingTime(thinking_time=value).reset_remaining()


class TimeControlData(BaseModel):
    """Time control settings; which fields are set depends on `system`."""
    system: str = "none"
    main_time: Optional[float] = None
    periods: Optional[int] = None
    period_time: Optional[float] = None
    stones_per_period: Optional[int] = None
    initial_time: Optional[float] = None
    time_increment: Optional[float] = None
    max_time: Optional[float] = None
    per_move: Optional[float] = None
    total_time: Optional[float] = None

    def to_system(self) -> TimeControlSystem:
        if self.system == "byoyomi":
            return ByoYomi(
                main_time=self.main_time or 0,
                periods=self.periods or 0,
                period_time=int(self.period_time or 0),
            )
        if self.system == "canadian":
            return Canadian(
                main_time=self.main_time or 0,
                period_time=self.period_time or 0,
                stones_per_period=self.stones_per_period or 0,
            )
        if self.system == "fischer":
            return Fischer(
                initial_time=self.initial_time or 0,
                time_increment=self.time_increment or 0,
                max_time=self.max_time or 0,
            )
        if self.system == "simple":
            return Simple(per_move=self.per_move or 0)
        if self.system == "absolute":
            return Absolute(total_time=self.total_time or 0)
        return NoTimeLimit()


# =============================================================================
# Score
# =============================================================================

class PlayerScoreData(BaseModel):
    handicap: int = 0
    komi: float = 0.0
    scoring_positions: str = ""
    stones: int = 0
    territory: int = 0
    prisoners: int = 0
    total: float = 0.0

    def to_player_score(self) -> PlayerScore:
        return PlayerScore(
            handicap=self.handicap,
            komi=self.komi,
            scoring_positions=points_from_position_string(self.scoring_positions),
            stones=self.stones,
            territory=self.territory,
            prisoners=self.prisoners,
            total=self.total,
        )


class ScoreData(BaseModel):
    """Score computed by the server."""
    black: PlayerScoreData
    white: PlayerScoreData

    def to_game_scores(self) -> GameScores:
        return GameScores(
            black=self.black.to_player_score(),
            white=self.white.to_player_score(),
        )


# =============================================================================
# Snapshot
# =============================================================================

class GameSnapshot(BaseModel):
    """Authoritative game state sent by the server on every update."""
    game_id: Optional[int] = None
    game_name: Optional[str] = None
    width: int = Field(..., ge=1, le=25)
    height: int = Field(..., ge=1, le=25)
    players: PlayersData

    initial_state: InitialStateData = Field(default_factory=InitialStateData)
    initial_player: Literal["black", "white"] = "black"
    moves: list[Annotated[list[Union[int, float]], Field(min_length=2)]] = Field(
        default_factory=list, description="[x, y, ...] entries, x == -1 is a pass"
    )

    handicap: int = Field(0, ge=0)
    free_handicap_placement: bool = False
    allow_self_capture: bool = False
    komi: float = 0.0
    score_stones: bool = False
    score_territory: bool = True
    score_prisoners: bool = True
    score_handicap: bool = False
    aga_handicap_scoring: bool = False

    removed: Optional[str] = None
    score: Optional[ScoreData] = None
    clock: Optional[ClockData] = None
    time_control: Optional[TimeControlData] = None
    pause_control: Optional[dict[str, Any]] = None
    undo_requested: Optional[int] = None
    auto_scoring_done: Optional[bool] = None
    phase: GamePhase = GamePhase.PLAY

    outcome: Optional[str] = None
    winner: Optional[int] = None
    tournament_id: Optional[int] = None
    ladder_id: Optional[int] = None

    @model_validator(mode="after")
    def _check_clock_players(self) -> "GameSnapshot":
        if self.clock is None:
            return self
        black_id, white_id = self.players.black.id, self.players.white.id
        if self.clock.black_player_id != black_id:
            raise ValueError(
                f"clock black player {self.clock.black_player_id} is not player {black_id}"
            )
        if self.clock.white_player_id is not None and self.clock.white_player_id != white_id:
            raise ValueError(
                f"clock white player {self.clock.white_player_id} is not player {white_id}"
            )
        if self.clock.current_player not in (black_id, white_id):
            raise ValueError(f"clock current player {self.clock.current_player} is not in this game")
        return self

    @model_validator(mode="after")
    def _check_position_strings(self) -> "GameSnapshot":
        fields = {
            "initial_state.black": self.initial_state.black,
            "initial_state.white": self.initial_state.white,
            "removed": self.removed,
            "players.black.accepted_stones": self.players.black.accepted_stones,
            "players.white.accepted_stones": self.players.white.accepted_stones,
        }
        if self.score is not None:
            fields["score.black.scoring_positions"] = self.score.black.scoring_positions
            fields["score.white.scoring_positions"] = self.score.white.scoring_positions

        for name, value in fields.items():
            if value is None:
                continue
            try:
                points = points_from_position_string(value)
            except DecodeError as e:
                raise ValueError(f"{name}: {'; '.join(e.errors)}") from e
            for row, column in sorted(points):
                if row >= self.height or column >= self.width:
                    raise ValueError(
                        f"{name}: point {(row, column)} is off the {self.width}x{self.height} board"
                    )
        return self

    @property
    def initial_color(self) -> StoneColor:
        return StoneColor(self.initial_player)

    def ruleset(self) -> Ruleset:
        return Ruleset(
            komi=self.komi,
            handicap=self.handicap,
            free_handicap_placement=self.free_handicap_placement,
            allow_self_capture=self.allow_self_capture,
            score_stones=self.score_stones,
            score_territory=self.score_territory,
            score_prisoners=self.score_prisoners,
            score_handicap=self.score_handicap,
            aga_handicap_scoring=self.aga_handicap_scoring,
        )

    def color_of(self, player_id: int) -> Optional[StoneColor]:
        if player_id == self.players.black.id:
            return StoneColor.BLACK
        if player_id == self.players.white.id:
            return StoneColor.WHITE
        return None


def parse_snapshot(data: Union[dict[str, Any], GameSnapshot]) -> GameSnapshot:
    """Validate raw snapshot data, raising DecodeError when it is malformed."""
    if isinstance(data, GameSnapshot):
        return data
    try:
        return GameSnapshot.model_validate(data)
    except ValidationError as e:
        errors = [
            f"{'.'.join(str(part) for part in error['loc']) or 'snapshot'}: {error['msg']}"
            for error in e.errors()
        ]
        raise DecodeError(errors, data=data) from e


# =============================================================================
# Outbound intents
# =============================================================================

class MoveSubmission(BaseModel):
    """A move for the server to play. `move` is ".." for a pass."""
    game_id: Optional[int] = None
    move: str = Field(..., description="Two-letter coordinate, column then row")
    move_number: int = Field(..., description="Move index the move will have")


class RemovedStonesToggle(BaseModel):
    """Mark (`removed=True`) or unmark stones as dead during stone removal."""
    game_id: Optional[int] = None
    removed: bool
    stones: str = Field(..., description="Position string of the toggled stones")


class RemovedStonesAcceptance(BaseModel):
    """Accept the current removed-stone set, ending stone removal for this player."""
    game_id: Optional[int] = None
    stones: str
    strict_seki_mode: bool = False


class UndoRequest(BaseModel):
    game_id: Optional[int] = None
    move_number: int


class UndoAcceptance(BaseModel):
    game_id: Optional[int] = None
    move_number: int
