"""
Game - the orchestrator of one game mirrored from the server.

LIFECYCLE:
1. Created from a first snapshot (or empty, for a known board size)
2. Every snapshot rebuilds the position by replaying setup stones,
   free handicap placements and the move list
3. The server's phase drives the game: play -> stone removal -> finished
4. Entering stone removal runs the territory estimator in the background
   and proposes dead stones to the server
5. The whole move tree is dropped with the game

The game is the only mutator of its positions, clock and annotations.
Background results are applied by `process_background`, which the host
calls on the same context as every other method.
"""

from __future__ import annotations
from typing import TYPE_CHECKING, Any, Union
import logging

from ..api.schemas import (
    GamePhase,
    GameSnapshot,
    MoveSubmission,
    RemovedStonesAcceptance,
    RemovedStonesToggle,
    UndoAcceptance,
    UndoRequest,
    parse_snapshot,
)
from ..config import KIFU_SERVER_ROOT
from ..engine_core.clock import Clock, NoTimeLimit, TimeControlSystem
from ..engine_core.codec import points_from_position_string, position_string_from_points
from ..engine_core.errors import DecodeError, IllegalMove, StateError
from ..engine_core.estimator import estimate_territory
from ..engine_core.move_tree import MoveTree
from ..engine_core.position import BoardPosition, Grid
from ..engine_core.scoring import GameScores, Ruleset, compute_score
from ..engine_core.types import Move, Point, StoneColor
from .players import format_rank, resize_icon
from .worker import BackgroundResult, BackgroundWorker

if TYPE_CHECKING:
    from .interfaces import GameObserver, RemoteGameClient

logger = logging.getLogger(__name__)

# Background task kinds
REMOVAL_ESTIMATE = "removal_estimate"
SCORE = "score"
ESTIMATE = "estimate"


def suggest_removed_stones(position: BoardPosition, territory: Grid) -> set[Point]:
    """
    Points to propose as removed once stone removal starts.

    A stone whose color differs from the estimated owner is guessed dead;
    an empty point nobody owns is dame and is proposed as well.
    """
    suggested = set()
    for row, column in position.points():
        stone = position[row, column]
        owner = territory[row][column]
        is_captured = stone.is_stone and stone is not owner
        is_dame = owner is StoneColor.EMPTY and stone is StoneColor.EMPTY
        if is_captured or is_dame:
            suggested.add((row, column))
    return suggested


class Game:
    """
    One game, kept in sync with the server.

    Usage:
        game = Game.from_snapshot(data, user_id=me, client=client)
        game.add_observer(view)

        # On every server update
        game.apply_snapshot(data)

        # Periodically, on the same context
        game.process_background()
    """

    def __init__(
        self,
        width: int,
        height: int,
        black_name: str = "",
        white_name: str = "",
        game_id: int | None = None,
        user_id: int | None = None,
        client: RemoteGameClient | None = None,
        worker: BackgroundWorker | None = None,
    ):
        self.width = width
        self.height = height
        self.black_name = black_name
        self.white_name = white_name
        self.game_id = game_id
        self.user_id = user_id
        self.client = client
        self._worker = worker or BackgroundWorker()
        self._observers: list[GameObserver] = []

        self.snapshot: GameSnapshot | None = None
        self.rules: Ruleset | None = None
        self.game_name: str | None = None
        self.black_id: int | None = None
        self.white_id: int | None = None
        self.black_rank: float | None = None
        self.white_rank: float | None = None

        self.initial_position = BoardPosition(width, height)
        self.current_position = self.initial_position
        self.move_tree = MoveTree()
        self.move_tree.register(self.initial_position)

        self.clock: Clock | None = None
        self.time_control: TimeControlSystem = NoTimeLimit()
        self.pause_control: dict[str, Any] | None = None
        self.undo_requested: int | None = None
        self.auto_scoring_done: bool | None = None
        self.phase: GamePhase | None = None
        self.removed_stones_accepted: dict[StoneColor, set[Point]] = {}
        self.suggested_removed_stones: set[Point] | None = None

        self._handlers = {
            REMOVAL_ESTIMATE: self._apply_removal_estimate,
            SCORE: self._apply_score,
            ESTIMATE: self._apply_estimate,
        }

    @classmethod
    def from_snapshot(
        cls,
        data: Union[dict[str, Any], GameSnapshot],
        user_id: int | None = None,
        client: RemoteGameClient | None = None,
        worker: BackgroundWorker | None = None,
    ) -> Game:
        """Create a game and ingest its first snapshot."""
        snapshot = parse_snapshot(data)
        game = cls(
            width=snapshot.width,
            height=snapshot.height,
            black_name=snapshot.players.black.username,
            white_name=snapshot.players.white.username,
            game_id=snapshot.game_id,
            user_id=user_id,
            client=client,
            worker=worker,
        )
        game.apply_snapshot(snapshot)
        return game

    def __repr__(self) -> str:
        return f"Game #{self.game_id}" if self.game_id is not None else "Game"

    # =========================================================================
    # Observation
    # =========================================================================

    def add_observer(self, observer: GameObserver) -> None:
        self._observers.append(observer)

    def remove_observer(self, observer: GameObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    def _notify(self, field: str) -> None:
        for observer in list(self._observers):
            observer.game_changed(self, field)

    # =========================================================================
    # Snapshot ingestion
    # =========================================================================

    def apply_snapshot(self, data: Union[dict[str, Any], GameSnapshot]) -> None:
        """
        Replace the game state with an authoritative snapshot.

        Raises DecodeError if the snapshot is malformed or belongs to a
        board of another size. An illegal move in the move list stops the
        replay at the last good position instead.
        """
        snapshot = parse_snapshot(data)
        if (snapshot.width, snapshot.height) != (self.width, self.height):
            raise DecodeError(
                f"snapshot board {snapshot.width}x{snapshot.height} does not match "
                f"game board {self.width}x{self.height}"
            )
        logger.debug("%r: applying snapshot with %d moves", self, len(snapshot.moves))

        # Decode everything before any state changes
        black, white = snapshot.players.black, snapshot.players.white
        accepted = {}
        if black.accepted_stones is not None:
            accepted[StoneColor.BLACK] = points_from_position_string(black.accepted_stones)
        if white.accepted_stones is not None:
            accepted[StoneColor.WHITE] = points_from_position_string(white.accepted_stones)
        removed = None
        if snapshot.removed is not None:
            removed = points_from_position_string(snapshot.removed)
        game_scores = snapshot.score.to_game_scores() if snapshot.score else None
        clock = snapshot.clock.to_clock() if snapshot.clock else None
        time_control = snapshot.time_control.to_system() if snapshot.time_control else NoTimeLimit()

        # Nothing computed for the previous state may land on the new one
        self._worker.invalidate()

        position = self._replay(snapshot)
        position.removed_stones = removed
        position.game_scores = game_scores

        self.snapshot = snapshot
        self.rules = snapshot.ruleset()
        if snapshot.game_id is not None:
            self.game_id = snapshot.game_id
        self.game_name = snapshot.game_name
        self.black_name, self.white_name = black.username, white.username
        self.black_id, self.white_id = black.id, white.id
        self.black_rank, self.white_rank = black.rank, white.rank
        self.removed_stones_accepted.update(accepted)
        self._notify("players")

        self.current_position = position
        self._notify("current_position")

        self.pause_control = snapshot.pause_control
        self.clock = clock
        self.time_control = time_control
        self._notify("clock")

        self.undo_requested = snapshot.undo_requested
        self._notify("undo_requested")

        self.auto_scoring_done = snapshot.auto_scoring_done
        # Last, since entering stone removal starts scoring
        self._set_phase(snapshot.phase)

    def _replay(self, snapshot: GameSnapshot) -> BoardPosition:
        initial_color = snapshot.initial_color
        position = BoardPosition(self.width, self.height, next_to_move=initial_color)
        for row, column in points_from_position_string(snapshot.initial_state.black):
            position.place(row, column, StoneColor.BLACK)
        for row, column in points_from_position_string(snapshot.initial_state.white):
            position.place(row, column, StoneColor.WHITE)

        first_move = 0
        try:
            if snapshot.handicap > 0 and snapshot.free_handicap_placement:
                first_move = min(snapshot.handicap, len(snapshot.moves))
                for entry in snapshot.moves[:first_move]:
                    position = position.make_handicap_placement(Move.from_coordinates(entry))
                if first_move == snapshot.handicap:
                    position.next_to_move = initial_color.opponent
        except IllegalMove as e:
            logger.warning("%r: handicap replay stopped after %d stones: %s",
                           self, position.handicap_placements, e)
            return self._adopt_root(position)

        position = self._adopt_root(position)
        try:
            for entry in snapshot.moves[first_move:]:
                candidate = position.make_move(
                    Move.from_coordinates(entry),
                    allow_self_capture=snapshot.allow_self_capture,
                )
                position = self.move_tree.find_child(position, candidate) or candidate
                self.move_tree.register(position)
        except IllegalMove as e:
            logger.warning("%r: replay stopped at move %d: %s", self, position.move_index + 1, e)
        return position

    def _adopt_root(self, root: BoardPosition) -> BoardPosition:
        """Keep the existing root (and its branches) if `root` matches it."""
        existing = self.move_tree.root
        if (
            existing is not None
            and existing.same_position_as(root)
            and existing.next_to_move is root.next_to_move
            and existing.handicap_placements == root.handicap_placements
        ):
            return existing
        if existing is not None:
            self.move_tree.clear()
            self._notify("move_tree")
        self.move_tree.register(root)
        self.initial_position = root
        return root

    # =========================================================================
    # Phase machine
    # =========================================================================

    def _set_phase(self, phase: GamePhase) -> None:
        self.phase = phase
        self._notify("phase")

        if phase is GamePhase.STONE_REMOVAL:
            if self.auto_scoring_done:
                self.compute_scores_and_update()
            else:
                self._worker.submit(REMOVAL_ESTIMATE, estimate_territory, self.current_position)
        elif phase is GamePhase.PLAY:
            self.auto_scoring_done = None
            self.suggested_removed_stones = None
            self.current_position.game_scores = None
            self.current_position.removed_stones = None

    def _apply_removal_estimate(self, position: BoardPosition, territory: Grid) -> None:
        if position is not self.current_position or self.phase is not GamePhase.STONE_REMOVAL:
            logger.debug("%r: dropping removal estimate for an outdated position", self)
            return
        self.suggested_removed_stones = suggest_removed_stones(position, territory)
        self._notify("suggested_removed_stones")
        self.toggle_removed_stones(self.suggested_removed_stones, removed=True)

    # =========================================================================
    # Background results
    # =========================================================================

    def process_background(self, wait: bool = False, timeout: float | None = None) -> int:
        """
        Apply finished background work. Returns how many results were applied.

        Stale results are dropped. If a current task failed, its exception is
        raised after the other results have been applied.
        """
        applied = 0
        errors = []
        for result in self._worker.collect(wait=wait, timeout=timeout):
            if not self._worker.is_current(result):
                logger.debug("%r: dropping stale %s result (generation %d)",
                             self, result.kind, result.generation)
                continue
            if result.error is not None:
                logger.exception("%r: %s task failed", self, result.kind, exc_info=result.error)
                errors.append(result.error)
                continue
            self._dispatch(result)
            applied += 1
        if errors:
            raise errors[0]
        return applied

    def _dispatch(self, result: BackgroundResult) -> None:
        handler = self._handlers[result.kind]
        handler(result.args[0], result.value)

    def shutdown(self) -> None:
        """Stop the background worker. The game is not usable afterwards."""
        self._worker.shutdown(wait=False)

    # =========================================================================
    # Scoring
    # =========================================================================

    def compute_score(self) -> GameScores | None:
        """Score the current position, or None before any ruleset is known."""
        if self.rules is None:
            return None
        return compute_score(self.current_position, self.rules)

    def compute_scores_and_update(self) -> None:
        """Score the current position in the background and annotate it."""
        if self.rules is None:
            return
        position = self.current_position
        removed = frozenset(position.removed_stones or ())
        self._worker.submit(SCORE, compute_score, position, self.rules, removed)

    def _apply_score(self, position: BoardPosition, scores: GameScores) -> None:
        position.game_scores = scores
        self._notify("game_scores")

    def estimate_score(self) -> None:
        """Run the territory estimator in the background for a live estimate."""
        self._worker.submit(ESTIMATE, estimate_territory, self.current_position)

    def _apply_estimate(self, position: BoardPosition, territory: Grid) -> None:
        position.estimated_scores = territory
        self._notify("estimated_scores")

    # =========================================================================
    # Moves
    # =========================================================================

    def make_move(self, move: Move) -> MoveSubmission:
        """
        Play `move` locally and send it to the server.

        While free handicap stones remain, the move places one of them.
        Raises StateError outside the play phase and IllegalMove for
        moves the rules forbid.
        """
        if self.phase is not None and self.phase is not GamePhase.PLAY:
            raise StateError(f"Cannot move during {self.phase.value}")

        current = self.current_position
        rules = self.rules or Ruleset()
        if (
            rules.free_handicap_placement
            and current.last_move_number == 0
            and current.handicap_placements < rules.handicap
        ):
            position = current.make_handicap_placement(move)
            if position.handicap_placements == rules.handicap:
                position.next_to_move = position.next_to_move.opponent
            position = self._adopt_root(position)
        else:
            candidate = current.make_move(move, allow_self_capture=rules.allow_self_capture)
            position = self.move_tree.find_child(current, candidate) or candidate
            self.move_tree.register(position)
            self.undo_requested = None
            self._notify("undo_requested")

        self.current_position = position
        self._notify("current_position")

        intent = MoveSubmission(
            game_id=self.game_id,
            move=".." if move.is_pass else position_string_from_points([move.point]),
            move_number=position.move_index,
        )
        if self.client is not None:
            self.client.submit_move(self, intent)
        return intent

    def make_analysis_move(
        self,
        move: Move,
        from_position: BoardPosition,
        ignore_ko: bool = False,
    ) -> BoardPosition:
        """
        Explore `move` from any position without touching the real game.

        Returns the existing branch node if the same move was explored
        before, else a new one registered in the move tree.
        """
        self.move_tree.register(from_position)
        rules = self.rules or Ruleset()
        candidate = from_position.make_move(
            move, allow_self_capture=rules.allow_self_capture, ignore_ko=ignore_ko
        )
        existing = self.move_tree.find_child(from_position, candidate)
        if existing is not None:
            return existing
        self.move_tree.register(candidate)
        self._notify("move_tree")
        return candidate

    def position_at(self, move_number: int) -> BoardPosition | None:
        """Position of the current line after `move_number` moves."""
        for position in self.current_position.ancestors():
            if position.last_move_number == move_number:
                return position
        return None

    # =========================================================================
    # Undo
    # =========================================================================

    def undo_move(self, move_number: int) -> None:
        """Take back every move numbered `move_number` or later (server event)."""
        position = self.current_position
        while position.previous_position is not None and position.move_index >= move_number:
            position = position.previous_position
        self.current_position = position
        self.undo_requested = None
        self._notify("current_position")
        self._notify("undo_requested")

    def set_undo_requested(self, move_number: int | None) -> None:
        """Record a pending undo request announced by the server."""
        self.undo_requested = move_number
        self._notify("undo_requested")

    def request_undo(self) -> UndoRequest:
        if not self.undoable:
            raise StateError("Undo cannot be requested now")
        intent = UndoRequest(game_id=self.game_id, move_number=self.current_position.move_index)
        if self.client is not None:
            self.client.request_undo(self, intent)
        return intent

    def accept_undo(self) -> UndoAcceptance:
        if not self.undo_acceptable:
            raise StateError("There is no undo request this player can accept")
        intent = UndoAcceptance(game_id=self.game_id, move_number=self.undo_requested)
        if self.client is not None:
            self.client.accept_undo(self, intent)
        return intent

    @property
    def undoable(self) -> bool:
        """Whether the user may ask to take back their last move."""
        if not self.is_user_playing:
            return False
        if self.phase is not GamePhase.PLAY or self._outcome is not None:
            return False

        minimum_moves = 0
        if self.rules is not None and self.rules.free_handicap_placement:
            minimum_moves = self.rules.handicap

        return (
            not self.is_user_turn
            and self.undo_requested is None
            and self.current_position.move_index > minimum_moves
        )

    @property
    def undo_acceptable(self) -> bool:
        """Whether the user may grant the pending undo request."""
        if self.undo_requested is None:
            return False
        return self.is_user_turn and self.undo_requested == self.current_position.move_index

    @property
    def can_be_cancelled(self) -> bool:
        if self.phase is not GamePhase.PLAY:
            return False
        if self.snapshot is not None and (
            self.snapshot.tournament_id is not None or self.snapshot.ladder_id is not None
        ):
            return False

        max_moves_played = 2
        if self.rules is not None and self.rules.free_handicap_placement and self.rules.handicap > 0:
            max_moves_played += self.rules.handicap - 1
        return self.current_position.move_index < max_moves_played

    # =========================================================================
    # Stone removal
    # =========================================================================

    def set_removed_stones(self, removed: str) -> None:
        """Apply the server's removed-stone set (a position string)."""
        self.current_position.removed_stones = points_from_position_string(removed)
        self._notify("removed_stones")
        if self.phase is GamePhase.STONE_REMOVAL:
            self.compute_scores_and_update()

    def toggle_removed_stones(self, stones: set[Point], removed: bool = True) -> RemovedStonesToggle:
        intent = RemovedStonesToggle(
            game_id=self.game_id,
            removed=removed,
            stones=position_string_from_points(stones),
        )
        if self.client is not None:
            self.client.toggle_removed_stones(self, intent)
        return intent

    def accept_removed_stones(self) -> RemovedStonesAcceptance:
        if self.phase is not GamePhase.STONE_REMOVAL:
            raise StateError("Removed stones can only be accepted during stone removal")
        intent = RemovedStonesAcceptance(
            game_id=self.game_id,
            stones=position_string_from_points(self.current_position.removed_stones or ()),
        )
        if self.client is not None:
            self.client.accept_removed_stones(self, intent)
        return intent

    # =========================================================================
    # Clock
    # =========================================================================

    def remaining_clock(self, now: float | None = None) -> Clock | None:
        """Local estimate of the clock at `now` (epoch ms, default: now)."""
        if self.clock is None:
            return None
        return self.clock.recompute_remaining(self.time_control, now=now)

    def set_auto_resign(self, player_id: int, time: float) -> None:
        color = self._color_of(player_id)
        if color is None or self.clock is None:
            logger.warning("%r: ignoring auto-resign for player %s", self, player_id)
            return
        self.clock.auto_resign_time[color] = time
        self._notify("clock")

    def clear_auto_resign(self, player_id: int) -> None:
        color = self._color_of(player_id)
        if color is None or self.clock is None:
            logger.warning("%r: ignoring auto-resign clear for player %s", self, player_id)
            return
        self.clock.auto_resign_time.pop(color, None)
        self._notify("clock")

    # =========================================================================
    # Players and status
    # =========================================================================

    def _color_of(self, player_id: int | None) -> StoneColor | None:
        if player_id is None or self.snapshot is None:
            return None
        return self.snapshot.color_of(player_id)

    @property
    def _outcome(self) -> str | None:
        return self.snapshot.outcome if self.snapshot is not None else None

    @property
    def user_color(self) -> StoneColor | None:
        return self._color_of(self.user_id)

    @property
    def is_user_playing(self) -> bool:
        return self.user_color is not None

    @property
    def player_to_move(self) -> StoneColor:
        if self.clock is not None:
            return self.clock.current_player
        return self.current_position.next_to_move

    @property
    def is_user_turn(self) -> bool:
        if not self.is_user_playing or self.phase is not GamePhase.PLAY:
            return False
        return self.player_to_move is self.user_color

    def formatted_rank(self, color: StoneColor) -> str:
        if color is StoneColor.BLACK:
            rank = self.black_rank
            player = self.snapshot.players.black if self.snapshot else None
        else:
            rank = self.white_rank
            player = self.snapshot.players.white if self.snapshot else None
        return format_rank(rank, professional=player.professional if player else False)

    def player_icon(self, color: StoneColor, size: int) -> str | None:
        if self.snapshot is None:
            return None
        player = self.snapshot.players.black if color is StoneColor.BLACK else self.snapshot.players.white
        return resize_icon(player.icon, size)

    @property
    def game_url(self) -> str | None:
        if self.game_id is None:
            return None
        return f"{KIFU_SERVER_ROOT}/game/{self.game_id}"

    @property
    def status(self) -> str:
        """One-line description of the game for display."""
        outcome = self._outcome
        if outcome is not None:
            winner = self.snapshot.winner
            if winner is not None and winner == self.black_id:
                return f"Black wins by {outcome}"
            return f"White wins by {outcome}"

        estimated = self.current_position.estimated_scores
        if estimated is not None:
            black = sum(row.count(StoneColor.BLACK) for row in estimated)
            white = sum(row.count(StoneColor.WHITE) for row in estimated)
            komi = self.rules.komi if self.rules else 0.0
            difference = white + komi - black
            if difference > 0:
                return f"White by {difference:.1f}"
            return f"Black by {-difference:.1f}"

        if self.phase is GamePhase.STONE_REMOVAL:
            return "Stone Removal Phase"
        if self.undo_requested is not None:
            return "Undo requested"
        if self.is_user_playing:
            if self.is_user_turn:
                last_move = self.current_position.last_move
                if last_move is not None and last_move.is_pass:
                    return "Opponent passed"
                return "Your move"
            return "Waiting for opponent"
        return f"{self.player_to_move.display_name} to move"
