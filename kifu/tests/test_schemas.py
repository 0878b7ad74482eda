"""
Tests for the server data contract.

Tests:
- Snapshot validation and DecodeError wrapping
- Clock payload decoding
- Time control and score conversion
- Outbound intents
"""

import pytest

from ..api.schemas import (
    ClockData,
    GamePhase,
    GameSnapshot,
    MoveSubmission,
    TimeControlData,
    parse_snapshot,
)
from ..engine_core.clock import ByoYomi, Canadian, NoTimeLimit
from ..engine_core.errors import DecodeError
from ..engine_core.scoring import Ruleset
from ..engine_core.types import StoneColor
from .conftest import BLACK_ID, WHITE_ID


def clock_payload(**overrides):
    data = {
        "black_time": {"thinking_time": 120, "periods": 5, "period_time": 30},
        "white_time": {"thinking_time": 90, "periods": 5, "period_time": 30},
        "black_player_id": BLACK_ID,
        "white_player_id": WHITE_ID,
        "current_player": WHITE_ID,
        "last_move": 1_700_000_000_000,
    }
    data.update(overrides)
    return data


class TestParseSnapshot:
    """Tests for snapshot decoding."""

    def test_minimal_snapshot(self, snapshot_data):
        """Defaults fill in everything the server may omit."""
        snapshot = parse_snapshot(snapshot_data())

        assert snapshot.width == 9
        assert snapshot.phase is GamePhase.PLAY
        assert snapshot.initial_color is StoneColor.BLACK
        assert snapshot.moves == []
        assert snapshot.clock is None

    def test_missing_field_raises_decode_error(self, snapshot_data):
        """A snapshot without players cannot be decoded."""
        data = snapshot_data()
        del data["players"]

        with pytest.raises(DecodeError) as exc:
            parse_snapshot(data)
        assert any("players" in error for error in exc.value.errors)
        assert exc.value.data is data

    def test_clock_player_mismatch(self, snapshot_data):
        """The clock's black player must be the roster's black player."""
        data = snapshot_data(clock=clock_payload(black_player_id=999))

        with pytest.raises(DecodeError):
            parse_snapshot(data)

    def test_unknown_current_player(self, snapshot_data):
        """The player to move must be in the game."""
        data = snapshot_data(clock=clock_payload(current_player=999))

        with pytest.raises(DecodeError):
            parse_snapshot(data)

    def test_unknown_phase(self, snapshot_data):
        """Phases other than the known ones are rejected."""
        with pytest.raises(DecodeError):
            parse_snapshot(snapshot_data(phase="overtime"))

    def test_short_move_entry(self, snapshot_data):
        """Every move entry needs at least x and y."""
        with pytest.raises(DecodeError) as exc:
            parse_snapshot(snapshot_data(moves=[[2, 3], [3]]))
        assert any(error.startswith("moves.1") for error in exc.value.errors)

    def test_setup_stone_off_board(self, snapshot_data):
        """Initial stones must lie on the board."""
        with pytest.raises(DecodeError) as exc:
            parse_snapshot(snapshot_data(initial_state={"black": "jj"}))
        assert any("initial_state.black" in error for error in exc.value.errors)

    def test_rectangular_board_bounds(self, snapshot_data):
        """Columns are checked against width and rows against height."""
        assert parse_snapshot(snapshot_data(width=13, height=9, removed="mi")).removed == "mi"

        with pytest.raises(DecodeError):
            parse_snapshot(snapshot_data(width=13, height=9, removed="im"))

    @pytest.mark.parametrize("removed", ["abc", "a1", "zz"])
    def test_bad_removed_stones(self, snapshot_data, removed):
        """The removed set must be a valid position string on the board."""
        with pytest.raises(DecodeError):
            parse_snapshot(snapshot_data(removed=removed))

    def test_bad_accepted_stones(self, snapshot_data):
        data = snapshot_data()
        data["players"]["white"]["accepted_stones"] = "aB"

        with pytest.raises(DecodeError):
            parse_snapshot(data)

    def test_bad_scoring_positions(self, snapshot_data):
        score = {"black": {"scoring_positions": "tt"}, "white": {}}

        with pytest.raises(DecodeError):
            parse_snapshot(snapshot_data(score=score))

    def test_default_ruleset(self, snapshot_data):
        """A snapshot without ruleset flags gives the default ruleset."""
        assert parse_snapshot(snapshot_data(komi=0.0)).ruleset() == Ruleset()

    def test_passes_models_through(self, snapshot_data):
        """An already decoded snapshot is returned unchanged."""
        snapshot = GameSnapshot.model_validate(snapshot_data())

        assert parse_snapshot(snapshot) is snapshot

    def test_ruleset(self, snapshot_data):
        """Ruleset flags come from the snapshot."""
        snapshot = parse_snapshot(snapshot_data(
            handicap=2, free_handicap_placement=True, aga_handicap_scoring=True, komi=0.5,
        ))

        rules = snapshot.ruleset()

        assert rules.handicap == 2
        assert rules.free_handicap_placement
        assert rules.aga_handicap_scoring
        assert rules.komi == 0.5
        assert snapshot.color_of(WHITE_ID) is StoneColor.WHITE
        assert snapshot.color_of(12345) is None


class TestClockData:
    """Tests for the clock payload."""

    def test_current_player_color(self):
        """The current player id is matched against the black player."""
        clock = ClockData.model_validate(clock_payload()).to_clock()

        assert clock.current_player is StoneColor.WHITE
        assert clock.black_time.periods_left == 5
        assert clock.white_time.thinking_time_left == 90

    def test_start_mode_presence(self):
        """The presence of start_mode, even null, means not started."""
        assert ClockData.model_validate(clock_payload()).started
        assert not ClockData.model_validate(clock_payload(start_mode=None)).started
        assert not ClockData.model_validate(clock_payload(start_mode="first-move")).started

    def test_bare_number_times(self):
        """A bare number is the player's main time."""
        clock = ClockData.model_validate(
            clock_payload(black_time=300, white_time=240.5)
        ).to_clock()

        assert clock.black_time.thinking_time == 300
        assert clock.white_time.thinking_time_left == 240.5
        assert clock.black_time.periods is None


class TestConversions:
    """Tests for time control and score conversion."""

    def test_byoyomi(self):
        system = TimeControlData(system="byoyomi", main_time=600, periods=5, period_time=30).to_system()

        assert system == ByoYomi(main_time=600, periods=5, period_time=30)

    def test_canadian(self):
        system = TimeControlData(
            system="canadian", main_time=600, period_time=300, stones_per_period=10
        ).to_system()

        assert isinstance(system, Canadian)
        assert system.stones_per_period == 10

    def test_unknown_system(self):
        """Unknown systems are treated as no time limit."""
        assert isinstance(TimeControlData(system="hourglass").to_system(), NoTimeLimit)

    def test_score(self, snapshot_data):
        """Server scores decode their scoring positions."""
        snapshot = parse_snapshot(snapshot_data(score={
            "black": {"stones": 3, "territory": 10, "total": 13, "scoring_positions": "aabb"},
            "white": {"stones": 2, "territory": 8, "komi": 5.5, "total": 15.5},
        }))

        scores = snapshot.score.to_game_scores()

        assert scores.black.scoring_positions == {(0, 0), (1, 1)}
        assert scores.white.total == 15.5
        assert scores.leader is StoneColor.WHITE


class TestIntents:
    """Tests for outbound intents."""

    def test_move_submission_dump(self):
        """Intents serialize to the server's field names."""
        intent = MoveSubmission(game_id=7, move="dd", move_number=4)

        assert intent.model_dump() == {"game_id": 7, "move": "dd", "move_number": 4}
