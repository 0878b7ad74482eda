"""
Pytest fixtures for Kifu tests.
"""

import pytest

from ..engine_core.position import BoardPosition
from ..engine_core.types import Move, StoneColor
from ..session.interfaces import GameObserver, RemoteGameClient
from ..session.worker import BackgroundWorker

BLACK_ID = 101
WHITE_ID = 202


def board_from_rows(rows: list[str], next_to_move: StoneColor = StoneColor.BLACK) -> BoardPosition:
    """Build a root position from rows of "X" (black), "O" (white) and "."."""
    position = BoardPosition(len(rows[0]), len(rows), next_to_move=next_to_move)
    for row, line in enumerate(rows):
        for column, symbol in enumerate(line):
            if symbol == "X":
                position.place(row, column, StoneColor.BLACK)
            elif symbol == "O":
                position.place(row, column, StoneColor.WHITE)
    return position


def play(position: BoardPosition, *points) -> BoardPosition:
    """Play each (row, column) point in turn; None plays a pass."""
    for point in points:
        move = Move.pass_() if point is None else Move.place(*point)
        position = position.make_move(move)
    return position


def make_snapshot(**overrides) -> dict:
    """Raw snapshot data for a 9x9 game between the two test players."""
    data = {
        "game_id": 4242,
        "game_name": "Friendly Match",
        "width": 9,
        "height": 9,
        "players": {
            "black": {"username": "kuro", "id": BLACK_ID, "rank": 25, "icon": "https://cdn.example/kuro-64.png"},
            "white": {"username": "shiro", "id": WHITE_ID, "rank": 31},
        },
        "initial_player": "black",
        "moves": [],
        "komi": 6.5,
        "phase": "play",
    }
    data.update(overrides)
    return data


class RecordingClient(RemoteGameClient):
    """Remote client that keeps every intent it is asked to send."""

    def __init__(self):
        self.sent = []

    def submit_move(self, game, intent):
        self.sent.append(("move", intent))

    def toggle_removed_stones(self, game, intent):
        self.sent.append(("toggle", intent))

    def accept_removed_stones(self, game, intent):
        self.sent.append(("accept", intent))

    def request_undo(self, game, intent):
        self.sent.append(("undo_request", intent))

    def accept_undo(self, game, intent):
        self.sent.append(("undo_accept", intent))

    def of_kind(self, kind):
        return [intent for sent_kind, intent in self.sent if sent_kind == kind]


class RecordingObserver(GameObserver):
    """Observer that keeps the names of changed fields."""

    def __init__(self):
        self.fields = []

    def game_changed(self, game, field):
        self.fields.append(field)


@pytest.fixture
def snapshot_data():
    """Factory for raw snapshot dicts."""
    return make_snapshot


@pytest.fixture
def client() -> RecordingClient:
    return RecordingClient()


@pytest.fixture
def observer() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture
def worker():
    """A background worker that is shut down after the test."""
    worker = BackgroundWorker()
    yield worker
    worker.shutdown()


@pytest.fixture
def empty_board() -> BoardPosition:
    """An empty 9x9 position with black to move."""
    return BoardPosition(9, 9)
