"""
Host Interfaces - how the game talks to the application embedding it.

- GameObserver: told which field of the game changed
- RemoteGameClient: delivers outbound intents to the game server

Both are injected; the game never holds a reference to a concrete
network service.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .game import Game
    from ..api.schemas import (
        MoveSubmission,
        RemovedStonesAcceptance,
        RemovedStonesToggle,
        UndoAcceptance,
        UndoRequest,
    )


class GameObserver(ABC):
    """Receives a notification for every field the game changes."""

    @abstractmethod
    def game_changed(self, game: Game, field: str) -> None:
        """
        Called after `field` of `game` changed.

        Always called on the context that owns the game.
        """


class RemoteGameClient(ABC):
    """
    Delivers intents to the game server.

    Implementations send and return immediately; the outcome arrives later
    as a new snapshot or server event.
    """

    @abstractmethod
    def submit_move(self, game: Game, intent: MoveSubmission) -> None:
        """Send a move."""

    @abstractmethod
    def toggle_removed_stones(self, game: Game, intent: RemovedStonesToggle) -> None:
        """Mark or unmark stones as dead during stone removal."""

    @abstractmethod
    def accept_removed_stones(self, game: Game, intent: RemovedStonesAcceptance) -> None:
        """Accept the current removed-stone set."""

    @abstractmethod
    def request_undo(self, game: Game, intent: UndoRequest) -> None:
        """Ask the opponent to take back the last move."""

    @abstractmethod
    def accept_undo(self, game: Game, intent: UndoAcceptance) -> None:
        """Grant the opponent's pending undo request."""
