"""
Session Module - one live game mirrored from the server.

A session game:
- Is created from the first snapshot the server sends
- Replays every later snapshot into its move tree
- Runs territory estimation and scoring on a background worker
- Reports changes to observers and intents to the remote client

The game never performs network I/O itself; the host injects a
RemoteGameClient that delivers intents.
"""

from .game import Game, suggest_removed_stones
from .interfaces import GameObserver, RemoteGameClient
from .players import format_rank, resize_icon
from .worker import BackgroundResult, BackgroundWorker

__all__ = [
    "Game",
    "suggest_removed_stones",
    "GameObserver",
    "RemoteGameClient",
    "format_rank",
    "resize_icon",
    "BackgroundResult",
    "BackgroundWorker",
]
