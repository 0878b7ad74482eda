"""
API Module - Data contract with the remote game server.

The engine never talks to the server itself. Its host feeds it
`GameSnapshot`s and delivers the outbound intents it produces.
"""

from .schemas import (
    GamePhase,
    GameSnapshot,
    PlayerData,
    ClockData,
    TimeControlData,
    ScoreData,
    MoveSubmission,
    RemovedStonesToggle,
    RemovedStonesAcceptance,
    UndoRequest,
    UndoAcceptance,
    parse_snapshot,
)

__all__ = [
    "GamePhase",
    "GameSnapshot",
    "PlayerData",
    "ClockData",
    "TimeControlData",
    "ScoreData",
    "MoveSubmission",
    "RemovedStonesToggle",
    "RemovedStonesAcceptance",
    "UndoRequest",
    "UndoAcceptance",
    "parse_snapshot",
]
