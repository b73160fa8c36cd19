"""Game session tracking and persistence."""

from boardsync.session.store import JsonSessionStore
from boardsync.session.tracker import (
    Classification,
    GameSessionTracker,
    NewGameSignal,
    SessionDecision,
    game_id_from_url,
)

__all__ = [
    "GameSessionTracker",
    "Classification",
    "SessionDecision",
    "NewGameSignal",
    "game_id_from_url",
    "JsonSessionStore",
]
