"""
BoardSync - live chess board mirroring for web pages

This package provides:
- Board layout detection and perspective resolution on a live page
- Board state extraction and game session tracking
- Debounced synchronisation to an analysis backend over WebSocket/HTTP
- An analysis overlay drawn on top of the page's board
"""

__version__ = "0.1.0"
__author__ = "BoardSync Contributors"

from boardsync.core.models import (
    BoardState,
    ConnectionStatus,
    GameSession,
    LayoutKind,
)

__all__ = [
    "BoardState",
    "ConnectionStatus",
    "GameSession",
    "LayoutKind",
    "__version__",
]
