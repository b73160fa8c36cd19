"""Core abstractions, data models, and utilities."""

from boardsync.core.models import (
    AnalysisShape,
    ArrowGraphic,
    BoardState,
    BoundingBox,
    ConnectionStatus,
    GameSession,
    LabelGraphic,
    LayoutDescriptor,
    LayoutKind,
    LayoutPatterns,
    OverlayScene,
    PerspectiveEstimate,
    PerspectiveSource,
    Piece,
    TransmitResult,
)
from boardsync.core.interfaces import (
    LayoutAdapter,
    OverlaySurface,
    PageSource,
    StateTransport,
    Subscription,
    SyncObserver,
)
from boardsync.core.errors import (
    BoardSyncError,
    ChannelDisconnected,
    ExtractionFailure,
    LayoutMismatch,
    PerspectiveAmbiguous,
    TransmissionFailure,
)
from boardsync.core.fen import (
    FENValidationError,
    STARTING_FEN,
    fen_to_piece_map,
)
from boardsync.core.geometry import BoardGeometry

__all__ = [
    # Models
    "AnalysisShape",
    "ArrowGraphic",
    "BoardState",
    "BoundingBox",
    "ConnectionStatus",
    "GameSession",
    "LabelGraphic",
    "LayoutDescriptor",
    "LayoutKind",
    "LayoutPatterns",
    "OverlayScene",
    "PerspectiveEstimate",
    "PerspectiveSource",
    "Piece",
    "TransmitResult",
    # Interfaces
    "LayoutAdapter",
    "OverlaySurface",
    "PageSource",
    "StateTransport",
    "Subscription",
    "SyncObserver",
    # Errors
    "BoardSyncError",
    "ChannelDisconnected",
    "ExtractionFailure",
    "LayoutMismatch",
    "PerspectiveAmbiguous",
    "TransmissionFailure",
    # FEN utilities
    "FENValidationError",
    "STARTING_FEN",
    "fen_to_piece_map",
    # Geometry
    "BoardGeometry",
]
