"""
Error taxonomy for the sync pipeline.

None of these are fatal: every failure degrades to skipping the current
cycle (or render) and waiting for the next change notification.
"""


class BoardSyncError(Exception):
    """Base class for all BoardSync errors."""


class LayoutMismatch(BoardSyncError):
    """A layout matched only partially; some required nodes are missing."""

    def __init__(self, layout: str, missing: list[str]):
        super().__init__(f"{layout} layout is missing: {', '.join(missing)}")
        self.layout = layout
        self.missing = missing


class ExtractionFailure(BoardSyncError):
    """Piece candidates were present but none could be placed on a square."""

    def __init__(self, message: str, candidates: int = 0):
        super().__init__(message)
        self.candidates = candidates


class PerspectiveAmbiguous(BoardSyncError):
    """A perspective tier could not reach a conclusion."""


class TransmissionFailure(BoardSyncError):
    """A one-shot backend request failed."""


class ChannelDisconnected(BoardSyncError):
    """The persistent backend channel is not open."""
