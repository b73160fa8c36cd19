"""
Pytest configuration and fixtures for BoardSync tests.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field

import pytest

from boardsync.core.models import (
    BoardState,
    ConnectionStatus,
    GameSession,
    TransmitResult,
)
from boardsync.layouts.registry import LayoutRegistry
from boardsync.page.static import StaticPage
from boardsync.session.tracker import GameSessionTracker

from page_fixtures import WC_URL, wc_board_page


@dataclass
class SentState:
    state: BoardState
    moves: tuple[str, ...]
    variant: str
    session_id: str | None
    black_at_bottom: bool


@dataclass
class RecordingTransport:
    """StateTransport that records every message instead of sending it."""
    fail: bool = False
    status: ConnectionStatus = ConnectionStatus.DISCONNECTED
    states: list[SentState] = field(default_factory=list)
    new_games: list[GameSession] = field(default_factory=list)
    events: list[str] = field(default_factory=list)
    attempts: int = 0

    @property
    def connection_status(self) -> ConnectionStatus:
        return self.status

    async def send_state(
        self,
        state: BoardState,
        moves: Sequence[str],
        variant: str,
        session: GameSession | None,
        black_at_bottom: bool = False,
    ) -> TransmitResult:
        self.attempts += 1
        self.events.append("state")
        if self.fail:
            return TransmitResult(sent=False, via="http", error="backend unavailable")
        self.states.append(SentState(
            state,
            tuple(moves),
            variant,
            session.session_id if session is not None else None,
            black_at_bottom,
        ))
        return TransmitResult(sent=True, via="http")

    async def send_new_game(self, session: GameSession) -> TransmitResult:
        self.new_games.append(session)
        self.events.append("new_game")
        return TransmitResult(sent=True, via="http")


class FakeClock:
    """Manually advanced replacement for time.time."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def tracker(clock: FakeClock) -> GameSessionTracker:
    """A session tracker without persistence, on a fake clock."""
    return GameSessionTracker(clock=clock)


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def registry() -> LayoutRegistry:
    return LayoutRegistry()


@pytest.fixture
def wc_page() -> StaticPage:
    """A page showing the starting position on the custom-element board."""
    return StaticPage(wc_board_page(), WC_URL)


@pytest.fixture
def starting_position_fen() -> str:
    """The standard chess starting position FEN."""
    return "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"
