"""
Game session tracking.

Decides, on every extracted position, whether the page is still showing the
game we are tracking or has moved on to a new one. Any single signal is
enough to start a new session; each one that fires is logged so spurious
boundaries can be traced.
"""

import logging
import re
import time
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum, auto

from boardsync.core.fen import count_position_differences, looks_like_standard_start
from boardsync.core.models import BoardState, GameSession
from boardsync.session.store import JsonSessionStore


logger = logging.getLogger(__name__)

GAME_ID_RE = re.compile(r"/game/(?:live|daily)/(\d+)")

# Thresholds
RESET_MIN_SESSION_MOVES = 5      # Session must have more moves than this...
RESET_MAX_CANDIDATE_MOVES = 2    # ...and the candidate fewer than this
REPLACED_MAX_CANDIDATE_MOVES = 2
STARTING_SETUP_MIN_SESSION_MOVES = 10
OPENING_PREFIX = 5
IDLE_TIMEOUT_SECONDS = 15 * 60


class SessionDecision(Enum):
    CONTINUE = auto()
    START_NEW = auto()


class NewGameSignal(Enum):
    """Independent evidence that a new game has begun."""
    NO_SESSION = auto()
    GAME_ID_CHANGED = auto()
    MOVE_LIST_RESET = auto()
    POSITION_REPLACED = auto()
    STARTING_SETUP = auto()
    OPENING_DIVERGED = auto()
    IDLE_TIMEOUT = auto()


@dataclass(frozen=True)
class Classification:
    decision: SessionDecision
    signals: tuple[NewGameSignal, ...] = ()

    @property
    def is_new_game(self) -> bool:
        return self.decision == SessionDecision.START_NEW


def game_id_from_url(url: str) -> str | None:
    """The numeric game id in a live or daily game URL."""
    match = GAME_ID_RE.search(url or "")
    return match.group(1) if match else None


class GameSessionTracker:
    """
    Tracks the current game session.

    Owns the session; callers only read it. Optionally persists every change
    through a JsonSessionStore so restarts resume the same game.
    """

    def __init__(
        self,
        store: JsonSessionStore | None = None,
        clock: Callable[[], float] = time.time,
        idle_timeout: float = IDLE_TIMEOUT_SECONDS,
    ) -> None:
        self._store = store
        self._clock = clock
        self._idle_timeout = idle_timeout
        self._session: GameSession | None = store.load() if store is not None else None
        if self._session is not None:
            logger.info(f"Resumed game session {self._session.session_id}")

    @property
    def session(self) -> GameSession | None:
        return self._session

    def classify(
        self,
        state: BoardState,
        moves: Sequence[str],
        session: GameSession | None,
        page_game_id: str | None = None,
        now: float | None = None,
    ) -> Classification:
        """Decide whether a candidate position continues the session."""
        if session is None:
            return Classification(SessionDecision.START_NEW, (NewGameSignal.NO_SESSION,))

        now = self._clock() if now is None else now
        signals: list[NewGameSignal] = []
        previous = len(session.moves)
        current = len(moves)

        if page_game_id is not None and session.page_game_id is not None and page_game_id != session.page_game_id:
            signals.append(NewGameSignal.GAME_ID_CHANGED)

        if previous > RESET_MIN_SESSION_MOVES and current < RESET_MAX_CANDIDATE_MOVES:
            signals.append(NewGameSignal.MOVE_LIST_RESET)

        if current <= REPLACED_MAX_CANDIDATE_MOVES:
            differing, occupied = count_position_differences(session.start_state.pieces(), state.pieces())
            if occupied and differing > occupied / 2:
                signals.append(NewGameSignal.POSITION_REPLACED)

        if previous > STARTING_SETUP_MIN_SESSION_MOVES and looks_like_standard_start(state.pieces()):
            signals.append(NewGameSignal.STARTING_SETUP)

        if (
            previous > OPENING_PREFIX
            and current > OPENING_PREFIX
            and list(session.moves[:OPENING_PREFIX]) != list(moves[:OPENING_PREFIX])
        ):
            signals.append(NewGameSignal.OPENING_DIVERGED)

        if session.last_updated and now - session.last_updated > self._idle_timeout:
            signals.append(NewGameSignal.IDLE_TIMEOUT)

        if signals:
            return Classification(SessionDecision.START_NEW, tuple(signals))
        return Classification(SessionDecision.CONTINUE)

    def observe(
        self,
        state: BoardState,
        moves: Sequence[str],
        variant: str = "standard",
        page_game_id: str | None = None,
        classification: Classification | None = None,
    ) -> tuple[GameSession, bool]:
        """
        Apply the classification for a candidate position.

        A classification already computed for this candidate by classify()
        may be passed in; otherwise it is computed here.

        Returns:
            (current session, True if it was just created)
        """
        now = self._clock()
        if classification is None:
            classification = self.classify(state, moves, self._session, page_game_id, now)

        if classification.is_new_game:
            reasons = ", ".join(signal.name for signal in classification.signals)
            logger.info(f"New game detected ({reasons})")
            return self.start_new(state, moves, variant, page_game_id), True

        session = self._session
        session.moves = list(moves)
        session.variant = variant
        session.last_updated = now
        if page_game_id is not None:
            session.page_game_id = page_game_id
        self._save()
        return session, False

    def start_new(
        self,
        state: BoardState,
        moves: Sequence[str] = (),
        variant: str = "standard",
        page_game_id: str | None = None,
    ) -> GameSession:
        """Start a fresh session with the given position as its start."""
        now = self._clock()
        self._session = GameSession(
            session_id=uuid.uuid4().hex[:12],
            start_state=state,
            moves=list(moves),
            variant=variant,
            page_game_id=page_game_id,
            created_at=now,
            last_updated=now,
        )
        logger.info(f"Started game session {self._session.session_id} ({variant})")
        self._save()
        return self._session

    def _save(self) -> None:
        if self._store is not None and self._session is not None:
            self._store.save(self._session)
