"""
Sync orchestration and state management.

This module coordinates layout detection, perspective resolution, state
extraction, session tracking and transmission to the backend. It owns all
mutable pipeline state (last transmitted snapshot, manual overrides, the
current analysis batch) and handles debouncing, re-entrancy and retry.
"""

import asyncio
import logging
from collections.abc import Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Iterator

from boardsync.core.errors import ExtractionFailure
from boardsync.core.interfaces import PageSource, StateTransport, Subscription, SyncObserver
from boardsync.core.models import (
    AnalysisShape,
    BoardState,
    ConnectionStatus,
    GameSession,
    LayoutDescriptor,
    OverlayScene,
    PerspectiveEstimate,
    TransmitResult,
)
from boardsync.extraction.crosscheck import complete_from_moves
from boardsync.extraction.extractor import StateExtractor
from boardsync.extraction.moves import MoveListReading
from boardsync.extraction.perspective import PerspectiveResolver
from boardsync.extraction.variants import STANDARD, SUPPORTED_VARIANTS, detect_variant
from boardsync.integrations.channel import WebSocketChannel
from boardsync.layouts.registry import LayoutRegistry
from boardsync.overlay.protocol import parse_analysis_message
from boardsync.overlay.renderer import OverlayRenderer
from boardsync.session.tracker import GameSessionTracker, game_id_from_url


logger = logging.getLogger(__name__)

# Watched while no board is on the page, so its appearance is noticed
PAGE_ROOT_SELECTORS = ("body",)


class CycleOutcome(Enum):
    """What a sync cycle ended up doing."""
    UNKNOWN_LAYOUT = auto()        # No board on the page
    PAGE_ERROR = auto()            # The page could not be read
    EXTRACTION_FAILED = auto()     # Board found, pieces unreadable
    UNCHANGED = auto()             # Same as the last transmitted snapshot
    TRANSMITTED = auto()           # Sent successfully
    TRANSMIT_FAILED = auto()       # Send failed; will resend next cycle


@dataclass(frozen=True)
class SentSnapshot:
    """The (state, moves, variant) triple last delivered to the backend."""
    state: BoardState
    moves: tuple[str, ...]
    variant: str


@dataclass
class SyncContext:
    """Current pipeline context data."""
    # Timing
    debounce_ms: int = 150
    retry_ms: int = 750
    max_retries: int = 1

    # Page state
    descriptor: LayoutDescriptor | None = None
    perspective: PerspectiveEstimate | None = None
    last_state: BoardState | None = None
    last_moves: tuple[str, ...] = ()
    last_variant: str = STANDARD

    # Backend state
    last_sent: SentSnapshot | None = None
    last_result: TransmitResult | None = None

    # Manual overrides
    side_override: str | None = None
    variant_override: str | None = None

    # Overlay
    analysis: tuple[AnalysisShape, ...] = field(default_factory=tuple)

    # Counters
    cycles: int = 0


@dataclass(frozen=True)
class _Observation:
    descriptor: LayoutDescriptor
    estimate: PerspectiveEstimate
    state: BoardState
    moves: tuple[str, ...]
    variant: str
    session: GameSession
    created: bool


class SyncManager:
    """
    Orchestrates the Page -> BoardState -> Backend workflow.

    Responsibilities:
    - Subscribe to the board and move list of the current layout
    - Debounce change notifications into sync cycles
    - Send only when the (state, moves, variant) triple changes
    - Announce new games
    - Render inbound analysis batches on the overlay
    - Notify observers of what happened
    """

    def __init__(
        self,
        page: PageSource,
        transport: StateTransport,
        registry: LayoutRegistry | None = None,
        resolver: PerspectiveResolver | None = None,
        extractor: StateExtractor | None = None,
        tracker: GameSessionTracker | None = None,
        renderer: OverlayRenderer | None = None,
        channel: WebSocketChannel | None = None,
        context: SyncContext | None = None,
    ) -> None:
        self._page = page
        self._transport = transport
        self._registry = registry if registry is not None else LayoutRegistry()
        self._resolver = resolver if resolver is not None else PerspectiveResolver()
        self._extractor = extractor if extractor is not None else StateExtractor()
        self._tracker = tracker if tracker is not None else GameSessionTracker()
        self._renderer = renderer
        self._channel = channel

        self._context = context if context is not None else SyncContext()
        self._observers: list[SyncObserver] = []

        self._cycle_lock = asyncio.Lock()
        self._debounce_task: asyncio.Task | None = None
        self._background_tasks: set[asyncio.Task] = set()
        self._subscription: Subscription | None = None
        self._handling = False
        self._retries_left = self._context.max_retries

    @property
    def context(self) -> SyncContext:
        return self._context

    @property
    def session(self) -> GameSession | None:
        return self._tracker.session

    @property
    def resolver(self) -> PerspectiveResolver:
        return self._resolver

    @property
    def has_pending_cycle(self) -> bool:
        return self._debounce_task is not None and not self._debounce_task.done()

    @property
    def is_cycling(self) -> bool:
        return self._cycle_lock.locked()

    # Observer pattern

    def add_observer(self, observer: SyncObserver) -> None:
        """Add an observer for pipeline events."""
        if observer not in self._observers:
            self._observers.append(observer)

    def remove_observer(self, observer: SyncObserver) -> None:
        """Remove an observer."""
        if observer in self._observers:
            self._observers.remove(observer)

    def _notify_state_transmitted(self, state: BoardState, result: TransmitResult) -> None:
        for observer in self._observers:
            try:
                observer.on_state_transmitted(state, result)
            except Exception as e:
                logger.error(f"Observer error: {e}")

    def _notify_new_game(self, session: GameSession) -> None:
        for observer in self._observers:
            try:
                observer.on_new_game(session)
            except Exception as e:
                logger.error(f"Observer error: {e}")

    def _notify_connection_status(self, status: ConnectionStatus) -> None:
        for observer in self._observers:
            try:
                observer.on_connection_status_changed(status)
            except Exception as e:
                logger.error(f"Observer error: {e}")

    def _notify_error(self, message: str) -> None:
        for observer in self._observers:
            try:
                observer.on_error(message)
            except Exception as e:
                logger.error(f"Observer error: {e}")

    # Lifecycle

    async def start(self) -> CycleOutcome:
        """Connect the channel and run the first cycle."""
        if self._channel is not None:
            self._channel.start(self.on_backend_message, self.on_channel_status)
        return await self.run_cycle()

    async def stop(self) -> None:
        if self._debounce_task is not None:
            self._debounce_task.cancel()
            self._debounce_task = None
        for task in list(self._background_tasks):
            task.cancel()
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None
        if self._channel is not None:
            await self._channel.stop()

    # Change notifications

    @contextmanager
    def _guarded(self) -> Iterator[None]:
        self._handling = True
        try:
            yield
        finally:
            self._handling = False

    def on_page_changed(self) -> None:
        """
        Change-notification callback.

        Notifications raised while the pipeline itself is reading or writing
        the page are dropped; all others re-arm the debounce timer.
        """
        if self._handling:
            logger.debug("Ignoring change notification raised by our own page access")
            return
        self._retries_left = self._context.max_retries
        self._schedule_cycle(self._context.debounce_ms)

    def _schedule_cycle(self, delay_ms: int) -> None:
        """Schedule a cycle after delay_ms, replacing any pending one."""
        if self._debounce_task is not None:
            self._debounce_task.cancel()

        async def debounced_cycle() -> None:
            await asyncio.sleep(delay_ms / 1000)
            # Past the window: new notifications start a fresh timer
            self._debounce_task = None
            await self.run_cycle()

        self._debounce_task = asyncio.create_task(debounced_cycle())

    def _spawn(self, coro: Any) -> None:
        task = asyncio.create_task(coro)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    # Sync cycle

    async def run_cycle(self) -> CycleOutcome:
        """Detect, extract, classify, diff and transmit once."""
        async with self._cycle_lock:
            self._context.cycles += 1
            with self._guarded():
                observation = self._observe()

            if isinstance(observation, CycleOutcome):
                return observation
            return await self._publish(observation)

    def _observe(self) -> _Observation | CycleOutcome:
        try:
            snapshot = self._page.snapshot()
        except Exception as e:
            logger.error(f"Page snapshot failed: {e}")
            self._notify_error(f"Could not read page: {e}")
            return CycleOutcome.PAGE_ERROR

        descriptor = self._registry.detect(snapshot)
        self._track_layout(descriptor)
        if not descriptor.is_known:
            return CycleOutcome.UNKNOWN_LAYOUT

        reading = self._extractor.read_move_list(descriptor)
        estimate = self._resolver.resolve(descriptor)
        state = self._extract(descriptor, estimate, reading)
        if state is None:
            return CycleOutcome.EXTRACTION_FAILED
        self._retries_left = self._context.max_retries

        previous = self._tracker.session
        page_game_id = game_id_from_url(descriptor.url)
        classification = self._tracker.classify(state, reading.moves, previous, page_game_id)

        if classification.is_new_game:
            # The session start must be read with the new game's perspective
            self._resolver.invalidate()
            fresh = self._resolver.resolve(descriptor)
            if fresh != estimate:
                estimate = fresh
                state = self._extract(descriptor, estimate, reading)
                if state is None:
                    return CycleOutcome.EXTRACTION_FAILED

        variant = self._context.variant_override or detect_variant(
            descriptor,
            state,
            reading.moves,
            default=previous.variant if previous is not None else STANDARD,
        )

        session, created = self._tracker.observe(
            state,
            reading.moves,
            variant,
            page_game_id=page_game_id,
            classification=classification,
        )

        state = complete_from_moves(state, reading.moves[:reading.plies], variant)

        self._context.perspective = estimate
        self._context.last_state = state
        self._context.last_moves = reading.moves
        self._context.last_variant = variant

        return _Observation(descriptor, estimate, state, reading.moves, variant, session, created)

    def _extract(
        self,
        descriptor: LayoutDescriptor,
        estimate: PerspectiveEstimate,
        reading: MoveListReading,
    ) -> BoardState | None:
        try:
            return self._extractor.extract(descriptor, estimate, self._context.side_override, reading)
        except ExtractionFailure as e:
            logger.warning(f"Extraction failed: {e}")
            self._notify_error(f"Could not read board: {e}")
            if self._retries_left > 0:
                self._retries_left -= 1
                self._schedule_cycle(self._context.retry_ms)
            return None

    def _track_layout(self, descriptor: LayoutDescriptor) -> None:
        """Follow layout changes and re-subscribe to the right roots."""
        previous = self._context.descriptor
        self._context.descriptor = descriptor
        if previous is not None and previous.layout_key == descriptor.layout_key and self._subscription is not None:
            return

        if previous is None or previous.kind != descriptor.kind:
            old = previous.kind.name if previous is not None else "NONE"
            logger.info(f"Board layout: {old} -> {descriptor.kind.name}")

        if descriptor.is_known and descriptor.patterns is not None:
            selectors: Sequence[str] = (
                descriptor.patterns.board_selector,
                descriptor.patterns.move_list_selector,
            )
        else:
            selectors = PAGE_ROOT_SELECTORS

        if self._subscription is not None:
            self._subscription.cancel()
        self._subscription = self._page.subscribe(selectors, self.on_page_changed)

    async def _publish(self, observation: _Observation) -> CycleOutcome:
        if observation.created:
            await self._announce(observation.session)

        snapshot = SentSnapshot(observation.state, observation.moves, observation.variant)
        if snapshot == self._context.last_sent:
            logger.debug("Board unchanged since last send")
            return CycleOutcome.UNCHANGED

        result = await self._transport.send_state(
            observation.state,
            observation.moves,
            observation.variant,
            observation.session,
            observation.estimate.black_at_bottom,
        )
        self._context.last_result = result
        self._notify_state_transmitted(observation.state, result)

        if not result.sent:
            self._notify_error(f"Failed to send board state: {result.error}")
            return CycleOutcome.TRANSMIT_FAILED

        self._context.last_sent = snapshot
        logger.info(f"Sent {observation.state.fen()} via {result.via}")
        return CycleOutcome.TRANSMITTED

    async def _announce(self, session: GameSession) -> TransmitResult:
        result = await self._transport.send_new_game(session)
        if not result.sent:
            logger.warning(f"New game {session.session_id} not delivered: {result.error}")
        self._notify_new_game(session)
        return result

    # Manual controls

    def recalculate(self) -> None:
        """Forget cached perspective, overrides and the last snapshot, then resync."""
        logger.info("Manual recalculation")
        self._resolver.invalidate()
        self._context.side_override = None
        self._context.last_sent = None
        self._schedule_cycle(0)

    def set_side_to_move(self, color: str | None) -> None:
        """Force the active color ("w"/"b"), or None to read it from the page."""
        if color not in ("w", "b", None):
            raise ValueError(f"Side to move must be 'w', 'b' or None, got {color!r}")
        logger.info(f"Side to move override: {color or 'off'}")
        self._context.side_override = color
        self._resolver.invalidate()
        self._schedule_cycle(0)

    def set_variant(self, variant: str | None) -> None:
        """Lock the variant, or None to detect it from the page."""
        if variant is not None and variant not in SUPPORTED_VARIANTS:
            raise ValueError(f"Unsupported variant: {variant!r}")
        logger.info(f"Variant override: {variant or 'off'}")
        self._context.variant_override = variant
        self._schedule_cycle(0)

    async def start_new_game(self) -> GameSession | None:
        """Start a new session from the last extracted position."""
        if self._context.last_state is None:
            await self.run_cycle()
        state = self._context.last_state
        if state is None:
            logger.warning("Cannot start a new game: no board state available")
            return None

        descriptor = self._context.descriptor
        session = self._tracker.start_new(
            state,
            self._context.last_moves,
            self._context.last_variant,
            game_id_from_url(descriptor.url) if descriptor is not None else None,
        )
        self._resolver.invalidate()
        self._context.last_sent = None
        await self._announce(session)
        self._schedule_cycle(0)
        return session

    def reconnect(self) -> None:
        if self._channel is not None:
            self._channel.reconnect()

    # Backend events

    def on_channel_status(self, status: ConnectionStatus) -> None:
        self._notify_connection_status(status)
        if status == ConnectionStatus.CONNECTED:
            self._spawn(self._resync_after_connect())

    async def _resync_after_connect(self) -> None:
        session = self._tracker.session
        if session is not None:
            await self._announce(session)
        self._context.last_sent = None
        self._schedule_cycle(0)

    def on_backend_message(self, message: dict[str, Any]) -> None:
        """Handle a message pushed by the backend."""
        shapes = parse_analysis_message(message)
        if shapes is None:
            logger.debug(f"Ignoring backend message of type {message.get('type')!r}")
            return
        self._context.analysis = tuple(shapes)
        self.render_analysis(shapes)

    def render_analysis(self, shapes: Sequence[AnalysisShape]) -> OverlayScene | None:
        """Replace the overlay with a new batch of shapes."""
        if self._renderer is None:
            return None

        with self._guarded():
            try:
                descriptor = self._registry.detect(self._page.snapshot())
                return self._renderer.render(descriptor, shapes)
            except Exception as e:
                logger.error(f"Overlay render failed: {e}")
                self._notify_error(f"Could not draw analysis: {e}")
                return None
