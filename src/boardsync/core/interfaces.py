"""
Protocol definitions for pluggable backends.

This module defines the structural interfaces (Protocols) that let the page
source, layout adapters, backend transport and overlay surface be swapped
without changing the sync pipeline.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from boardsync.core.models import (
    ArrowGraphic,
    BoardState,
    BoundingBox,
    ConnectionStatus,
    GameSession,
    LabelGraphic,
    LayoutKind,
    LayoutPatterns,
    TransmitResult,
)

if TYPE_CHECKING:
    from boardsync.page.snapshot import PageSnapshot


@runtime_checkable
class Subscription(Protocol):
    """Handle returned by PageSource.subscribe."""

    def cancel(self) -> None:
        """Stop delivering notifications. Safe to call twice."""
        ...


@runtime_checkable
class PageSource(Protocol):
    """
    Protocol for the observed page (live browser tab, saved page, ...).

    Callbacks may fire synchronously from inside the source, including as a
    side effect of the pipeline's own overlay writes.
    """

    def snapshot(self) -> PageSnapshot:
        """Parse the page as it is right now."""
        ...

    def subscribe(
        self,
        selectors: Sequence[str],
        callback: Callable[[], None],
    ) -> Subscription:
        """
        Watch the subtrees matched by the selectors.

        The callback receives no arguments; it only signals that something
        under one of the roots changed.
        """
        ...


@runtime_checkable
class LayoutAdapter(Protocol):
    """
    Protocol for one page layout variant.

    locate() returns the located nodes as a dict with the keys board_root,
    move_list_root, player_top, player_bottom and container; None when the
    board itself is absent. A board without its other required nodes raises
    LayoutMismatch.
    """

    @property
    def kind(self) -> LayoutKind:
        ...

    @property
    def patterns(self) -> LayoutPatterns:
        ...

    def locate(self, snapshot: PageSnapshot) -> dict[str, Any] | None:
        ...


@runtime_checkable
class StateTransport(Protocol):
    """Protocol for delivering state to the local backend."""

    @property
    def connection_status(self) -> ConnectionStatus:
        ...

    async def send_state(
        self,
        state: BoardState,
        moves: Sequence[str],
        variant: str,
        session: GameSession | None,
        black_at_bottom: bool = False,
    ) -> TransmitResult:
        """Send one board update. Never raises; failures are in the result."""
        ...

    async def send_new_game(self, session: GameSession) -> TransmitResult:
        """Announce a new game session."""
        ...


@runtime_checkable
class OverlaySurface(Protocol):
    """Protocol for the drawing layer mounted over the board."""

    def mount(self, board_box: BoundingBox) -> None:
        """Create the layer if needed and size/position it over the board."""
        ...

    def clear(self) -> None:
        """Remove everything previously drawn."""
        ...

    def draw_arrow(self, arrow: ArrowGraphic) -> None:
        ...

    def draw_label(self, label: LabelGraphic) -> None:
        ...


class SyncObserver(Protocol):
    """
    Observer protocol for pipeline events.

    A UI shell or logger implements this to follow what the pipeline does.
    """

    def on_state_transmitted(self, state: BoardState, result: TransmitResult) -> None:
        """Called after each attempted board update."""
        ...

    def on_new_game(self, session: GameSession) -> None:
        """Called when a new game session starts."""
        ...

    def on_connection_status_changed(self, status: ConnectionStatus) -> None:
        """Called when the backend channel connects or drops."""
        ...

    def on_error(self, message: str) -> None:
        """Called when a cycle fails."""
        ...
