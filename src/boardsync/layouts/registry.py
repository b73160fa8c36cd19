"""
Layout detection.

Adapters are tried in a fixed priority order and the first complete match
wins. The result is always a LayoutDescriptor; UNKNOWN is returned as a
sentinel when nothing matches, never an exception.
"""

import logging
from collections.abc import Sequence

from boardsync.core.errors import LayoutMismatch
from boardsync.core.interfaces import LayoutAdapter
from boardsync.core.models import LayoutDescriptor
from boardsync.layouts.live_board import LiveBoardLayout
from boardsync.layouts.wc_board import WcBoardLayout
from boardsync.page.snapshot import PageSnapshot


logger = logging.getLogger(__name__)


def default_adapters() -> list[LayoutAdapter]:
    """Adapters in detection priority order."""
    return [WcBoardLayout(), LiveBoardLayout()]


class LayoutRegistry:
    """Detects which known layout, if any, the page currently renders."""

    def __init__(self, adapters: Sequence[LayoutAdapter] | None = None) -> None:
        self._adapters = list(adapters) if adapters is not None else default_adapters()
        self._last_mismatch: str | None = None

    @property
    def adapters(self) -> list[LayoutAdapter]:
        return list(self._adapters)

    def detect(self, snapshot: PageSnapshot) -> LayoutDescriptor:
        for adapter in self._adapters:
            try:
                nodes = adapter.locate(snapshot)
            except LayoutMismatch as e:
                self._log_mismatch(str(e))
                continue

            if nodes is None:
                continue

            self._last_mismatch = None
            return LayoutDescriptor(
                kind=adapter.kind,
                layout_key=f"{adapter.kind.name}:{snapshot.url}",
                patterns=adapter.patterns,
                snapshot=snapshot,
                url=snapshot.url,
                **nodes,
            )

        logger.debug("No known board layout on page")
        return LayoutDescriptor.unknown(snapshot.url)

    def geometry_selectors(self) -> list[str]:
        """Selectors whose on-screen rectangles extraction and the overlay need."""
        selectors: list[str] = []
        for adapter in self._adapters:
            patterns = adapter.patterns
            selectors.append(patterns.board_selector)
            if patterns.coord_label_selector:
                selectors.append(patterns.coord_label_selector)
        return selectors

    def _log_mismatch(self, message: str) -> None:
        # Pages sit in a partial state for many cycles while loading
        if message != self._last_mismatch:
            logger.warning(f"Partial layout match: {message}")
            self._last_mismatch = message
        else:
            logger.debug(f"Partial layout match: {message}")
