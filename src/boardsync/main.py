"""
BoardSync - Application entry point.

Attaches to a running Chromium (started with --remote-debugging-port),
wires the sync pipeline together and runs it until interrupted.
"""

import argparse
import asyncio
import logging
import os
import sys

from boardsync.core.models import ConnectionStatus, GameSession, BoardState, TransmitResult
from boardsync.extraction.perspective import PerspectiveResolver
from boardsync.extraction.variants import SUPPORTED_VARIANTS
from boardsync.integrations.backend_service import BackendTransport, get_config
from boardsync.integrations.channel import WebSocketChannel
from boardsync.layouts.registry import LayoutRegistry
from boardsync.orchestrator.manager import SyncContext, SyncManager
from boardsync.overlay.renderer import OverlayRenderer
from boardsync.overlay.surface import BrowserOverlaySurface
from boardsync.page.browser import DEFAULT_DEBUGGER_ADDRESS, BrowserPage, connect_to_browser
from boardsync.session.store import JsonSessionStore
from boardsync.session.tracker import GameSessionTracker


logger = logging.getLogger(__name__)


class ConsoleObserver:
    """Reports pipeline events in the log."""

    def on_state_transmitted(self, state: BoardState, result: TransmitResult) -> None:
        if result.sent:
            logger.debug(f"Board update delivered via {result.via}")

    def on_new_game(self, session: GameSession) -> None:
        logger.info(f"New game {session.session_id} ({session.variant})")

    def on_connection_status_changed(self, status: ConnectionStatus) -> None:
        logger.info(f"Backend channel: {status.name.lower()}")

    def on_error(self, message: str) -> None:
        logger.warning(message)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Mirror the chess board of a live browser tab to a local analysis backend"
    )
    parser.add_argument(
        "--debugger-address", default=DEFAULT_DEBUGGER_ADDRESS,
        help=f"Chromium remote debugging address (default: {DEFAULT_DEBUGGER_ADDRESS})"
    )
    parser.add_argument(
        "--debounce-ms", type=int, default=SyncContext.debounce_ms,
        help=f"Quiet period before a sync cycle (default: {SyncContext.debounce_ms})"
    )
    parser.add_argument(
        "--variant", choices=SUPPORTED_VARIANTS,
        help="Lock the variant instead of detecting it"
    )
    parser.add_argument(
        "--no-overlay", action="store_true",
        help="Do not draw analysis arrows on the page"
    )
    parser.add_argument(
        "--log-level", default=os.environ.get("BOARDSYNC_LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: $BOARDSYNC_LOG_LEVEL or INFO)"
    )
    return parser


async def run(args: argparse.Namespace) -> None:
    driver = connect_to_browser(args.debugger_address)
    registry = LayoutRegistry()
    page = BrowserPage(driver, rect_selectors=registry.geometry_selectors())

    config = get_config()
    channel = WebSocketChannel(config.ws_url, reconnect_delay=config.reconnect_delay, timeout=config.timeout)
    transport = BackendTransport(config, channel)

    resolver = PerspectiveResolver()
    renderer = None if args.no_overlay else OverlayRenderer(BrowserOverlaySurface(driver), resolver)

    manager = SyncManager(
        page,
        transport,
        registry=registry,
        resolver=resolver,
        tracker=GameSessionTracker(JsonSessionStore()),
        renderer=renderer,
        channel=channel,
        context=SyncContext(debounce_ms=args.debounce_ms, variant_override=args.variant),
    )
    manager.add_observer(ConsoleObserver())

    await manager.start()
    page.start()
    logger.info("Watching for board changes (Ctrl+C to stop)")
    try:
        await asyncio.Event().wait()
    finally:
        await page.stop()
        await manager.stop()


def main() -> None:
    """Application entry point."""
    args = build_parser().parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )

    try:
        asyncio.run(run(args))
    except KeyboardInterrupt:
        logger.info("Stopped")
        sys.exit(0)


if __name__ == "__main__":
    main()
