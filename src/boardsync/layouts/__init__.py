"""Page layout adapters and detection."""

from boardsync.layouts.live_board import LIVE_BOARD_PATTERNS, LiveBoardLayout
from boardsync.layouts.registry import LayoutRegistry, default_adapters
from boardsync.layouts.wc_board import WC_BOARD_PATTERNS, WcBoardLayout

__all__ = [
    "LayoutRegistry",
    "default_adapters",
    "WcBoardLayout",
    "LiveBoardLayout",
    "WC_BOARD_PATTERNS",
    "LIVE_BOARD_PATTERNS",
]
