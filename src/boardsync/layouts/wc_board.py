"""
Layout adapter for the custom-element board.

Pieces carry their absolute square as a ``square-FR`` class (file and rank
digits, 1-based), so extraction never depends on orientation. Orientation is
exposed explicitly through the board's ``orientation`` attribute or a
``flipped`` class.
"""

from boardsync.core.models import LayoutKind, LayoutPatterns
from boardsync.layouts.base import BaseLayout


WC_BOARD_PATTERNS = LayoutPatterns(
    board_selector="wc-chess-board",
    move_list_selector="wc-simple-move-list, .move-list-wrapper",
    piece_selector='.piece[class*="square-"]',
    square_encoding="class",
    coord_label_selector="svg.coordinates text",
    move_node_selector=".node",
    move_text_selector=".node-highlight-content",
    move_row_selector=".main-line-row",
    selected_move_selector=".node.selected, .node .selected",
    white_move_class="white-move",
    black_move_class="black-move",
    explicit_orientation=True,
)


class WcBoardLayout(BaseLayout):
    kind = LayoutKind.WC_BOARD
    patterns = WC_BOARD_PATTERNS

    container_selector = ".board-layout-main, #board-layout-main, .analysis-diagram-component"
    player_top_selector = "#board-layout-player-top, .player-container.top"
    player_bottom_selector = "#board-layout-player-bottom, .player-container.bottom"
