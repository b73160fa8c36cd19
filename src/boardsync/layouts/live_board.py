"""
Layout adapter for the layered board used by the live/variants client.

Pieces are positioned with ``transform: translate(Xpx, Ypx)`` inside the
layers element, so their square depends on which side is at the bottom.
There is no orientation attribute; the coordinate labels are the only
reliable hint.
"""

from boardsync.core.models import LayoutKind, LayoutPatterns
from boardsync.layouts.base import BaseLayout


LIVE_BOARD_PATTERNS = LayoutPatterns(
    board_selector=".TheBoard-layers",
    move_list_selector=(
        "#boardPanel .moves-moves-list .moves-table, "
        ".moves-moves-list div.moves-table, "
        ".move-list-wrapper"
    ),
    piece_selector='.TheBoard-pieces .piece[data-piece][style*="translate"]',
    square_encoding="translate",
    coord_label_selector=".Coordinates-component text",
    move_node_selector=".moves-table-cell.moves-move",
    move_row_selector=".moves-table-row",
    selected_move_selector=".moves-pointer.moves-hl-move",
    explicit_orientation=False,
)


class LiveBoardLayout(BaseLayout):
    kind = LayoutKind.LIVE_BOARD
    patterns = LIVE_BOARD_PATTERNS

    container_selector = ".container-four-board-container, .board-layout-main, .live-game-container"
    player_top_selector = ".playerbox-top"
    player_bottom_selector = ".playerbox-bottom"
    players_inside_board = True
