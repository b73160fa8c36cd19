"""
Shared node-location logic for layout adapters.

A layout matches only when every required node is present: the board root,
the move-list root and both player indicators. A board root without the
rest is a partial match, reported as LayoutMismatch so the registry can log
exactly what was missing and move on to the next adapter.
"""

from typing import Any, ClassVar

from bs4 import Tag

from boardsync.core.errors import LayoutMismatch
from boardsync.core.models import LayoutKind, LayoutPatterns
from boardsync.page.snapshot import PageSnapshot


class BaseLayout:
    """Locates a layout's nodes from class-level selectors."""

    kind: ClassVar[LayoutKind]
    patterns: ClassVar[LayoutPatterns]

    container_selector: ClassVar[str]
    player_top_selector: ClassVar[str]
    player_bottom_selector: ClassVar[str]
    players_inside_board: ClassVar[bool] = False

    def locate(self, snapshot: PageSnapshot) -> dict[str, Any] | None:
        board = snapshot.select_one(self.patterns.board_selector)
        if board is None:
            return None

        player_scope: Tag | None = board if self.players_inside_board else None
        nodes = {
            "board_root": board,
            "move_list_root": snapshot.select_one(self.patterns.move_list_selector),
            "player_top": snapshot.select_one(self.player_top_selector, player_scope),
            "player_bottom": snapshot.select_one(self.player_bottom_selector, player_scope),
        }

        missing = [name for name, node in nodes.items() if node is None]
        if missing:
            raise LayoutMismatch(self.kind.name, missing)

        nodes["container"] = snapshot.closest(board, self.container_selector)
        return nodes

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"
