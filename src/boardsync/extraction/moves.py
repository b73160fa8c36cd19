"""
Move-list reading.

Reads the SAN moves shown next to the board and works out which entry is
highlighted. The highlighted entry tells us whose turn it is even when the
user is browsing back through the game; without one, parity of the move
count decides.
"""

import logging
from dataclasses import dataclass

from bs4 import Tag

from boardsync.core.models import LayoutDescriptor, LayoutPatterns
from boardsync.page.snapshot import PageSnapshot


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MoveListReading:
    """The move list as shown on the page."""
    moves: tuple[str, ...] = ()
    selected_index: int | None = None    # Index into moves of the highlighted entry
    side_to_move: str | None = None      # Implied by the highlight, if any

    @property
    def plies(self) -> int:
        """Half-moves played up to the displayed position."""
        if self.selected_index is not None:
            return self.selected_index + 1
        return len(self.moves)

    @property
    def parity_side_to_move(self) -> str:
        return "w" if self.plies % 2 == 0 else "b"


def _move_text(node: Tag, patterns: LayoutPatterns) -> str:
    if patterns.move_text_selector:
        inner = node.select_one(patterns.move_text_selector)
        if inner is not None:
            node = inner

    # Piece letters may be drawn as figurine icons
    figurine = node.select_one("[data-figurine]")
    text = PageSnapshot.text_of(node)
    if figurine is not None and text and not text[0].isupper():
        text = f"{figurine['data-figurine']}{text}"
    return text


def _side_from_highlight(
    snapshot: PageSnapshot,
    node: Tag,
    patterns: LayoutPatterns,
    index: int,
) -> str:
    # A highlighted White move means Black is to play, and vice versa
    classes = PageSnapshot.classes_of(node)
    if patterns.white_move_class and patterns.white_move_class in classes:
        return "b"
    if patterns.black_move_class and patterns.black_move_class in classes:
        return "w"

    if patterns.move_row_selector and patterns.move_node_selector:
        row = snapshot.closest(node, patterns.move_row_selector)
        if row is not None:
            row_cells = [
                cell for cell in snapshot.select(patterns.move_node_selector, row)
                if _move_text(cell, patterns)
            ]
            for position, cell in enumerate(row_cells):
                if cell is node:
                    return "b" if position == 0 else "w"

    return "b" if index % 2 == 0 else "w"


def read_move_list(descriptor: LayoutDescriptor) -> MoveListReading:
    """Read moves and the highlighted entry from a located layout."""
    patterns = descriptor.patterns
    snapshot: PageSnapshot = descriptor.snapshot
    root = descriptor.move_list_root
    if patterns is None or snapshot is None or root is None or not patterns.move_node_selector:
        return MoveListReading()

    nodes: list[Tag] = []
    moves: list[str] = []
    for node in snapshot.select(patterns.move_node_selector, root):
        text = _move_text(node, patterns)
        if text:
            nodes.append(node)
            moves.append(text)

    selected_index = None
    side_to_move = None
    if patterns.selected_move_selector:
        marker = snapshot.select_one(patterns.selected_move_selector, root)
        if marker is not None:
            node = snapshot.closest(marker, patterns.move_node_selector)
            for index, candidate in enumerate(nodes):
                if candidate is node:
                    selected_index = index
                    side_to_move = _side_from_highlight(snapshot, candidate, patterns, index)
                    break
            else:
                logger.debug("Highlighted move is not a recognised move entry")

    return MoveListReading(tuple(moves), selected_index, side_to_move)
