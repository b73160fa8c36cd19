"""
Board state extraction.

Turns a located layout plus a perspective estimate into a canonical
BoardState. Two square encodings are supported:

- "class": each piece carries ``square-FR`` with absolute 1-based file and
  rank digits. Orientation plays no part.
- "translate": each piece is offset in pixels from the board's top-left
  corner; the cell under the piece is mapped to a square through the
  perspective transform.

Piece identity comes from ``data-piece``/``data-color`` attributes or from a
two-letter color+kind class such as ``wp``.
"""

import logging
import re
from collections.abc import Callable

from bs4 import Tag

from boardsync.core.errors import ExtractionFailure
from boardsync.core.fen import full_move_number, parse_square, square_name
from boardsync.core.geometry import BoardGeometry
from boardsync.core.models import (
    BoardState,
    LayoutDescriptor,
    PerspectiveEstimate,
    Piece,
)
from boardsync.extraction.moves import MoveListReading, read_move_list
from boardsync.page.snapshot import PageSnapshot


logger = logging.getLogger(__name__)

SQUARE_CLASS_RE = re.compile(r"^square-(\d)(\d)$")
PIECE_CLASS_RE = re.compile(r"^([wb])([pnbrqk])$")
TRANSLATE_RE = re.compile(r"translate\(\s*(-?\d+(?:\.\d+)?)px\s*,\s*(-?\d+(?:\.\d+)?)px\s*\)")

PIECE_KINDS = "pnbrqk"
COLOR_CODES = {"5": "w", "6": "b", "w": "w", "b": "b", "white": "w", "black": "b"}


def decode_piece(node: Tag) -> Piece | None:
    """Identify a piece element, or None if it carries no usable marker."""
    data_piece = str(node.get("data-piece") or "").strip()
    data_color = str(node.get("data-color") or "").strip().lower()

    if data_piece and data_color in COLOR_CODES:
        kind = data_piece[-1].lower()
        if kind in PIECE_KINDS:
            return Piece(COLOR_CODES[data_color], kind)

    # Secondary markers
    if len(data_piece) == 2:
        match = PIECE_CLASS_RE.match(data_piece.lower())
        if match:
            return Piece(match.group(1), match.group(2))

    for name in PageSnapshot.classes_of(node):
        match = PIECE_CLASS_RE.match(name)
        if match:
            return Piece(match.group(1), match.group(2))

    return None


def square_from_class(node: Tag, size: int = 8) -> str | None:
    for name in PageSnapshot.classes_of(node):
        match = SQUARE_CLASS_RE.match(name)
        if match:
            file_num, rank_num = int(match.group(1)), int(match.group(2))
            if 1 <= file_num <= size and 1 <= rank_num <= size:
                return square_name(file_num - 1, rank_num - 1)
    return None


def translate_offset(node: Tag) -> tuple[float, float] | None:
    match = TRANSLATE_RE.search(str(node.get("style") or ""))
    if match is None:
        return None
    return float(match.group(1)), float(match.group(2))


class StateExtractor:
    """Reads pieces, side to move and move number from a located layout."""

    def read_move_list(self, descriptor: LayoutDescriptor) -> MoveListReading:
        return read_move_list(descriptor)

    def extract(
        self,
        descriptor: LayoutDescriptor,
        estimate: PerspectiveEstimate,
        side_to_move: str | None = None,
        reading: MoveListReading | None = None,
    ) -> BoardState:
        """
        Extract the current board state.

        Args:
            descriptor: A known layout
            estimate: Perspective used for pixel-positioned pieces
            side_to_move: Manual override for the active color
            reading: Move list already read for this snapshot

        Raises:
            ExtractionFailure: Pieces were found but none could be placed
        """
        if not descriptor.is_known or descriptor.patterns is None:
            raise ExtractionFailure("no board layout located")

        patterns = descriptor.patterns
        size = patterns.board_size
        snapshot: PageSnapshot = descriptor.snapshot
        candidates = snapshot.select(patterns.piece_selector, descriptor.board_root)

        if patterns.square_encoding == "translate":
            locate = self._translate_locator(descriptor, estimate, size)
        else:
            def locate(node: Tag) -> str | None:
                return square_from_class(node, size)

        rows: list[list[Piece | None]] = [[None] * size for _ in range(size)]
        placed = 0
        for node in candidates:
            piece = decode_piece(node)
            square = locate(node) if piece is not None else None
            if piece is None or square is None:
                logger.debug(f"Skipping unplaceable piece element: {node.get('class')}")
                continue

            file_idx, rank_idx = parse_square(square)
            row = size - 1 - rank_idx
            existing = rows[row][file_idx]
            if existing is not None:
                logger.warning(
                    f"Square collision on {square}: keeping {existing.code}, dropping {piece.code}"
                )
                continue
            rows[row][file_idx] = piece
            placed += 1

        if candidates and placed == 0:
            raise ExtractionFailure(
                f"{len(candidates)} piece element(s) found but none could be placed",
                candidates=len(candidates),
            )
        if not candidates:
            logger.warning(f"No piece elements found on {descriptor.kind.name} board")

        if reading is None:
            reading = read_move_list(descriptor)

        active_color = side_to_move or reading.side_to_move or reading.parity_side_to_move
        return BoardState(
            grid=tuple(tuple(row) for row in rows),
            active_color=active_color,
            full_move_number=full_move_number(reading.plies, active_color),
        )

    def _translate_locator(
        self, descriptor: LayoutDescriptor, estimate: PerspectiveEstimate, size: int
    ) -> Callable[[Tag], str | None]:
        box = PageSnapshot.rect_of(descriptor.board_root)
        geometry = BoardGeometry.from_box(box, size) if box is not None else None
        if geometry is None or geometry.square_size <= 0:
            logger.warning("Board has no usable on-screen size; pieces cannot be placed")

        def locate(node: Tag) -> str | None:
            if geometry is None or geometry.square_size <= 0:
                return None
            offset = translate_offset(node)
            if offset is None:
                return None
            return geometry.square_at(offset[0], offset[1], estimate.black_at_bottom)

        return locate


