"""
Board geometry and the perspective transform.

Extraction maps visual cells to absolute squares and the overlay maps
absolute squares back to visual cells. Both go through the two functions
below so the directions can never disagree.
"""

import math
from dataclasses import dataclass

from boardsync.core.fen import FENValidationError, parse_square, square_name
from boardsync.core.models import BoundingBox


def square_to_visual(
    file_idx: int,
    rank_idx: int,
    black_at_bottom: bool,
    size: int = 8,
) -> tuple[int, int]:
    """Absolute (file, rank) -> visual (column, row), row 0 at the top."""
    if black_at_bottom:
        return size - 1 - file_idx, rank_idx
    return file_idx, size - 1 - rank_idx


def visual_to_square(
    col: int,
    row: int,
    black_at_bottom: bool,
    size: int = 8,
) -> tuple[int, int]:
    """Visual (column, row) -> absolute (file, rank). Inverse of square_to_visual."""
    if black_at_bottom:
        return size - 1 - col, row
    return col, size - 1 - row


@dataclass(frozen=True)
class BoardGeometry:
    """Pixel layout of a rendered board, relative to its top-left corner."""
    width: float
    height: float
    size: int = 8

    @classmethod
    def from_box(cls, box: BoundingBox, size: int = 8) -> "BoardGeometry":
        return cls(width=box.width, height=box.height, size=size)

    @property
    def square_size(self) -> float:
        return min(self.width, self.height) / self.size

    def square_center(self, square: str, black_at_bottom: bool) -> tuple[float, float]:
        file_idx, rank_idx = parse_square(square)
        if file_idx >= self.size or rank_idx >= self.size:
            raise FENValidationError(f"Square {square} is off a {self.size}x{self.size} board", field="square")
        col, row = square_to_visual(file_idx, rank_idx, black_at_bottom, self.size)
        return (col + 0.5) * self.square_size, (row + 0.5) * self.square_size

    def square_at(self, x: float, y: float, black_at_bottom: bool) -> str | None:
        """
        Square under a piece whose top-left corner is at (x, y).

        The cell is taken from the piece centre so sub-pixel jitter in the
        offsets does not push a piece into its neighbour.
        """
        sq = self.square_size
        if sq <= 0:
            return None
        col = math.floor((x + sq / 2) / sq)
        row = math.floor((y + sq / 2) / sq)
        if not (0 <= col < self.size and 0 <= row < self.size):
            return None
        file_idx, rank_idx = visual_to_square(col, row, black_at_bottom, self.size)
        return square_name(file_idx, rank_idx)
