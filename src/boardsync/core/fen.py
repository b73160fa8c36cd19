"""
FEN (Forsyth-Edwards Notation) and square utilities.

This module provides the square naming, piece-placement encoding and
position-comparison helpers shared by extraction, session tracking and the
overlay. Positions are passed around either as FEN strings or as piece maps
(square -> piece code, e.g. {"e1": "wK"}).
"""

from typing import Mapping, Sequence


class FENValidationError(Exception):
    """Raised when FEN validation fails."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field
        self.message = message


# Starting position FEN
STARTING_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"
STARTING_PLACEMENT = STARTING_FEN.split()[0]

# Files in algebraic notation
FILES = "abcdefghijklmnop"

# Back-rank squares that identify the standard setup
KEY_START_SQUARES: dict[str, str] = {
    "a1": "wR", "e1": "wK", "a8": "bR", "e8": "bK",
    "b1": "wN", "g1": "wN", "b8": "bN", "g8": "bN",
}
KEY_START_THRESHOLD = 6


def square_name(file_idx: int, rank_idx: int) -> str:
    """Name a square from 0-based file and rank indices."""
    return f"{FILES[file_idx]}{rank_idx + 1}"


def parse_square(square: str) -> tuple[int, int]:
    """
    Split a square name into 0-based (file, rank) indices.

    Raises:
        FENValidationError: If the name is not a board square
    """
    if len(square) < 2 or square[0] not in FILES or not square[1:].isdigit():
        raise FENValidationError(f"Invalid square: '{square}'", field="square")
    rank_idx = int(square[1:]) - 1
    if rank_idx < 0:
        raise FENValidationError(f"Invalid square: '{square}'", field="square")
    return FILES.index(square[0]), rank_idx


def grid_to_placement(rows: Sequence[Sequence[str | None]]) -> str:
    """
    Encode rows of piece symbols (highest rank first) as a placement field.
    """
    ranks = []

    for row in rows:
        rank_str = ""
        empty_count = 0

        for symbol in row:
            if symbol:
                if empty_count > 0:
                    rank_str += str(empty_count)
                    empty_count = 0
                rank_str += symbol
            else:
                empty_count += 1

        if empty_count > 0:
            rank_str += str(empty_count)

        ranks.append(rank_str)

    return "/".join(ranks)


def full_move_number(plies: int, active_color: str) -> int:
    """
    FEN full-move number after the given count of half-moves.

    N half-moves played gives N // 2 + 1 with White to move and
    (N + 1) // 2 with Black to move, so 0 -> 1, 1 -> 1, 2 -> 2.
    """
    plies = max(0, plies)
    if active_color == "b":
        return max(1, (plies + 1) // 2)
    return plies // 2 + 1


def fen_to_piece_map(fen: str) -> dict[str, str]:
    """
    Convert a FEN string to a piece map.

    Args:
        fen: A FEN string (only the piece placement field is used)

    Returns:
        A dict mapping square names to piece codes (e.g., {"e1": "wK", "e8": "bK"})
    """
    placement = fen.split()[0]
    piece_map: dict[str, str] = {}

    ranks = placement.split("/")

    for rank_idx, rank_str in enumerate(ranks):
        file_idx = 0
        rank_num = len(ranks) - rank_idx

        for char in rank_str:
            if char.isdigit():
                file_idx += int(char)
            else:
                color = "w" if char.isupper() else "b"
                piece_map[FILES[file_idx] + str(rank_num)] = color + char.upper()
                file_idx += 1

    return piece_map


def count_position_differences(first: Mapping[str, str], second: Mapping[str, str]) -> tuple[int, int]:
    """
    Compare two piece maps square by square.

    Returns:
        (differing squares, squares occupied in either position)
    """
    occupied = set(first) | set(second)
    differing = sum(1 for square in occupied if first.get(square) != second.get(square))
    return differing, len(occupied)


def looks_like_standard_start(pieces: Mapping[str, str]) -> bool:
    """Whether enough back-rank key squares hold their starting pieces."""
    matches = sum(1 for square, code in KEY_START_SQUARES.items() if pieces.get(square) == code)
    return matches >= KEY_START_THRESHOLD


def positions_equal(fen1: str, fen2: str) -> bool:
    """
    Check if two FEN strings represent the same piece placement.

    Only compares the piece placement field, ignoring game state.
    """
    return fen1.split()[0] == fen2.split()[0]
