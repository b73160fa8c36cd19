"""
Best-effort game-state completion from the move list.

The page shows pieces and moves but not castling rights, the en-passant
square or the half-move clock. Replaying the move list with python-chess
recovers them, but only when the replay lands on exactly the position that
was extracted; otherwise the placeholders stay. The replay never changes
pieces, side to move or move number.
"""

import dataclasses
import logging
import re
from collections.abc import Sequence

import chess
import chess.variant

from boardsync.core.fen import positions_equal
from boardsync.core.models import BoardState


logger = logging.getLogger(__name__)

# python-chess names; chess960 is absent because its start position varies
VARIANT_BOARD_NAMES: dict[str, str] = {
    "standard": "Standard",
    "crazyhouse": "Crazyhouse",
    "kingOfTheHill": "King of the Hill",
    "threeCheck": "Three-check",
    "antichess": "Antichess",
    "atomic": "Atomic",
    "horde": "Horde",
    "racingKings": "Racing Kings",
}

ANNOTATION_RE = re.compile(r"[!?]+$")


def replay_moves(moves: Sequence[str], variant: str = "standard") -> chess.Board | None:
    """
    Replay SAN moves from the variant's starting position.

    Returns the final board, or None if the variant is unsupported or a
    move does not parse as legal.
    """
    name = VARIANT_BOARD_NAMES.get(variant)
    if name is None:
        return None

    board = chess.variant.find_variant(name)()
    for ply, san in enumerate(moves, start=1):
        try:
            board.push_san(ANNOTATION_RE.sub("", san.strip()))
        except ValueError as e:
            logger.debug(f"Move list does not replay at ply {ply} ({san!r}): {e}")
            return None
    return board


def complete_from_moves(state: BoardState, moves: Sequence[str], variant: str = "standard") -> BoardState:
    """Fill castling, en passant and half-move clock when the moves agree with the board."""
    if state.size != 8:
        return state

    board = replay_moves(moves, variant)
    if board is None:
        return state

    replay_color = "w" if board.turn == chess.WHITE else "b"
    if not positions_equal(board.board_fen(), state.placement()) or replay_color != state.active_color:
        logger.debug("Replayed move list disagrees with the extracted position")
        return state

    en_passant = "-"
    if board.ep_square is not None and board.has_legal_en_passant():
        en_passant = chess.square_name(board.ep_square)

    return dataclasses.replace(
        state,
        castling=board.castling_xfen() or "-",
        en_passant=en_passant,
        halfmove_clock=board.halfmove_clock,
    )
