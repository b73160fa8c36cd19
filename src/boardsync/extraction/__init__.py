"""Perspective resolution, board state extraction and variant detection."""

from boardsync.extraction.crosscheck import complete_from_moves, replay_moves
from boardsync.extraction.extractor import StateExtractor, decode_piece
from boardsync.extraction.moves import MoveListReading, read_move_list
from boardsync.extraction.perspective import PerspectiveResolver
from boardsync.extraction.variants import SUPPORTED_VARIANTS, detect_variant

__all__ = [
    "PerspectiveResolver",
    "StateExtractor",
    "MoveListReading",
    "read_move_list",
    "decode_piece",
    "complete_from_moves",
    "replay_moves",
    "detect_variant",
    "SUPPORTED_VARIANTS",
]
