"""Tests for FEN and square utilities."""

import pytest
from boardsync.core.fen import (
    fen_to_piece_map,
    grid_to_placement,
    full_move_number,
    parse_square,
    square_name,
    count_position_differences,
    looks_like_standard_start,
    positions_equal,
    STARTING_FEN,
    STARTING_PLACEMENT,
    FENValidationError,
)
from boardsync.core.models import BoardState, Piece


class TestSquares:
    """Tests for square naming."""

    def test_square_name(self):
        assert square_name(0, 0) == "a1"
        assert square_name(4, 3) == "e4"
        assert square_name(7, 7) == "h8"

    def test_parse_square(self):
        assert parse_square("a1") == (0, 0)
        assert parse_square("h8") == (7, 7)
        assert parse_square("c10") == (2, 9)

    @pytest.mark.parametrize("square", ["", "z1", "a", "a0", "e-1", "11"])
    def test_parse_square_rejects_garbage(self, square):
        with pytest.raises(FENValidationError):
            parse_square(square)


class TestFullMoveNumber:
    """Tests for the full-move number derived from the ply count."""

    @pytest.mark.parametrize("plies,color,expected", [
        (0, "w", 1),
        (1, "b", 1),
        (2, "w", 2),
        (3, "b", 2),
        (40, "w", 21),
        (0, "b", 1),
    ])
    def test_full_move_number(self, plies, color, expected):
        assert full_move_number(plies, color) == expected


class TestFENConversion:
    """Tests for FEN to/from piece map conversion."""

    def test_fen_to_piece_map_starting(self):
        piece_map = fen_to_piece_map(STARTING_FEN)

        assert piece_map["e1"] == "wK"
        assert piece_map["e8"] == "bK"
        assert piece_map["a1"] == "wR"
        assert piece_map["h8"] == "bR"

        for file in "abcdefgh":
            assert piece_map[f"{file}2"] == "wP"
            assert piece_map[f"{file}7"] == "bP"

        assert "e4" not in piece_map

    def test_grid_to_placement(self):
        rows = [[None] * 8 for _ in range(8)]
        rows[0][4] = "k"
        rows[7][4] = "K"
        rows[7][7] = "R"
        assert grid_to_placement(rows) == "4k3/8/8/8/8/8/8/4K2R"

    def test_board_state_roundtrip(self):
        fen = "r1bqkb1r/pppp1ppp/2n2n2/4p3/2B1P3/5N2/PPPP1PPP/RNBQK2R w KQkq - 4 4"
        state = BoardState.from_pieces(fen_to_piece_map(fen), active_color="w", full_move_number=4)

        assert state.placement() == fen.split()[0]
        assert state.piece_at("c4") == Piece("w", "b")
        assert state.piece_at("e4") == Piece("w", "p")
        assert state.piece_at("d4") is None

    def test_board_state_fen_fields(self):
        state = BoardState.from_placement(STARTING_PLACEMENT, castling="KQkq")
        assert state.fen() == STARTING_FEN


class TestPositionComparison:
    """Tests for position comparison."""

    def test_same_position_different_state(self):
        fen1 = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"
        fen2 = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR b - - 50 100"
        assert positions_equal(fen1, fen2) is True

    def test_different_positions(self):
        fen1 = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"
        fen2 = "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq - 0 1"
        assert positions_equal(fen1, fen2) is False

    def test_count_position_differences(self):
        start = fen_to_piece_map(STARTING_FEN)
        after_e4 = fen_to_piece_map("rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq - 0 1")

        differing, occupied = count_position_differences(start, after_e4)

        assert differing == 2
        assert occupied == 33

    def test_looks_like_standard_start(self):
        assert looks_like_standard_start(fen_to_piece_map(STARTING_FEN)) is True
        assert looks_like_standard_start(fen_to_piece_map("4k3/8/8/8/8/8/8/4K3 w - - 0 1")) is False
