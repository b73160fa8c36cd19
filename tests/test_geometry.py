"""Tests for the perspective transform and board geometry."""

import pytest

from boardsync.core.fen import FENValidationError, parse_square
from boardsync.core.geometry import BoardGeometry, square_to_visual, visual_to_square
from boardsync.core.models import BoundingBox


ALL_SQUARES = [f + r for r in "12345678" for f in "abcdefgh"]


class TestPerspectiveTransform:
    """Tests for square <-> visual cell mapping."""

    @pytest.mark.parametrize("black_at_bottom", [False, True])
    def test_transform_is_its_own_inverse(self, black_at_bottom):
        for square in ALL_SQUARES:
            file_idx, rank_idx = parse_square(square)
            col, row = square_to_visual(file_idx, rank_idx, black_at_bottom)
            assert visual_to_square(col, row, black_at_bottom) == (file_idx, rank_idx)

    def test_white_at_bottom(self):
        # a1 bottom-left, h8 top-right
        assert square_to_visual(0, 0, False) == (0, 7)
        assert square_to_visual(7, 7, False) == (7, 0)

    def test_black_at_bottom(self):
        # Rank 1 at the top, a-file on the right
        assert square_to_visual(0, 0, True) == (7, 0)
        assert square_to_visual(7, 7, True) == (0, 7)


class TestBoardGeometry:
    """Tests for pixel geometry."""

    def test_from_box(self):
        geometry = BoardGeometry.from_box(BoundingBox.from_rect(100, 50, 400, 400))
        assert geometry.square_size == 50

    def test_square_center(self):
        geometry = BoardGeometry(400, 400)
        assert geometry.square_center("a1", False) == (25.0, 375.0)
        assert geometry.square_center("a1", True) == (375.0, 25.0)

    def test_square_center_off_board(self):
        with pytest.raises(FENValidationError):
            BoardGeometry(400, 400).square_center("i9", False)

    def test_square_at_tolerates_jitter(self):
        geometry = BoardGeometry(400, 400)
        # Top-left corner of e4 with White at bottom is (200, 200)
        assert geometry.square_at(200, 200, False) == "e4"
        assert geometry.square_at(203.4, 196.9, False) == "e4"
        assert geometry.square_at(200, 200, True) == "d5"

    def test_square_at_outside_board(self):
        geometry = BoardGeometry(400, 400)
        assert geometry.square_at(-60, 0, False) is None
        assert geometry.square_at(0, 400, False) is None
