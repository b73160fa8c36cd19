"""Tests for move-list reading."""

from boardsync.extraction.moves import MoveListReading, read_move_list

from page_fixtures import LIVE_URL, detect, live_board_page, wc_board_page


MOVES = ["e4", "e5", "Nf3", "Nc6", "Bb5"]


class TestMoveListReading:
    """Tests for read_move_list on both layouts."""

    def test_reads_all_moves(self):
        reading = read_move_list(detect(wc_board_page(moves=MOVES)))

        assert reading.moves == tuple(MOVES)
        assert reading.selected_index is None
        assert reading.plies == 5
        assert reading.parity_side_to_move == "b"

    def test_selected_white_move(self):
        reading = read_move_list(detect(wc_board_page(moves=MOVES, selected=2)))

        assert reading.selected_index == 2
        assert reading.side_to_move == "b"
        assert reading.plies == 3

    def test_selected_black_move(self):
        reading = read_move_list(detect(wc_board_page(moves=MOVES, selected=3)))

        assert reading.side_to_move == "w"
        assert reading.plies == 4

    def test_live_row_position_decides_side(self):
        # No white/black classes: the cell's position in its row decides
        html = live_board_page(moves=MOVES, selected=3)
        reading = read_move_list(detect(html, LIVE_URL))

        assert reading.moves == tuple(MOVES)
        assert reading.selected_index == 3
        assert reading.side_to_move == "w"

    def test_live_white_move_selected(self):
        reading = read_move_list(detect(live_board_page(moves=MOVES, selected=4), LIVE_URL))
        assert reading.side_to_move == "b"

    def test_figurine_notation(self):
        html = wc_board_page(moves=["e4", "e5", "PLACEHOLDER"]).replace(
            "PLACEHOLDER", '<span data-figurine="N"></span>f3'
        )
        reading = read_move_list(detect(html))

        assert reading.moves[-1] == "Nf3"

    def test_empty_move_list(self):
        reading = read_move_list(detect(wc_board_page()))

        assert reading == MoveListReading()
        assert reading.plies == 0
        assert reading.parity_side_to_move == "w"
