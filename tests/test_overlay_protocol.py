"""Tests for inbound analysis message parsing."""

from boardsync.overlay.protocol import parse_analysis_message
from boardsync.overlay.scene import DEFAULT_ENGINE_COLOR, ENGINE_COLORS


class TestParseAnalysisMessage:
    """Tests for parse_analysis_message."""

    def test_analysis_batch(self):
        shapes = parse_analysis_message({
            "type": "analysis",
            "shapes": [
                {"from": "e2", "to": "e4", "color": "#ff0000", "rank": 1, "score": 31},
                {"from": "d2", "to": "d4", "rank": 2, "score": "M3", "engineId": "lc0"},
            ],
        })

        assert len(shapes) == 2
        assert shapes[0].origin == "e2"
        assert shapes[0].color == "#ff0000"
        assert shapes[0].score == 31.0
        assert shapes[1].mate == 3
        assert shapes[1].color == ENGINE_COLORS["lc0"]
        assert shapes[1].engine_id == "lc0"

    def test_final_shapes(self):
        shapes = parse_analysis_message({"finalShapes": [{"orig": "g1", "dest": "f3"}]})

        assert shapes[0].origin == "g1"
        assert shapes[0].destination == "f3"
        assert shapes[0].color == DEFAULT_ENGINE_COLOR

    def test_rank_defaults_to_position(self):
        shapes = parse_analysis_message({
            "type": "analysis",
            "shapes": [{"from": "e2", "to": "e4"}, {"from": "d2", "to": "d4"}],
        })

        assert [s.rank for s in shapes] == [1, 2]

    def test_score_forms(self):
        shapes = parse_analysis_message({
            "type": "analysis",
            "shapes": [
                {"from": "e2", "to": "e4", "score": {"cp": -45}},
                {"from": "e2", "to": "e4", "score": {"mate": -2}},
                {"from": "e2", "to": "e4", "score": "#-1"},
                {"from": "e2", "to": "e4", "score": "0.5"},
                {"from": "e2", "to": "e4", "score": "n/a"},
            ],
        })

        assert shapes[0].score == -45.0
        assert shapes[1].mate == -2
        assert shapes[2].mate == -1
        assert shapes[3].score == 0.5
        assert shapes[4].score is None and shapes[4].mate is None

    def test_invalid_shapes_are_skipped(self):
        shapes = parse_analysis_message({
            "type": "analysis",
            "shapes": [{"from": "e2", "to": "z9"}, "nonsense", {"from": "E2", "to": "E4"}],
        })

        assert [(s.origin, s.destination) for s in shapes] == [("e2", "e4")]

    def test_single_arrow(self):
        shapes = parse_analysis_message({"type": "show_arrow", "from": "c2", "to": "c4"})
        assert shapes[0].origin == "c2"

    def test_clear(self):
        assert parse_analysis_message({"type": "clear_highlights"}) == []

    def test_missing_shape_list_clears(self):
        assert parse_analysis_message({"type": "analysis"}) == []

    def test_other_messages(self):
        assert parse_analysis_message({"type": "status", "engine": "ready"}) is None
        assert parse_analysis_message({}) is None

    def test_malformed_score_object(self):
        shapes = parse_analysis_message({
            "type": "analysis",
            "shapes": [
                {"from": "e2", "to": "e4", "score": {"mate": "x"}},
                {"from": "d2", "to": "d4", "score": {"cp": [1]}},
            ],
        })

        assert [(s.score, s.mate) for s in shapes] == [(None, None), (None, None)]
