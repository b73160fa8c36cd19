"""Tests for overlay scene geometry."""

import numpy as np
import pytest

from boardsync.core.geometry import BoardGeometry
from boardsync.core.models import AnalysisShape
from boardsync.overlay.scene import (
    DEFAULT_ENGINE_COLOR,
    arrow_path,
    build_scene,
    engine_color,
    fan_directions,
    format_score,
    label_text,
    rotate_onto,
)


GEOMETRY = BoardGeometry(400, 400)


def shape(origin: str, destination: str, rank: int = 1, **kwargs) -> AnalysisShape:
    return AnalysisShape(origin, destination, kwargs.pop("color", "#3692E7"), rank, **kwargs)


class TestScoreFormatting:
    """Tests for label text."""

    @pytest.mark.parametrize("score,mate,expected", [
        (35, None, "0.35"),
        (-120, None, "-1.20"),
        (0, None, "0.00"),
        (None, 3, "M3"),
        (None, -2, "M-2"),
        (None, None, None),
    ])
    def test_format_score(self, score, mate, expected):
        assert format_score(shape("e2", "e4", score=score, mate=mate)) == expected

    def test_label_text(self):
        assert label_text(shape("e2", "e4", rank=2, score=35)) == "2 0.35"
        assert label_text(shape("e2", "e4", rank=1)) == "1"

    def test_engine_color(self):
        assert engine_color("Stockfish") == "#3692E7"
        assert engine_color(None) == DEFAULT_ENGINE_COLOR
        assert engine_color("mystery") == DEFAULT_ENGINE_COLOR


class TestArrowGeometry:
    """Tests for arrow placement."""

    def test_endpoints_follow_perspective(self):
        white = build_scene([shape("e2", "e4")], GEOMETRY, black_at_bottom=False)
        black = build_scene([shape("e2", "e4")], GEOMETRY, black_at_bottom=True)

        assert white.arrows[0].start == (225.0, 325.0)
        assert white.arrows[0].end == (225.0, 225.0)
        assert black.arrows[0].start == (175.0, 75.0)
        assert black.arrows[0].end == (175.0, 175.0)

    def test_fan_directions_span_ninety_degrees(self):
        directions = fan_directions(3)

        angles = np.degrees(np.arctan2(directions[:, 1], directions[:, 0]))
        assert np.allclose(angles, [-45, 0, 45])
        assert np.allclose(np.linalg.norm(directions, axis=1), 1)

    def test_shared_destination_arrows_are_distinct(self):
        shapes = [shape("g1", "f3", rank=1), shape("e2", "f3", rank=2), shape("g2", "f3", rank=3)]

        scene = build_scene(shapes, GEOMETRY, black_at_bottom=False)

        ends = {arrow.end for arrow in scene.arrows}
        assert len(ends) == 3

    def test_identical_moves_from_two_engines_are_distinct(self):
        shapes = [
            shape("e2", "e4", rank=1, engine_id="stockfish"),
            shape("e2", "e4", rank=1, engine_id="lc0", color="#E736C5"),
        ]

        scene = build_scene(shapes, GEOMETRY, black_at_bottom=False)

        first, second = scene.arrows
        assert first.start != second.start
        assert first.end != second.end
        assert first.path != second.path

    def test_fan_is_reproducible_for_the_same_batch(self):
        batch = [shape("d2", "e4", rank=2), shape("e2", "e4", rank=1), shape("g3", "e4", rank=3)]

        def rank_one_end(shapes):
            scene = build_scene(shapes, GEOMETRY, black_at_bottom=False)
            return next(a.end for a in scene.arrows if a.shape.rank == 1)

        first = rank_one_end(batch)

        assert rank_one_end(batch) == first
        assert rank_one_end(list(reversed(batch))) == first
        assert first != (225.0, 225.0)

    def test_fan_pulls_heads_back_along_their_shafts(self):
        # Both arrows arrive at e4 from the left
        shapes = [shape("a4", "e4", rank=1), shape("a7", "e4", rank=2)]

        scene = build_scene(shapes, GEOMETRY, black_at_bottom=False)

        target = np.array([225.0, 225.0])
        for arrow in scene.arrows:
            heading = np.array(GEOMETRY.square_center(arrow.shape.destination, False)) - np.array(
                GEOMETRY.square_center(arrow.shape.origin, False)
            )
            offset = np.array(arrow.end) - target
            assert np.dot(offset, heading) < 0

    def test_rotate_onto(self):
        rotated = rotate_onto(np.array([[1.0, 0.0], [0.0, 1.0]]), np.array([0.0, 1.0]))
        assert np.allclose(rotated, [[0.0, 1.0], [-1.0, 0.0]])

    def test_off_board_squares_are_skipped(self):
        scene = build_scene([shape("e2", "e9"), shape("d2", "d4")], GEOMETRY, black_at_bottom=False)

        assert [a.shape.origin for a in scene.arrows] == ["d2"]

    def test_zero_length_arrow(self):
        assert arrow_path(np.array([10.0, 10.0]), np.array([10.0, 10.0])) is None
        assert build_scene([shape("e4", "e4")], GEOMETRY, black_at_bottom=False).is_empty


class TestStackingOrder:
    """Tests for draw order."""

    def test_longest_first(self):
        shapes = [shape("e2", "e3", rank=1), shape("a1", "h8", rank=2), shape("d2", "d4", rank=3)]

        scene = build_scene(shapes, GEOMETRY, black_at_bottom=False)

        assert [a.shape.origin for a in scene.arrows] == ["a1", "d2", "e2"]
        assert [a.stacking_index for a in scene.arrows] == [0, 1, 2]

    def test_best_rank_on_top_among_equal_lengths(self):
        shapes = [shape("d2", "d4", rank=1), shape("e2", "e4", rank=2)]

        scene = build_scene(shapes, GEOMETRY, black_at_bottom=False)

        assert [a.shape.rank for a in scene.arrows] == [2, 1]

    def test_labels_match_arrows(self):
        shapes = [shape("d2", "d4", rank=1, score=20), shape("g1", "f3", rank=2, mate=4)]

        scene = build_scene(shapes, GEOMETRY, black_at_bottom=False)

        assert len(scene.labels) == len(scene.arrows)
        for arrow, label in zip(scene.arrows, scene.labels):
            assert label.stacking_index == arrow.stacking_index
            assert label.text == label_text(arrow.shape)

    def test_label_sits_near_the_head(self):
        scene = build_scene([shape("e2", "e4")], GEOMETRY, black_at_bottom=False)

        # 85% of the way from (225, 325) to (225, 225)
        assert scene.labels[0].position == (225.0, 240.0)
