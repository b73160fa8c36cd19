"""
Overlay scene construction.

Pure geometry: turns a batch of AnalysisShapes into arrow polygons and
labels in board-local pixel coordinates. Square centres come from the same
perspective transform extraction uses, so arrows always land on the squares
the pieces were read from.

Arrows sharing a destination (or an origin) are fanned out so they stay
distinguishable, and the draw order puts longer arrows underneath shorter
ones so no arrow is fully hidden.
"""

import logging
import math
from collections import defaultdict
from collections.abc import Sequence

import numpy as np
from numpy.typing import NDArray

from boardsync.core.fen import FENValidationError
from boardsync.core.geometry import BoardGeometry
from boardsync.core.models import AnalysisShape, ArrowGraphic, LabelGraphic, OverlayScene


logger = logging.getLogger(__name__)

ARROW_WIDTH = 15.0
ARROW_OPACITY = 0.8
SHAFT_RATIO = 0.75
HEAD_RATIO = 2.0
DESTINATION_OFFSET = ARROW_WIDTH * 0.6
ORIGIN_OFFSET = ARROW_WIDTH * 0.3
FAN_HALF_ANGLE = math.pi / 4
LABEL_POSITION = 0.85
MIN_ARROW_LENGTH = 0.01

ENGINE_COLORS = {
    "stockfish": "#3692E7",
    "lc0": "#E736C5",
    "komodo": "#8DE736",
}
DEFAULT_ENGINE_COLOR = "#E7A336"


def engine_color(engine_id: str | None) -> str:
    if not engine_id:
        return DEFAULT_ENGINE_COLOR
    return ENGINE_COLORS.get(engine_id.lower(), DEFAULT_ENGINE_COLOR)


def format_score(shape: AnalysisShape) -> str | None:
    """Centipawns as pawns to two decimals, or M<n> for mate."""
    if shape.mate is not None:
        return f"M{shape.mate}"
    if shape.score is not None:
        return f"{shape.score / 100:.2f}"
    return None


def label_text(shape: AnalysisShape) -> str:
    score = format_score(shape)
    return f"{shape.rank} {score}" if score is not None else str(shape.rank)


def fan_directions(count: int) -> NDArray[np.float64]:
    """Unit vectors spread evenly from -45 to +45 degrees, one per arrow."""
    if count < 2:
        return np.zeros((count, 2))
    angles = np.linspace(-FAN_HALF_ANGLE, FAN_HALF_ANGLE, count)
    return np.stack([np.cos(angles), np.sin(angles)], axis=1)


def rotate_onto(vectors: NDArray[np.float64], axis: NDArray[np.float64]) -> NDArray[np.float64]:
    """Rotate vectors laid out around +x so that +x maps onto the unit axis."""
    cos, sin = float(axis[0]), float(axis[1])
    rotation = np.array([[cos, -sin], [sin, cos]])
    return vectors @ rotation.T


def arrow_path(start: NDArray[np.float64], end: NDArray[np.float64], width: float = ARROW_WIDTH) -> str | None:
    """
    SVG path for a filled arrow from start to end.

    Shaft and head follow chessground proportions; the head is shortened on
    very short arrows so it never overshoots the start.
    """
    delta = end - start
    length = float(np.hypot(delta[0], delta[1]))
    if length < MIN_ARROW_LENGTH:
        return None

    shaft = width * SHAFT_RATIO
    head_length = min(width * HEAD_RATIO, length - shaft / 2)
    head_width = width * HEAD_RATIO

    direction = delta / length
    normal = np.array([-direction[1], direction[0]])
    head_base = end - direction * head_length

    points = [
        start + normal * shaft / 2,
        start - normal * shaft / 2,
        head_base - normal * shaft / 2,
        head_base - normal * head_width / 2,
        end,
        head_base + normal * head_width / 2,
        head_base + normal * shaft / 2,
    ]
    commands = [f"{'M' if i == 0 else 'L'} {p[0]:.1f} {p[1]:.1f}" for i, p in enumerate(points)]
    return " ".join(commands + ["Z"])


def _apply_fan(
    placed: list[tuple[AnalysisShape, NDArray[np.float64], NDArray[np.float64]]],
    endpoint: int,
    distance: float,
) -> None:
    groups: dict[str, list[int]] = defaultdict(list)
    for index, (shape, _, _) in enumerate(placed):
        key = shape.destination if endpoint == 2 else shape.origin
        groups[key].append(index)

    for indices in groups.values():
        if len(indices) < 2:
            continue
        indices.sort(key=lambda i: (placed[i][0].rank, i))

        # Fan around the group's mean heading, pointing into the shafts
        heading = np.zeros(2)
        for index in indices:
            _, start, end = placed[index]
            delta = end - start
            length = float(np.hypot(delta[0], delta[1]))
            if length >= MIN_ARROW_LENGTH:
                heading += delta / length
        norm = float(np.hypot(heading[0], heading[1]))
        axis = heading / norm if norm >= MIN_ARROW_LENGTH else np.array([1.0, 0.0])
        if endpoint == 2:
            axis = -axis

        for index, direction in zip(indices, rotate_onto(fan_directions(len(indices)), axis)):
            placed[index][endpoint][:] += direction * distance


def build_scene(
    shapes: Sequence[AnalysisShape],
    geometry: BoardGeometry,
    black_at_bottom: bool,
) -> OverlayScene:
    """
    Project analysis shapes onto the board.

    Args:
        shapes: The full batch; the scene replaces any previous one
        geometry: Board size in pixels
        black_at_bottom: Current perspective

    Returns:
        Arrows in stacking order (index 0 drawn first) and their labels
    """
    placed: list[tuple[AnalysisShape, NDArray[np.float64], NDArray[np.float64]]] = []
    for shape in shapes:
        try:
            start = np.array(geometry.square_center(shape.origin, black_at_bottom), dtype=float)
            end = np.array(geometry.square_center(shape.destination, black_at_bottom), dtype=float)
        except FENValidationError as e:
            logger.warning(f"Skipping arrow {shape.origin}->{shape.destination}: {e}")
            continue
        placed.append((shape, start, end))

    # Unfanned square distance decides layering
    lengths = [float(np.hypot(*(end - start))) for _, start, end in placed]

    _apply_fan(placed, endpoint=2, distance=DESTINATION_OFFSET)
    _apply_fan(placed, endpoint=1, distance=ORIGIN_OFFSET)

    # Longest first, and among equals the worst rank first so rank 1 ends on top
    order = sorted(
        range(len(placed)),
        key=lambda i: (-lengths[i], -placed[i][0].rank, placed[i][0].origin, placed[i][0].destination),
    )

    arrows: list[ArrowGraphic] = []
    labels: list[LabelGraphic] = []
    for shape, start, end in (placed[i] for i in order):
        path = arrow_path(start, end)
        if path is None:
            logger.debug(f"Skipping zero-length arrow {shape.origin}->{shape.destination}")
            continue

        index = len(arrows)
        arrows.append(ArrowGraphic(
            shape=shape,
            start=(float(start[0]), float(start[1])),
            end=(float(end[0]), float(end[1])),
            path=path,
            color=shape.color,
            opacity=ARROW_OPACITY,
            stacking_index=index,
        ))

        anchor = start + (end - start) * LABEL_POSITION
        labels.append(LabelGraphic(
            text=label_text(shape),
            position=(round(float(anchor[0]), 1), round(float(anchor[1]), 1)),
            color=shape.color,
            stacking_index=index,
        ))

    return OverlayScene(arrows=tuple(arrows), labels=tuple(labels))
