"""
Inbound analysis message parsing.

The backend pushes whole batches of shapes; a batch always replaces the
previous one. Accepted forms:

  {"type": "analysis", "shapes": [...]}
  {"finalShapes": [...]}
  {"type": "show_arrow", "from": "e2", "to": "e4", ...}
  {"type": "clear_highlights"}      (an empty batch)

Each shape carries ``from``, ``to`` and optionally ``color``, ``rank``,
``score`` (centipawns, or "M3"/"#-2" for mate) and ``engineId``.
"""

import logging
import re
from typing import Any

from boardsync.core.models import AnalysisShape
from boardsync.overlay.scene import engine_color


logger = logging.getLogger(__name__)

CLEAR_TYPES = ("clear_highlights", "clear_arrows", "clear")
BATCH_TYPES = ("analysis", "show_arrows")
SQUARE_RE = re.compile(r"^[a-p](1[0-6]|[1-9])$")
MATE_RE = re.compile(r"^[M#]\s*(-?\d+)$", re.I)


def _parse_score(raw: Any) -> tuple[float | None, int | None]:
    if raw is None or isinstance(raw, bool):
        return None, None
    if isinstance(raw, (int, float)):
        return float(raw), None
    if isinstance(raw, dict):
        try:
            if raw.get("mate") is not None:
                return None, int(raw["mate"])
            if raw.get("cp") is not None:
                return float(raw["cp"]), None
        except (TypeError, ValueError, OverflowError):
            logger.warning(f"Ignoring malformed score {raw!r}")
        return None, None
    match = MATE_RE.match(str(raw).strip())
    if match:
        return None, int(match.group(1))
    try:
        return float(raw), None
    except (TypeError, ValueError):
        return None, None


def parse_shape(raw: Any, index: int) -> AnalysisShape | None:
    """Parse one shape; None (with a warning) if it is unusable."""
    if not isinstance(raw, dict):
        logger.warning(f"Skipping non-object shape at index {index}")
        return None

    origin = str(raw.get("from") or raw.get("orig") or "").lower()
    destination = str(raw.get("to") or raw.get("dest") or "").lower()
    if not SQUARE_RE.match(origin) or not SQUARE_RE.match(destination):
        logger.warning(f"Skipping shape at index {index} with bad squares: {origin!r} -> {destination!r}")
        return None

    engine_id = raw.get("engineId") or raw.get("engine")
    score, mate = _parse_score(raw.get("score"))

    try:
        rank = int(raw.get("rank") or index + 1)
    except (TypeError, ValueError):
        rank = index + 1

    return AnalysisShape(
        origin=origin,
        destination=destination,
        color=str(raw.get("color") or engine_color(engine_id)),
        rank=max(1, rank),
        score=score,
        mate=mate,
        engine_id=str(engine_id) if engine_id else None,
    )


def parse_analysis_message(message: dict[str, Any]) -> list[AnalysisShape] | None:
    """
    Extract a shape batch from an inbound message.

    Returns:
        The batch (possibly empty, meaning clear), or None if the message
        is not an analysis message at all
    """
    kind = message.get("type")

    if kind in CLEAR_TYPES:
        return []

    if "finalShapes" in message:
        raw_shapes = message["finalShapes"]
    elif kind in BATCH_TYPES:
        raw_shapes = message.get("shapes")
    elif kind == "show_arrow":
        raw_shapes = [message]
    else:
        return None

    if not isinstance(raw_shapes, list):
        logger.warning(f"Analysis message without a shape list: {kind!r}")
        return []

    shapes = [parse_shape(raw, index) for index, raw in enumerate(raw_shapes)]
    return [shape for shape in shapes if shape is not None]
