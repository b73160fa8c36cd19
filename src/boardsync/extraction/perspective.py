"""
Perspective resolution.

Decides which side is rendered at the bottom of the board by trying
progressively weaker evidence in a fixed order; the first conclusive tier
wins:

1. Explicit orientation on the board root (attribute or class)
2. The same markers on the enclosing container
3. Rank-label geometry, for layouts without explicit markers
4. White at the bottom

Results are memoized per layout lifetime (LayoutDescriptor.layout_key) and
dropped on invalidate(). The resolver never raises.
"""

import logging

from bs4 import Tag

from boardsync.core.errors import PerspectiveAmbiguous
from boardsync.core.models import LayoutDescriptor, PerspectiveEstimate, PerspectiveSource
from boardsync.page.snapshot import PageSnapshot


logger = logging.getLogger(__name__)

BLACK_MARKER_CLASSES = ("flipped", "black-perspective")

DEFAULT_ESTIMATE = PerspectiveEstimate(black_at_bottom=False, source=PerspectiveSource.DEFAULT)


def orientation_marker(node: Tag | None) -> bool | None:
    """
    Read an explicit orientation marker from a node.

    Returns True for Black at the bottom, False for White, None if unmarked.
    """
    if node is None:
        return None

    orientation = str(node.get("orientation") or "").strip().lower()
    if orientation == "black":
        return True
    if orientation == "white":
        return False

    if PageSnapshot.has_any_class(node, BLACK_MARKER_CLASSES):
        return True

    return None


def _label_position(node: Tag) -> float | None:
    raw = node.get("y")
    if raw is not None:
        try:
            return float(str(raw).rstrip("px%"))
        except ValueError:
            pass
    rect = PageSnapshot.rect_of(node)
    return rect.center_y if rect is not None else None


def orientation_from_labels(descriptor: LayoutDescriptor) -> bool:
    """
    Infer orientation from where the first and last rank labels are drawn.

    Label "1" above label "8" means the board is flipped: Black at the bottom.

    Raises:
        PerspectiveAmbiguous: Labels missing, unplaceable or level
    """
    patterns = descriptor.patterns
    snapshot: PageSnapshot = descriptor.snapshot
    if patterns is None or not patterns.coord_label_selector or snapshot is None:
        raise PerspectiveAmbiguous("layout has no coordinate labels")

    labels = snapshot.select(patterns.coord_label_selector, descriptor.board_root)
    if not labels:
        labels = snapshot.select(patterns.coord_label_selector)

    first_rank = "1"
    last_rank = str(patterns.board_size)
    positions: dict[str, float] = {}
    for label in labels:
        text = PageSnapshot.text_of(label)
        if text in (first_rank, last_rank) and text not in positions:
            y = _label_position(label)
            if y is not None:
                positions[text] = y

    if first_rank not in positions or last_rank not in positions:
        raise PerspectiveAmbiguous(f"rank labels not found (have {sorted(positions)})")

    if positions[first_rank] == positions[last_rank]:
        raise PerspectiveAmbiguous(f"rank labels level at y={positions[first_rank]}")

    return positions[first_rank] < positions[last_rank]


class PerspectiveResolver:
    """Tiered orientation resolver with a per-layout cache."""

    def __init__(self) -> None:
        self._cache: dict[str, PerspectiveEstimate] = {}

    def resolve(self, descriptor: LayoutDescriptor, use_cache: bool = True) -> PerspectiveEstimate:
        """
        Resolve the perspective for a located layout.

        Args:
            descriptor: The layout to inspect
            use_cache: If False, always recompute and leave the cache alone

        Returns:
            The estimate and the tier that produced it
        """
        if not descriptor.is_known:
            return DEFAULT_ESTIMATE

        if use_cache:
            cached = self._cache.get(descriptor.layout_key)
            if cached is not None:
                return cached

        estimate = self._compute(descriptor)

        if use_cache:
            # One layout lifetime at a time
            self._cache = {descriptor.layout_key: estimate}
            logger.info(
                f"Perspective for {descriptor.kind.name}: "
                f"{'black' if estimate.black_at_bottom else 'white'} at bottom "
                f"({estimate.source.name.lower()})"
            )
        return estimate

    def invalidate(self) -> None:
        if self._cache:
            logger.debug("Perspective cache invalidated")
        self._cache.clear()

    def cached(self, descriptor: LayoutDescriptor) -> PerspectiveEstimate | None:
        return self._cache.get(descriptor.layout_key)

    def _compute(self, descriptor: LayoutDescriptor) -> PerspectiveEstimate:
        marker = orientation_marker(descriptor.board_root)
        if marker is not None:
            return PerspectiveEstimate(marker, PerspectiveSource.EXPLICIT)

        marker = orientation_marker(descriptor.container)
        if marker is not None:
            return PerspectiveEstimate(marker, PerspectiveSource.CONTAINER)

        if descriptor.patterns is not None and not descriptor.patterns.explicit_orientation:
            try:
                black_at_bottom = orientation_from_labels(descriptor)
                return PerspectiveEstimate(black_at_bottom, PerspectiveSource.GEOMETRY)
            except PerspectiveAmbiguous as e:
                logger.info(f"Coordinate geometry inconclusive: {e}")

        return DEFAULT_ESTIMATE
