"""
Analysis overlay rendering.

Every batch tears down and rebuilds the whole scene. The surface is
re-mounted over the board's current rectangle and the perspective is
re-resolved without the cache each time, since the board may have moved,
resized or flipped since the last batch.
"""

import logging
from collections.abc import Sequence

from boardsync.core.geometry import BoardGeometry
from boardsync.core.interfaces import OverlaySurface
from boardsync.core.models import AnalysisShape, LayoutDescriptor, OverlayScene
from boardsync.extraction.perspective import PerspectiveResolver
from boardsync.overlay.scene import build_scene
from boardsync.page.snapshot import PageSnapshot


logger = logging.getLogger(__name__)


class OverlayRenderer:
    """Projects analysis batches onto an OverlaySurface."""

    def __init__(self, surface: OverlaySurface, resolver: PerspectiveResolver) -> None:
        self._surface = surface
        self._resolver = resolver
        self._last_scene: OverlayScene | None = None

    @property
    def surface(self) -> OverlaySurface:
        return self._surface

    @property
    def last_scene(self) -> OverlayScene | None:
        return self._last_scene

    def render(self, descriptor: LayoutDescriptor, shapes: Sequence[AnalysisShape]) -> OverlayScene | None:
        """
        Replace the overlay with the given batch.

        Returns:
            The drawn scene, or None if there was no board to draw on
        """
        if not descriptor.is_known:
            logger.debug("No board layout; analysis batch not rendered")
            return None

        box = PageSnapshot.rect_of(descriptor.board_root)
        if box is None or box.width <= 0 or box.height <= 0:
            logger.warning("Board has no on-screen rectangle; analysis batch not rendered")
            return None

        self._surface.mount(box)
        self._surface.clear()

        estimate = self._resolver.resolve(descriptor, use_cache=False)
        size = descriptor.patterns.board_size if descriptor.patterns is not None else 8
        scene = build_scene(shapes, BoardGeometry.from_box(box, size), estimate.black_at_bottom)

        for arrow in scene.arrows:
            self._surface.draw_arrow(arrow)
        for label in scene.labels:
            self._surface.draw_label(label)

        logger.debug(f"Rendered {len(scene.arrows)} arrow(s) ({estimate.source.name.lower()} perspective)")
        self._last_scene = scene
        return scene
