"""
Overlay drawing surfaces.

BrowserOverlaySurface injects an absolutely positioned SVG (arrows) and a
sibling div (labels) into the live page through Selenium. Both carry the
``data-boardsync-overlay`` marker so the page's change observers ignore
their mutations.

RecordingOverlaySurface keeps everything in memory for tests and headless
runs.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from selenium.common.exceptions import WebDriverException

from boardsync.core.models import ArrowGraphic, BoundingBox, LabelGraphic
from boardsync.page.browser import OVERLAY_MARKER


logger = logging.getLogger(__name__)

SVG_ID = "boardsync-analysis-overlay"
LABELS_ID = "boardsync-analysis-labels"
OVERLAY_Z_INDEX = 1000

MOUNT_SCRIPT = """
const [svgId, labelsId, marker, box, zIndex] = arguments;
const place = (el) => {
    el.setAttribute(marker, '');
    el.style.position = 'absolute';
    el.style.left = (box.left + window.scrollX) + 'px';
    el.style.top = (box.top + window.scrollY) + 'px';
    el.style.width = box.width + 'px';
    el.style.height = box.height + 'px';
    el.style.pointerEvents = 'none';
    el.style.zIndex = String(zIndex);
};
let svg = document.getElementById(svgId);
if (!svg) {
    svg = document.createElementNS('http://www.w3.org/2000/svg', 'svg');
    svg.id = svgId;
    document.body.appendChild(svg);
}
place(svg);
svg.setAttribute('viewBox', `0 0 ${box.width} ${box.height}`);
let labels = document.getElementById(labelsId);
if (!labels) {
    labels = document.createElement('div');
    labels.id = labelsId;
    document.body.appendChild(labels);
}
place(labels);
labels.style.zIndex = String(zIndex + 1);
"""

CLEAR_SCRIPT = """
for (const id of arguments) {
    const el = document.getElementById(id);
    if (el) el.textContent = '';
}
"""

ARROW_SCRIPT = """
const [svgId, d, fill, opacity, from, to] = arguments;
const svg = document.getElementById(svgId);
if (!svg) return false;
const path = document.createElementNS('http://www.w3.org/2000/svg', 'path');
path.setAttribute('d', d);
path.setAttribute('fill', fill);
path.setAttribute('opacity', opacity);
path.setAttribute('data-arrow-from', from);
path.setAttribute('data-arrow-to', to);
svg.appendChild(path);
return true;
"""

LABEL_SCRIPT = """
const [labelsId, text, x, y, color] = arguments;
const container = document.getElementById(labelsId);
if (!container) return false;
const label = document.createElement('div');
Object.assign(label.style, {
    position: 'absolute',
    left: x + 'px',
    top: y + 'px',
    transform: 'translate(-50%, -50%)',
    color: 'black',
    textShadow: '0 0 2px white, 0 0 2px white',
    backgroundColor: color + 'AA',
    padding: '0px 2px',
    borderRadius: '2px',
    fontSize: '9px',
    fontWeight: 'bold',
    pointerEvents: 'none',
});
label.textContent = text;
container.appendChild(label);
return true;
"""


class BrowserOverlaySurface:
    """OverlaySurface drawing into a live page."""

    def __init__(self, driver: Any) -> None:
        self._driver = driver

    def _run(self, script: str, *args: Any) -> Any:
        try:
            return self._driver.execute_script(script, *args)
        except WebDriverException as e:
            logger.warning(f"Overlay script failed: {e.msg}")
            return None

    def mount(self, board_box: BoundingBox) -> None:
        box = {
            "left": board_box.x0,
            "top": board_box.y0,
            "width": board_box.width,
            "height": board_box.height,
        }
        self._run(MOUNT_SCRIPT, SVG_ID, LABELS_ID, OVERLAY_MARKER, box, OVERLAY_Z_INDEX)

    def clear(self) -> None:
        self._run(CLEAR_SCRIPT, SVG_ID, LABELS_ID)

    def draw_arrow(self, arrow: ArrowGraphic) -> None:
        self._run(
            ARROW_SCRIPT,
            SVG_ID,
            arrow.path,
            arrow.color,
            arrow.opacity,
            arrow.shape.origin,
            arrow.shape.destination,
        )

    def draw_label(self, label: LabelGraphic) -> None:
        self._run(LABEL_SCRIPT, LABELS_ID, label.text, label.position[0], label.position[1], label.color)


@dataclass
class RecordingOverlaySurface:
    """
    OverlaySurface that records what would be drawn.

    on_write is called after every operation, which lets tests simulate a
    page whose change notifications fire on overlay writes.
    """
    on_write: Callable[[], None] | None = None
    mounted_box: BoundingBox | None = None
    arrows: list[ArrowGraphic] = field(default_factory=list)
    labels: list[LabelGraphic] = field(default_factory=list)
    operations: list[str] = field(default_factory=list)

    def _record(self, operation: str) -> None:
        self.operations.append(operation)
        if self.on_write is not None:
            self.on_write()

    def mount(self, board_box: BoundingBox) -> None:
        self.mounted_box = board_box
        self._record("mount")

    def clear(self) -> None:
        self.arrows.clear()
        self.labels.clear()
        self._record("clear")

    def draw_arrow(self, arrow: ArrowGraphic) -> None:
        self.arrows.append(arrow)
        self._record("arrow")

    def draw_label(self, label: LabelGraphic) -> None:
        self.labels.append(label)
        self._record("label")
