"""
Parsed page snapshots.

A snapshot is an immutable BeautifulSoup parse of the page at one instant.
Layout geometry travels inside the markup: the capturing side stamps each
element's viewport rectangle into a ``data-boardsync-rect`` attribute as
"left,top,width,height".
"""

import logging
from typing import Iterable

from bs4 import BeautifulSoup, Tag

from boardsync.core.models import BoundingBox


logger = logging.getLogger(__name__)

RECT_ATTRIBUTE = "data-boardsync-rect"


class PageSnapshot:
    """Query helpers over one parse of the page."""

    def __init__(self, html: str, url: str = "") -> None:
        self._soup = BeautifulSoup(html, "html.parser")
        self.url = url

    def select_one(self, selector: str, root: Tag | None = None) -> Tag | None:
        return (root or self._soup).select_one(selector)

    def select(self, selector: str, root: Tag | None = None) -> list[Tag]:
        return list((root or self._soup).select(selector))

    def closest(self, node: Tag, selector: str) -> Tag | None:
        """Nearest ancestor-or-self matching the selector."""
        return node.css.closest(selector)

    def matches(self, node: Tag, selector: str) -> bool:
        return bool(node.css.match(selector))

    def contains(self, selector: str) -> bool:
        return self._soup.select_one(selector) is not None

    def text(self, root: Tag | None = None) -> str:
        return (root or self._soup).get_text(" ", strip=True)

    @staticmethod
    def classes_of(node: Tag) -> list[str]:
        classes = node.get("class") or []
        if isinstance(classes, str):
            return classes.split()
        return list(classes)

    @staticmethod
    def has_any_class(node: Tag, names: Iterable[str]) -> bool:
        classes = set(PageSnapshot.classes_of(node))
        return any(name in classes for name in names)

    @staticmethod
    def text_of(node: Tag) -> str:
        return node.get_text("", strip=True)

    @staticmethod
    def rect_of(node: Tag) -> BoundingBox | None:
        """The stamped viewport rectangle of a node, if present and well formed."""
        raw = node.get(RECT_ATTRIBUTE)
        if not raw:
            return None
        try:
            left, top, width, height = (float(part) for part in str(raw).split(","))
        except ValueError:
            logger.warning(f"Malformed rect attribute on <{node.name}>: {raw!r}")
            return None
        return BoundingBox.from_rect(left, top, width, height)
