"""Page sources: parsed snapshots and change notifications."""

from boardsync.page.snapshot import PageSnapshot, RECT_ATTRIBUTE
from boardsync.page.static import StaticPage

__all__ = [
    "PageSnapshot",
    "RECT_ATTRIBUTE",
    "StaticPage",
]
