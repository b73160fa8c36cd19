"""
In-memory page source for testing and offline replay.

Holds a fixed HTML document that callers replace wholesale. Every change
fires the subscribed callbacks synchronously, the way a browser's mutation
observer can fire while the pipeline is still writing to the page.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from boardsync.page.snapshot import PageSnapshot


logger = logging.getLogger(__name__)


@dataclass
class StaticSubscription:
    """A registered callback on a StaticPage."""
    page: "StaticPage"
    selectors: tuple[str, ...]
    callback: Callable[[], None] = field(repr=False)
    active: bool = True

    def cancel(self) -> None:
        if self.active:
            self.active = False
            self.page._remove(self)


class StaticPage:
    """
    PageSource implementation backed by an HTML string.

    Useful for:
    - Unit and pipeline tests without a browser
    - Replaying pages saved from a live session
    """

    def __init__(self, html: str = "", url: str = "") -> None:
        self._html = html
        self._url = url
        self._subscriptions: list[StaticSubscription] = []
        self.snapshot_count = 0
        self.notification_count = 0

    @property
    def html(self) -> str:
        return self._html

    @property
    def url(self) -> str:
        return self._url

    @property
    def active_selectors(self) -> list[tuple[str, ...]]:
        return [sub.selectors for sub in self._subscriptions]

    def snapshot(self) -> PageSnapshot:
        self.snapshot_count += 1
        return PageSnapshot(self._html, self._url)

    def subscribe(
        self,
        selectors: Sequence[str],
        callback: Callable[[], None],
    ) -> StaticSubscription:
        subscription = StaticSubscription(self, tuple(selectors), callback)
        self._subscriptions.append(subscription)
        logger.debug(f"Subscribed to {subscription.selectors}")
        return subscription

    def set_html(self, html: str, url: str | None = None, notify: bool = True) -> None:
        """Replace the document, then notify subscribers."""
        self._html = html
        if url is not None:
            self._url = url
        if notify:
            self.touch()

    def touch(self) -> None:
        """Fire every active callback, as if the watched subtrees mutated."""
        self.notification_count += 1
        for subscription in list(self._subscriptions):
            if subscription.active:
                subscription.callback()

    def _remove(self, subscription: StaticSubscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
            logger.debug(f"Unsubscribed from {subscription.selectors}")
