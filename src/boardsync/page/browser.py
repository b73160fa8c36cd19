"""
Live browser page source over Selenium.

Selenium attaches to an already-running Chromium instance through its
remote-debugging port. Snapshots are taken with one execute_script call
that clones the document and stamps the viewport rectangles of the
requested elements onto the clone.

Change notifications use a MutationObserver injected into the page. The
observer only bumps a page-global counter; an asyncio task polls the
counters and dispatches the Python callbacks. Attaching to an existing
browser gives no console or CDP event stream, so polling a JS flag is the
reliable route.
"""

import asyncio
import itertools
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from selenium import webdriver
from selenium.common.exceptions import WebDriverException
from selenium.webdriver.chrome.options import Options

from boardsync.page.snapshot import RECT_ATTRIBUTE, PageSnapshot


logger = logging.getLogger(__name__)

DEFAULT_DEBUGGER_ADDRESS = "127.0.0.1:9223"
OVERLAY_MARKER = "data-boardsync-overlay"
OBSERVED_ATTRIBUTES = ["class", "style", "orientation", "data-selected"]

SNAPSHOT_SCRIPT = """
const attr = arguments[0];
const selectors = arguments[1];
const clone = document.documentElement.cloneNode(true);
for (const sel of selectors) {
    const live = document.querySelectorAll(sel);
    const copies = clone.querySelectorAll(sel);
    live.forEach((el, i) => {
        if (!copies[i]) return;
        const r = el.getBoundingClientRect();
        copies[i].setAttribute(attr, [r.left, r.top, r.width, r.height].join(','));
    });
}
return {url: location.href, html: clone.outerHTML};
"""

OBSERVE_SCRIPT = """
const token = arguments[0];
const selectors = arguments[1];
const attributeFilter = arguments[2];
const marker = arguments[3];
window.__boardsyncObservers = window.__boardsyncObservers || {};
window.__boardsyncChanges = window.__boardsyncChanges || {};
if (window.__boardsyncObservers[token]) {
    window.__boardsyncObservers[token].disconnect();
}
const isOverlay = (m) => {
    const el = m.target.nodeType === 1 ? m.target : m.target.parentElement;
    return !!(el && el.closest && el.closest('[' + marker + ']'));
};
const observer = new MutationObserver((mutations) => {
    if (mutations.every(isOverlay)) return;
    window.__boardsyncChanges[token] = (window.__boardsyncChanges[token] || 0) + 1;
});
let count = 0;
for (const sel of selectors) {
    document.querySelectorAll(sel).forEach((el) => {
        observer.observe(el, {childList: true, subtree: true, attributes: true, attributeFilter});
        count++;
    });
}
window.__boardsyncObservers[token] = observer;
window.__boardsyncChanges[token] = 0;
return count;
"""

POLL_SCRIPT = """
if (!window.__boardsyncObservers) return null;
const changes = window.__boardsyncChanges || {};
const fired = Object.keys(changes).filter((k) => changes[k] > 0);
fired.forEach((k) => { changes[k] = 0; });
return fired;
"""

DISCONNECT_SCRIPT = """
const token = arguments[0];
const observers = window.__boardsyncObservers || {};
if (observers[token]) {
    observers[token].disconnect();
    delete observers[token];
}
if (window.__boardsyncChanges) delete window.__boardsyncChanges[token];
"""


def connect_to_browser(debugger_address: str = DEFAULT_DEBUGGER_ADDRESS) -> webdriver.Chrome:
    """Attach Selenium to a Chromium instance started with --remote-debugging-port."""
    logger.info(f"Connecting to browser on {debugger_address}...")
    options = Options()
    options.add_experimental_option("debuggerAddress", debugger_address)
    driver = webdriver.Chrome(options=options)
    driver.set_script_timeout(5)
    logger.info(f"Connected to browser: {driver.current_url}")
    return driver


@dataclass
class BrowserSubscription:
    """A MutationObserver registered in the page under a token."""
    page: "BrowserPage"
    token: str
    selectors: tuple[str, ...]
    callback: Callable[[], None] = field(repr=False)
    active: bool = True

    def cancel(self) -> None:
        if self.active:
            self.active = False
            self.page._remove(self)


class BrowserPage:
    """PageSource implementation driving a live tab through Selenium."""

    def __init__(
        self,
        driver: webdriver.Remote,
        rect_selectors: Sequence[str] = (),
        poll_interval: float = 0.05,
    ) -> None:
        self._driver = driver
        self._rect_selectors = list(rect_selectors)
        self._poll_interval = poll_interval
        self._subscriptions: dict[str, BrowserSubscription] = {}
        self._tokens = itertools.count(1)
        self._poll_task: asyncio.Task | None = None

    @property
    def driver(self) -> webdriver.Remote:
        return self._driver

    def snapshot(self) -> PageSnapshot:
        result = self._driver.execute_script(SNAPSHOT_SCRIPT, RECT_ATTRIBUTE, self._rect_selectors)
        return PageSnapshot(result["html"], result.get("url", ""))

    def subscribe(
        self,
        selectors: Sequence[str],
        callback: Callable[[], None],
    ) -> BrowserSubscription:
        token = f"s{next(self._tokens)}"
        subscription = BrowserSubscription(self, token, tuple(selectors), callback)
        self._install(subscription)
        self._subscriptions[token] = subscription
        return subscription

    def _install(self, subscription: BrowserSubscription) -> None:
        count = self._driver.execute_script(
            OBSERVE_SCRIPT,
            subscription.token,
            list(subscription.selectors),
            OBSERVED_ATTRIBUTES,
            OVERLAY_MARKER,
        )
        logger.debug(f"Observer {subscription.token} watching {count} node(s) for {subscription.selectors}")

    def _remove(self, subscription: BrowserSubscription) -> None:
        self._subscriptions.pop(subscription.token, None)
        try:
            self._driver.execute_script(DISCONNECT_SCRIPT, subscription.token)
        except WebDriverException as e:
            logger.debug(f"Could not disconnect observer {subscription.token}: {e.msg}")

    def poll(self) -> None:
        """Dispatch callbacks for every observer that fired since the last poll."""
        fired = self._driver.execute_script(POLL_SCRIPT)

        if fired is None:
            # The page was reloaded and lost its observers
            logger.info("Page observers lost, reinstalling")
            for subscription in list(self._subscriptions.values()):
                self._install(subscription)
            fired = list(self._subscriptions)

        for token in fired:
            subscription = self._subscriptions.get(token)
            if subscription is not None and subscription.active:
                subscription.callback()

    def start(self) -> None:
        """Start the notification polling task."""
        if self._poll_task is None or self._poll_task.done():
            self._poll_task = asyncio.create_task(self._poll_loop())

    async def stop(self) -> None:
        if self._poll_task is not None:
            self._poll_task.cancel()
            try:
                await self._poll_task
            except asyncio.CancelledError:
                pass
            self._poll_task = None

    async def _poll_loop(self) -> None:
        while True:
            try:
                self.poll()
            except WebDriverException as e:
                logger.warning(f"Observer poll failed: {e.msg}")
            await asyncio.sleep(self._poll_interval)
