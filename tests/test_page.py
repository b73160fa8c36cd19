"""Tests for page snapshots and page sources."""

from boardsync.core.models import BoundingBox
from boardsync.page.browser import (
    DISCONNECT_SCRIPT,
    OBSERVE_SCRIPT,
    POLL_SCRIPT,
    SNAPSHOT_SCRIPT,
    BrowserPage,
)
from boardsync.page.snapshot import PageSnapshot
from boardsync.page.static import StaticPage


class FakeDriver:
    """Answers the page scripts from canned values."""

    def __init__(self) -> None:
        self.fired: list[str] | None = []
        self.calls: list[str] = []

    def execute_script(self, script: str, *args):
        if script == SNAPSHOT_SCRIPT:
            self.calls.append("snapshot")
            return {"html": "<html><body><p>hi</p></body></html>", "url": "https://example.test/"}
        if script == OBSERVE_SCRIPT:
            self.calls.append(f"observe:{args[0]}")
            return 1
        if script == POLL_SCRIPT:
            fired, self.fired = self.fired, []
            return fired
        if script == DISCONNECT_SCRIPT:
            self.calls.append(f"disconnect:{args[0]}")
            return None
        raise AssertionError("unexpected script")


class TestPageSnapshot:
    """Tests for snapshot helpers."""

    def test_rect_of(self):
        snapshot = PageSnapshot('<div data-boardsync-rect="10,20,300,200.5"></div>')
        assert PageSnapshot.rect_of(snapshot.select_one("div")) == BoundingBox(10, 20, 310, 220.5)

    def test_malformed_rect(self):
        snapshot = PageSnapshot('<div data-boardsync-rect="10,20"></div><span></span>')

        assert PageSnapshot.rect_of(snapshot.select_one("div")) is None
        assert PageSnapshot.rect_of(snapshot.select_one("span")) is None

    def test_closest_and_matches(self):
        snapshot = PageSnapshot('<section class="outer"><div class="inner"><b>x</b></div></section>')
        bold = snapshot.select_one("b")

        assert snapshot.closest(bold, ".outer").name == "section"
        assert snapshot.closest(bold, ".missing") is None
        assert snapshot.matches(snapshot.select_one("div"), ".inner")

    def test_text(self):
        snapshot = PageSnapshot("<div><span>Crazyhouse</span> <span>game</span></div>")
        assert snapshot.text() == "Crazyhouse game"


class TestStaticPage:
    """Tests for the in-memory page source."""

    def test_set_html_notifies(self):
        page = StaticPage("<p>a</p>")
        calls = []
        page.subscribe(["p"], lambda: calls.append(1))

        page.set_html("<p>b</p>")
        page.set_html("<p>c</p>", notify=False)

        assert calls == [1]
        assert page.snapshot().text() == "c"

    def test_cancel(self):
        page = StaticPage("<p>a</p>")
        calls = []
        subscription = page.subscribe(["p"], lambda: calls.append(1))

        subscription.cancel()
        subscription.cancel()
        page.touch()

        assert calls == []
        assert page.active_selectors == []


class TestBrowserPage:
    """Tests for the Selenium page source against a fake driver."""

    def test_snapshot(self):
        page = BrowserPage(FakeDriver(), rect_selectors=["wc-chess-board"])

        snapshot = page.snapshot()

        assert snapshot.url == "https://example.test/"
        assert snapshot.text() == "hi"

    def test_poll_dispatches_fired_observers(self):
        driver = FakeDriver()
        page = BrowserPage(driver)
        first, second = [], []
        page.subscribe(["wc-chess-board"], lambda: first.append(1))
        page.subscribe(["body"], lambda: second.append(1))

        driver.fired = ["s2"]
        page.poll()

        assert first == []
        assert second == [1]

    def test_lost_observers_are_reinstalled(self):
        driver = FakeDriver()
        page = BrowserPage(driver)
        calls = []
        page.subscribe(["body"], lambda: calls.append(1))

        driver.fired = None
        page.poll()

        assert driver.calls.count("observe:s1") == 2
        assert calls == [1]

    def test_cancel_disconnects(self):
        driver = FakeDriver()
        page = BrowserPage(driver)
        subscription = page.subscribe(["body"], lambda: None)

        subscription.cancel()
        driver.fired = ["s1"]
        page.poll()

        assert "disconnect:s1" in driver.calls
