import asyncio

from adapters.playwright_browser import PlaywrightBrowser, is_pinned, is_repost, select_latest_post
from core.config import BrowserConfig


def _card(href: str, social_context: str = "") -> dict:
    return {"href": href, "social_context": social_context}


def test_pinned_post_is_always_skipped() -> None:
    cards = [
        _card("https://x.com/nasa/status/1", "Pinned"),
        _card("https://x.com/nasa/status/5"),
    ]

    for exclude_reposts in (True, False):
        reference = select_latest_post(cards, "nasa", exclude_reposts)
        assert reference is not None
        assert reference.status_id == "5"


def test_reposts_are_skipped_only_when_requested() -> None:
    cards = [
        _card("https://x.com/esa/status/9", "NASA reposted"),
        _card("https://x.com/nasa/status/5"),
    ]

    assert select_latest_post(cards, "nasa", exclude_reposts=True).status_id == "5"
    assert select_latest_post(cards, "nasa", exclude_reposts=False).status_id == "9"


def test_foreign_author_without_marker_counts_as_repost() -> None:
    assert is_repost(_card("https://x.com/esa/status/9"), "@NASA")
    assert not is_repost(_card("https://x.com/NASA/status/9"), "nasa")
    assert not is_pinned(_card("https://x.com/nasa/status/9", "NASA reposted"))


def test_cards_without_links_or_only_filtered_cards_yield_nothing() -> None:
    cards = [_card(None), _card("https://x.com/nasa/status/1", "Pinned")]

    assert select_latest_post(cards, "nasa", exclude_reposts=False) is None
    assert select_latest_post([], "nasa", exclude_reposts=False) is None


def test_reposter_name_containing_pinned_is_not_a_pinned_post() -> None:
    card = _card("https://x.com/esa/status/9", "Unpinned News reposted")

    assert not is_pinned(card)
    assert is_repost(card, "nasa")
    assert select_latest_post([card], "nasa", exclude_reposts=False).status_id == "9"


class FakePage:
    def __init__(self, cards: list) -> None:
        self.cards = cards
        self.goto_calls = []

    async def goto(self, url: str, wait_until: str = "load") -> None:
        self.goto_calls.append((url, wait_until))

    async def wait_for_selector(self, selector: str):
        return FakeElement()

    async def evaluate(self, script: str, selector: str) -> list:
        return self.cards


class FakeElement:
    async def screenshot(self, type: str = "png") -> bytes:
        return b"png"


class FakeContext:
    def __init__(self, page: FakePage) -> None:
        self.page = page
        self.closed = False

    async def new_page(self) -> FakePage:
        return self.page

    async def close(self) -> None:
        self.closed = True


def _browser_with(page: FakePage) -> tuple:
    browser = PlaywrightBrowser(BrowserConfig())
    context = FakeContext(page)

    async def new_context(credential):
        return context

    browser._new_context = new_context
    return browser, context


def test_navigation_waits_for_dom_not_network_idle() -> None:
    page = FakePage([_card("https://x.com/nasa/status/5")])
    browser, context = _browser_with(page)

    reference = asyncio.run(browser.discover_latest_post("nasa"))
    screenshot = asyncio.run(browser.render_screenshot("https://x.com/nasa/status/5"))

    assert reference.status_id == "5"
    assert screenshot == b"png"
    assert page.goto_calls == [
        ("https://x.com/nasa", "domcontentloaded"),
        ("https://x.com/nasa/status/5", "domcontentloaded"),
    ]
    assert context.closed
