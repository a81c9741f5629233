"""Headless browser adapter built on Playwright.

Implements BrowserPort: post screenshots for the resolver and newest-post
discovery for the poller. One browser process is launched lazily and
reused; every operation gets its own context so the session cookie never
leaks between calls.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable, Mapping, Optional

from playwright.async_api import Browser, BrowserContext, Error as PlaywrightError, Playwright, async_playwright

from core.config import BrowserConfig
from core.errors import CaptureError
from core.models import PostReference
from core.references import extract_reference, normalize_handle

LOGGER = logging.getLogger(__name__)

POST_SELECTOR = 'article[data-testid="tweet"]'
PROFILE_URL = "https://x.com/{handle}"

# Collects one entry per rendered post, in document order.
_COLLECT_CARDS_JS = """
(selector) => Array.from(document.querySelectorAll(selector)).map((article) => {
  const timeNode = article.querySelector('time');
  const timeLink = timeNode ? timeNode.closest('a[href*="/status/"]') : null;
  const link = timeLink || article.querySelector('a[href*="/status/"]');
  const context = article.querySelector('[data-testid="socialContext"]');
  return {
    href: link ? link.href : null,
    social_context: context ? (context.textContent || '') : '',
  };
})
"""

_PINNED_MARKERS = ("pinned", "置顶", "固定")
_REPOST_MARKERS = ("reposted", "retweeted", "转推", "转帖", "リポスト")


def _has_repost_marker(context: str) -> bool:
    return any(marker in context for marker in _REPOST_MARKERS)


def is_pinned(card: Mapping[str, Any]) -> bool:
    context = str(card.get("social_context") or "").lower()
    # Repost banners carry the reposter's display name, which may contain a pinned marker.
    if _has_repost_marker(context):
        return False
    return any(marker in context for marker in _PINNED_MARKERS)


def is_repost(card: Mapping[str, Any], account_handle: str) -> bool:
    context = str(card.get("social_context") or "").lower()
    if _has_repost_marker(context):
        return True
    reference = extract_reference(str(card.get("href") or ""))
    # A post authored by someone else on this profile page is a repost.
    return reference is not None and normalize_handle(reference.author_handle) != normalize_handle(account_handle)


def select_latest_post(
    cards: Iterable[Mapping[str, Any]],
    account_handle: str,
    exclude_reposts: bool,
) -> Optional[PostReference]:
    """Return the first card that is neither pinned nor (optionally) a repost.

    The two filters are independent: pinned posts are always skipped, reposts
    only when ``exclude_reposts`` is set.
    """

    for card in cards:
        reference = extract_reference(str(card.get("href") or ""))
        if reference is None:
            continue
        if is_pinned(card):
            continue
        if exclude_reposts and is_repost(card, account_handle):
            continue
        return reference
    return None


class PlaywrightBrowser:
    """Lazily launched, shared headless browser."""

    def __init__(self, config: BrowserConfig) -> None:
        self._config = config
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._launch_lock = asyncio.Lock()

    async def _ensure_browser(self) -> Browser:
        async with self._launch_lock:
            if self._browser is not None and self._browser.is_connected():
                return self._browser
            if self._playwright is None:
                self._playwright = await async_playwright().start()
            launcher = getattr(self._playwright, self._config.engine)
            LOGGER.info("Launching %s (headless=%s)", self._config.engine, self._config.headless)
            args = ["--no-sandbox"] if self._config.engine == "chromium" else []
            self._browser = await launcher.launch(headless=self._config.headless, args=args)
            return self._browser

    async def _new_context(self, credential: Optional[str]) -> BrowserContext:
        browser = await self._ensure_browser()
        context = await browser.new_context(viewport={"width": 1280, "height": 2000})
        context.set_default_navigation_timeout(self._config.navigation_timeout_ms)
        context.set_default_timeout(self._config.selector_timeout_ms)
        if credential:
            await context.add_cookies(
                [
                    {
                        "name": "auth_token",
                        "value": credential,
                        "domain": ".x.com",
                        "path": "/",
                        "httpOnly": True,
                        "secure": True,
                    }
                ]
            )
        return context

    async def render_screenshot(self, url: str, credential: Optional[str] = None) -> bytes:
        context = None
        try:
            context = await self._new_context(credential)
            page = await context.new_page()
            await page.goto(url, wait_until="domcontentloaded")
            element = await page.wait_for_selector(POST_SELECTOR)
            if element is None:
                raise CaptureError(f"No post element found on {url}")
            return await element.screenshot(type="png")
        except PlaywrightError as exc:
            raise CaptureError(f"Screenshot of {url} failed: {exc.message}") from exc
        finally:
            if context is not None:
                await context.close()

    async def discover_latest_post(
        self,
        account_handle: str,
        credential: Optional[str] = None,
        exclude_reposts: bool = False,
    ) -> Optional[PostReference]:
        url = PROFILE_URL.format(handle=account_handle)
        context = None
        try:
            context = await self._new_context(credential)
            page = await context.new_page()
            await page.goto(url, wait_until="domcontentloaded")
            await page.wait_for_selector(POST_SELECTOR)
            cards = await page.evaluate(_COLLECT_CARDS_JS, POST_SELECTOR)
        except PlaywrightError as exc:
            raise CaptureError(f"Could not inspect {url}: {exc.message}") from exc
        finally:
            if context is not None:
                await context.close()

        LOGGER.debug("Found %s post card(s) on %s", len(cards), url)
        return select_latest_post(cards, account_handle, exclude_reposts)

    async def close(self) -> None:
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None
