"""
Headless browser session used by the social-profile discovery stage.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from config.settings import Settings, get_settings
from models.navigation import NavFailed, NavOk, NavResult, NavTimedOut


class PlaywrightNavigator:
    """One chromium page shared by every navigation of a stage run.

    Use as a context manager; the browser is closed on exit even when the
    stage aborts mid-loop.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._playwright = None
        self._browser = None
        self._page = None

    def __enter__(self) -> "PlaywrightNavigator":
        self._playwright = sync_playwright().start()
        try:
            self._browser = self._playwright.chromium.launch(
                headless=self.settings.browser_headless,
                args=["--no-sandbox", "--disable-setuid-sandbox"],
            )
            self._page = self._browser.new_page(
                viewport={"width": 1920, "height": 1080},
                user_agent=self.settings.user_agent,
            )
        except BaseException:
            self.close()
            raise
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        try:
            if self._browser is not None:
                self._browser.close()
        except PlaywrightError as e:
            logging.warning(f"Browser close failed: {e}")
        finally:
            self._browser = None
            self._page = None
            if self._playwright is not None:
                self._playwright.stop()
                self._playwright = None

    def goto(self, url: str, timeout_ms: int) -> NavResult:
        if self._page is None:
            raise RuntimeError("Navigator used outside of its context manager")
        try:
            self._page.goto(url, wait_until="networkidle", timeout=timeout_ms)
        except PlaywrightTimeoutError as e:
            return NavTimedOut(url=url, reason=str(e))
        except PlaywrightError as e:
            return NavFailed(url=url, reason=str(e))
        return NavOk(url=url)

    def hrefs(self, selector: str) -> List[str]:
        """Resolved `href` of every element matching `selector` on the current page."""
        if self._page is None:
            raise RuntimeError("Navigator used outside of its context manager")
        links = self._page.eval_on_selector_all(selector, "els => els.map(el => el.href)")
        return [str(link) for link in links if link]
