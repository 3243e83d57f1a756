from __future__ import annotations

from typing import List, Optional
from urllib.parse import quote_plus

from config.settings import Settings, get_settings
from ports.browser import NavigatorPort
from models.navigation import NavOk


class SearchError(RuntimeError):
    """The search results page could not be loaded."""


class DuckDuckGoSearch:
    """Fallback web search through the DuckDuckGo HTML endpoint.

    Reuses the stage's browser page; result links are returned as found, i.e.
    still wrapped in DuckDuckGo's `/l/?uddg=` redirect.
    """

    RESULT_SELECTOR = ".results .result__a"

    def __init__(self, navigator: NavigatorPort, settings: Optional[Settings] = None):
        self.navigator = navigator
        self.settings = settings or get_settings()

    def format_query(self, entity_name: str) -> str:
        return f"{entity_name} {self.settings.social_platform_name}"

    def search(self, query: str) -> List[str]:
        url = f"{self.settings.search_engine_url}?q={quote_plus(query)}"
        result = self.navigator.goto(url, self.settings.nav_timeout_long_ms)
        if not isinstance(result, NavOk):
            raise SearchError(f"Search page failed for {query!r}: {result.reason}")
        return self.navigator.hrefs(self.RESULT_SELECTOR)
