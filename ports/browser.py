from __future__ import annotations

from typing import List, Protocol

from models.navigation import NavResult


class NavigatorPort(Protocol):
    def goto(self, url: str, timeout_ms: int) -> NavResult:
        ...

    def hrefs(self, selector: str) -> List[str]:
        ...


class SearchPort(Protocol):
    def format_query(self, entity_name: str) -> str:
        ...

    def search(self, query: str) -> List[str]:
        ...
