from __future__ import annotations

from typing import Any, Dict, List, Protocol


class ScraperAdapterPort(Protocol):
    source_name: str

    def produce_list(self, trial: bool = False) -> List[Dict[str, Any]]:
        ...

    def produce_details(self, link: str) -> Dict[str, Any]:
        ...
