from __future__ import annotations

from typing import Any, Dict, List, Optional

import requests
from bs4 import BeautifulSoup

from config.settings import Settings, get_settings
from utils.logging_setup import stage_logger


class AdapterError(RuntimeError):
    """Directory page could not be fetched or did not have the expected shape."""


class DirectoryAdapter:
    """Shared plumbing for site adapters: settings, HTTP session, HTML parsing.

    Subclasses implement `produce_list` and `produce_details`.
    """

    source_name: str = ""

    def __init__(self, settings: Optional[Settings] = None, session: Optional[requests.Session] = None):
        self.settings = settings or get_settings()
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": self.settings.user_agent})

    def fetch_html(self, url: str, **kwargs: Any) -> str:
        response = self.session.get(url, timeout=self.settings.request_timeout_seconds, **kwargs)
        if response.status_code != 200:
            raise AdapterError(f"Failed to load {url} (status: {response.status_code})")
        return response.text

    @staticmethod
    def parse(html: str) -> BeautifulSoup:
        return BeautifulSoup(html or "", "html.parser")

    @staticmethod
    def text_of(node) -> str:
        if node is None:
            return ""
        return " ".join(node.get_text(" ").split())

    def produce_list(self, trial: bool = False) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def produce_details(self, link: str) -> Dict[str, Any]:
        raise NotImplementedError

    def log(self, message: str) -> None:
        stage_logger(self.source_name, "adapter").info(message)
