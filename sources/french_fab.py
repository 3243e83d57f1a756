"""
La French Fab directory (https://www.lafrenchfab.fr/annuaire/).

The directory is paginated through a WordPress AJAX "load more" action that
needs a nonce scraped from the directory page; already-seen posts are sent
back as `excluded_posts[]`.
"""
from __future__ import annotations

import re
from typing import Any, Dict, List

from sources.base import AdapterError, DirectoryAdapter
from sources.registry import register


DIRECTORY_URL = "https://www.lafrenchfab.fr/annuaire/"
AJAX_URL = "https://www.lafrenchfab.fr/ajax-call"

_NONCE = re.compile(r'"goat":\s*"([a-f0-9]+)"')
_POSTAL_CODE = re.compile(r"\d{5}")


class FrenchFabSource(DirectoryAdapter):
    source_name = "french_fab"

    def _fetch_nonce(self) -> str:
        html = self.fetch_html(DIRECTORY_URL)
        m = _NONCE.search(html)
        if not m:
            raise AdapterError("Security nonce (goat) not found on directory page")
        return m.group(1)

    def _fetch_page(self, nonce: str, excluded_ids: List[str]) -> Dict[str, Any]:
        body = [
            ("action", "load_more_entreprises"),
            ("goat", nonce),
            ("context", "entreprise"),
        ]
        body.extend(("excluded_posts[]", post_id) for post_id in excluded_ids)
        response = self.session.post(
            AJAX_URL,
            data=body,
            headers={
                "Content-Type": "application/x-www-form-urlencoded; charset=UTF-8",
                "Referer": DIRECTORY_URL,
            },
            timeout=self.settings.request_timeout_seconds,
        )
        if response.status_code != 200:
            raise AdapterError(f"Directory API failed (status: {response.status_code})")
        data = response.json()
        return data if isinstance(data, dict) else {}

    def produce_list(self, trial: bool = False) -> List[Dict[str, Any]]:
        """All directory entries as {name, link}. Trial mode stops after one page."""
        nonce = self._fetch_nonce()
        companies: List[Dict[str, Any]] = []
        excluded_ids: List[str] = []
        while True:
            data = self._fetch_page(nonce, excluded_ids)
            if not data.get("html") or data.get("nbresults") == 0:
                break
            soup = self.parse(data["html"])
            items = soup.select("li[data-id]")
            if not items:
                break
            for item in items:
                excluded_ids.append(item.get("data-id"))
                anchor = item.select_one("a.directory__item")
                link = anchor.get("href") if anchor else None
                name = self.text_of(item.select_one(".directory__title"))
                if not name or not link:
                    continue
                companies.append({"name": name, "link": link})
            self.log(f"Directory listing: {len(companies)} companies so far")
            if trial:
                break
        return companies

    def produce_details(self, link: str) -> Dict[str, Any]:
        soup = self.parse(self.fetch_html(link))

        paragraphs = soup.select("div.fl-rich-text p")
        description = self.text_of(paragraphs[1]) if len(paragraphs) > 1 else ""
        button = soup.select_one("div.pp-button-wrap.pp-button-width-auto a")
        website = (button.get("href") or "").strip() if button else ""

        subheadings = [self.text_of(n) for n in soup.select("div.uabb-subheading.uabb-text-editor")]

        def _nth(i: int) -> str:
            return subheadings[i] if len(subheadings) > i else ""

        coordinates = _nth(0)
        m = _POSTAL_CODE.search(coordinates)
        postal_code = m.group(0) if m else ""
        parts = coordinates.split(" - ")
        address = parts[0].replace(postal_code, "").strip() if postal_code else parts[0].strip()
        city = parts[1].strip() if len(parts) > 1 else ""

        return {
            "type": _nth(2),
            "sector": _nth(3),
            "description": description,
            "website": website,
            "address": address,
            "postal_code": postal_code,
            "city": city,
            "region": _nth(1),
            "contact": _nth(4),
        }


def _register():
    register(FrenchFabSource.source_name, FrenchFabSource)


_register()
