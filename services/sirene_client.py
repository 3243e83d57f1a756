"""
SIRENE registry search (recherche-entreprises.api.gouv.fr) and geo label lookups.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from config.settings import Settings, get_settings


class RegistryError(RuntimeError):
    """Registry answered with a non-success status or an unexpected payload."""


class SireneClient:
    """Company search restricted to active entities within the configured revenue range."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.api_calls_made = 0

    def build_params(self, name: str, postal_code: str) -> Dict[str, Any]:
        return {
            "q": name,
            "code_postal": postal_code,
            "etat_administratif": "A",
            "ca_min": self.settings.sirene_revenue_min,
            "ca_max": self.settings.sirene_revenue_max,
            "per_page": self.settings.sirene_per_page,
        }

    def search(self, name: str, postal_code: str) -> List[Dict[str, Any]]:
        """Return the raw candidate list for `name` at `postal_code`.

        Raises RegistryError on non-2xx answers; network errors propagate as
        requests exceptions. Both are per-entity failures for the caller.
        """
        params = self.build_params(name, postal_code)
        logging.debug(f"SIRENE search q={name!r} code_postal={postal_code}")
        response = requests.get(
            self.settings.sirene_search_url,
            params=params,
            headers={"Accept": "application/json"},
            timeout=self.settings.request_timeout_seconds,
        )
        self.api_calls_made += 1
        if not response.ok:
            raise RegistryError(f"API error: {response.status_code} {response.reason}")
        payload = response.json()
        results = payload.get("results") if isinstance(payload, dict) else None
        if results is None:
            raise RegistryError("API response has no 'results' list")
        return list(results)


class GeoClient:
    """Department/region display names. Lookups never raise: failures give empty labels."""

    EMPTY: Dict[str, str] = {"code": "", "nom": ""}

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def _lookup(self, kind: str, code: Optional[str]) -> Dict[str, str]:
        if not code:
            return dict(self.EMPTY)
        url = f"{self.settings.geo_api_url}/{kind}/{code}"
        try:
            response = requests.get(url, timeout=self.settings.request_timeout_seconds)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logging.warning(f"Geo lookup failed for {kind}/{code}: {e}")
            return dict(self.EMPTY)
        if not isinstance(data, dict):
            return dict(self.EMPTY)
        return {"code": str(data.get("code") or ""), "nom": str(data.get("nom") or "")}

    def department(self, code: Optional[str]) -> Dict[str, str]:
        return self._lookup("departements", code)

    def region(self, code: Optional[str]) -> Dict[str, str]:
        return self._lookup("regions", code)
