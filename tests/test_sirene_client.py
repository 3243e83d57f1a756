from __future__ import annotations

import pytest
import requests

from config.settings import get_settings
from services.sirene_client import GeoClient, RegistryError, SireneClient


class _Resp:
    def __init__(self, status=200, payload=None, reason="OK"):
        self.status_code = status
        self.ok = 200 <= status < 300
        self.reason = reason
        self._payload = payload

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload

    def raise_for_status(self):
        if not self.ok:
            raise requests.HTTPError(f"{self.status_code} {self.reason}")


def test_search_sends_registry_filters(monkeypatch):
    seen = {}

    def fake_get(url, params=None, headers=None, timeout=None):
        seen.update(url=url, params=params, headers=headers)
        return _Resp(payload={"results": [{"siren": "1"}], "total_results": 1})

    monkeypatch.setattr(requests, "get", fake_get)
    client = SireneClient(get_settings())
    assert client.search("ACME", "75002") == [{"siren": "1"}]
    assert seen["url"] == "https://recherche-entreprises.api.gouv.fr/search"
    assert seen["params"] == {
        "q": "ACME",
        "code_postal": "75002",
        "etat_administratif": "A",
        "ca_min": 10000000,
        "ca_max": 300000000,
        "per_page": 25,
    }
    assert seen["headers"] == {"Accept": "application/json"}
    assert client.api_calls_made == 1


def test_search_raises_on_error_status(monkeypatch):
    monkeypatch.setattr(requests, "get", lambda *a, **k: _Resp(status=429, reason="Too Many Requests"))
    with pytest.raises(RegistryError, match="429"):
        SireneClient(get_settings()).search("ACME", "75002")


def test_search_raises_on_payload_without_results(monkeypatch):
    monkeypatch.setattr(requests, "get", lambda *a, **k: _Resp(payload={"erreur": "x"}))
    with pytest.raises(RegistryError):
        SireneClient(get_settings()).search("ACME", "75002")


def test_revenue_range_validation(monkeypatch):
    monkeypatch.setenv("SIRENE_CA_MIN", "500")
    monkeypatch.setenv("SIRENE_CA_MAX", "100")
    with pytest.raises(RuntimeError):
        get_settings()


def test_geo_labels(monkeypatch):
    urls = []

    def fake_get(url, timeout=None):
        urls.append(url)
        return _Resp(payload={"code": "75", "nom": "Paris"})

    monkeypatch.setattr(requests, "get", fake_get)
    geo = GeoClient(get_settings())
    assert geo.department("75") == {"code": "75", "nom": "Paris"}
    assert urls == ["https://geo.api.gouv.fr/departements/75"]


def test_geo_failures_give_empty_labels(monkeypatch):
    def boom(url, timeout=None):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(requests, "get", boom)
    geo = GeoClient(get_settings())
    assert geo.region("11") == {"code": "", "nom": ""}
    # No code: no request at all
    monkeypatch.setattr(requests, "get", lambda *a, **k: pytest.fail("unexpected request"))
    assert geo.department(None) == {"code": "", "nom": ""}
