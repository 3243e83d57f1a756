from __future__ import annotations

import pytest

from config.settings import get_settings
from models.enriched_record import EnrichedRecord, FinalRecord
from models.navigation import NavFailed, NavOk, NavTimedOut
from pipelines.runner import RunContext
from pipelines.steps.discover_profiles import (
    DiscoverSocialProfiles,
    pick_onsite_link,
    pick_search_link,
)
from services.web_search import DuckDuckGoSearch


SOURCE = "acme_dir"


class FakeNavigator:
    """Scripted navigator: per-URL list of results consumed one goto at a time."""

    def __init__(self, script=None, links=None, search_links=None):
        self.script = script or {}
        self.links = links or {}
        self.search_links = search_links or []
        self.visits = []
        self.current = None
        self.entered = False
        self.closed = False

    def __enter__(self):
        self.entered = True
        return self

    def __exit__(self, exc_type, exc, tb):
        self.closed = True

    def goto(self, url, timeout_ms):
        self.visits.append((url, timeout_ms))
        self.current = url
        queue = self.script.get(url)
        if queue:
            return queue.pop(0)
        return NavOk(url=url)

    def hrefs(self, selector):
        if selector == DuckDuckGoSearch.RESULT_SELECTOR:
            return list(self.search_links)
        return list(self.links.get(self.current, []))


@pytest.fixture
def settings(monkeypatch):
    monkeypatch.setenv("SOCIAL_PLATFORM_DOMAIN", "platform.com")
    monkeypatch.setenv("SOCIAL_PLATFORM_NAME", "platform")
    return get_settings()


def _record(name, website="https://acme.fr/", legal_id="123456789", rid="ENT-00000"):
    return EnrichedRecord.model_validate({
        "id": rid if legal_id else None,
        "legal_id": legal_id,
        "provenance": {"name": name, "link": f"https://dir.example/{name}", "website": website},
    }).model_dump(mode="json")


def _step(store, error_log, settings, navigator):
    return DiscoverSocialProfiles(
        store,
        lambda: navigator,
        lambda nav: DuckDuckGoSearch(nav, settings),
        error_log,
        settings=settings,
    )


def _final(store):
    return [FinalRecord.model_validate(r) for r in store.load(SOURCE, "final")]


def test_onsite_link_prefers_company_page():
    links = ["https://platform.com/in/jdoe", "https://platform.com/company/acme"]
    assert pick_onsite_link(links, "platform.com") == "https://platform.com/company/acme"
    assert pick_onsite_link(["https://platform.com/in/jdoe"], "platform.com") == "https://platform.com/in/jdoe"
    assert pick_onsite_link(["https://notplatform.com/company/x"], "platform.com") == ""


def test_search_link_unwraps_redirects_and_prefers_company():
    links = [
        "//duckduckgo.com/l/?uddg=https%3A%2F%2Ffr.platform.com%2Fshowcase%2Facme-labs&rut=abc",
        "//duckduckgo.com/l/?uddg=https%3A%2F%2Fplatform.com%2Fcompany%2Facme&rut=def",
        "https://example.org/about",
    ]
    assert pick_search_link(links, "platform.com") == "https://platform.com/company/acme"
    assert pick_search_link(links[:1], "platform.com") == "https://fr.platform.com/showcase/acme-labs"
    assert pick_search_link(["https://platform.com/in/jdoe"], "platform.com") == ""


def test_onsite_link_found(store, error_log, settings):
    store.save(SOURCE, "enriched", [_record("ACME")])
    nav = FakeNavigator(links={"https://acme.fr/": ["https://platform.com/in/jdoe", "https://platform.com/company/acme"]})
    ctx = _step(store, error_log, settings, nav).run(RunContext(source=SOURCE))

    [rec] = _final(store)
    assert rec.social_url == "https://platform.com/company/acme"
    assert nav.visits == [("https://acme.fr/", settings.nav_timeout_short_ms)]
    assert ctx.meta["social_found"] == 1


def test_search_fallback_when_site_has_no_link(store, error_log, settings):
    store.save(SOURCE, "enriched", [_record("ACME")])
    nav = FakeNavigator(search_links=["//duckduckgo.com/l/?uddg=https%3A%2F%2Fplatform.com%2Fcompany%2Facme"])
    _step(store, error_log, settings, nav).run(RunContext(source=SOURCE))

    [rec] = _final(store)
    assert rec.social_url == "https://platform.com/company/acme"
    assert nav.visits[1][0] == "https://html.duckduckgo.com/html/?q=ACME+platform"


def test_two_timeouts_give_empty_url(store, error_log, settings):
    store.save(SOURCE, "enriched", [_record("ACME")])
    url = "https://acme.fr/"
    nav = FakeNavigator(script={url: [NavTimedOut(url, "Timeout 5000ms"), NavTimedOut(url, "Timeout 10000ms")]})
    ctx = _step(store, error_log, settings, nav).run(RunContext(source=SOURCE))

    [rec] = _final(store)
    assert rec.social_url == ""
    assert [t for _, t in nav.visits] == [settings.nav_timeout_short_ms, settings.nav_timeout_long_ms]
    log = store.error_log_path(SOURCE).read_text(encoding="utf-8")
    assert "social:nav_attempt1" in log and "social:nav_attempt2" in log
    assert ctx.meta["social_errors"] == 0


def test_timeout_then_recovery_scans_links(store, error_log, settings):
    store.save(SOURCE, "enriched", [_record("ACME")])
    url = "https://acme.fr/"
    nav = FakeNavigator(
        script={url: [NavTimedOut(url, "Timeout 5000ms")]},
        links={url: ["https://platform.com/company/acme"]},
    )
    _step(store, error_log, settings, nav).run(RunContext(source=SOURCE))
    assert _final(store)[0].social_url == "https://platform.com/company/acme"


def test_connection_failure_gives_error_marker(store, error_log, settings):
    store.save(SOURCE, "enriched", [_record("ACME")])
    url = "https://acme.fr/"
    nav = FakeNavigator(script={url: [NavTimedOut(url, "Timeout"), NavFailed(url, "net::ERR_NAME_NOT_RESOLVED")]})
    ctx = _step(store, error_log, settings, nav).run(RunContext(source=SOURCE))

    [rec] = _final(store)
    assert rec.social_url == "ERROR"
    assert rec.is_error
    assert ctx.meta["social_errors"] == 1


def test_no_website_gives_empty_url_without_navigation(store, error_log, settings):
    store.save(SOURCE, "enriched", [_record("ACME", website=None)])
    nav = FakeNavigator()
    _step(store, error_log, settings, nav).run(RunContext(source=SOURCE))
    assert _final(store)[0].social_url == ""
    assert nav.visits == []


def test_placeholders_are_not_searched(store, error_log, settings):
    store.save(SOURCE, "enriched", [_record("ACME", legal_id=None)])
    nav = FakeNavigator()
    ctx = _step(store, error_log, settings, nav).run(RunContext(source=SOURCE))
    assert _final(store) == []
    # Nothing pending: the browser is never started
    assert not nav.entered
    assert ctx.meta["social_processed"] == 0


def test_resume_skips_processed_names(store, error_log, settings):
    store.save(SOURCE, "enriched", [_record("ACME"), _record("BETA", website="https://beta.fr/", rid="ENT-00001")])
    done = FinalRecord.model_validate({**_record("ACME"), "social_url": "https://platform.com/company/acme"})
    store.save(SOURCE, "final", [done.model_dump(mode="json")])
    nav = FakeNavigator(links={"https://beta.fr/": ["https://platform.com/company/beta"]})
    _step(store, error_log, settings, nav).run(RunContext(source=SOURCE))

    assert [u for u, _ in nav.visits] == ["https://beta.fr/"]
    assert [r.social_url for r in _final(store)] == ["https://platform.com/company/acme", "https://platform.com/company/beta"]


def test_unexpected_error_is_recorded_and_browser_closed(store, error_log, settings):
    store.save(SOURCE, "enriched", [_record("ACME")])

    class ExplodingNavigator(FakeNavigator):
        def hrefs(self, selector):
            raise RuntimeError("page crashed")

    nav = ExplodingNavigator()
    _step(store, error_log, settings, nav).run(RunContext(source=SOURCE))
    assert _final(store)[0].social_url == "ERROR"
    assert nav.closed
    assert "page crashed" in store.error_log_path(SOURCE).read_text(encoding="utf-8")


def test_browser_closed_when_stage_aborts(store, error_log, settings, monkeypatch):
    store.save(SOURCE, "enriched", [_record("ACME")])
    nav = FakeNavigator(links={"https://acme.fr/": ["https://platform.com/company/acme"]})

    def broken_save(*args, **kwargs):
        raise KeyboardInterrupt

    monkeypatch.setattr(store, "save", broken_save)
    with pytest.raises(KeyboardInterrupt):
        _step(store, error_log, settings, nav).run(RunContext(source=SOURCE))
    assert nav.closed
