from __future__ import annotations

from contextlib import AbstractContextManager
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, List, Optional

from config.settings import Settings, get_settings
from models.enriched_record import SOCIAL_URL_ERROR, EnrichedRecord, FinalRecord
from models.navigation import NavOk, NavTimedOut
from pipelines.runner import ProgressCallback, RunContext, report_progress
from ports.browser import NavigatorPort, SearchPort
from services.domain_utils import is_platform_link, unwrap_redirect
from storage.checkpoint import CheckpointStore
from utils.error_log import ErrorLog
from utils.logging_setup import stage_logger


class NavState(str, Enum):
    NAV_PENDING = "nav_pending"
    NAV_OK = "nav_ok"
    NAV_FAILED_SOFT = "nav_failed_soft"
    NAV_FAILED_HARD = "nav_failed_hard"
    LINK_SCAN = "link_scan"
    SEARCH_FALLBACK = "search_fallback"
    DONE = "done"


@dataclass
class Discovery:
    state: NavState
    url: str = ""

    @property
    def social_url(self) -> str:
        if self.state is NavState.NAV_FAILED_HARD:
            return SOCIAL_URL_ERROR
        return self.url


def pick_onsite_link(links: Iterable[str], platform_domain: str) -> str:
    """Company pages first, then any other platform link."""
    matches = [href for href in links if is_platform_link(href, platform_domain)]
    for href in matches:
        if "/company/" in href:
            return href
    return matches[0] if matches else ""


def pick_search_link(links: Iterable[str], platform_domain: str) -> str:
    """Unwrap redirect links, then prefer /company/ over /showcase/ pages."""
    cleaned: List[str] = []
    for href in links:
        target = unwrap_redirect(href)
        if target and is_platform_link(target, platform_domain):
            cleaned.append(target)
    for pattern in ("/company/", "/showcase/"):
        for href in cleaned:
            if pattern in href:
                return href
    return ""


class DiscoverSocialProfiles:
    """Stage 3b: find a social-platform company page for each SIRENE match.

    Outcomes: URL found, "" (not found, including navigation timeouts) or
    SOCIAL_URL_ERROR (hard navigation failure or unexpected error). All three
    are checkpointed so no record is ever retried.
    """

    stage = "final"
    error_stage = "enrich:social"

    def __init__(
        self,
        store: CheckpointStore,
        navigator_factory: Callable[[], AbstractContextManager],
        search_factory: Callable[[NavigatorPort], SearchPort],
        error_log: ErrorLog,
        settings: Optional[Settings] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        self.store = store
        self.navigator_factory = navigator_factory
        self.search_factory = search_factory
        self.error_log = error_log
        self.settings = settings or get_settings()
        self.on_progress = on_progress

    def _navigate(self, navigator: NavigatorPort, record: EnrichedRecord) -> NavState:
        """Two attempts, short then long timeout. Only a final non-timeout failure is hard."""
        website = record.provenance.website or ""
        context = {"name": record.resume_key, "website": website}
        attempts = (
            ("social:nav_attempt1", self.settings.nav_timeout_short_ms),
            ("social:nav_attempt2", self.settings.nav_timeout_long_ms),
        )
        result = None
        for stage, timeout_ms in attempts:
            result = navigator.goto(website, timeout_ms)
            if isinstance(result, NavOk):
                return NavState.NAV_OK
            self.error_log.record(stage=stage, error=result.reason, context=context)
        if isinstance(result, NavTimedOut):
            return NavState.NAV_FAILED_SOFT
        return NavState.NAV_FAILED_HARD

    def discover(self, navigator: NavigatorPort, search: SearchPort, record: EnrichedRecord) -> Discovery:
        platform = self.settings.social_platform_domain
        website = record.provenance.website or ""
        discovery = Discovery(NavState.NAV_PENDING)
        if not website.startswith("http"):
            discovery.state = NavState.DONE
            return discovery

        discovery.state = self._navigate(navigator, record)
        if discovery.state is not NavState.NAV_OK:
            return discovery

        discovery.state = NavState.LINK_SCAN
        discovery.url = pick_onsite_link(navigator.hrefs(f'a[href*="{platform}"]'), platform)
        if not discovery.url:
            discovery.state = NavState.SEARCH_FALLBACK
            links = search.search(search.format_query(record.resume_key))
            discovery.url = pick_search_link(links, platform)
        discovery.state = NavState.DONE
        return discovery

    def run(self, ctx: RunContext) -> RunContext:
        log = stage_logger(ctx.source, self.stage)
        enriched = [EnrichedRecord.model_validate(r) for r in self.store.load(ctx.source, "enriched")]
        # Placeholders have no confirmed legal identity: nothing to search for
        eligible = [r for r in enriched if r.is_match]
        final = [FinalRecord.model_validate(r) for r in self.store.load(ctx.source, self.stage)]
        done_names = {r.resume_key for r in final}
        pending = [r for r in eligible if r.resume_key not in done_names]
        total = len(eligible)

        found = 0
        errors = 0
        processed = 0
        if pending:
            with self.navigator_factory() as navigator:
                search = self.search_factory(navigator)
                for idx, record in enumerate(pending, start=total - len(pending) + 1):
                    report_progress(self.on_progress, idx, total, record.resume_key, found)
                    try:
                        social_url = self.discover(navigator, search, record).social_url
                    except Exception as e:
                        social_url = SOCIAL_URL_ERROR
                        log.warning(
                            f"Social discovery failed for {record.resume_key}: {e}",
                            extra={"step": self.error_stage, "status": "error", "item": record.id},
                        )
                        self.error_log.record(
                            stage=self.error_stage,
                            error=e,
                            context={"name": record.resume_key, "website": record.provenance.website},
                        )

                    final.append(FinalRecord.model_validate({**record.model_dump(), "social_url": social_url}))
                    self.store.save(ctx.source, self.stage, [r.model_dump(mode="json") for r in final])
                    processed += 1
                    if social_url == SOCIAL_URL_ERROR:
                        errors += 1
                        status = "error"
                    elif social_url:
                        found += 1
                        status = "found"
                    else:
                        status = "not_found"
                    log.info(
                        f"{record.resume_key}: {social_url or 'not found'}",
                        extra={"status": status, "item": record.id},
                    )

        ctx.meta["social_processed"] = processed
        ctx.meta["social_found"] = found
        ctx.meta["social_errors"] = errors
        return ctx
