from __future__ import annotations

from typing import Optional

from models.source_record import DetailRecord
from pipelines.runner import ProgressCallback, RunContext, report_progress
from ports.source import ScraperAdapterPort
from storage.checkpoint import CheckpointStore
from utils.error_log import ErrorLog
from utils.logging_setup import stage_logger


class FetchDetails:
    """Stage 2: one detail page per listed entity, checkpointed after each success.

    Resume identity is the listing link. Failed items are logged and left out
    of the checkpoint so the next run retries them.
    """

    stage = "details"

    def __init__(
        self,
        store: CheckpointStore,
        adapter: ScraperAdapterPort,
        error_log: ErrorLog,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        self.store = store
        self.adapter = adapter
        self.error_log = error_log
        self.on_progress = on_progress

    def run(self, ctx: RunContext) -> RunContext:
        log = stage_logger(ctx.source, self.stage)
        listed = self.store.load(ctx.source, "urls")
        details = self.store.load(ctx.source, self.stage)
        done_links = {item.get("link") for item in details}
        total = len(listed)
        log.info(f"Resuming detail fetch: {len(done_links)}/{total} already done")

        fetched = 0
        failed = 0
        for idx, item in enumerate(listed, start=1):
            link = item.get("link")
            name = item.get("name") or ""
            if link in done_links:
                continue
            report_progress(self.on_progress, idx, total, name, fetched)
            try:
                extracted = self.adapter.produce_details(link)
                record = DetailRecord.model_validate({**(extracted or {}), "name": name, "link": link})
            except Exception as e:
                failed += 1
                log.warning(
                    f"Detail fetch failed for {name}: {e}",
                    extra={"status": "error", "item": link},
                )
                self.error_log.record(stage=self.stage, error=e, context={"name": name, "link": link})
                continue

            details.append(record.model_dump(mode="json"))
            done_links.add(link)
            self.store.save(ctx.source, self.stage, details)
            fetched += 1

        ctx.meta["details_fetched"] = fetched
        ctx.meta["details_failed"] = failed
        ctx.meta["details_total"] = len(details)
        return ctx
