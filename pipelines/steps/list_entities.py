from __future__ import annotations

from typing import Any, Dict, List

from models.source_record import SourceRecord
from pipelines.runner import RunContext
from ports.source import ScraperAdapterPort
from storage.checkpoint import CheckpointStore
from utils.logging_setup import stage_logger


class ListEntities:
    """Stage 1: materialize the directory listing once per source."""

    stage = "urls"

    def __init__(self, store: CheckpointStore, adapter: ScraperAdapterPort) -> None:
        self.store = store
        self.adapter = adapter

    def run(self, ctx: RunContext) -> RunContext:
        log = stage_logger(ctx.source, self.stage)
        existing = self.store.load(ctx.source, self.stage)
        if existing:
            log.info(f"Listing already complete: {len(existing)} entries", extra={"status": "skipped"})
            ctx.meta["listed"] = len(existing)
            return ctx

        log.info(f"Collecting listing for {ctx.source}")
        raw = self.adapter.produce_list(trial=ctx.trial)
        records: List[Dict[str, Any]] = []
        seen = set()
        for item in raw or []:
            record = SourceRecord.model_validate(item)
            # link is the listing identity; directories occasionally repeat entries
            if record.link in seen:
                continue
            seen.add(record.link)
            records.append(record.model_dump(mode="json"))
        self.store.save(ctx.source, self.stage, records)
        log.info(f"Listing saved: {len(records)} entries", extra={"status": "ok"})
        ctx.meta["listed"] = len(records)
        return ctx
