from __future__ import annotations

import logging

from utils.logging_setup import LOG_FORMAT, RunIdFilter, SafeExtraFormatter, stage_logger


class _ListHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.lines = []
        self.setFormatter(SafeExtraFormatter(fmt=LOG_FORMAT))
        self.addFilter(RunIdFilter())

    def emit(self, record):
        self.lines.append(self.format(record))


def test_stage_logger_binds_source_and_step(monkeypatch):
    monkeypatch.setenv("RUN_ID", "abc123")
    handler = _ListHandler()
    logger = logging.getLogger("pipeline")
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    try:
        log = stage_logger("acme_dir", "details")
        log.info("fetched", extra={"status": "ok", "item": "https://dir.example/acme"})
        log.warning("failed", extra={"step": "enrich:sirene", "status": "error"})
    finally:
        logger.removeHandler(handler)

    first, second = handler.lines
    assert "fetched source=acme_dir step=details status=ok item=https://dir.example/acme run_id=abc123" in first
    assert "step=enrich:sirene status=error item=- " in second


def test_formatter_fills_missing_extras(monkeypatch):
    monkeypatch.delenv("RUN_ID", raising=False)
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "plain", None, None)
    RunIdFilter().filter(record)
    line = SafeExtraFormatter(fmt=LOG_FORMAT).format(record)
    assert line.endswith("plain source=- step=- status=- item=- run_id=-")
