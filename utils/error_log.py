from __future__ import annotations

import json
import logging
import os
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional


class ErrorLog:
    """Append-only JSONL log of every per-item error caught by a stage.

    One file per source (see CheckpointStore.error_log_path).
    """

    def __init__(self, path: str | Path, source: str) -> None:
        self.path = Path(path)
        self.source = source

    def record(
        self,
        *,
        stage: str,
        error: BaseException | str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        if isinstance(error, BaseException):
            message = str(error) or error.__class__.__name__
            error_type = error.__class__.__name__
            trace = "".join(traceback.format_exception(type(error), error, error.__traceback__))
        else:
            message = str(error)
            error_type = None
            trace = None

        payload: Dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "source": self.source,
            "stage": stage,
            "context": context or {},
            "message": message,
            "error_type": error_type,
            "trace": trace,
        }
        run_id = os.getenv("RUN_ID")
        if run_id:
            payload["run_id"] = run_id

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as f:
                f.write(json.dumps(payload, ensure_ascii=False) + "\n")
        except OSError as e:
            # Never break the run on error-log failures
            logging.warning(f"Could not write error log {self.path}: {e}")
