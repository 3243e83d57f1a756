from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List

STAGES = ("urls", "details", "enriched", "final")
TRIAL_DIR = "test"


class CheckpointError(RuntimeError):
    """Checkpoint file could not be read or durably written. Fatal for a run."""


class CheckpointStore:
    """One JSON array file per (source, stage), rewritten whole on every save.

    Trial runs live in an isolated namespace under `<data_dir>/test/` so they
    never touch a real run's progress.
    """

    def __init__(self, data_dir: str | Path, trial: bool = False) -> None:
        self.data_dir = Path(data_dir)
        self.trial = trial

    def path_for(self, source: str, stage: str) -> Path:
        if self.trial:
            return self.data_dir / TRIAL_DIR / f"{source}-{stage}.test.json"
        return self.data_dir / source / f"{stage}.json"

    def error_log_path(self, source: str) -> Path:
        if self.trial:
            return self.data_dir / TRIAL_DIR / f"errors-{source}.log"
        return self.data_dir / source / "errors.log"

    def export_path(self, source: str, table: str) -> Path:
        if self.trial:
            return self.data_dir / TRIAL_DIR / f"{source}-{table}.test.csv"
        return self.data_dir / source / "export" / f"{table}.csv"

    def load(self, source: str, stage: str) -> List[Dict[str, Any]]:
        path = self.path_for(source, stage)
        if not path.exists():
            return []
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise CheckpointError(f"Cannot read checkpoint {path}: {e}") from e
        if not isinstance(data, list):
            raise CheckpointError(f"Checkpoint {path} does not hold a list")
        return data

    def save(self, source: str, stage: str, records: List[Dict[str, Any]]) -> None:
        """Atomically replace the stage file with the full record sequence."""
        path = self.path_for(source, stage)
        tmp_name = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(records, f, ensure_ascii=False, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
            tmp_name = None
        except (OSError, TypeError, ValueError) as e:
            raise CheckpointError(f"Cannot write checkpoint {path}: {e}") from e
        finally:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)

    def reset_trial(self, source: str) -> int:
        """Delete trial checkpoints, exports and error log for `source`. Returns files removed."""
        if not self.trial:
            raise CheckpointError("reset_trial is only allowed on a trial store")
        trial_dir = self.data_dir / TRIAL_DIR
        if not trial_dir.exists():
            return 0
        removed = 0
        for path in trial_dir.iterdir():
            name = path.name
            is_source_file = name.startswith(f"{source}-") and (name.endswith(".test.json") or name.endswith(".test.csv"))
            if is_source_file or name == f"errors-{source}.log":
                path.unlink()
                removed += 1
        return removed
