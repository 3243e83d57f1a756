from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol

from utils.logging_setup import init_logging


# (current, total, label, succeeded) -> None; rendering is left to the caller
ProgressCallback = Callable[[int, int, str, int], None]


@dataclass
class RunContext:
    source: str = ""
    trial: bool = False
    meta: dict = field(default_factory=dict)


class Step(Protocol):
    def run(self, ctx: RunContext) -> RunContext:
        ...


def report_progress(
    on_progress: Optional[ProgressCallback],
    current: int,
    total: int,
    label: str,
    succeeded: int = 0,
) -> None:
    """`succeeded` is the stage's running success count before this item."""
    if not on_progress:
        return
    try:
        on_progress(current, total, label, succeeded)
    except Exception as e:
        # Progress rendering must never stop a stage
        logging.debug(f"Progress callback failed: {e}")


class Pipeline:
    """Runs steps strictly in order; each step resumes from its own checkpoint."""

    def __init__(self, steps: List[Step]):
        self.steps = steps

    def run(self, ctx: RunContext) -> RunContext:
        # Make logging idempotent for any direct runner use
        init_logging()
        for step in self.steps:
            ctx = step.run(ctx)
        return ctx
