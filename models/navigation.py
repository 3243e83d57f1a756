from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class NavOk:
    url: str


@dataclass(frozen=True)
class NavTimedOut:
    url: str
    reason: str


@dataclass(frozen=True)
class NavFailed:
    url: str
    reason: str


# Outcome of one page load; callers switch on the type instead of catching errors
NavResult = Union[NavOk, NavTimedOut, NavFailed]
