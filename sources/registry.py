from __future__ import annotations

from typing import Callable, Dict, List

from ports.source import ScraperAdapterPort


AdapterFactory = Callable[[], ScraperAdapterPort]

_REGISTRY: Dict[str, AdapterFactory] = {}


class UnknownSourceError(KeyError):
    """No adapter registered under the requested name."""


def register(name: str, factory: AdapterFactory) -> None:
    _REGISTRY[name] = factory


def get_source(name: str) -> ScraperAdapterPort:
    if name not in _REGISTRY:
        raise UnknownSourceError(f"Unknown source: {name}")
    return _REGISTRY[name]()


def available_sources() -> List[str]:
    return sorted(_REGISTRY)
