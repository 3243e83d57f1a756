from .browser import NavigatorPort, SearchPort
from .registry import RegistrySearchPort, GeoLabelPort
from .source import ScraperAdapterPort

__all__ = [
    "NavigatorPort",
    "SearchPort",
    "RegistrySearchPort",
    "GeoLabelPort",
    "ScraperAdapterPort",
]
