# Namespace for pipeline steps
from .list_entities import ListEntities  # noqa: F401
from .fetch_details import FetchDetails  # noqa: F401
from .enrich_sirene import EnrichWithSirene  # noqa: F401
from .discover_profiles import DiscoverSocialProfiles  # noqa: F401
from .export_tables import ExportTables  # noqa: F401
