from .source_record import SourceRecord, DetailRecord
from .principal import Principal
from .enriched_record import EnrichedRecord, FinalRecord, SOCIAL_URL_ERROR
from .id_sequence import IdSequence
from .navigation import NavOk, NavTimedOut, NavFailed, NavResult

__all__ = [
    "SourceRecord",
    "DetailRecord",
    "Principal",
    "EnrichedRecord",
    "FinalRecord",
    "SOCIAL_URL_ERROR",
    "IdSequence",
    "NavOk",
    "NavTimedOut",
    "NavFailed",
    "NavResult",
]
