from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from models.principal import Principal
from models.source_record import DetailRecord


SOCIAL_URL_ERROR = "ERROR"


class EnrichedRecord(BaseModel):
    """Output of the SIRENE stage.

    A match record carries a legal id and registry-derived fields; a placeholder
    only carries the scraped fields so the entity counts as processed.
    """

    id: str | None = None
    provenance: DetailRecord
    legal_id: str | None = None
    registered_address: str | None = None
    registered_city: str | None = None
    department_code: str | None = None
    department: str | None = None
    region: str | None = None
    activity: str | None = None
    annual_revenue: int | float | None = None
    revenue_year: int | None = None
    headcount_bracket: str | None = None
    headcount_year: str | None = None
    domain: str | None = None
    principals: list[Principal] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")

    @property
    def is_match(self) -> bool:
        return self.legal_id is not None

    @property
    def resume_key(self) -> str:
        # Original scraped name, shared by every record fanned out of one entity
        return self.provenance.name

    @classmethod
    def placeholder(cls, detail: DetailRecord) -> "EnrichedRecord":
        return cls(provenance=detail, legal_id=None, principals=[])


class FinalRecord(EnrichedRecord):
    """Enriched match record plus the discovered social profile URL.

    `social_url` is "" when nothing was found and SOCIAL_URL_ERROR on a hard failure.
    """

    social_url: str = ""

    @property
    def is_error(self) -> bool:
        return self.social_url == SOCIAL_URL_ERROR
