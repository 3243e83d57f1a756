from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class SourceRecord(BaseModel):
    """Directory listing entry; `link` is unique per source listing."""

    name: str
    link: str

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)


class DetailRecord(SourceRecord):
    """Listing entry plus whatever the adapter extracted from the detail page.

    Common attributes are typed; adapter-specific ones are kept as extras.
    Scraped numbers (postal codes parsed as int) are kept as strings.
    """

    website: str | None = None
    postal_code: str | None = None
    address: str | None = None
    city: str | None = None
    region: str | None = None
    sector: str | None = None
    description: str | None = None

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)
