from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class Principal(BaseModel):
    """Physical person registered as a director of a matched legal entity."""

    id: str
    first_name: str | None = None
    last_name: str | None = None
    role: str = ""
    company_name: str
    company_id: str

    model_config = ConfigDict(extra="ignore")
