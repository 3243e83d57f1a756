from __future__ import annotations

from typing import Any, Dict, List

import pandas as pd

from models.enriched_record import EnrichedRecord, FinalRecord
from pipelines.runner import RunContext
from storage.checkpoint import CheckpointStore
from utils.logging_setup import stage_logger


ENTITY_COLUMNS = [
    "id",
    "name",
    "link",
    "website",
    "domain",
    "postal_code",
    "address",
    "city",
    "region_scraped",
    "sector",
    "description",
    "legal_id",
    "registered_address",
    "registered_city",
    "department_code",
    "department",
    "region",
    "activity",
    "annual_revenue",
    "revenue_year",
    "headcount_bracket",
    "headcount_year",
    "social_url",
]

PRINCIPAL_COLUMNS = [
    "id",
    "first_name",
    "last_name",
    "role",
    "company_name",
    "company_id",
]


def entity_row(record: EnrichedRecord, social_url: str = "") -> Dict[str, Any]:
    p = record.provenance
    return {
        "id": record.id,
        "name": p.name,
        "link": p.link,
        "website": p.website,
        "domain": record.domain,
        "postal_code": p.postal_code,
        "address": p.address,
        "city": p.city,
        "region_scraped": p.region,
        "sector": p.sector,
        "description": p.description,
        "legal_id": record.legal_id,
        "registered_address": record.registered_address,
        "registered_city": record.registered_city,
        "department_code": record.department_code,
        "department": record.department,
        "region": record.region,
        "activity": record.activity,
        "annual_revenue": record.annual_revenue,
        "revenue_year": record.revenue_year,
        "headcount_bracket": record.headcount_bracket,
        "headcount_year": record.headcount_year,
        "social_url": social_url,
    }


class ExportTables:
    """Stage 4: flatten match records into entities.csv and principals.csv.

    principals.company_id references entities.id. The social URL comes from
    the final checkpoint when the entity has been through discovery.
    """

    def __init__(self, store: CheckpointStore) -> None:
        self.store = store

    def build_tables(self, source: str) -> tuple[pd.DataFrame, pd.DataFrame]:
        enriched = [EnrichedRecord.model_validate(r) for r in self.store.load(source, "enriched")]
        final = [FinalRecord.model_validate(r) for r in self.store.load(source, "final")]
        social_by_id = {r.id: r.social_url for r in final if r.id}

        entities: List[Dict[str, Any]] = []
        principals: List[Dict[str, Any]] = []
        for record in enriched:
            if not record.is_match:
                continue
            entities.append(entity_row(record, social_by_id.get(record.id, "")))
            principals.extend(p.model_dump() for p in record.principals)

        entities_df = pd.DataFrame(entities, columns=ENTITY_COLUMNS)
        principals_df = pd.DataFrame(principals, columns=PRINCIPAL_COLUMNS)
        # Nullable ints keep "2022" from turning into "2022.0" when a value is missing
        entities_df["revenue_year"] = entities_df["revenue_year"].astype("Int64")
        revenue = pd.to_numeric(entities_df["annual_revenue"])
        if revenue.dropna().mod(1).eq(0).all():
            entities_df["annual_revenue"] = revenue.astype("Int64")
        return entities_df, principals_df

    def run(self, ctx: RunContext) -> RunContext:
        log = stage_logger(ctx.source, "export")
        entities_df, principals_df = self.build_tables(ctx.source)
        for table, df in (("entities", entities_df), ("principals", principals_df)):
            path = self.store.export_path(ctx.source, table)
            path.parent.mkdir(parents=True, exist_ok=True)
            df.to_csv(path, index=False, encoding="utf-8-sig")
            log.info(f"Exported {len(df)} rows to {path}", extra={"status": "ok"})
        ctx.meta["exported_entities"] = len(entities_df)
        ctx.meta["exported_principals"] = len(principals_df)
        return ctx
