from __future__ import annotations

import concurrent.futures as _fut
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

from config.sirene_codes import HEADCOUNT_BRACKETS, NAF_DIVISIONS, PHYSICAL_PERSON
from models.enriched_record import EnrichedRecord
from models.id_sequence import IdSequence
from models.principal import Principal
from models.source_record import DetailRecord
from pipelines.runner import ProgressCallback, RunContext, report_progress
from ports.registry import GeoLabelPort, RegistrySearchPort
from services.domain_utils import extract_domain, normalize_website
from storage.checkpoint import CheckpointStore
from utils.error_log import ErrorLog
from utils.logging_setup import stage_logger
from utils.number_parsing import latest_year, parse_amount


ENTITY_PREFIX = "ENT"
PRINCIPAL_PREFIX = "PER"


@dataclass
class EnrichmentState:
    """Id counters threaded through the engine, seeded from the checkpoint."""

    entity_ids: IdSequence
    principal_ids: IdSequence

    @classmethod
    def from_checkpoint(cls, enriched: Sequence[EnrichedRecord]) -> "EnrichmentState":
        return cls(
            entity_ids=IdSequence(ENTITY_PREFIX, issued=len(enriched)),
            principal_ids=IdSequence(PRINCIPAL_PREFIX, issued=sum(len(r.principals) for r in enriched)),
        )

    def fork(self) -> "EnrichmentState":
        return EnrichmentState(self.entity_ids.fork(), self.principal_ids.fork())


def candidate_matches(candidate: Dict[str, Any], name: str) -> bool:
    """Loose match: the queried name appears in the full or the legal name."""
    full_name = candidate.get("nom_complet") or ""
    legal_name = candidate.get("nom_raison_sociale") or ""
    return name in full_name or name in legal_name


def derive_financials(candidate: Dict[str, Any]) -> Dict[str, Any]:
    """Revenue of the most recent year in `finances`, plus headcount bracket label."""
    finances = candidate.get("finances") or {}
    year = latest_year(finances.keys()) if isinstance(finances, dict) else None
    revenue = None
    if year is not None:
        entry = finances.get(str(year)) or finances.get(year) or {}
        revenue = parse_amount(entry.get("ca")) if isinstance(entry, dict) else None
    bracket_code = candidate.get("tranche_effectif_salarie")
    return {
        "annual_revenue": revenue,
        "revenue_year": year,
        "headcount_bracket": HEADCOUNT_BRACKETS.get(str(bracket_code)) if bracket_code is not None else None,
        "headcount_year": str(candidate["annee_tranche_effectif_salarie"]) if candidate.get("annee_tranche_effectif_salarie") else None,
    }


def activity_label(code: Optional[str]) -> Optional[str]:
    if not code:
        return None
    return NAF_DIVISIONS.get(str(code).split(".")[0])


class EnrichWithSirene:
    """Stage 3a: SIRENE registry lookup with fan-out.

    Every DetailRecord not yet processed (by scraped name) yields one match
    record per surviving registry candidate, or exactly one placeholder. The
    checkpoint is rewritten once per DetailRecord.
    """

    stage = "enriched"
    error_stage = "enrich:sirene"

    def __init__(
        self,
        store: CheckpointStore,
        registry: RegistrySearchPort,
        geo: GeoLabelPort,
        error_log: ErrorLog,
        excluded_roles: Sequence[str] = (),
        delay_seconds: float = 0.25,
        sleep: Callable[[float], None] = time.sleep,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        self.store = store
        self.registry = registry
        self.geo = geo
        self.error_log = error_log
        self.excluded_roles = set(excluded_roles)
        self.delay_seconds = delay_seconds
        self.sleep = sleep
        self.on_progress = on_progress

    def _geo_labels(self, siege: Dict[str, Any]) -> tuple[Dict[str, str], Dict[str, str]]:
        # Two-way join: each lookup falls back to empty labels on its own
        with _fut.ThreadPoolExecutor(max_workers=2) as ex:
            futures = (
                ("department", siege.get("departement"), ex.submit(self.geo.department, siege.get("departement"))),
                ("region", siege.get("region"), ex.submit(self.geo.region, siege.get("region"))),
            )
            labels = []
            for kind, code, future in futures:
                try:
                    labels.append(future.result())
                except Exception as e:
                    logging.warning(f"Geo {kind} lookup failed for {code}: {e}")
                    labels.append({"code": "", "nom": ""})
            return labels[0], labels[1]

    def _principals(self, candidate: Dict[str, Any], company_name: str, company_id: str, ids: IdSequence) -> List[Principal]:
        principals: List[Principal] = []
        for director in candidate.get("dirigeants") or []:
            if director.get("type_dirigeant") != PHYSICAL_PERSON:
                continue
            role = director.get("qualite") or ""
            if role in self.excluded_roles:
                continue
            principals.append(Principal(
                id=ids.next_id(),
                first_name=director.get("prenoms"),
                last_name=director.get("nom"),
                role=role,
                company_name=company_name,
                company_id=company_id,
            ))
        return principals

    def _build_match(self, detail: DetailRecord, candidate: Dict[str, Any], state: EnrichmentState) -> Optional[EnrichedRecord]:
        website = normalize_website(detail.website)
        siren = candidate.get("siren")
        # Mandatory downstream fields; a candidate without them is dropped silently
        if not siren or not website or not detail.name or not detail.postal_code:
            return None

        siege = candidate.get("siege") or {}
        department, region = self._geo_labels(siege)
        entity_id = state.entity_ids.next_id()
        provenance = detail.model_copy(update={"website": website})
        return EnrichedRecord(
            id=entity_id,
            provenance=provenance,
            legal_id=str(siren),
            registered_address=siege.get("adresse"),
            registered_city=siege.get("libelle_commune"),
            department_code=department.get("code") or None,
            department=department.get("nom") or None,
            region=region.get("nom") or None,
            activity=activity_label(candidate.get("activite_principale")),
            domain=extract_domain(website),
            principals=self._principals(candidate, detail.name, entity_id, state.principal_ids),
            **derive_financials(candidate),
        )

    def enrich_one(self, detail: DetailRecord, state: EnrichmentState) -> List[EnrichedRecord]:
        """Registry lookup for one DetailRecord. Raises on registry/network errors."""
        if not detail.postal_code:
            return []
        candidates = self.registry.search(detail.name, detail.postal_code)
        records: List[EnrichedRecord] = []
        for candidate in candidates:
            if not isinstance(candidate, dict) or not candidate_matches(candidate, detail.name):
                continue
            record = self._build_match(detail, candidate, state)
            if record is not None:
                records.append(record)
        return records

    def run(self, ctx: RunContext) -> RunContext:
        log = stage_logger(ctx.source, self.stage)
        details = [DetailRecord.model_validate(d) for d in self.store.load(ctx.source, "details")]
        enriched = [EnrichedRecord.model_validate(r) for r in self.store.load(ctx.source, self.stage)]
        done_names = {r.resume_key for r in enriched}
        state = EnrichmentState.from_checkpoint(enriched)
        matched_total = sum(1 for r in enriched if r.is_match)
        total = len(details)

        processed = 0
        found = 0
        for idx, detail in enumerate(details, start=1):
            if detail.name in done_names:
                continue
            report_progress(self.on_progress, idx, total, detail.name, found)

            attempt = state.fork()
            try:
                records = self.enrich_one(detail, attempt)
            except Exception as e:
                records = []
                log.warning(
                    f"SIRENE lookup failed for {detail.name}: {e}",
                    extra={"step": self.error_stage, "status": "error", "item": detail.name},
                )
                self.error_log.record(stage=self.error_stage, error=e, context={"name": detail.name})

            if records:
                state = attempt
                found += 1
                status = "matched"
            else:
                # Unconsumed ids of a failed/empty attempt are discarded with the fork
                records = [EnrichedRecord.placeholder(detail)]
                status = "placeholder"

            enriched.extend(records)
            self.store.save(ctx.source, self.stage, [r.model_dump(mode="json") for r in enriched])
            processed += 1
            matched_total += sum(1 for r in records if r.is_match)
            log.info(
                f"{detail.name}: {len(records)} record(s)",
                extra={"status": status, "item": detail.name},
            )
            self.sleep(self.delay_seconds)

        ctx.meta["sirene_processed"] = processed
        ctx.meta["sirene_matched"] = found
        ctx.meta["sirene_records"] = matched_total
        return ctx
