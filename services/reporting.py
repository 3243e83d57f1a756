from __future__ import annotations

from typing import Any, Dict


def print_summary(source: str, meta: Dict[str, Any], trial: bool = False) -> None:
    """Print per-stage counts collected in RunContext.meta."""
    print("\n" + "="*60)
    print(f"PIPELINE SUMMARY - {source}{' (trial)' if trial else ''}")
    print("="*60)
    if "listed" in meta:
        print(f"Listed entities: {meta.get('listed', 0)}")
    if "details_total" in meta:
        print("Detail pages:")
        print(f"  Fetched this run: {meta.get('details_fetched', 0)}")
        print(f"  Failed this run: {meta.get('details_failed', 0)}")
        print(f"  Total checkpointed: {meta.get('details_total', 0)}")
    if "sirene_processed" in meta:
        print("SIRENE enrichment:")
        print(f"  Processed this run: {meta.get('sirene_processed', 0)}")
        print(f"  Matched this run: {meta.get('sirene_matched', 0)}")
        print(f"  Match records total: {meta.get('sirene_records', 0)}")
    if "social_processed" in meta:
        print("Social profiles:")
        print(f"  Processed this run: {meta.get('social_processed', 0)}")
        print(f"  Found: {meta.get('social_found', 0)}")
        print(f"  Errors: {meta.get('social_errors', 0)}")
    if "exported_entities" in meta:
        print("Export:")
        print(f"  Entities: {meta.get('exported_entities', 0)}")
        print(f"  Principals: {meta.get('exported_principals', 0)}")
    print("="*60)
