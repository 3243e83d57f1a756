import argparse
import logging
import os
import sys
import uuid as _uuid
from typing import List

from config.settings import Settings, get_settings
from pipelines.runner import Pipeline, RunContext
from pipelines.steps.discover_profiles import DiscoverSocialProfiles
from pipelines.steps.enrich_sirene import EnrichWithSirene
from pipelines.steps.export_tables import ExportTables
from pipelines.steps.fetch_details import FetchDetails
from pipelines.steps.list_entities import ListEntities
from services.browser import PlaywrightNavigator
from services.reporting import print_summary
from services.sirene_client import GeoClient, SireneClient
from services.web_search import DuckDuckGoSearch
from storage.checkpoint import CheckpointError, CheckpointStore
from utils.error_log import ErrorLog
from utils.logging_setup import init_logging
import sources  # noqa: F401 ensure registration
from sources.registry import UnknownSourceError, available_sources, get_source


STAGE_ORDER = ["list", "details", "sirene", "social", "export"]


def _progress(cur, total, label, succeeded):
	print(f"[{cur}/{total}] {label} (ok so far: {succeeded})")


def build_steps(source: str, stages: List[str], store: CheckpointStore, settings: Settings, progress: bool = False):
	"""Instantiate the selected stages in pipeline order. Resolves the adapter only if needed."""
	on_progress = _progress if progress else None
	error_log = ErrorLog(store.error_log_path(source), source)
	adapter = get_source(source) if ({"list", "details"} & set(stages)) else None
	steps = []
	for stage in STAGE_ORDER:
		if stage not in stages:
			continue
		if stage == "list":
			steps.append(ListEntities(store, adapter))
		elif stage == "details":
			steps.append(FetchDetails(store, adapter, error_log, on_progress=on_progress))
		elif stage == "sirene":
			steps.append(EnrichWithSirene(
				store,
				SireneClient(settings),
				GeoClient(settings),
				error_log,
				excluded_roles=settings.excluded_roles,
				delay_seconds=settings.sirene_delay_seconds,
				on_progress=on_progress,
			))
		elif stage == "social":
			steps.append(DiscoverSocialProfiles(
				store,
				lambda: PlaywrightNavigator(settings),
				lambda navigator: DuckDuckGoSearch(navigator, settings),
				error_log,
				settings=settings,
				on_progress=on_progress,
			))
		elif stage == "export":
			steps.append(ExportTables(store))
	return steps


def _run_stages(args, stages: List[str], reset_trial: bool = False) -> None:
	settings = get_settings()
	store = CheckpointStore(args.data_dir or settings.data_dir, trial=args.trial)
	if args.trial and reset_trial:
		removed = store.reset_trial(args.source)
		logging.info(f"Trial mode: removed {removed} previous trial files", extra={"source": args.source})

	logging.info(f"Starting pipeline for {args.source}: {', '.join(stages)}", extra={"source": args.source})
	ctx = RunContext(source=args.source, trial=args.trial)
	pipeline = Pipeline(build_steps(args.source, stages, store, settings, progress=getattr(args, "progress", False)))
	ctx = pipeline.run(ctx)
	print_summary(args.source, ctx.meta, trial=args.trial)


def cmd_run(args):
	stages = args.stages or STAGE_ORDER
	# A trial run always starts from an empty trial namespace
	_run_stages(args, stages, reset_trial=True)


def cmd_export(args):
	_run_stages(args, ["export"])


def cmd_sources(args):
	for name in available_sources():
		print(name)


def main():
	settings = get_settings()
	init_logging(settings.log_level)
	if not os.getenv("RUN_ID"):
		os.environ["RUN_ID"] = _uuid.uuid4().hex

	parser = argparse.ArgumentParser(description="Directory -> SIRENE -> social profile pipeline")
	parser.add_argument("--data-dir", default=None, help="Checkpoint directory (default from settings)")
	sub = parser.add_subparsers(dest="cmd", required=True)

	p_run = sub.add_parser("run", help="Run (or resume) the pipeline for a source")
	p_run.add_argument("source", help="Scraper adapter name (see 'sources')")
	p_run.add_argument("--trial", action="store_true", help="Isolated trial namespace, reset before the run")
	p_run.add_argument("--stages", nargs="+", choices=STAGE_ORDER, help="Subset of stages to run (pipeline order is kept)")
	p_run.add_argument("--progress", action="store_true", help="Print progress for each item")
	p_run.set_defaults(func=cmd_run)

	p_exp = sub.add_parser("export", help="Write entities/principals CSV from existing checkpoints")
	p_exp.add_argument("source", help="Source name")
	p_exp.add_argument("--trial", action="store_true", help="Export the trial namespace")
	p_exp.set_defaults(func=cmd_export)

	p_src = sub.add_parser("sources", help="List registered scraper adapters")
	p_src.set_defaults(func=cmd_sources)

	args = parser.parse_args()
	try:
		args.func(args)
	except UnknownSourceError as e:
		logging.error(f"Unknown source: {e}")
		print(f"Error: no scraper adapter registered for {getattr(args, 'source', '?')!r}. Available: {', '.join(available_sources())}", file=sys.stderr)
		sys.exit(1)
	except CheckpointError as e:
		logging.error(f"Checkpoint failure: {e}")
		print(f"Error: {e}", file=sys.stderr)
		sys.exit(1)
	except KeyboardInterrupt:
		logging.info("Process interrupted by user; rerun to resume")
		sys.exit(130)
	except Exception as e:
		logging.error(f"Pipeline aborted: {e}")
		logging.debug("Full traceback:", exc_info=True)
		print(f"Error: pipeline aborted: {e}", file=sys.stderr)
		sys.exit(1)


if __name__ == "__main__":
	main()
