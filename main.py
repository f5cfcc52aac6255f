#!/usr/bin/env python3
"""
Permaweb LLM Fuel
Crawl documentation sites into an index and build llms.txt corpora from it
"""

import argparse
import asyncio
import logging
import sys

from llmfuel import __version__
from llmfuel.config import DEFAULT_CONFIG_PATH, CorpusSettings, RunSettings, SiteRegistry
from llmfuel.corpus import CorpusGenerator
from llmfuel.crawler import crawl_summary, run_crawl
from llmfuel.error_handler import ConfigurationError
from llmfuel.monitoring import LogManager

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Permaweb documentation crawler")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="Site configuration JSON")
    parser.add_argument("--log-dir", default="crawl_data/logs")
    parser.add_argument("--log-level", default="INFO")
    commands = parser.add_subparsers(dest="command", required=True)

    crawl = commands.add_parser("crawl", help="Crawl one site, or all of them, into the docs index")
    crawl.add_argument("site", nargs="?", help="Site key from the configuration (default: all sites)")
    crawl.add_argument("--force", action="store_true", help="Ignore already indexed pages")
    crawl.add_argument("--output", help="Write the index here instead of the default location")

    llms = commands.add_parser("llms", help="Generate llms.txt files from the docs index")
    llms.add_argument("--index", default=CorpusSettings.docs_index_path)
    llms.add_argument("--output-dir", default=CorpusSettings.output_dir)
    llms.add_argument("--max-documents", type=int)
    llms.add_argument("--combined", action="store_true", help="Also write a combined llms.txt")
    return parser


async def crawl_command(args, log_manager: LogManager):
    registry = SiteRegistry(args.config)
    results = await run_crawl(registry, site_key=args.site, force_reindex=args.force,
                              output_path=args.output, settings=RunSettings.from_env())

    summary = crawl_summary(results)
    print("\nCrawl Summary:")
    for key, counts in summary.items():
        print(f"  {key}: {counts['pages']} pages ({counts['new_pages']} new), {counts['errors']} errors")

    log_manager.export_metrics_json({
        key: {
            **counts,
            'telemetry': results[key].telemetry,
            'snapshot': results[key].snapshot,
            'errors': results[key].error_dicts(),
        }
        for key, counts in summary.items()
    }, filename="crawl_metrics.json")


async def llms_command(args, log_manager: LogManager):
    settings = CorpusSettings(
        docs_index_path=args.index,
        output_dir=args.output_dir,
        max_documents=args.max_documents,
        combined_output=args.combined,
    )
    generator = CorpusGenerator(settings, registry=SiteRegistry(args.config), run_settings=RunSettings.from_env())
    results = await generator.generate_all()

    print("\nllms.txt Summary:")
    metrics = {}
    for key, batch in results.items():
        metrics[key] = batch.metrics()
        print(f"  {key}: {len(batch.results)} documents, {len(batch.quality_filtered)} filtered, "
              f"{len(batch.errors)} errors")
    log_manager.export_metrics_json(metrics, filename="llms_metrics.json")


async def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    log_manager = LogManager(log_dir=args.log_dir, log_level=args.log_level)

    try:
        if args.command == "crawl":
            await crawl_command(args, log_manager)
        else:
            await llms_command(args, log_manager)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1
    except OSError as e:
        logger.error(f"Could not write output: {e}")
        return 1
    return 0


if __name__ == "__main__":
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        print("\n🛑 Stopped by user")
        sys.exit(130)
