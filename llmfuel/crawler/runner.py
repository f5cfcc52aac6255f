"""
Crawl Runner - crawl configured sites and write the merged index
"""

import logging
from typing import Dict, Optional

import aiohttp

from .builder import CrawlerBuilder
from .result import SiteCrawlResult
from ..config import RunSettings, SiteRegistry
from ..storage import CrawlIndex

logger = logging.getLogger(__name__)


async def run_crawl(registry: SiteRegistry, site_key: Optional[str] = None, force_reindex: bool = False,
                    output_path: Optional[str] = None, settings: Optional[RunSettings] = None,
                    session: Optional[aiohttp.ClientSession] = None) -> Dict[str, SiteCrawlResult]:
    """Crawl one site (or every configured site) and persist the index

    Raises ConfigurationError for a missing config file or unknown site key,
    and OSError when the index cannot be written. Per-URL failures end up in
    each result's ``errors`` list instead.
    """
    settings = settings or RunSettings.from_env()
    site_keys = [site_key] if site_key else registry.keys()
    configs = [registry.get(key) for key in site_keys]

    if force_reindex:
        logger.info("Running with force reindex - all sites will be crawled from scratch")

    index = await CrawlIndex.load(settings.index_path)
    results: Dict[str, SiteCrawlResult] = {}

    own_session = session is None
    session = session or aiohttp.ClientSession()
    try:
        builder = CrawlerBuilder(session).with_settings(settings)
        for config in configs:
            logger.info(f"Starting crawl for site: {config.key}...")
            crawler = builder.build(config)
            result = await crawler.crawl(index, force_reindex=force_reindex)
            results[config.key] = result

            stats = dict(result.telemetry)
            stats.update({'newPages': result.new_pages, 'errorCount': len(result.errors)})
            index.update_site(config.key, config.name, config.base_url, result.pages, stats)
            logger.info(f"Crawl for {config.key} completed: {len(result.pages)} total pages")

        error_summary = builder.error_handler.get_error_summary()
        if error_summary['total_errors']:
            logger.warning(f"Errors by type: {error_summary['error_types']}")
    finally:
        if own_session:
            await session.close()

    destination = settings.resolve_output_path(output_path)
    await index.save(destination, minify=settings.minify_index)
    if not output_path and not settings.in_ci:
        logger.info("Running locally - index written to temp file to avoid committing partial updates")

    return results


def crawl_summary(results: Dict[str, SiteCrawlResult]) -> Dict[str, Dict[str, int]]:
    """Per-site counts for the end-of-run summary"""
    return {
        key: {
            'pages': len(result.pages),
            'new_pages': result.new_pages,
            'errors': len(result.errors),
            'rejected': result.rejected,
            'skipped': result.skipped,
        }
        for key, result in results.items()
    }
