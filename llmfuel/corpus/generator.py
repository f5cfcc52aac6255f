"""
Corpus Generator - turn the crawl index into per-site llms.txt files
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional

import aiofiles
import aiohttp

from .assembler import CorpusAssembler
from .batch import BatchResult, CorpusProcessor
from ..config import CorpusSettings, CrawlConfig, RunSettings, SiteRegistry
from ..crawler.fetcher import PageFetcher
from ..error_handler import ConfigurationError, ErrorHandler
from ..extraction import ContentExtractor
from ..storage import CrawlIndex, SiteEntry
from ..utils.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

COMBINED_FILENAME = 'llms.txt'


class CorpusGenerator:
    """Reads the crawl index, re-fetches every page and writes llms.txt plus a report per site"""

    def __init__(self, settings: Optional[CorpusSettings] = None,
                 registry: Optional[SiteRegistry] = None,
                 run_settings: Optional[RunSettings] = None,
                 assembler: Optional[CorpusAssembler] = None):
        self.settings = settings or CorpusSettings()
        self.registry = registry
        self.run_settings = run_settings or RunSettings()
        self.assembler = assembler or CorpusAssembler()
        self.error_handler = ErrorHandler()
        self.output_dir = Path(self.settings.output_dir)

    def site_config(self, site_key: str, site: SiteEntry) -> CrawlConfig:
        """Configured selectors when the site is registered, defaults otherwise"""
        if self.registry is not None and site_key in self.registry:
            return self.registry.get(site_key)
        return CrawlConfig(key=site_key, name=site.name, base_url=site.base_url)

    def build_processor(self, fetcher: PageFetcher) -> CorpusProcessor:
        # The crawl's acceptance threshold applies here too
        extractor = ContentExtractor(minimum_acceptable=self.run_settings.minimum_acceptable_words)
        return CorpusProcessor(fetcher, self.settings, extractor=extractor, error_handler=self.error_handler)

    async def write_text(self, filename: str, text: str) -> Path:
        path = self.output_dir / filename
        async with aiofiles.open(path, 'w', encoding='utf-8') as f:
            await f.write(text)
        logger.info(f"Wrote {path}")
        return path

    async def generate_all(self, session: Optional[aiohttp.ClientSession] = None) -> Dict[str, BatchResult]:
        """Process every site in the index

        Raises:
            ConfigurationError: the index file does not exist
        """
        index_path = Path(self.settings.docs_index_path)
        if not index_path.exists():
            raise ConfigurationError(f"Docs index not found: {index_path}")

        index = await CrawlIndex.load(index_path)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"Generating llms.txt for {len(index.sites)} sites into {self.output_dir}")

        results: Dict[str, BatchResult] = {}
        own_session = session is None
        session = session or aiohttp.ClientSession()
        try:
            rate_limiter = RateLimiter(self.run_settings.requests_per_second, self.run_settings.burst_size)
            fetcher = PageFetcher(session, rate_limiter, timeout=self.settings.fetch_timeout,
                                  error_handler=self.error_handler)
            processor = self.build_processor(fetcher)

            for site_key, site in index.sites.items():
                batch = await self.generate_for_site(site_key, site, processor)
                if batch is not None:
                    results[site_key] = batch
        finally:
            if own_session:
                await session.close()

        documents = [doc for batch in results.values() for doc in batch.results]
        if self.settings.combined_output or not documents:
            await self.write_combined(results)

        total = sum(len(batch.results) for batch in results.values())
        logger.info(f"llms.txt generation complete: {total} documents across {len(results)} sites")
        return results

    async def generate_for_site(self, site_key: str, site: SiteEntry,
                                processor: CorpusProcessor) -> Optional[BatchResult]:
        if not site.pages:
            logger.warning(f"No pages indexed for {site_key}, skipping")
            return None

        config = self.site_config(site_key, site)
        urls = [page.url for page in site.pages]
        logger.info(f"Processing {len(urls)} pages for {site.name}")

        batch = await processor.batch_fetch_and_clean(urls, config)

        if batch.results:
            text = self.assembler.generate_llms_txt(
                batch.results,
                batch.quality_filtered,
                sort_by_quality=self.settings.sort_by_quality,
                max_documents=self.settings.max_documents,
                include_quality_disclosure=self.settings.include_quality_disclosure,
            )
        else:
            logger.warning(f"No content passed quality checks for {site.name}")
            text = self.assembler.no_content_document(site.name)

        await self.write_text(f"{site_key}-llms.txt", text)
        await self.write_text(f"{site_key}-report.txt",
                              self.assembler.generate_report(site.name, site.base_url, batch))
        return batch

    async def write_combined(self, results: Dict[str, BatchResult]) -> Path:
        """All sites in one llms.txt, or a placeholder when nothing qualified"""
        documents: List = [doc for batch in results.values() for doc in batch.results]
        filtered: List = [item for batch in results.values() for item in batch.quality_filtered]
        if not documents:
            return await self.write_text(COMBINED_FILENAME,
                                         self.assembler.no_content_document('Permaweb Documentation'))
        text = self.assembler.generate_llms_txt(
            documents,
            filtered,
            sort_by_quality=self.settings.sort_by_quality,
            max_documents=self.settings.max_documents,
            include_quality_disclosure=self.settings.include_quality_disclosure,
        )
        return await self.write_text(COMBINED_FILENAME, text)
