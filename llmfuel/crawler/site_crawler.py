"""
Site Crawler - bounded breadth-first crawl of one documentation site
"""

import logging
from collections import deque
from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Tuple
from urllib.parse import urlparse, urlunparse

from .fetcher import PageFetcher
from .result import FetchResult, SiteCrawlResult
from ..config import CrawlConfig
from ..error_handler import ErrorHandler
from ..extraction import ContentExtractor, ExtractedContent, breadcrumbs_from_url
from ..monitoring import CrawlMetricsCollector
from ..parser import LinkExtractor
from ..quality import QualityScorer
from ..storage import CrawlIndex, PageRecord

logger = logging.getLogger(__name__)


@dataclass
class FrontierEntry:
    url: str
    depth: int


class SiteCrawler:
    """
    Crawls one site: entry-point discovery, then a FIFO frontier drain
    Already indexed URLs are skipped unless the crawl is forced.
    """

    def __init__(self, config: CrawlConfig, fetcher: PageFetcher,
                 extractor: Optional[ContentExtractor] = None,
                 scorer: Optional[QualityScorer] = None,
                 max_entry_points: int = 50,
                 error_handler: Optional[ErrorHandler] = None):
        self.config = config
        self.fetcher = fetcher
        self.extractor = extractor or ContentExtractor()
        self.scorer = scorer or QualityScorer()
        self.max_entry_points = max_entry_points
        self.error_handler = error_handler or ErrorHandler()
        self.link_extractor = LinkExtractor(config)
        self.metrics = CrawlMetricsCollector()

        # Documents fetched while discovering entry points, reused on dequeue
        self._prefetched: Dict[str, FetchResult] = {}

    @property
    def base_path(self) -> str:
        return urlparse(self.config.base_url).path.rstrip('/')

    def seed_to_url(self, seed: str) -> str:
        if seed.startswith(('http://', 'https://')):
            return seed
        return self.config.base_url + '/' + seed.lstrip('/')

    def entry_depth(self, url: str) -> int:
        """Depth of an entry point: path segments below the site's base path"""
        path = urlparse(url).path
        if self.base_path and path.startswith(self.base_path):
            path = path[len(self.base_path):]
        return len([segment for segment in path.split('/') if segment])

    async def _fetch(self, url: str) -> FetchResult:
        fetched = await self.fetcher.fetch(url)
        self.metrics.record_request(url, fetched.response_time, fetched.status_code)
        return fetched

    async def discover_entry_points(self) -> List[Tuple[str, int]]:
        """Seeds first, then paths linked from the seeds, capped at max_entry_points"""
        seed_urls: List[str] = []
        for seed in self.config.seed_urls:
            url = self.seed_to_url(seed)
            if url not in seed_urls:
                seed_urls.append(url)

        discovered: List[str] = []
        known: Set[str] = set(seed_urls)
        for seed_url in seed_urls:
            fetched = await self._fetch(seed_url)
            # Cached whether or not it succeeded; the frontier never refetches a seed
            self._prefetched[seed_url] = fetched
            if not fetched.ok:
                logger.warning(f"Invalid seed: {seed_url} ({fetched.error})")
                continue

            logger.info(f"Valid seed: {seed_url}")
            if fetched.document is None:
                continue

            for link in self.link_extractor.extract(fetched.document, seed_url):
                # Entry points are paths; query strings are dropped
                path_url = urlunparse(urlparse(link)._replace(query='', fragment=''))
                if path_url not in known:
                    known.add(path_url)
                    discovered.append(path_url)

        entry_points = (seed_urls + discovered)[:self.max_entry_points]
        logger.info(f"Using {len(entry_points)} entry points from {len(discovered)} discovered + "
                    f"{len(seed_urls)} seed paths")
        return [(url, self.entry_depth(url)) for url in entry_points]

    def _build_page(self, extracted: ExtractedContent, depth: int, quality_score: Optional[float],
                    breadcrumbs: Optional[List[str]] = None) -> PageRecord:
        page = PageRecord(
            url=extracted.url,
            title=extracted.title,
            content=extracted.content,
            word_count=extracted.word_count,
            quality_score=quality_score,
            extraction_method=extracted.method,
            breadcrumbs=breadcrumbs if breadcrumbs is not None else breadcrumbs_from_url(extracted.url),
            site_key=self.config.key,
            site_name=self.config.name,
            depth=depth,
        )
        page.last_modified = extracted.metadata.get('date') or page.crawled_at
        return page

    def _score(self, extracted: ExtractedContent) -> float:
        if extracted.is_plain_text:
            return 1.0
        return round(self.scorer.score(extracted.content), 4)

    def _record_error(self, result: SiteCrawlResult, url: str, error, depth: int,
                      status_code: Optional[int] = None):
        info = self.error_handler.record_error(url, error, status_code=status_code, depth=depth)
        self.metrics.record_error(url, info.error_type.value)
        result.errors.append(info)

    async def crawl(self, index: CrawlIndex, force_reindex: bool = False) -> SiteCrawlResult:
        """Crawl the site and return existing plus newly crawled pages"""
        config = self.config
        self.metrics = CrawlMetricsCollector()
        self._prefetched.clear()

        existing_pages = [] if force_reindex else index.existing_pages(config.key)
        existing_urls = {page.url for page in existing_pages}
        if existing_pages:
            logger.info(f"{config.key}: {len(existing_pages)} pages already indexed")
        elif force_reindex:
            logger.info(f"{config.key}: force reindex, crawling from scratch")

        result = SiteCrawlResult(site_key=config.key, pages=list(existing_pages))

        try:
            if config.is_single_file:
                await self._crawl_single_file(result, existing_urls, force_reindex)
            else:
                await self._crawl_frontier(result, existing_urls, force_reindex)
        finally:
            self._prefetched.clear()
            self.metrics.stop()

        result.telemetry = self.metrics.telemetry()
        result.snapshot = self.metrics.get_current_snapshot()
        result.new_pages = len(result.pages) - len(existing_pages)
        result.skipped = self.metrics.crawl_metrics.pages_skipped
        result.rejected = self.metrics.crawl_metrics.pages_rejected

        logger.info(f"Crawl complete for {config.key}: {len(result.pages)} pages "
                    f"({result.new_pages} new, {len(existing_pages)} existing), {len(result.errors)} errors")
        if result.skipped:
            logger.info(f"Skipped {result.skipped} already indexed URLs")
        return result

    async def _crawl_single_file(self, result: SiteCrawlResult, existing_urls: Set[str], force_reindex: bool):
        url = self.config.file_url
        logger.info(f"Processing single file: {url}")

        if not force_reindex and url in existing_urls:
            logger.info("Single file already exists in index, skipping")
            self.metrics.record_skipped(url)
            return

        fetched = await self._fetch(url)
        if not fetched.ok:
            self._record_error(result, url, f"Failed to fetch file: {fetched.error}", 0, fetched.status_code)
            return

        extracted = self.extractor.extract(fetched, self.config)
        if extracted is None:
            self._record_error(result, url, "Failed to extract content from file", 0)
            return

        page = self._build_page(extracted, 0, self._score(extracted), breadcrumbs=[self.config.name])
        result.pages.append(page)
        self.metrics.record_page_crawled(url)
        logger.info(f"Single file processed: {page.title} ({page.word_count} words)")

    async def _crawl_frontier(self, result: SiteCrawlResult, existing_urls: Set[str], force_reindex: bool):
        config = self.config
        pages = result.pages
        seen: Set[str] = set(existing_urls)
        visited: Set[str] = set()
        frontier: deque = deque()

        for url, depth in await self.discover_entry_points():
            if url not in seen:
                seen.add(url)
                frontier.append(FrontierEntry(url, depth))

        while frontier and len(pages) < config.max_pages:
            entry = frontier.popleft()

            if entry.url in visited or entry.depth > config.max_depth:
                continue
            if not force_reindex and entry.url in existing_urls:
                self.metrics.record_skipped(entry.url)
                continue

            visited.add(entry.url)
            try:
                fetched = self._prefetched.pop(entry.url, None) or await self._fetch(entry.url)
                if not fetched.ok:
                    self._record_error(result, entry.url, f"Failed to fetch page: {fetched.error}",
                                       entry.depth, fetched.status_code)
                    continue

                extracted = self.extractor.extract(fetched, config)
                if extracted is None:
                    logger.warning(f"Page rejected by content filters: {entry.url}")
                    self.metrics.record_rejected(entry.url)
                    continue

                page = self._build_page(extracted, entry.depth, self._score(extracted))
                pages.append(page)
                self.metrics.record_page_crawled(entry.url)
                logger.info(f"Page [{len(pages)}/{config.max_pages}] {page.title} "
                            f"({page.word_count} words, quality {page.quality_score})")

                if len(pages) < config.max_pages and entry.depth < config.max_depth and fetched.document is not None:
                    links = self.link_extractor.extract(fetched.document, entry.url)
                    new_links = [link for link in links if link not in seen]
                    for link in new_links:
                        seen.add(link)
                        frontier.append(FrontierEntry(link, entry.depth + 1))
                    logger.debug(f"Found {len(links)} links -> {len(new_links)} new URLs to crawl")

            except Exception as e:
                logger.error(f"Error crawling {entry.url}: {e}")
                self._record_error(result, entry.url, e, entry.depth)
