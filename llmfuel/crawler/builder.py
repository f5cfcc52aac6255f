"""
Crawler Builder - Fluent API for assembling site crawlers that share one session
"""

from typing import List, Optional

import aiohttp

from .fetcher import PageFetcher
from .site_crawler import SiteCrawler
from ..config import CrawlConfig, RunSettings
from ..error_handler import ErrorHandler
from ..extraction import ContentExtractor, ExtractionStrategy
from ..quality import QualityScorer
from ..utils.rate_limiter import RateLimiter


class CrawlerBuilder:
    """Builder for SiteCrawlers

    Every crawler built from one builder shares its session, rate limiter and
    error handler, so the request rate holds across sites.
    """

    def __init__(self, session: aiohttp.ClientSession):
        self.session = session
        self._requests_per_second = 2.0
        self._burst_size = 5
        self._timeout = 15.0
        self._max_entry_points = 50
        self._minimum_acceptable = 20
        self._strategies: Optional[List[ExtractionStrategy]] = None
        self._scorer: Optional[QualityScorer] = None
        self._rate_limiter: Optional[RateLimiter] = None
        self.error_handler = ErrorHandler()

    def with_settings(self, settings: RunSettings):
        """Apply run-wide settings"""
        return (self.rate_limit(settings.requests_per_second, settings.burst_size)
                .timeout(settings.fetch_timeout)
                .max_entry_points(settings.max_entry_points)
                .minimum_acceptable_words(settings.minimum_acceptable_words))

    def rate_limit(self, requests_per_second: float, burst_size: int = 5):
        """Set the token bucket rate and burst size"""
        self._requests_per_second = requests_per_second
        self._burst_size = burst_size
        self._rate_limiter = None
        return self

    def with_rate_limiter(self, rate_limiter: RateLimiter):
        """Use an existing limiter instead of building one"""
        self._rate_limiter = rate_limiter
        return self

    def timeout(self, seconds: float):
        """Set the per-request timeout"""
        self._timeout = seconds
        return self

    def max_entry_points(self, count: int):
        """Cap the number of entry points taken from seeds and discovery"""
        self._max_entry_points = count
        return self

    def minimum_acceptable_words(self, count: int):
        """Word count at which an extraction strategy's result is accepted"""
        self._minimum_acceptable = count
        return self

    def with_strategies(self, strategies: List[ExtractionStrategy]):
        """Replace the extraction strategy chain"""
        self._strategies = list(strategies)
        return self

    def with_scorer(self, scorer: QualityScorer):
        self._scorer = scorer
        return self

    @property
    def rate_limiter(self) -> RateLimiter:
        if self._rate_limiter is None:
            self._rate_limiter = RateLimiter(self._requests_per_second, self._burst_size)
        return self._rate_limiter

    def build_fetcher(self) -> PageFetcher:
        return PageFetcher(self.session, self.rate_limiter, timeout=self._timeout,
                           error_handler=self.error_handler)

    def build_extractor(self) -> ContentExtractor:
        return ContentExtractor(self._strategies, minimum_acceptable=self._minimum_acceptable)

    def build(self, config: CrawlConfig) -> SiteCrawler:
        """Build a crawler for one site"""
        return SiteCrawler(
            config,
            self.build_fetcher(),
            extractor=self.build_extractor(),
            scorer=self._scorer or QualityScorer(),
            max_entry_points=self._max_entry_points,
            error_handler=self.error_handler,
        )
