"""
Crawler - page fetching, site crawling and the crawl runner
"""

from .fetcher import PageFetcher
from .result import FetchResult, SiteCrawlResult
from .site_crawler import SiteCrawler, FrontierEntry
from .builder import CrawlerBuilder
from .runner import run_crawl, crawl_summary

__all__ = [
    'PageFetcher',
    'FetchResult',
    'SiteCrawlResult',
    'SiteCrawler',
    'FrontierEntry',
    'CrawlerBuilder',
    'run_crawl',
    'crawl_summary'
]
