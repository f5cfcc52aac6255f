"""
Permaweb LLM Fuel - documentation crawler and llms.txt corpus builder
"""

from .config import CorpusSettings, CrawlConfig, RunSettings, SiteRegistry
from .crawler import CrawlerBuilder, SiteCrawler, run_crawl
from .corpus import CorpusGenerator
from .error_handler import ConfigurationError, CrawlerError
from .storage import CrawlIndex

__version__ = "1.0.0"

__all__ = [
    'CorpusSettings',
    'CrawlConfig',
    'RunSettings',
    'SiteRegistry',
    'CrawlerBuilder',
    'SiteCrawler',
    'run_crawl',
    'CorpusGenerator',
    'ConfigurationError',
    'CrawlerError',
    'CrawlIndex',
]
