"""
Storage and persistence modules
"""

from .crawl_index import CrawlIndex, PageRecord, SiteEntry, build_display_tree

__all__ = [
    'CrawlIndex',
    'PageRecord',
    'SiteEntry',
    'build_display_tree'
]
