from dataclasses import dataclass


@dataclass
class CrawlMetrics:
    """Core crawling metrics for one run"""
    pages_crawled: int = 0
    pages_skipped: int = 0
    pages_rejected: int = 0
    request_count: int = 0
    errors_count: int = 0
    total_response_time: float = 0.0
    avg_response_time: float = 0.0
    pages_per_second: float = 0.0
    duration: float = 0.0
