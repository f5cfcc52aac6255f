"""
Monitoring and observability modules
"""

from .metrics_collector import CrawlMetricsCollector
from .log_manager import LogManager
from .crawl_metrics import CrawlMetrics
from .system_metrics import SystemMetrics

__all__ = [
    'CrawlMetricsCollector',
    'LogManager',
    'CrawlMetrics',
    'SystemMetrics'
]
