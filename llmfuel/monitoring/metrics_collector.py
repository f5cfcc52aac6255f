import time
import psutil
import logging
import threading
from datetime import datetime
from dataclasses import asdict
from typing import Dict, Optional, Any
from collections import Counter
from .crawl_metrics import CrawlMetrics
from .system_metrics import SystemMetrics

logger = logging.getLogger(__name__)


class CrawlMetricsCollector:
    """Collects request, page and error counts for a crawl run"""

    def __init__(self):
        self.start_time = time.time()
        self.end_time: Optional[float] = None

        self.crawl_metrics = CrawlMetrics()
        self.system_metrics = SystemMetrics()
        self.status_codes: Counter = Counter()
        self.error_types: Counter = Counter()

        self._lock = threading.Lock()

    def stop(self):
        with self._lock:
            self.end_time = time.time()
            self._update_calculated_metrics()

    def record_request(self, url: str, response_time: float, status_code: Optional[int] = None):
        """Record one outbound request, successful or not"""
        with self._lock:
            self.crawl_metrics.request_count += 1
            self.crawl_metrics.total_response_time += response_time
            self.status_codes[status_code or 0] += 1
            self._update_calculated_metrics()

    def record_page_crawled(self, url: str):
        with self._lock:
            self.crawl_metrics.pages_crawled += 1
            self._update_calculated_metrics()

    def record_error(self, url: str, error_type: str):
        with self._lock:
            self.crawl_metrics.errors_count += 1
            self.error_types[error_type] += 1

    def record_skipped(self, url: str):
        """Record a URL skipped because it is already indexed"""
        with self._lock:
            self.crawl_metrics.pages_skipped += 1

    def record_rejected(self, url: str):
        """Record a page dropped by the extraction filters"""
        with self._lock:
            self.crawl_metrics.pages_rejected += 1

    def _elapsed(self) -> float:
        return (self.end_time or time.time()) - self.start_time

    def _update_calculated_metrics(self):
        """Update calculated metrics like rates and averages"""
        elapsed = self._elapsed()
        self.crawl_metrics.duration = elapsed

        if elapsed > 0:
            self.crawl_metrics.pages_per_second = self.crawl_metrics.pages_crawled / elapsed

        if self.crawl_metrics.request_count:
            self.crawl_metrics.avg_response_time = (
                self.crawl_metrics.total_response_time / self.crawl_metrics.request_count
            )

    def telemetry(self) -> Dict[str, float]:
        """Run telemetry in the index's stats format (milliseconds)"""
        with self._lock:
            self._update_calculated_metrics()
            return {
                'duration': round(self.crawl_metrics.duration * 1000),
                'requestCount': self.crawl_metrics.request_count,
                'averageResponseTime': round(self.crawl_metrics.avg_response_time * 1000, 1),
                'pagesPerSecond': round(self.crawl_metrics.pages_per_second, 3),
            }

    def collect_system_metrics(self):
        """Collect current system resource metrics"""
        try:
            self.system_metrics.cpu_percent = psutil.cpu_percent(interval=None)
            memory = psutil.virtual_memory()
            self.system_metrics.memory_used_mb = memory.used / (1024 * 1024)
            self.system_metrics.memory_percent = memory.percent
            self.system_metrics.process_rss_mb = psutil.Process().memory_info().rss / (1024 * 1024)
        except (psutil.Error, OSError) as e:
            logger.warning(f"Failed to collect system metrics: {e}")

    def get_current_snapshot(self) -> Dict[str, Any]:
        """Get current metrics snapshot"""
        with self._lock:
            self._update_calculated_metrics()
            self.collect_system_metrics()

            return {
                'timestamp': datetime.now().isoformat(),
                'uptime_seconds': self._elapsed(),
                'crawl_metrics': asdict(self.crawl_metrics),
                'system_metrics': asdict(self.system_metrics),
                'status_codes': {str(code): count for code, count in self.status_codes.items()},
                'error_types': dict(self.error_types),
            }
