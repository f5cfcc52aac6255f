import asyncio
import time
import logging
from enum import Enum
from dataclasses import dataclass
from typing import Dict, List, Optional, Any
from collections import defaultdict
import aiohttp

logger = logging.getLogger(__name__)


class ErrorType(Enum):
    """Classification of different error types"""
    CONFIGURATION = "configuration"
    NETWORK_TIMEOUT = "network_timeout"
    CONNECTION_ERROR = "connection_error"
    HTTP_NOT_FOUND = "http_not_found"  # 404
    HTTP_CLIENT_ERROR = "http_client_error"  # other 4xx
    HTTP_SERVER_ERROR = "http_server_error"  # 5xx
    EXTRACTION_REJECTED = "extraction_rejected"
    QUALITY_FILTERED = "quality_filtered"
    PARSING_ERROR = "parsing_error"
    STORAGE_ERROR = "storage_error"
    UNKNOWN_ERROR = "unknown_error"


class CrawlerError(Exception):
    """Base class for errors raised by the pipeline"""


class ConfigurationError(CrawlerError):
    """Missing or invalid site configuration. Aborts the run."""


class FetchError(CrawlerError):
    """A page could not be fetched"""

    def __init__(self, url: str, message: str, status_code: Optional[int] = None,
                 error_type: ErrorType = ErrorType.UNKNOWN_ERROR):
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.error_type = error_type


class ExtractionRejectedError(CrawlerError):
    """Extraction produced nothing usable (too short, or a not-found page)"""

    def __init__(self, url: str, message: str = "No usable content extracted"):
        super().__init__(message)
        self.url = url


class QualityFilteredError(CrawlerError):
    """Content extracted fine but scored below the acceptance threshold"""

    def __init__(self, url: str, score: float, message: str = "Content quality too low",
                 assessment: Any = None, title: Optional[str] = None):
        super().__init__(message)
        self.url = url
        self.score = score
        self.assessment = assessment
        self.title = title


@dataclass
class ErrorInfo:
    """Information about an error occurrence"""
    url: str
    error_type: ErrorType
    status_code: Optional[int]
    message: str
    timestamp: float
    depth: Optional[int] = None
    response_time: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        """Record shape used in crawl results: {url, error, depth}"""
        data = {'url': self.url, 'error': self.message, 'depth': self.depth}
        data['type'] = self.error_type.value
        return data


class ErrorHandler:
    """Classifies and records per-URL failures. Nothing is retried."""

    def __init__(self):
        self.error_history: List[ErrorInfo] = []
        self.failed_urls: Dict[str, List[ErrorInfo]] = defaultdict(list)

    def classify_error(self, error: Optional[BaseException], status_code: Optional[int] = None) -> ErrorType:
        """Classify an error into appropriate error type"""
        if isinstance(error, ConfigurationError):
            return ErrorType.CONFIGURATION
        elif isinstance(error, FetchError) and error.error_type != ErrorType.UNKNOWN_ERROR:
            return error.error_type
        elif isinstance(error, ExtractionRejectedError):
            return ErrorType.EXTRACTION_REJECTED
        elif isinstance(error, QualityFilteredError):
            return ErrorType.QUALITY_FILTERED
        elif isinstance(error, asyncio.TimeoutError):
            return ErrorType.NETWORK_TIMEOUT
        elif isinstance(error, aiohttp.ClientConnectorError):
            return ErrorType.CONNECTION_ERROR
        elif isinstance(error, OSError) and not isinstance(error, aiohttp.ClientError):
            return ErrorType.STORAGE_ERROR
        elif status_code:
            if status_code == 404:
                return ErrorType.HTTP_NOT_FOUND
            elif 400 <= status_code < 500:
                return ErrorType.HTTP_CLIENT_ERROR
            elif 500 <= status_code < 600:
                return ErrorType.HTTP_SERVER_ERROR
        if error is not None and "pars" in str(error).lower():
            return ErrorType.PARSING_ERROR
        return ErrorType.UNKNOWN_ERROR

    def record_error(self, url: str, error: Any, status_code: Optional[int] = None,
                     depth: Optional[int] = None, response_time: Optional[float] = None) -> ErrorInfo:
        """Record an error for a URL and return the stored ErrorInfo

        ``error`` may be an exception or a plain message string.
        """
        if isinstance(error, BaseException):
            error_type = self.classify_error(error, status_code)
            message = str(error) or error.__class__.__name__
        else:
            error_type = self.classify_error(None, status_code)
            message = str(error)

        info = ErrorInfo(
            url=url,
            error_type=error_type,
            status_code=status_code,
            message=message,
            timestamp=time.time(),
            depth=depth,
            response_time=response_time,
        )
        self.error_history.append(info)
        self.failed_urls[url].append(info)
        logger.debug(f"Recorded {error_type.value} for {url}: {message}")
        return info

    def get_error_summary(self) -> Dict[str, Any]:
        """Get summary of errors grouped by type"""
        error_counts = defaultdict(int)
        for info in self.error_history:
            error_counts[info.error_type.value] += 1

        return {
            'total_errors': len(self.error_history),
            'error_types': dict(error_counts),
            'failed_urls_count': len(self.failed_urls),
        }

    def clear(self):
        self.error_history.clear()
        self.failed_urls.clear()
