"""
Crawl Result - Data structures for fetch and crawl results
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List

from bs4 import BeautifulSoup

from ..error_handler import ErrorInfo, ErrorType


@dataclass
class FetchResult:
    """Result of fetching a single URL"""
    url: str
    html: Optional[str] = None
    text: Optional[str] = None
    document: Optional[BeautifulSoup] = None
    is_plain_text: bool = False
    status_code: Optional[int] = None
    content_type: Optional[str] = None
    error: Optional[str] = None
    error_type: Optional[ErrorType] = None
    response_time: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None and (self.document is not None or self.is_plain_text)


@dataclass
class SiteCrawlResult:
    """Outcome of crawling one site"""
    site_key: str
    pages: List[Any] = field(default_factory=list)
    errors: List[ErrorInfo] = field(default_factory=list)
    telemetry: Dict[str, float] = field(default_factory=dict)
    snapshot: Dict[str, Any] = field(default_factory=dict)
    new_pages: int = 0
    skipped: int = 0
    rejected: int = 0

    def error_dicts(self) -> List[Dict[str, Any]]:
        return [error.to_dict() for error in self.errors]
