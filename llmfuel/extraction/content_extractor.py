"""
Content Extractor - runs extraction strategies in order and post-processes the winner
"""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from bs4 import BeautifulSoup
from soupsieve import SelectorSyntaxError

from .noise_filters import apply_noise_filters
from .not_found import is_not_found_page
from .strategies import ExtractionResult, ExtractionStrategy, default_strategies
from .text import count_words
from .titles import clean_title, is_generic_title, title_from_text, title_from_url
from ..config import CrawlConfig

if TYPE_CHECKING:
    from ..crawler.result import FetchResult

logger = logging.getLogger(__name__)

PLAIN_TEXT_METHOD = 'plain-text'


@dataclass
class ExtractedContent:
    """Final extraction output for one page"""
    url: str
    title: str
    content: str
    word_count: int
    method: str
    reason: str = ''
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_plain_text(self) -> bool:
        return self.method == PLAIN_TEXT_METHOD


class ContentExtractor:
    """Ordered fallback chain over extraction strategies

    A strategy's result is acceptable once it reaches ``minimum_acceptable``
    words. Otherwise the next strategy runs and the result with the most words
    so far is kept.
    """

    def __init__(self, strategies: Optional[List[ExtractionStrategy]] = None,
                 minimum_acceptable: int = 20):
        self.strategies = strategies if strategies is not None else default_strategies()
        self.minimum_acceptable = minimum_acceptable

    def is_acceptable(self, result: Optional[ExtractionResult]) -> bool:
        return result is not None and result.word_count >= self.minimum_acceptable

    def run_strategies(self, html_text: str, document: BeautifulSoup, url: str,
                       config: CrawlConfig) -> Optional[ExtractionResult]:
        best: Optional[ExtractionResult] = None

        for strategy in self.strategies:
            try:
                result = strategy.extract(html_text, document, url, config)
            except Exception as e:
                logger.debug(f"{strategy.name} failed on {url}: {e}")
                continue

            if result is None or result.word_count == 0:
                logger.debug(f"{strategy.name} found nothing on {url}")
                continue

            if best is None:
                best = result
            elif result.word_count > best.word_count:
                result.reason = (f"{result.reason}; beat {best.method} "
                                 f"({result.word_count} vs {best.word_count} words)")
                best = result

            if self.is_acceptable(best):
                break
            logger.debug(f"{strategy.name} returned only {result.word_count} words for {url}")

        return best

    def resolve_title(self, document: Optional[BeautifulSoup], url: str, config: CrawlConfig,
                      fallback: Optional[str] = None) -> str:
        """Configured title selectors first, then the extractor's title, then the URL"""
        if document is not None:
            for selector in config.selectors.title:
                try:
                    element = document.select_one(selector)
                except SelectorSyntaxError as e:
                    logger.debug(f"Invalid title selector {selector!r}: {e}")
                    continue
                if element is None:
                    continue
                title = clean_title(element.get_text(separator=' '), config.name)
                if title and not is_generic_title(title):
                    return title

        title = clean_title(fallback, config.name)
        if title and not is_generic_title(title):
            return title
        return title_from_url(url)

    def extract(self, fetched: 'FetchResult', config: CrawlConfig) -> Optional[ExtractedContent]:
        """Extract, filter and validate one fetched page

        Returns None when the page is rejected (too short or a not-found page).
        """
        min_words = config.content_filters.min_word_count

        if fetched.is_plain_text:
            content = (fetched.text or '').strip()
            word_count = count_words(content)
            if word_count < min_words:
                logger.warning(f"Plain text too short ({word_count} words): {fetched.url}")
                return None
            return ExtractedContent(
                url=fetched.url,
                title=title_from_text(content, fetched.url),
                content=content,
                word_count=word_count,
                method=PLAIN_TEXT_METHOD,
                reason='served as plain text',
            )

        result = self.run_strategies(fetched.html or '', fetched.document, fetched.url, config)
        if result is None:
            logger.warning(f"No content extracted: {fetched.url}")
            return None

        title = self.resolve_title(fetched.document, fetched.url, config, result.title)
        content = apply_noise_filters(result.content, config.content_filters)
        word_count = count_words(content)

        if is_not_found_page(title, content, word_count):
            logger.warning(f"Detected not-found page: {fetched.url}")
            return None
        if word_count < min_words:
            logger.warning(f"Content too short ({word_count} words): {fetched.url}")
            return None

        return ExtractedContent(
            url=fetched.url,
            title=title,
            content=content,
            word_count=word_count,
            method=result.method,
            reason=result.reason,
            metadata=result.metadata,
        )
