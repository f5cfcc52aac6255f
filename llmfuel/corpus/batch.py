"""
Batch processing - fetch, extract, clean and score pages for a corpus
"""

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..config import CorpusSettings, CrawlConfig
from ..crawler.fetcher import PageFetcher
from ..error_handler import (
    ErrorHandler, ErrorInfo, ErrorType, ExtractionRejectedError, FetchError, QualityFilteredError,
)
from ..extraction import ContentExtractor, clean_content, count_words
from ..quality import QualityScorer

logger = logging.getLogger(__name__)


@dataclass
class CleanedDocument:
    """A page accepted into the corpus"""
    url: str
    title: str
    content: str
    word_count: int
    quality_score: float
    extraction_method: str
    extraction_reason: str = ''
    quality_level: Optional[str] = None


@dataclass
class FilteredDocument:
    """A page that extracted fine but scored below the threshold"""
    url: str
    quality_score: float
    reason: str
    title: Optional[str] = None


@dataclass
class BatchResult:
    """Outcome of a batch, each list in input order"""
    results: List[CleanedDocument] = field(default_factory=list)
    errors: List[ErrorInfo] = field(default_factory=list)
    quality_filtered: List[FilteredDocument] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results) + len(self.errors) + len(self.quality_filtered)

    def metrics(self) -> Dict[str, Any]:
        word_counts = [doc.word_count for doc in self.results]
        scores = [doc.quality_score for doc in self.results]
        http_errors = Counter(error.status_code for error in self.errors if error.status_code)
        return {
            'total_urls': self.total,
            'successful': len(self.results),
            'failed': len(self.errors),
            'quality_filtered': len(self.quality_filtered),
            'total_words': sum(word_counts),
            'avg_word_count': sum(word_counts) / len(word_counts) if word_counts else 0.0,
            'avg_quality_score': sum(scores) / len(scores) if scores else 0.0,
            'quality_scores': scores,
            'extraction_methods': dict(Counter(doc.extraction_method for doc in self.results)),
            'http_errors': {str(code): count for code, count in http_errors.items()},
        }


class CorpusProcessor:
    """Turns URLs into cleaned, scored documents"""

    def __init__(self, fetcher: PageFetcher, settings: Optional[CorpusSettings] = None,
                 extractor: Optional[ContentExtractor] = None, scorer: Optional[QualityScorer] = None,
                 error_handler: Optional[ErrorHandler] = None):
        self.fetcher = fetcher
        self.settings = settings or CorpusSettings()
        self.extractor = extractor or ContentExtractor()
        self.scorer = scorer or QualityScorer(min_length=30)
        self.error_handler = error_handler or ErrorHandler()

    async def fetch_and_clean(self, url: str, config: CrawlConfig) -> CleanedDocument:
        """Fetch one page and return it cleaned and scored

        Raises:
            FetchError: the page could not be fetched
            ExtractionRejectedError: nothing usable could be extracted
            QualityFilteredError: the content scored below the threshold
        """
        fetched = await self.fetcher.fetch(url, timeout=self.settings.fetch_timeout)
        if not fetched.ok:
            raise FetchError(url, fetched.error or 'Failed to fetch page', fetched.status_code,
                             fetched.error_type or ErrorType.UNKNOWN_ERROR)

        extracted = self.extractor.extract(fetched, config)
        if extracted is None:
            raise ExtractionRejectedError(url)

        if extracted.is_plain_text:
            return CleanedDocument(
                url=url,
                title=extracted.title,
                content=extracted.content,
                word_count=extracted.word_count,
                quality_score=1.0,
                extraction_method=extracted.method,
                extraction_reason=extracted.reason,
                quality_level='excellent',
            )

        content = clean_content(extracted.content)
        word_count = count_words(content)
        assessment = self.scorer.assess(content)
        score = assessment.overall_score
        threshold = self.settings.quality_threshold

        if score < threshold:
            raise QualityFilteredError(url, score, f"Content quality too low: {score:.2f} < {threshold}",
                                       assessment, extracted.title)
        if word_count < self.settings.min_word_count:
            raise QualityFilteredError(
                url, score,
                f"Content quality too low: {word_count} words < {self.settings.min_word_count}",
                assessment, extracted.title,
            )

        return CleanedDocument(
            url=url,
            title=extracted.title,
            content=content,
            word_count=word_count,
            quality_score=score,
            extraction_method=extracted.method,
            extraction_reason=extracted.reason,
            quality_level=assessment.quality_level,
        )

    async def batch_fetch_and_clean(self, urls: List[str], config: CrawlConfig) -> BatchResult:
        """Process URLs in chunks of ``max_concurrency``; each chunk finishes before the next starts"""
        batch = BatchResult()
        chunk_size = max(1, self.settings.max_concurrency)

        for start in range(0, len(urls), chunk_size):
            chunk = urls[start:start + chunk_size]
            outcomes = await asyncio.gather(
                *(self.fetch_and_clean(url, config) for url in chunk),
                return_exceptions=True,
            )

            for url, outcome in zip(chunk, outcomes):
                if isinstance(outcome, QualityFilteredError):
                    logger.info(f"Quality filtered {url}: {outcome}")
                    batch.quality_filtered.append(
                        FilteredDocument(url=url, quality_score=outcome.score, reason=str(outcome), title=outcome.title)
                    )
                elif isinstance(outcome, Exception):
                    logger.warning(f"Failed to fetch and clean {url}: {outcome}")
                    batch.errors.append(
                        self.error_handler.record_error(url, outcome, status_code=getattr(outcome, 'status_code', None))
                    )
                elif isinstance(outcome, BaseException):
                    raise outcome
                else:
                    logger.info(f"Processed {url} ({outcome.word_count} words, quality {outcome.quality_score:.3f})")
                    batch.results.append(outcome)

            logger.info(f"Progress: {min(start + chunk_size, len(urls))}/{len(urls)} URLs")

        return batch
