"""
Corpus Assembler - renders llms.txt documents and their statistics reports
"""

from datetime import datetime, timezone
from typing import List, Optional, Sequence

from .batch import BatchResult, CleanedDocument, FilteredDocument
from ..extraction.titles import is_generic_title, title_from_url

DEFAULT_COLLECTION_TITLE = 'Permaweb Documentation Collection'
MAX_REPORTED_ERRORS = 10

QUALITY_BANDS = (
    (0.8, 'Excellent (>=0.8)'),
    (0.6, 'Good (0.6-0.8)'),
    (0.4, 'Fair (0.4-0.6)'),
    (0.0, 'Poor (<0.4)'),
)


def _timestamp(generated_at: Optional[datetime] = None) -> str:
    moment = generated_at or datetime.now(timezone.utc)
    return moment.isoformat().replace('+00:00', 'Z')


def _percent(count: int, total: int) -> str:
    return f"{(count / total * 100) if total else 0.0:.1f}%"


def display_title(document: CleanedDocument) -> str:
    title = (document.title or '').strip()
    if not title or is_generic_title(title) or title.lower() in ('getting started', 'get started'):
        return title_from_url(document.url)
    return title


class CorpusAssembler:
    """Builds the llms.txt text and the human-readable reports"""

    def __init__(self, collection_title: str = DEFAULT_COLLECTION_TITLE):
        self.collection_title = collection_title

    def order_documents(self, documents: Sequence[CleanedDocument], sort_by_quality: bool = True,
                        max_documents: Optional[int] = None) -> List[CleanedDocument]:
        """Best first (ties keep input order), optionally truncated"""
        ordered = list(documents)
        if sort_by_quality:
            ordered = sorted(ordered, key=lambda doc: -(doc.quality_score or 0.0))
        if max_documents and max_documents > 0:
            ordered = ordered[:max_documents]
        return ordered

    def generate_llms_txt(self, documents: Sequence[CleanedDocument],
                          quality_filtered: Sequence[FilteredDocument] = (),
                          sort_by_quality: bool = True,
                          max_documents: Optional[int] = None,
                          include_metadata: bool = True,
                          include_quality_scores: bool = True,
                          include_quality_disclosure: bool = True,
                          generated_at: Optional[datetime] = None) -> str:
        if not documents:
            raise ValueError('No documents provided for llms.txt generation')

        ordered = self.order_documents(documents, sort_by_quality, max_documents)
        total_words = sum(doc.word_count for doc in ordered)

        lines = [
            f"# {self.collection_title}",
            '',
            f"Generated on: {_timestamp(generated_at)}",
            f"Total documents: {len(ordered)}",
            f"Total words: {total_words}",
            '',
            '## Table of Contents',
            '',
            '### Included Documents',
            '',
        ]
        for number, doc in enumerate(ordered, 1):
            lines.append(f"{number}. [{display_title(doc)}]({doc.url})")
        lines.append('')

        if include_quality_disclosure and quality_filtered:
            lines.extend(['### Excluded Documents (Quality Filtered)', ''])
            excluded = sorted(quality_filtered, key=lambda item: item.quality_score or 0.0)
            for number, item in enumerate(excluded, 1):
                lines.append(f"{number}. {item.url} (quality {item.quality_score:.3f})")
            lines.append('')

        lines.extend(['---', ''])

        for number, doc in enumerate(ordered, 1):
            if number > 1:
                lines.extend(['', '---', ''])
            lines.extend([f"# {number}. {display_title(doc)}", ''])
            if include_metadata:
                lines.append(f"Document Number: {number}")
                lines.append(f"Source: {doc.url}")
                lines.append(f"Words: {doc.word_count}")
                if include_quality_scores:
                    lines.append(f"Quality Score: {doc.quality_score:.3f}")
                lines.append(f"Extraction Method: {doc.extraction_method or 'unknown'}")
                if doc.extraction_reason:
                    lines.append(f"Extraction Reason: {doc.extraction_reason}")
                lines.append('')
            if doc.content:
                lines.append(doc.content)

        return '\n'.join(lines) + '\n'

    def no_content_document(self, name: str, generated_at: Optional[datetime] = None) -> str:
        return (f"# {name} - No Content Available\n\n"
                f"No high-quality content could be extracted from this site.\n\n"
                f"Generated: {_timestamp(generated_at)}\n")

    def generate_report(self, site_name: str, base_url: str, batch: BatchResult,
                        generated_at: Optional[datetime] = None) -> str:
        """Per-site statistics report"""
        metrics = batch.metrics()
        lines = [
            f"{site_name} - Content Extraction Report",
            '=' * 50,
            '',
            f"Site: {site_name}",
            f"Base URL: {base_url}",
            f"Generated: {_timestamp(generated_at)}",
            '',
            'EXTRACTION STATISTICS',
            '-' * 30,
            f"Total pages: {batch.total}",
            f"Successful: {metrics['successful']}",
            f"Failed: {metrics['failed']}",
            f"Quality filtered: {metrics['quality_filtered']}",
            f"Total words: {metrics['total_words']}",
            f"Average words per page: {metrics['avg_word_count']:.0f}",
            '',
        ]

        if batch.results:
            lines.extend([f"Average quality score: {metrics['avg_quality_score']:.3f}", ''])
            lines.extend(['EXTRACTION METHODS', '-' * 25])
            for method, count in metrics['extraction_methods'].items():
                lines.append(f"{method}: {count} ({_percent(count, len(batch.results))})")
            lines.append('')

        if batch.quality_filtered:
            lines.extend(['QUALITY FILTERED', '-' * 20])
            for item in sorted(batch.quality_filtered, key=lambda f: f.quality_score):
                lines.append(f"- {item.url}: {item.quality_score:.3f}")
            lines.append('')

        if batch.errors:
            lines.extend(['ERRORS', '-' * 15])
            for error in batch.errors[:MAX_REPORTED_ERRORS]:
                lines.append(f"- {error.url}: {error.message}")
            if len(batch.errors) > MAX_REPORTED_ERRORS:
                lines.append(f"... and {len(batch.errors) - MAX_REPORTED_ERRORS} more errors")
            lines.append('')

        return '\n'.join(lines) + '\n'

    def generate_parsing_report(self, batch: BatchResult, generated_at: Optional[datetime] = None) -> str:
        """Detailed report with quality bands and errors grouped by type"""
        metrics = batch.metrics()
        total = metrics['total_urls']
        successful = metrics['successful']

        lines = [
            'PARSING REPORT',
            '=' * 60,
            '',
            'OVERALL STATISTICS',
            '-' * 30,
            f"Total URLs processed: {total}",
            f"Successful extractions: {successful} ({_percent(successful, total)})",
            f"Failed extractions: {metrics['failed']} ({_percent(metrics['failed'], total)})",
            f"Quality filtered: {metrics['quality_filtered']} ({_percent(metrics['quality_filtered'], total)})",
            f"Total words extracted: {metrics['total_words']:,}",
            f"Average words per document: {metrics['avg_word_count']:.0f}",
            f"Average quality score: {metrics['avg_quality_score']:.3f}",
            '',
        ]

        if successful:
            lines.extend(['QUALITY ANALYSIS', '-' * 30])
            remaining = list(metrics['quality_scores'])
            for threshold, label in QUALITY_BANDS:
                in_band = [score for score in remaining if score >= threshold]
                remaining = [score for score in remaining if score < threshold]
                lines.append(f"{label}: {len(in_band)} ({_percent(len(in_band), successful)})")
            lines.append('')

        if batch.errors:
            lines.extend(['ERROR ANALYSIS', '-' * 30])
            by_type = {}
            for error in batch.errors:
                by_type[error.error_type.value] = by_type.get(error.error_type.value, 0) + 1
            for error_type, count in sorted(by_type.items(), key=lambda item: -item[1]):
                lines.append(f"{error_type}: {count}")
            lines.append('')

        lines.extend([
            '=' * 60,
            f"Report generated: {_timestamp(generated_at)}",
        ])
        return '\n'.join(lines) + '\n'
