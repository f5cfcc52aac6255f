"""
Extraction Strategies - interchangeable ways of pulling main content from a page
"""

import copy
import html
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import trafilatura
from bs4 import BeautifulSoup, Tag
from bs4.element import Comment
from soupsieve import SelectorSyntaxError

from .text import CodeBlockGuard, count_words
from ..config import CrawlConfig

logger = logging.getLogger(__name__)

BLOCK_TAGS = ['h1', 'h2', 'h3', 'h4', 'h5', 'h6', 'p', 'pre', 'li', 'blockquote', 'tr', 'dt', 'dd']
STRIPPED_TAGS = ['script', 'style', 'noscript', 'template', 'svg', 'button']
_LEAKED_TAG = re.compile(r'</?[a-zA-Z][\w-]*(?:\s[^<>]*)?/?>')


@dataclass
class ExtractionResult:
    """Uniform result returned by every strategy"""
    content: str
    word_count: int
    method: str
    title: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    reason: str = ''


class ExtractionStrategy(ABC):
    """Base interface for all extraction strategies"""

    name = 'strategy'

    @abstractmethod
    def extract(self, html_text: str, document: BeautifulSoup, url: str,
                config: CrawlConfig) -> Optional[ExtractionResult]:
        """Return extracted content, or None when the strategy found nothing"""
        pass


class StructuredExtractor(ExtractionStrategy):
    """Boilerplate removal with trafilatura"""

    name = 'trafilatura'

    def __init__(self, favor_precision: bool = True, include_tables: bool = True):
        self.favor_precision = favor_precision
        self.include_tables = include_tables

    def extract(self, html_text, document, url, config):
        if not html_text:
            return None

        content = trafilatura.extract(
            html_text,
            url=url,
            output_format='markdown',
            include_comments=False,
            include_tables=self.include_tables,
            include_formatting=True,
            include_links=False,
            favor_precision=self.favor_precision,
        )
        if not content:
            return None

        metadata = self._metadata(html_text, url)
        word_count = count_words(content)
        return ExtractionResult(
            content=content,
            word_count=word_count,
            method=self.name,
            title=metadata.get('title'),
            metadata=metadata,
            reason=f"structured extraction returned {word_count} words",
        )

    @staticmethod
    def _metadata(html_text: str, url: str) -> Dict[str, Any]:
        doc = trafilatura.extract_metadata(html_text, default_url=url)
        if doc is None:
            return {}
        fields = ('title', 'author', 'description', 'sitename', 'date')
        return {name: getattr(doc, name, None) for name in fields if getattr(doc, name, None)}


def _inline_text(node: Tag) -> str:
    text = node.get_text(separator=' ')
    return re.sub(r'\s+', ' ', text).strip()


def element_to_text(element: Tag) -> str:
    """Render an element as Markdown-flavoured plain text

    Headings, list items and paragraphs become separate blocks and ``pre``
    elements become fenced code blocks with their text untouched.
    """
    blocks: List[str] = []
    for node in element.find_all(BLOCK_TAGS):
        if node.find_parent(BLOCK_TAGS) is not None:
            continue
        if node.name == 'pre':
            code = node.get_text().strip('\n')
            blocks.append(f"```\n{code}\n```")
        elif node.name[0] == 'h' and node.name[1:].isdigit():
            text = _inline_text(node)
            if text:
                blocks.append(f"{'#' * int(node.name[1:])} {text}")
        elif node.name == 'li':
            text = _inline_text(node)
            if text:
                blocks.append(f"- {text}")
        else:
            text = _inline_text(node)
            if text:
                blocks.append(text)
    return '\n\n'.join(blocks)


def strip_markup(text: str) -> str:
    """Remove tags and entities that leaked into text, collapse spaces

    Code blocks pass through unchanged.
    """
    guard = CodeBlockGuard()
    text = guard.protect(text)
    if '<' in text and '>' in text:
        text = _LEAKED_TAG.sub(' ', text)
    text = html.unescape(text)
    text = re.sub(r"[ \t\r\f\v]+", " ", text)
    return guard.restore(text.strip())


class SelectorExtractor(ExtractionStrategy):
    """Manual extraction from the first matching content selector"""

    name = 'selector'

    def extract(self, html_text, document, url, config):
        if document is None:
            return None

        for selector in config.selectors.content:
            try:
                element = document.select_one(selector)
            except SelectorSyntaxError as e:
                logger.debug(f"Invalid content selector {selector!r}: {e}")
                continue
            if element is None:
                continue

            element = copy.copy(element)
            for unwanted in element.find_all(STRIPPED_TAGS):
                unwanted.decompose()
            for comment in element.find_all(string=lambda s: isinstance(s, Comment)):
                comment.extract()

            flat = strip_markup(_inline_text(element))
            if not flat:
                continue

            structured = strip_markup(element_to_text(element))
            # Text living outside block elements would be lost in the structured form
            content = structured if count_words(structured) >= count_words(flat) * 0.5 else flat

            word_count = count_words(content)
            return ExtractionResult(
                content=content,
                word_count=word_count,
                method=f"{self.name}:{selector}",
                reason=f"selector '{selector}' matched with {word_count} words",
            )
        return None


def default_strategies() -> List[ExtractionStrategy]:
    return [StructuredExtractor(), SelectorExtractor()]

