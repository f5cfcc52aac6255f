"""
Content extraction: strategies, noise filtering, cleaning and title helpers
"""

from .strategies import ExtractionResult, ExtractionStrategy, StructuredExtractor, SelectorExtractor
from .content_extractor import ContentExtractor, ExtractedContent
from .noise_filters import NOISE_RULES, apply_noise_filters
from .cleaning import CLEANING_STEPS, clean_content
from .not_found import is_not_found_page
from .text import CodeBlockGuard, TextRule, count_words
from .titles import breadcrumbs_from_url, clean_title, title_from_url

__all__ = [
    'ExtractionResult',
    'ExtractionStrategy',
    'StructuredExtractor',
    'SelectorExtractor',
    'ContentExtractor',
    'ExtractedContent',
    'NOISE_RULES',
    'apply_noise_filters',
    'CLEANING_STEPS',
    'clean_content',
    'is_not_found_page',
    'CodeBlockGuard',
    'TextRule',
    'count_words',
    'breadcrumbs_from_url',
    'clean_title',
    'title_from_url'
]
