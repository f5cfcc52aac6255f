"""
Noise filters - ordered rules that strip framework artifacts from extracted text

Each rule is independent and may be switched off through the site's
ContentFilters. Code blocks are never touched.
"""

import re
from typing import List, Optional

from .text import TextRule, apply_rules, rule
from ..config import ContentFilters

_DS = re.DOTALL
_IDS = re.IGNORECASE | re.DOTALL
_M = re.MULTILINE

NOISE_RULES: List[TextRule] = [
    # Client-side hydration payloads and script remnants
    rule('next-data-script', r'<script[^>]*id="__NEXT_DATA__"[^>]*>.*?</script>', flags=_IDS, option='remove_scripts'),
    rule('script-tags', r'<script\b[^>]*>.*?</script\s*>', flags=_IDS, option='remove_scripts'),
    rule('next-flight-push', r'self\.__next_f\.push\(\[.*?\]\)\s*;?', flags=_DS, option='remove_scripts'),
    rule('webpack-chunk-push',
         r'\(self\.webpackChunk[\w$]*\s*=\s*self\.webpackChunk[\w$]*\s*\|\|\s*\[\]\)\.push\(.*?\)\s*;?',
         flags=_DS, option='remove_scripts'),
    rule('window-globals', r'window\.__[\w$]+__\s*=\s*[^;\n]*;?', option='remove_scripts'),
    rule('document-calls', r'document\.(?:write|getElementById|querySelector(?:All)?)\([^)\n]*\)[^;\n]*;?',
         option='remove_scripts'),
    rule('json-payload-lines', r'^[ \t]*[\[{]"[\w$-]+"[ \t]*:.*[\]}][ \t]*;?[ \t]*$', flags=_M, option='remove_scripts'),

    # Style and attribute leakage
    rule('style-tags', r'<style\b[^>]*>.*?</style\s*>', flags=_IDS, option='remove_styles'),
    rule('style-attributes', r'\s(?:style|class|className)="[^"]*"', option='remove_styles'),
    rule('css-rule-lines', r'^[ \t]*[.#@]?[\w-]+(?:[ \t,>+~:]+[.#]?[\w-]+)*[ \t]*\{[^{}\n]*\}[ \t]*$',
         flags=_M, option='remove_styles'),

    # Comments
    rule('html-comments', r'<!--.*?-->', flags=_DS, option='remove_comments'),
    rule('block-comments', r'/\*.*?\*/', flags=_DS, option='remove_comments'),
    rule('line-comments', r'^[ \t]*//[^\n]*$', flags=_M, option='remove_comments'),

    # Markup that leaked through extraction
    rule('leaked-container-tags',
         r'</?(?:div|span|svg|path|button|nav|iframe|noscript|template|g)\b[^>]*>',
         flags=re.IGNORECASE),

    # Empty elements and whitespace
    rule('empty-tags', r'<([a-zA-Z][\w-]*)[^>]*>\s*</\1>', option='remove_empty_elements'),
    rule('blank-line-whitespace', r'^[ \t]+$', flags=_M, option='remove_empty_elements'),
    rule('inline-whitespace-runs', r'(?<=\S)[ \t]{2,}', ' ', option='remove_empty_elements'),
    rule('blank-line-runs', r'\n{3,}', '\n\n'),
]


def apply_noise_filters(text: Optional[str], filters: Optional[ContentFilters] = None,
                        rules: Optional[List[TextRule]] = None) -> str:
    """Run the noise rules enabled by ``filters`` over ``text``"""
    if not text:
        return ''
    filters = filters or ContentFilters()
    return apply_rules(text, NOISE_RULES if rules is None else rules, enabled=filters.is_enabled)
