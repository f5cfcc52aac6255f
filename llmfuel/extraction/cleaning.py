"""
Cleaning pipeline applied to extracted content before it goes into a corpus
"""

import html
import re
import unicodedata
from typing import Callable, List, Optional, Tuple, Union

from .text import TextRule, apply_rules, rule

_IM = re.IGNORECASE | re.MULTILINE


def normalize_unicode(text: str) -> str:
    return unicodedata.normalize('NFC', text)


def decode_entities(text: str) -> str:
    return html.unescape(text)


CLEANING_STEPS: List[Union[TextRule, Tuple[str, Callable[[str], str]]]] = [
    ('normalize-unicode', normalize_unicode),

    # Boilerplate lines
    rule('cookie-banners', r'^.*\b(?:accept (?:all )?cookies|cookie (?:policy|settings|preferences)|we use cookies)\b.*$',
         flags=_IM),
    rule('newsletter-prompts', r'^.*\b(?:subscribe to (?:our )?newsletter|sign up for (?:our )?newsletter)\b.*$',
         flags=_IM),
    rule('share-prompts', r'^[ \t]*(?:share (?:this|on \w+)|tweet this|follow us on \w+)[^\n]*$', flags=_IM),
    rule('edit-links', r'^[ \t]*(?:edit (?:this page )?on github|suggest (?:an )?edit|improve this page)[^\n]*$',
         flags=_IM),
    rule('feedback-prompts', r'^[ \t]*was this (?:page|article) helpful\??[^\n]*$', flags=_IM),
    rule('copyright-lines', r'^[ \t]*(?:©|\(c\)|copyright\b)[^\n]*$', flags=_IM),
    rule('skip-links', r'^[ \t]*skip to (?:main )?content[ \t]*$', flags=_IM),

    # Media player controls left behind by embedded video
    rule('media-controls',
         r'^[ \t]*(?:play|pause|stop|mute|unmute|volume|fullscreen|exit fullscreen|'
         r'your browser does not support the video tag\.?)[ \t]*$',
         flags=_IM),

    ('decode-entities', decode_entities),
    rule('leaked-tags', r'</?[a-zA-Z][\w-]*(?:\s[^<>]*)?/?>'),

    # Markdown syntax that adds nothing for a language model
    rule('markdown-images', r'!\[([^\]]*)\]\([^)]*\)', r'\1'),
    rule('markdown-links', r'\[([^\]]+)\]\((?:[^()\s]|\([^)]*\))*(?:\s+"[^"]*")?\)', r'\1'),
    rule('markdown-bold', r'(\*\*|__)(?=\S)([^\n]*?\S)\1', r'\2'),
    rule('markdown-italic-star', r'(?<![\w*])\*(?=\S)([^*\n]*?\S)\*(?![\w*])', r'\1'),
    rule('markdown-italic-underscore', r'(?<![\w_])_(?=\S)([^_\n]*?\S)_(?![\w_])', r'\1'),

    # Typography
    rule('smart-single-quotes', '[\u2018\u2019\u201a\u2032]', "'"),
    rule('smart-double-quotes', '[\u201c\u201d\u201e\u2033]', '"'),
    rule('dashes', '[\u2013\u2014\u2212]', '-'),
    rule('ellipsis', '\u2026', '...'),
    rule('non-breaking-spaces', '[\u00a0\u2007\u202f]', ' '),
    rule('zero-width', '[\u200b-\u200d\u2060\ufeff]'),

    # Whitespace, keeping line structure
    rule('trailing-spaces', r'[ \t]+$', flags=re.MULTILINE),
    rule('inline-space-runs', r'(?<=\S)[ \t]{2,}', ' '),
    rule('blank-line-runs', r'\n{3,}', '\n\n'),
]


def clean_content(text: Optional[str], steps: Optional[list] = None) -> str:
    """Run the cleaning steps over ``text``; code blocks pass through unchanged"""
    if not text:
        return ''
    return apply_rules(text, CLEANING_STEPS if steps is None else steps)
