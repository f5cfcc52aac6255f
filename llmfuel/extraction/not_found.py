import re
from typing import Optional

from .text import count_words

TITLE_INDICATORS = ('404', 'not found', 'page not found', 'file not found')

# Body heuristic only applies inside this word-count band; longer pages are
# real articles that happen to mention 404, shorter ones are left to the
# minimum word count filter.
BODY_BAND = (20, 200)

_BODY_404 = re.compile(r'\b404\b')
_BODY_NOT_FOUND = re.compile(r"\bnot\s+found\b|\bdoesn'?t\s+exist\b|\bcould\s+not\s+be\s+found\b", re.IGNORECASE)


def is_not_found_page(title: Optional[str], content: Optional[str], word_count: Optional[int] = None) -> bool:
    """Heuristic for soft-404 pages served with a 200 status"""
    title_lower = (title or '').lower()
    if any(indicator in title_lower for indicator in TITLE_INDICATORS):
        return True

    content = content or ''
    if word_count is None:
        word_count = count_words(content)

    low, high = BODY_BAND
    if low <= word_count <= high:
        if _BODY_404.search(content) and _BODY_NOT_FOUND.search(content):
            return True
    return False
