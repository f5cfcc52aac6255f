"""
Title and breadcrumb helpers
"""

import re
from typing import List, Optional
from urllib.parse import urlparse

MAX_TITLE_LENGTH = 200

_EXTENSION = re.compile(r'\.(html?|php|aspx?|md|txt)$', re.IGNORECASE)
_DISALLOWED_TITLE_CHARS = re.compile(r"[^\w\s\-()\[\]:.,&']")

# Leaf segments that say nothing on their own
INDEX_SEGMENTS = {'index', 'default', 'main', 'home'}
# Leaf segments that need their parent for context
CONTEXTUAL_SEGMENTS = {
    'getting-started', 'get-started', 'overview', 'introduction', 'intro',
    'quickstart', 'quick-start', 'readme', 'start', 'setup',
}
GENERIC_TITLES = {'', 'untitled', 'home', 'index', 'document', 'page', 'untitled document'}


def humanize_segment(segment: str) -> str:
    words = re.split(r'[-_\s]+', _EXTENSION.sub('', segment))
    return ' '.join(word[:1].upper() + word[1:] for word in words if word)


def _host_label(url: str) -> str:
    hostname = urlparse(url).hostname or ''
    if hostname.startswith('www.'):
        hostname = hostname[4:]
    return humanize_segment(hostname.split('.')[0]) if hostname else ''


def title_from_url(url: str) -> str:
    """Derive a readable title from the URL path

    >>> title_from_url('https://docs.example.com/guides/index.html')
    'Guides'
    >>> title_from_url('https://docs.example.com/ao/getting-started')
    'Ao Getting Started'
    """
    segments = [s for s in urlparse(url).path.split('/') if s]
    segments = [_EXTENSION.sub('', s) for s in segments]
    segments = [s for s in segments if s]

    while segments and segments[-1].lower() in INDEX_SEGMENTS:
        segments.pop()

    if not segments:
        host = _host_label(url)
        return f"{host} Home" if host else "Home"

    leaf = segments[-1]
    if leaf.lower() in CONTEXTUAL_SEGMENTS:
        context = humanize_segment(segments[-2]) if len(segments) > 1 else _host_label(url)
        if context:
            return f"{context} {humanize_segment(leaf)}"
    return humanize_segment(leaf) or "Home"


def clean_title(title: Optional[str], site_name: Optional[str] = None) -> str:
    """Normalise a raw page title"""
    if not title:
        return ''
    cleaned = re.sub(r'\s+', ' ', title).strip()

    if site_name:
        # "Page | Site" / "Page - Site"
        suffix = re.compile(r'\s*[|\-\u2013\u2014:]\s*' + re.escape(site_name) + r'\s*$', re.IGNORECASE)
        stripped = suffix.sub('', cleaned)
        if stripped:
            cleaned = stripped

    cleaned = _DISALLOWED_TITLE_CHARS.sub('', cleaned)
    cleaned = re.sub(r'\s+', ' ', cleaned).strip()
    return cleaned[:MAX_TITLE_LENGTH].strip()


def is_generic_title(title: Optional[str]) -> bool:
    return (title or '').strip().lower() in GENERIC_TITLES


def title_from_text(text: str, url: str) -> str:
    """Title for a plain-text document: a short first line, else the URL"""
    for line in text.splitlines():
        line = line.strip().lstrip('#').strip()
        if line:
            if len(line) < 100:
                return clean_title(line) or title_from_url(url)
            break
    return title_from_url(url)


def breadcrumbs_from_url(url: str) -> List[str]:
    """Lowercased, humanised path segments"""
    parts = [p for p in urlparse(url).path.split('/') if p]
    crumbs = []
    for part in parts:
        crumb = _EXTENSION.sub('', part)
        crumb = re.sub(r'[-_]', ' ', crumb).lower().strip()
        if crumb:
            crumbs.append(crumb)
    return crumbs
