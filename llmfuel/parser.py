import logging
from typing import List, Optional, Set
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup
from bs4.builder import builder_registry

from .config import CrawlConfig

logger = logging.getLogger(__name__)


class DocumentParser:
    """Parses markup into a BeautifulSoup document

    The tree builder is picked by capability: lxml when bs4 has it registered,
    otherwise the pure-Python html.parser. Both give the same document API.
    """

    LXML = 'lxml'
    BUILTIN = 'html.parser'

    def __init__(self, features: Optional[str] = None):
        self.features = features or self.detect_features()

    @classmethod
    def detect_features(cls) -> str:
        if builder_registry.lookup(cls.LXML) is not None:
            return cls.LXML
        return cls.BUILTIN

    def parse(self, markup: str) -> BeautifulSoup:
        return BeautifulSoup(markup, self.features)


def resolve_url(href: str, page_url: str) -> Optional[str]:
    """Resolve an href against the page it was found on"""
    try:
        resolved = urljoin(page_url, href.strip())
    except ValueError:
        return None
    if not resolved.startswith(('http://', 'https://')):
        return None
    return resolved


def is_valid_url(url: Optional[str], base_url: str, config: CrawlConfig) -> bool:
    """Same host as the site, no fragment, and not excluded"""
    if not url:
        return False
    try:
        parsed = urlparse(url)
        base = urlparse(base_url)
    except ValueError:
        return False

    if parsed.hostname != base.hostname:
        return False
    # Anchor links
    if parsed.fragment:
        return False
    if config.is_excluded(url):
        return False
    return True


class LinkExtractor:
    """Pulls same-site, policy-valid links out of a parsed document"""

    def __init__(self, config: CrawlConfig):
        self.config = config

    def extract(self, document: BeautifulSoup, page_url: str) -> List[str]:
        """Return the unique valid links on a page, in document order

        Relative hrefs resolve against ``page_url``, not the site's base URL,
        so links on deep pages land where the browser would send them.
        """
        links: List[str] = []
        seen: Set[str] = set()

        for anchor in document.find_all('a', href=True):
            resolved = resolve_url(anchor['href'], page_url)
            if resolved in seen or not is_valid_url(resolved, self.config.base_url, self.config):
                continue
            seen.add(resolved)
            links.append(resolved)

        return links
