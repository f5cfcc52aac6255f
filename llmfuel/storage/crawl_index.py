import os
import json
import logging
import aiofiles
from pathlib import Path
from datetime import datetime, timezone
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Union

logger = logging.getLogger(__name__)


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')


@dataclass
class PageRecord:
    """One crawled page, keyed by URL within its site"""
    url: str
    title: str
    content: str
    word_count: int
    extraction_method: str
    site_key: str
    site_name: str
    depth: int
    quality_score: Optional[float] = None
    last_modified: Optional[str] = None
    breadcrumbs: List[str] = field(default_factory=list)
    crawled_at: str = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'url': self.url,
            'title': self.title,
            'content': self.content,
            'wordCount': self.word_count,
            'qualityScore': self.quality_score,
            'extractionMethod': self.extraction_method,
            'lastModified': self.last_modified,
            'breadcrumbs': list(self.breadcrumbs),
            'siteKey': self.site_key,
            'siteName': self.site_name,
            'depth': self.depth,
            'crawledAt': self.crawled_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PageRecord':
        return cls(
            url=data['url'],
            title=data.get('title', ''),
            content=data.get('content', ''),
            # Older indexes stored an estimate instead of a count
            word_count=int(data.get('wordCount', data.get('estimatedWords', 0)) or 0),
            quality_score=data.get('qualityScore'),
            extraction_method=data.get('extractionMethod', 'unknown'),
            last_modified=data.get('lastModified'),
            breadcrumbs=list(data.get('breadcrumbs') or []),
            site_key=data.get('siteKey', ''),
            site_name=data.get('siteName', ''),
            depth=int(data.get('depth', 0) or 0),
            crawled_at=data.get('crawledAt') or utc_now(),
        )


@dataclass
class SiteEntry:
    """Index section for one site"""
    name: str
    base_url: str
    pages: List[PageRecord] = field(default_factory=list)
    last_crawled: Optional[str] = None
    stats: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'baseUrl': self.base_url,
            'pages': [page.to_dict() for page in self.pages],
            'lastCrawled': self.last_crawled,
            'stats': dict(self.stats),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SiteEntry':
        return cls(
            name=data.get('name', ''),
            base_url=data.get('baseUrl', ''),
            pages=unique_pages(PageRecord.from_dict(p) for p in data.get('pages') or [] if p.get('url')),
            last_crawled=data.get('lastCrawled'),
            stats=dict(data.get('stats') or {}),
        )


def unique_pages(pages) -> List[PageRecord]:
    """Drop later records whose URL was already seen"""
    seen: Set[str] = set()
    result = []
    for page in pages:
        if page.url in seen:
            continue
        seen.add(page.url)
        result.append(page)
    return result


class CrawlIndex:
    """Persisted record of crawled pages per site

    Read once at the start of a run, rewritten atomically at the end.
    """

    def __init__(self, sites: Optional[Dict[str, SiteEntry]] = None, generated: Optional[str] = None):
        self.sites: Dict[str, SiteEntry] = sites or {}
        self.generated = generated

    @classmethod
    async def load(cls, path: Union[str, Path]) -> 'CrawlIndex':
        """Load an index file; a missing or unreadable file gives an empty index"""
        path = Path(path)
        if not path.exists():
            logger.info(f"No existing index at {path}, starting fresh")
            return cls()

        try:
            async with aiofiles.open(path, 'r', encoding='utf-8') as f:
                raw = json.loads(await f.read())
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read existing index {path}: {e}")
            return cls()

        sites = {key: SiteEntry.from_dict(data) for key, data in (raw.get('sites') or {}).items()}
        index = cls(sites=sites, generated=raw.get('generated'))
        total = sum(len(site.pages) for site in sites.values())
        logger.info(f"Loaded existing index: {len(sites)} sites, {total} pages")
        return index

    def existing_pages(self, site_key: str) -> List[PageRecord]:
        site = self.sites.get(site_key)
        return list(site.pages) if site else []

    def existing_urls(self, site_key: str) -> Set[str]:
        return {page.url for page in self.existing_pages(site_key)}

    def update_site(self, site_key: str, name: str, base_url: str, pages: List[PageRecord],
                    stats: Optional[Dict[str, Any]] = None):
        """Replace one site's section; other sites are untouched"""
        pages = unique_pages(pages)
        word_total = sum(page.word_count for page in pages)
        site_stats = {
            'totalPages': len(pages),
            'averageWords': round(word_total / len(pages)) if pages else 0,
        }
        site_stats.update(stats or {})
        self.sites[site_key] = SiteEntry(
            name=name,
            base_url=base_url,
            pages=pages,
            last_crawled=utc_now(),
            stats=site_stats,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'generated': self.generated or utc_now(),
            'sites': {key: site.to_dict() for key, site in self.sites.items()},
        }

    def serialize(self, minify: bool = False) -> str:
        data = self.to_dict()
        if minify:
            return json.dumps(data, separators=(',', ':'), ensure_ascii=False)
        return json.dumps(data, indent=2, ensure_ascii=False)

    async def save(self, path: Union[str, Path], minify: bool = False) -> Path:
        """Write the index through a temp file and an atomic rename"""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.generated = utc_now()
        payload = self.serialize(minify)

        tmp_path = path.with_name(f".{path.name}.tmp")
        try:
            async with aiofiles.open(tmp_path, 'w', encoding='utf-8') as f:
                await f.write(payload)
            os.replace(tmp_path, path)
        except OSError:
            if tmp_path.exists():
                tmp_path.unlink()
            raise

        size_kb = len(payload.encode('utf-8')) / 1024
        logger.info(f"Index written to {path} ({size_kb:.1f}KB, {'minified' if minify else 'pretty-printed'})")
        return path


def build_display_tree(index: CrawlIndex) -> Dict[str, Any]:
    """Group each site's pages by category (first breadcrumb) for display"""
    tree: Dict[str, Any] = {}
    for site_key, site in index.sites.items():
        categories: Dict[str, Dict[str, Any]] = {}
        for page in site.pages:
            category = page.breadcrumbs[0] if page.breadcrumbs else 'general'
            categories.setdefault(category, {'name': category, 'pages': []})['pages'].append(page.to_dict())
        tree[site_key] = {
            'siteKey': site_key,
            'name': site.name or site_key,
            'pages': [page.to_dict() for page in site.pages],
            'categories': categories,
        }
    return tree
