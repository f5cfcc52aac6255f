"""
Configuration - site crawl configs, run-wide settings and corpus settings

Site configs live in a JSON file mapping site key -> config. A SiteRegistry is
constructed once per process and handed to whatever needs it.
"""

import os
import re
import json
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Pattern, Union

from .error_handler import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = 'config/crawl-config.json'
DEFAULT_INDEX_PATH = 'public/docs-index.json'
LOCAL_INDEX_PATH = 'temp-docs-index.json'

# JavaScript-style /source/flags literal
_REGEX_LITERAL = re.compile(r'^/(.+)/([gimsuy]*)$', re.DOTALL)
_FLAG_MAP = {
    'i': re.IGNORECASE,
    'm': re.MULTILINE,
    's': re.DOTALL,
}


def compile_exclude_pattern(pattern: str) -> Pattern:
    """Compile an exclude pattern given as ``/source/flags`` or plain regex source

    Flags g, u and y have no Python meaning and are ignored.
    """
    match = _REGEX_LITERAL.match(pattern)
    flags = 0
    source = pattern
    if match:
        source = match.group(1)
        for flag in match.group(2):
            flags |= _FLAG_MAP.get(flag, 0)
    try:
        return re.compile(source, flags)
    except re.error as e:
        raise ConfigurationError(f"Invalid exclude pattern {pattern!r}: {e}") from e


def _as_selector_list(value: Union[str, List[str], None]) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(',') if part.strip()]
    return [str(part).strip() for part in value if str(part).strip()]


@dataclass(frozen=True)
class SelectorConfig:
    """CSS selectors tried in order for the title and the main content"""
    title: List[str] = field(default_factory=lambda: ['h1', 'title'])
    content: List[str] = field(default_factory=lambda: ['main', 'article', '[role="main"]', '.content', 'body'])

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> 'SelectorConfig':
        data = data or {}
        defaults = cls()
        return cls(
            title=_as_selector_list(data.get('title')) or defaults.title,
            content=_as_selector_list(data.get('content')) or defaults.content,
        )


@dataclass(frozen=True)
class ContentFilters:
    """Noise filter switches and the final minimum word count"""
    remove_scripts: bool = True
    remove_styles: bool = True
    remove_comments: bool = True
    remove_empty_elements: bool = False
    min_word_count: int = 10

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> 'ContentFilters':
        data = data or {}
        defaults = cls()
        return cls(
            remove_scripts=bool(data.get('removeScripts', defaults.remove_scripts)),
            remove_styles=bool(data.get('removeStyles', defaults.remove_styles)),
            remove_comments=bool(data.get('removeComments', defaults.remove_comments)),
            remove_empty_elements=bool(data.get('removeEmptyElements', defaults.remove_empty_elements)),
            min_word_count=int(data.get('minWordCount', defaults.min_word_count)),
        )

    def is_enabled(self, option: Optional[str]) -> bool:
        return option is None or bool(getattr(self, option))


@dataclass(frozen=True)
class CrawlConfig:
    """Crawl configuration for one documentation site"""
    key: str
    name: str
    base_url: str
    seed_urls: List[str] = field(default_factory=lambda: ['/'])
    max_depth: int = 3
    max_pages: int = 50
    exclude_patterns: List[Pattern] = field(default_factory=list)
    selectors: SelectorConfig = field(default_factory=SelectorConfig)
    content_filters: ContentFilters = field(default_factory=ContentFilters)
    type: str = 'crawl'
    file_url: Optional[str] = None

    @property
    def is_single_file(self) -> bool:
        return self.type == 'single-file' and bool(self.file_url)

    def is_excluded(self, url: str) -> bool:
        return any(pattern.search(url) for pattern in self.exclude_patterns)

    @classmethod
    def from_dict(cls, key: str, data: Mapping[str, Any]) -> 'CrawlConfig':
        if not isinstance(data, Mapping):
            raise ConfigurationError(f"Config for site '{key}' must be an object")
        missing = [name for name in ('name', 'baseUrl') if not data.get(name)]
        if missing:
            raise ConfigurationError(f"Config for site '{key}' is missing: {', '.join(missing)}")

        return cls(
            key=key,
            name=data['name'],
            base_url=data['baseUrl'].rstrip('/'),
            seed_urls=list(data.get('seedUrls') or ['/']),
            max_depth=int(data.get('maxDepth', 3)),
            max_pages=int(data.get('maxPages', 50)),
            exclude_patterns=[compile_exclude_pattern(p) for p in data.get('excludePatterns') or []],
            selectors=SelectorConfig.from_dict(data.get('selectors')),
            content_filters=ContentFilters.from_dict(data.get('contentFilters')),
            type=data.get('type', 'crawl'),
            file_url=data.get('fileUrl'),
        )


class SiteRegistry:
    """Site configs loaded from one JSON file

    The file is read on first access and kept for the lifetime of the registry.
    """

    def __init__(self, path: Union[str, Path] = DEFAULT_CONFIG_PATH):
        self.path = Path(path)
        self._configs: Optional[Dict[str, CrawlConfig]] = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> 'SiteRegistry':
        """Build a registry from already-parsed config data"""
        registry = cls(path='<memory>')
        registry._configs = cls._parse(raw)
        return registry

    def load(self) -> Dict[str, CrawlConfig]:
        if self._configs is None:
            try:
                with open(self.path, 'r', encoding='utf-8') as f:
                    raw = json.load(f)
            except FileNotFoundError as e:
                raise ConfigurationError(f"Crawl config not found: {self.path}") from e
            except (OSError, json.JSONDecodeError) as e:
                raise ConfigurationError(f"Failed to load crawl config {self.path}: {e}") from e

            self._configs = self._parse(raw)
            logger.info(f"Loaded {len(self._configs)} site configs from {self.path}")
        return self._configs

    @staticmethod
    def _parse(raw: Any) -> Dict[str, CrawlConfig]:
        if not isinstance(raw, Mapping):
            raise ConfigurationError("Crawl config root must be an object of site key -> config")
        return {key: CrawlConfig.from_dict(key, data) for key, data in raw.items()}

    def get(self, site_key: str) -> CrawlConfig:
        configs = self.load()
        if site_key not in configs:
            raise ConfigurationError(f"Unknown site: {site_key}")
        return configs[site_key]

    def keys(self) -> List[str]:
        return list(self.load().keys())

    def __contains__(self, site_key: str) -> bool:
        return site_key in self.load()


def _env_flag(environ: Mapping[str, str], name: str, expected: str = 'true') -> bool:
    return environ.get(name, '').strip().lower() == expected


@dataclass
class RunSettings:
    """Run-wide crawl settings"""
    requests_per_second: float = 2.0
    burst_size: int = 5
    fetch_timeout: float = 15.0
    max_entry_points: int = 50
    minimum_acceptable_words: int = 20
    index_path: str = DEFAULT_INDEX_PATH
    minify_index: bool = False
    in_ci: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> 'RunSettings':
        environ = os.environ if environ is None else environ
        settings = cls(
            minify_index=_env_flag(environ, 'NODE_ENV', 'production') or _env_flag(environ, 'MINIFY_INDEX'),
            in_ci=_env_flag(environ, 'CI') or _env_flag(environ, 'GITHUB_ACTIONS'),
        )
        for name, value in overrides.items():
            setattr(settings, name, value)
        return settings

    def resolve_output_path(self, custom_path: Optional[str] = None) -> Path:
        """Custom path wins; CI writes the public index, local runs write a temp file"""
        if custom_path:
            return Path(custom_path)
        return Path(DEFAULT_INDEX_PATH if self.in_ci else LOCAL_INDEX_PATH)


@dataclass
class CorpusSettings:
    """Settings for llms.txt generation"""
    docs_index_path: str = DEFAULT_INDEX_PATH
    output_dir: str = 'public/llms'
    max_concurrency: int = 3
    quality_threshold: float = 0.2
    min_word_count: int = 30
    fetch_timeout: float = 30.0
    max_documents: Optional[int] = None
    sort_by_quality: bool = True
    include_quality_disclosure: bool = True
    combined_output: bool = False
