"""
Tests for site configuration and run settings
"""

import json
import tempfile
from pathlib import Path

import pytest

from llmfuel.config import (
    ContentFilters, CrawlConfig, RunSettings, SelectorConfig, SiteRegistry, compile_exclude_pattern,
)
from llmfuel.error_handler import ConfigurationError

SAMPLE_CONFIG = {
    "ao": {
        "name": "AO Cookbook",
        "baseUrl": "https://cookbook_ao.arweave.net/",
        "seedUrls": ["/", "/guides/index.html"],
        "maxDepth": 2,
        "maxPages": 20,
        "selectors": {"title": "h1, title", "content": ["main", "article"]},
        "excludePatterns": ["/\\.pdf$/i", "/zh/"],
        "contentFilters": {"removeComments": False, "minWordCount": 25},
    },
    "hyperbeam": {
        "name": "HyperBEAM",
        "baseUrl": "https://hyperbeam.arweave.net",
        "type": "single-file",
        "fileUrl": "https://hyperbeam.arweave.net/llms.txt",
    },
}


class TestExcludePatterns:
    """Regex literal parsing"""

    def test_slash_literal_with_flags(self):
        """/src/i compiles case-insensitively"""
        pattern = compile_exclude_pattern('/\\.pdf$/i')
        assert pattern.search('https://example.com/FILE.PDF')

    def test_plain_pattern(self):
        """Strings without slashes are used as-is"""
        pattern = compile_exclude_pattern('changelog')
        assert pattern.search('https://example.com/changelog/v2')

    def test_invalid_pattern(self):
        """A broken regex is a configuration error"""
        with pytest.raises(ConfigurationError):
            compile_exclude_pattern('/[unclosed/')


class TestCrawlConfig:
    """CrawlConfig parsing"""

    def test_defaults(self):
        """Only name and baseUrl are required"""
        config = CrawlConfig.from_dict('site', {'name': 'Site', 'baseUrl': 'https://docs.example.com/'})

        assert config.base_url == 'https://docs.example.com'
        assert config.seed_urls == ['/']
        assert config.max_depth == 3
        assert config.max_pages == 50
        assert config.selectors == SelectorConfig()
        assert config.content_filters.min_word_count == 10
        assert config.content_filters.remove_empty_elements is False
        assert not config.is_single_file

    def test_full_config(self):
        """Selectors accept comma strings or lists; filters use camelCase keys"""
        config = CrawlConfig.from_dict('ao', SAMPLE_CONFIG['ao'])

        assert config.selectors.title == ['h1', 'title']
        assert config.selectors.content == ['main', 'article']
        assert config.content_filters == ContentFilters(remove_comments=False, min_word_count=25)
        assert config.is_excluded('https://cookbook_ao.arweave.net/zh/guide')
        assert not config.is_excluded('https://cookbook_ao.arweave.net/guides/')

    def test_single_file(self):
        """type=single-file with a fileUrl"""
        config = CrawlConfig.from_dict('hyperbeam', SAMPLE_CONFIG['hyperbeam'])
        assert config.is_single_file
        assert config.file_url.endswith('llms.txt')

    def test_missing_required_fields(self):
        """Missing baseUrl is rejected"""
        with pytest.raises(ConfigurationError, match='baseUrl'):
            CrawlConfig.from_dict('broken', {'name': 'Broken'})


class TestSiteRegistry:
    """Loading site configs from JSON"""

    def setup_method(self):
        self.temp_dir = tempfile.mkdtemp()
        self.path = Path(self.temp_dir) / 'crawl-config.json'
        self.path.write_text(json.dumps(SAMPLE_CONFIG))

    def test_load_and_get(self):
        """Configs are keyed by site"""
        registry = SiteRegistry(self.path)

        assert registry.keys() == ['ao', 'hyperbeam']
        assert 'ao' in registry
        assert registry.get('ao').name == 'AO Cookbook'

    def test_unknown_site(self):
        """Unknown keys raise a configuration error"""
        registry = SiteRegistry(self.path)
        with pytest.raises(ConfigurationError, match='Unknown site'):
            registry.get('missing')

    def test_missing_file(self):
        """A missing config file is fatal"""
        registry = SiteRegistry(Path(self.temp_dir) / 'nope.json')
        with pytest.raises(ConfigurationError):
            registry.keys()

    def test_invalid_json(self):
        """Unparseable JSON is fatal"""
        self.path.write_text('{not json')
        with pytest.raises(ConfigurationError):
            SiteRegistry(self.path).load()


class TestRunSettings:
    """Environment-driven settings"""

    def test_local_run(self):
        """Local runs write a temp index, pretty-printed"""
        settings = RunSettings.from_env({})
        assert not settings.minify_index
        assert settings.resolve_output_path() == Path('temp-docs-index.json')

    def test_ci_run(self):
        """CI writes the public index"""
        settings = RunSettings.from_env({'GITHUB_ACTIONS': 'true'})
        assert settings.in_ci
        assert settings.resolve_output_path() == Path('public/docs-index.json')

    def test_custom_output_wins(self):
        """An explicit path overrides the environment"""
        settings = RunSettings.from_env({'CI': 'true'})
        assert settings.resolve_output_path('out/index.json') == Path('out/index.json')

    def test_minify_flags(self):
        """Production or MINIFY_INDEX turns on minified output"""
        assert RunSettings.from_env({'NODE_ENV': 'production'}).minify_index
        assert RunSettings.from_env({'MINIFY_INDEX': 'true'}).minify_index

    def test_overrides(self):
        """Keyword overrides are applied after the environment"""
        settings = RunSettings.from_env({}, requests_per_second=10.0, burst_size=3)
        assert settings.requests_per_second == 10.0
        assert settings.burst_size == 3
