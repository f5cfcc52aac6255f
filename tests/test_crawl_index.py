"""
Tests for the persisted crawl index
"""

import json

import pytest

from llmfuel.storage import CrawlIndex, PageRecord, build_display_tree


def make_page(url, words=120, breadcrumbs=None, site_key='ao'):
    return PageRecord(
        url=url,
        title=url.rsplit('/', 1)[-1] or 'Home',
        content='word ' * words,
        word_count=words,
        extraction_method='trafilatura',
        site_key=site_key,
        site_name='AO Cookbook',
        depth=1,
        quality_score=0.75,
        breadcrumbs=breadcrumbs if breadcrumbs is not None else ['guides'],
    )


class TestCrawlIndex:
    """Load, update and save"""

    @pytest.mark.asyncio
    async def test_missing_file_gives_empty_index(self, tmp_path):
        index = await CrawlIndex.load(tmp_path / 'missing.json')
        assert index.sites == {}

    @pytest.mark.asyncio
    async def test_corrupt_file_gives_empty_index(self, tmp_path):
        path = tmp_path / 'index.json'
        path.write_text('{broken')
        index = await CrawlIndex.load(path)
        assert index.sites == {}

    @pytest.mark.asyncio
    async def test_save_and_load(self, tmp_path):
        """Pages survive a round trip with camelCase keys on disk"""
        index = CrawlIndex()
        index.update_site('ao', 'AO Cookbook', 'https://cookbook_ao.arweave.net',
                          [make_page('https://cookbook_ao.arweave.net/guides/a', words=100),
                           make_page('https://cookbook_ao.arweave.net/guides/b', words=200)],
                          {'newPages': 2})
        path = await index.save(tmp_path / 'public' / 'docs-index.json')

        raw = json.loads(path.read_text())
        site = raw['sites']['ao']
        assert site['baseUrl'] == 'https://cookbook_ao.arweave.net'
        assert site['stats'] == {'totalPages': 2, 'averageWords': 150, 'newPages': 2}
        assert site['pages'][0]['wordCount'] == 100
        assert not (tmp_path / 'public' / '.docs-index.json.tmp').exists()

        loaded = await CrawlIndex.load(path)
        assert loaded.existing_urls('ao') == {
            'https://cookbook_ao.arweave.net/guides/a',
            'https://cookbook_ao.arweave.net/guides/b',
        }
        assert loaded.existing_pages('ao')[0].quality_score == 0.75

    @pytest.mark.asyncio
    async def test_minified_output(self, tmp_path):
        """Minified output has no indentation"""
        index = CrawlIndex()
        index.update_site('ao', 'AO Cookbook', 'https://x', [make_page('https://x/a')])

        pretty = await index.save(tmp_path / 'pretty.json')
        minified = await index.save(tmp_path / 'min.json', minify=True)

        assert '\n  ' in pretty.read_text()
        assert '\n' not in minified.read_text()
        assert json.loads(minified.read_text())['sites'] == json.loads(pretty.read_text())['sites']

    def test_update_keeps_other_sites(self):
        """Updating one site leaves the others alone"""
        index = CrawlIndex()
        index.update_site('ao', 'AO', 'https://a', [make_page('https://a/1')])
        index.update_site('arweave', 'Arweave', 'https://b', [make_page('https://b/1', site_key='arweave')])
        index.update_site('ao', 'AO', 'https://a', [make_page('https://a/2')])

        assert index.existing_urls('arweave') == {'https://b/1'}
        assert index.existing_urls('ao') == {'https://a/2'}

    def test_duplicate_urls_collapse(self):
        """A URL appears at most once per site"""
        index = CrawlIndex()
        index.update_site('ao', 'AO', 'https://a', [make_page('https://a/1'), make_page('https://a/1', words=5)])
        pages = index.existing_pages('ao')
        assert len(pages) == 1
        assert pages[0].word_count == 120

    def test_legacy_estimated_words(self):
        """Older records with estimatedWords still load"""
        page = PageRecord.from_dict({'url': 'https://a/1', 'estimatedWords': 42})
        assert page.word_count == 42
        assert page.extraction_method == 'unknown'


class TestDisplayTree:
    """Category grouping"""

    def test_groups_by_first_breadcrumb(self):
        index = CrawlIndex()
        index.update_site('ao', 'AO Cookbook', 'https://a', [
            make_page('https://a/guides/1', breadcrumbs=['guides', '1']),
            make_page('https://a/concepts/2', breadcrumbs=['concepts', '2']),
            make_page('https://a/', breadcrumbs=[]),
        ])
        tree = build_display_tree(index)

        categories = tree['ao']['categories']
        assert set(categories) == {'guides', 'concepts', 'general'}
        assert len(tree['ao']['pages']) == 3
