"""
Tests for document parsing, link extraction and the page fetcher
"""

import pytest
from aiohttp import ClientSession, web
from aiohttp.test_utils import TestServer

from llmfuel.config import CrawlConfig
from llmfuel.crawler.fetcher import PageFetcher, is_plain_text
from llmfuel.error_handler import ErrorType
from llmfuel.parser import DocumentParser, LinkExtractor, is_valid_url, resolve_url
from llmfuel.utils.rate_limiter import RateLimiter

PAGE = """
<html><body>
  <a href="guide">Guide</a>
  <a href="/ao/reference/">Reference</a>
  <a href="guide">Guide again</a>
  <a href="#section">Anchor</a>
  <a href="https://other.example.org/page">External</a>
  <a href="mailto:team@example.com">Mail</a>
  <a href="/ao/files/manual.pdf">PDF</a>
  <a>No href</a>
</body></html>
"""


def make_config(**overrides):
    data = {'name': 'Docs', 'baseUrl': 'https://docs.example.com', 'excludePatterns': ['/\\.pdf$/i']}
    data.update(overrides)
    return CrawlConfig.from_dict('docs', data)


class TestDocumentParser:
    """Tree builder selection"""

    def test_detects_a_registered_builder(self):
        """Detection picks lxml when available, html.parser otherwise"""
        assert DocumentParser.detect_features() in (DocumentParser.LXML, DocumentParser.BUILTIN)

    def test_builtin_parser(self):
        """Both builders give the same document API"""
        document = DocumentParser('html.parser').parse('<h1>Hello</h1>')
        assert document.select_one('h1').get_text() == 'Hello'


class TestLinkExtractor:
    """Link discovery rules"""

    def test_extracts_valid_links_in_order(self):
        """Relative links resolve against the page, invalid ones are dropped, duplicates once"""
        config = make_config()
        document = DocumentParser().parse(PAGE)
        links = LinkExtractor(config).extract(document, 'https://docs.example.com/ao/intro')

        assert links == [
            'https://docs.example.com/ao/guide',
            'https://docs.example.com/ao/reference/',
        ]

    def test_resolve_url_rejects_non_http(self):
        """mailto and javascript links are not crawlable"""
        assert resolve_url('mailto:a@b.c', 'https://docs.example.com/') is None
        assert resolve_url('javascript:void(0)', 'https://docs.example.com/') is None

    def test_is_valid_url(self):
        """Host, fragment and exclusion checks"""
        config = make_config()
        assert is_valid_url('https://docs.example.com/a', config.base_url, config)
        assert not is_valid_url('https://docs.example.com/a#b', config.base_url, config)
        assert not is_valid_url('https://evil.example.com/a', config.base_url, config)
        assert not is_valid_url('https://docs.example.com/a.PDF', config.base_url, config)
        assert not is_valid_url(None, config.base_url, config)


async def html_page(request):
    return web.Response(text='<html><head><title>Hi</title></head><body><p>Hello</p></body></html>',
                        content_type='text/html')


async def text_page(request):
    return web.Response(text='# Notes\n\nPlain text body', content_type='text/plain')


async def broken_page(request):
    return web.Response(status=500, text='boom')


def make_app():
    app = web.Application()
    app.router.add_get('/', html_page)
    app.router.add_get('/llms.txt', text_page)
    app.router.add_get('/broken', broken_page)
    return app


class TestPageFetcher:
    """Fetch outcomes against a local server"""

    def test_plain_text_detection(self):
        """Content type or a .txt path marks plain text"""
        assert is_plain_text('https://a.b/x', 'text/plain; charset=utf-8')
        assert is_plain_text('https://a.b/llms.txt', None)
        assert not is_plain_text('https://a.b/x', 'text/html')

    @pytest.mark.asyncio
    async def test_fetch_outcomes(self):
        """HTML is parsed, text is wrapped, non-2xx becomes an error result"""
        async with TestServer(make_app()) as server:
            async with ClientSession() as session:
                fetcher = PageFetcher(session, RateLimiter(100.0, 10), timeout=5.0)

                page = await fetcher.fetch(str(server.make_url('/')))
                assert page.ok
                assert page.document.title.get_text() == 'Hi'

                text = await fetcher.fetch(str(server.make_url('/llms.txt')))
                assert text.ok
                assert text.is_plain_text
                assert text.text.startswith('# Notes')

                missing = await fetcher.fetch(str(server.make_url('/missing')))
                assert not missing.ok
                assert missing.error == 'HTTP 404'
                assert missing.error_type == ErrorType.HTTP_NOT_FOUND

                broken = await fetcher.fetch(str(server.make_url('/broken')))
                assert broken.error_type == ErrorType.HTTP_SERVER_ERROR

                assert fetcher.request_count == 4
