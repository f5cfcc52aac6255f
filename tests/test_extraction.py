"""
Tests for content extraction, noise filtering, cleaning, titles and the not-found heuristic
"""

from llmfuel.config import ContentFilters, CrawlConfig
from llmfuel.crawler.result import FetchResult
from llmfuel.extraction import (
    CodeBlockGuard, ContentExtractor, SelectorExtractor, apply_noise_filters, breadcrumbs_from_url,
    clean_content, clean_title, count_words, is_not_found_page, title_from_url,
)
from llmfuel.parser import DocumentParser

CODE_FENCE = "```js\n// keep this comment\nconst state = {\"a\": 1};\n<script>alert(1)</script>\n```"

ARTICLE = """
<html>
<head><title>Messaging | AO Cookbook</title></head>
<body>
  <nav><a href="/">Home</a></nav>
  <main>
    <h1>Sending Messages</h1>
    <p>Processes in AO communicate by sending messages to each other. Every message carries
       tags that describe the action and the target process that should handle it.</p>
    <h2>Example</h2>
    <pre>Send({ Target = ao.id, Action = "Ping" })</pre>
    <ul><li>Messages are signed by the sender</li><li>Handlers match on tags</li></ul>
    <script>window.__APP_STATE__ = {"user": 1};</script>
  </main>
</body>
</html>
"""


def make_config(**overrides):
    data = {'name': 'AO Cookbook', 'baseUrl': 'https://cookbook_ao.arweave.net'}
    data.update(overrides)
    return CrawlConfig.from_dict('ao', data)


def fetched_html(url, markup):
    return FetchResult(url=url, html=markup, document=DocumentParser().parse(markup), status_code=200)


class TestCodeBlockGuard:
    """Placeholder swapping for code blocks"""

    def test_protect_and_restore(self):
        """Restoring gives back the original text"""
        guard = CodeBlockGuard()
        text = f"Before\n\n{CODE_FENCE}\n\nAfter"
        protected = guard.protect(text)

        assert 'keep this comment' not in protected
        assert guard.restore(protected) == text

    def test_unclosed_fence_runs_to_end(self):
        """An unclosed fence protects the rest of the text"""
        guard = CodeBlockGuard()
        protected = guard.protect("Intro\n```\nunterminated <b>code</b>")
        assert '<b>' not in protected

    def test_indented_block_keeps_its_own_line(self):
        """The line after an indented block stays outside the placeholder"""
        guard = CodeBlockGuard()
        protected = guard.protect("Intro\n\n    const x = compute();\nNext line")

        assert protected.splitlines()[-1] == 'Next line'
        assert guard.blocks == ['    const x = compute();']

    def test_lookalike_token_is_left_alone(self):
        """Placeholder-shaped text with no stashed block survives restore"""
        guard = CodeBlockGuard()
        assert guard.restore('Token LLMFUELCODEBLOCK3END here') == 'Token LLMFUELCODEBLOCK3END here'


class TestNoiseFilters:
    """Framework noise removal"""

    def test_code_fence_preserved_byte_for_byte(self):
        """Script, comment and JSON lookalikes inside a fence survive"""
        text = f"Intro paragraph\n\n{CODE_FENCE}\n\n<script>tracking()</script>\n// stray comment\nOutro"
        result = apply_noise_filters(text)

        assert CODE_FENCE in result
        assert 'tracking()' not in result
        assert 'stray comment' not in result
        assert result.endswith('Outro')

    def test_urls_survive_comment_removal(self):
        """Only whole // lines are comments"""
        result = apply_noise_filters("See https://example.com/docs for details")
        assert result == "See https://example.com/docs for details"

    def test_filters_can_be_disabled(self):
        """Switching removeComments off keeps comments"""
        filters = ContentFilters(remove_comments=False)
        result = apply_noise_filters("Text <!-- note --> more", filters)
        assert '<!-- note -->' in result

    def test_hydration_payloads_removed(self):
        """Next.js and webpack payloads are stripped"""
        text = ('Real content here\nself.__next_f.push([1,"chunk"])\n'
                '(self.webpackChunk_app = self.webpackChunk_app || []).push([[1], {}]);')
        result = apply_noise_filters(text)
        assert result == 'Real content here'

    def test_css_rule_line_leaves_prose_above(self):
        """A CSS rule line is removed on its own"""
        text = ("Processes exchange messages through the scheduler\n\n"
                "Note the theme override\n.note { color: red }\n\nOutro line.")
        result = apply_noise_filters(text)
        assert result == ("Processes exchange messages through the scheduler\n\n"
                          "Note the theme override\n\nOutro line.")

    def test_indented_code_before_css_rule_line(self):
        """Removing the line after an indented block keeps the block"""
        result = apply_noise_filters("Intro\n\n    const x = compute();\na { color: red }\n\nOutro")
        assert result == "Intro\n\n    const x = compute();\n\nOutro"

    def test_empty_input(self):
        assert apply_noise_filters(None) == ''


class TestCleaning:
    """Corpus cleaning pipeline"""

    def test_markdown_and_typography(self):
        """Markdown syntax is flattened and typography normalised"""
        text = "**Bold** move with [the docs](https://example.com/docs) \u2014 \u201cquoted\u201d\u2026"
        assert clean_content(text) == 'Bold move with the docs - "quoted"...'

    def test_boilerplate_lines_removed(self):
        """Cookie banners and edit links are dropped"""
        text = "Useful line\nWe use cookies to improve your experience\nEdit this page on GitHub\nMore"
        assert clean_content(text) == "Useful line\n\nMore"

    def test_indented_code_before_boilerplate_line(self):
        """A cookie line right after indented code goes, the code stays"""
        text = "Intro paragraph\n\n    const x = compute();\nNote that we use cookies for sessions\n\nOutro."
        assert clean_content(text) == "Intro paragraph\n\n    const x = compute();\n\nOutro."

    def test_placeholder_lookalike_in_prose(self):
        assert clean_content("The token LLMFUELCODEBLOCK3END appears in prose") == \
            "The token LLMFUELCODEBLOCK3END appears in prose"

    def test_entities_decoded(self):
        assert clean_content("Tom &amp; Jerry") == "Tom & Jerry"

    def test_code_block_untouched(self):
        """Cleaning never rewrites code"""
        code = "```\n**not bold** &amp;  [x](y)\n```"
        assert code in clean_content(f"Intro\n\n{code}")


class TestTitles:
    """Title and breadcrumb helpers"""

    def test_title_from_url(self):
        """Index pages defer to their parent, generic leaves get context"""
        assert title_from_url('https://docs.example.com/guides/index.html') == 'Guides'
        assert title_from_url('https://docs.example.com/ao/getting-started') == 'Ao Getting Started'
        assert title_from_url('https://www.example.com/') == 'Example Home'

    def test_clean_title_strips_site_suffix(self):
        assert clean_title('Messaging | AO Cookbook', 'AO Cookbook') == 'Messaging'
        assert clean_title('  Spaced \n  Title  ') == 'Spaced Title'

    def test_breadcrumbs(self):
        assert breadcrumbs_from_url('https://a.b/Guides/getting_started.html') == ['guides', 'getting started']


class TestNotFoundHeuristic:
    """Soft-404 detection"""

    def test_long_article_mentioning_404_is_kept(self):
        """A 300-word article about the 404 Protocol is real content"""
        body = ("The 404 Protocol describes how gateways report that a resource was not found. " +
                "Gateways and clients exchange status information in a structured way. " * 25)
        assert count_words(body) > 200
        assert not is_not_found_page('Understanding gateway status codes', body)

    def test_short_not_found_page(self):
        """A 40-word page titled Page Not Found is rejected"""
        body = ' '.join(['Sorry, the page you requested could not be located on this server.'] * 4)
        assert is_not_found_page('Page Not Found', body)

    def test_body_match_inside_band(self):
        """404 plus not-found phrasing in a short body is rejected"""
        body = "Error 404. The page was not found. " + "Please check the address and try again later. " * 4
        assert is_not_found_page('Docs', body)


class TestContentExtractor:
    """Strategy chain and post-processing"""

    def test_selector_extraction(self):
        """Configured selectors produce structured text with a fenced pre block"""
        extractor = ContentExtractor([SelectorExtractor()], minimum_acceptable=5)
        config = make_config()
        result = extractor.extract(fetched_html('https://cookbook_ao.arweave.net/guides/messaging', ARTICLE),
                                   config)

        assert result is not None
        assert result.title == 'Sending Messages'
        assert result.method == 'selector:main'
        assert '## Example' in result.content
        assert '```\nSend({ Target = ao.id, Action = "Ping" })\n```' in result.content
        assert '- Handlers match on tags' in result.content
        assert '__APP_STATE__' not in result.content
        assert result.word_count == count_words(result.content)

    def test_falls_back_to_title_from_url(self):
        """Generic titles defer to the URL"""
        markup = "<html><body><main><h1>Home</h1><p>" + "word " * 30 + "</p></main></body></html>"
        extractor = ContentExtractor([SelectorExtractor()])
        result = extractor.extract(fetched_html('https://cookbook_ao.arweave.net/concepts/tags', markup),
                                   make_config())
        assert result.title == 'Tags'

    def test_too_short_is_rejected(self):
        """Below minWordCount the page is dropped"""
        markup = "<html><body><main><h1>Tiny</h1><p>three words here</p></main></body></html>"
        extractor = ContentExtractor([SelectorExtractor()])
        assert extractor.extract(fetched_html('https://cookbook_ao.arweave.net/tiny', markup), make_config()) is None

    def test_plain_text(self):
        """Plain-text responses skip the strategies"""
        text = "# HyperBEAM\n\n" + "HyperBEAM runs devices that process messages. " * 5
        fetched = FetchResult(url='https://hyperbeam.arweave.net/llms.txt', text=text, is_plain_text=True)
        result = ContentExtractor().extract(fetched, make_config())

        assert result.is_plain_text
        assert result.title == 'HyperBEAM'
        assert result.content == text.strip()

    def test_failing_strategy_falls_through(self):
        """An exception in one strategy moves on to the next"""

        class Broken(SelectorExtractor):
            name = 'broken'

            def extract(self, html_text, document, url, config):
                raise RuntimeError('boom')

        extractor = ContentExtractor([Broken(), SelectorExtractor()], minimum_acceptable=5)
        result = extractor.extract(fetched_html('https://cookbook_ao.arweave.net/guides/messaging', ARTICLE),
                                   make_config())
        assert result.method == 'selector:main'
