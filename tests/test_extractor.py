"""
Extractor Tests

Tests for article parsing, link filtering and fetch error mapping.
"""

import pytest
from bs4 import BeautifulSoup

from article_crawler.errors import FetchError, ParseError
from article_crawler.extractor import Extractor, extract_links, parse_article
from fakes import BASE_URL, FakeResponse, FakeSession, article_page


def soup_of(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")


class TestParseArticle:
    def test_extracts_title_date_and_content(self):
        html = """
        <div class="fullstory">
            <h1>Main headline</h1>
            <h1>Second heading</h1>
            <div class="pub-t">Published: 12 March 2024</div>
            <p>First paragraph.</p>
            <p>Second paragraph.</p>
        </div>
        """
        article = parse_article(f"{BASE_URL}/a", soup_of(html))

        assert article.url == f"{BASE_URL}/a"
        assert article.title == "Main headline"
        assert article.date_published == "Published: 12 March 2024"
        assert article.content == "First paragraph.Second paragraph."

    def test_inline_markup_keeps_word_spacing(self):
        html = """
        <div class="fullstory">
            <h1>Hello <b>world</b> news</h1>
            <div class="pub-t">12 <span>March</span> 2024</div>
        </div>
        """
        article = parse_article(f"{BASE_URL}/e", soup_of(html))

        assert article.title == "Hello world news"
        assert article.date_published == "12 March 2024"

    def test_section_layout(self):
        html = '<section class="fullstory"><h1>Section story</h1><p>Text</p></section>'
        article = parse_article(f"{BASE_URL}/b", soup_of(html))

        assert article.title == "Section story"
        assert article.content == "Text"

    def test_ignores_content_outside_story(self):
        html = """
        <h1>Site name</h1><p>Footer text</p>
        <div class="fullstory"><h1>Story</h1><p>Story text</p></div>
        """
        article = parse_article(f"{BASE_URL}/c", soup_of(html))

        assert article.title == "Story"
        assert article.content == "Story text"

    def test_missing_story_region_yields_empty_fields(self):
        article = parse_article(f"{BASE_URL}/d", soup_of("<html><body><p>x</p></body></html>"))

        assert article.title == ""
        assert article.date_published == ""
        assert article.content == ""


class TestExtractLinks:
    def test_keeps_only_base_prefixed_links(self):
        html = f"""
        <a href="{BASE_URL}/a">A</a>
        <a href="https://other.example.org/c">C</a>
        <a href="/relative">R</a>
        <a name="anchor-without-href">N</a>
        """
        assert extract_links(soup_of(html), BASE_URL) == [f"{BASE_URL}/a"]

    def test_keeps_duplicates_and_self_links(self):
        html = f"""
        <a href="{BASE_URL}">Home</a>
        <a href="{BASE_URL}/a">A</a>
        <a href="{BASE_URL}/a">A again</a>
        """
        links = extract_links(soup_of(html), BASE_URL)

        assert links == [BASE_URL, f"{BASE_URL}/a", f"{BASE_URL}/a"]


class TestExtractor:
    def test_extract_returns_article_and_links(self, config):
        url = f"{BASE_URL}/story"
        session = FakeSession({url: article_page("Story", links=[f"{BASE_URL}/next", "https://x.org/"])})
        extractor = Extractor(config, session=session)

        article, links = extractor.extract(url)

        assert article.title == "Story"
        assert article.date_published == "2024-01-01"
        assert article.content == "Body"
        assert links == [f"{BASE_URL}/next"]
        assert session.headers["User-Agent"] == config.user_agent

    def test_connection_error_raises_fetch_error(self, config):
        extractor = Extractor(config, session=FakeSession())

        with pytest.raises(FetchError) as excinfo:
            extractor.extract(f"{BASE_URL}/missing")
        assert excinfo.value.url == f"{BASE_URL}/missing"

    def test_http_error_page_is_still_parsed(self, config):
        url = f"{BASE_URL}/gone"
        html = article_page("Page not found", links=[f"{BASE_URL}/home"])
        session = FakeSession({url: FakeResponse(url, html, status_code=404)})

        page = Extractor(config, session=session).extract_page(url)

        assert page.status_code == 404
        assert page.article.title == "Page not found"
        assert page.links == [f"{BASE_URL}/home"]

    def test_non_html_raises_parse_error(self, config):
        url = f"{BASE_URL}/logo.png"
        session = FakeSession({url: FakeResponse(url, "\x89PNG", content_type="image/png")})

        with pytest.raises(ParseError, match="image/png"):
            Extractor(config, session=session).extract(url)

    def test_close_closes_session(self, config):
        session = FakeSession()
        Extractor(config, session=session).close()

        assert session.closed is True
