"""
Page fetching and article extraction.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

import requests
from bs4 import BeautifulSoup

from article_crawler.config import CrawlConfig
from article_crawler.errors import FetchError, ParseError

logger = logging.getLogger(__name__)

# A page layout may wrap the story in either container
STORY_SELECTOR = "div.fullstory, section.fullstory"
TITLE_SELECTOR = "h1"
PARAGRAPH_SELECTOR = "p"
DATE_SELECTOR = "div.pub-t"

HTML_CONTENT_TYPES = ("text/html", "application/xhtml")


@dataclass(slots=True)
class Article:
    """Structured content extracted from one page."""
    url: str
    title: str = ""
    date_published: str = ""
    content: str = ""


def parse_document(url: str, html: str) -> BeautifulSoup:
    """Parse HTML into a document, raising ParseError on failure."""
    try:
        return BeautifulSoup(html, "lxml")
    except Exception as exc:
        raise ParseError(url, f"unparseable document: {exc}") from exc


def parse_article(url: str, soup: BeautifulSoup) -> Article:
    """Extract title, publish date and body from the full-story region."""
    regions = soup.select(STORY_SELECTOR)

    title = ""
    date_published = ""
    paragraphs: List[str] = []
    for region in regions:
        if not title and (heading := region.select_one(TITLE_SELECTOR)):
            title = heading.get_text(separator=" ", strip=True)
        if not date_published and (date_tag := region.select_one(DATE_SELECTOR)):
            date_published = date_tag.get_text(separator=" ", strip=True)
        paragraphs.extend(p.get_text() for p in region.select(PARAGRAPH_SELECTOR))

    return Article(
        url=url,
        title=title,
        date_published=date_published,
        content="".join(paragraphs).strip(),
    )


def extract_links(soup: BeautifulSoup, base_url: str) -> List[str]:
    """
    Return every anchor target in the document that starts with base_url.

    Duplicates and self links are kept; the frontier deduplicates.
    """
    links = []
    for anchor in soup.find_all("a", href=True):
        href = anchor["href"]
        if isinstance(href, list):
            href = href[0] if href else ""
        href = href.strip()
        if href.startswith(base_url):
            links.append(href)
    return links


@dataclass(slots=True)
class Page:
    """A fetched and parsed page."""
    article: Article
    links: List[str]
    status_code: int


class Extractor:
    """Fetches a URL and turns it into an Article plus candidate outbound links."""

    def __init__(self, config: CrawlConfig, session: Optional[requests.Session] = None) -> None:
        self.config = config
        self.session = session or requests.Session()
        self.session.headers["User-Agent"] = config.user_agent

    def fetch(self, url: str) -> Tuple[str, int]:
        """
        Fetch a page body as text.

        HTTP error statuses are not failures: error pages are still parsed.

        Returns:
            Tuple of (body, status code)
        """
        try:
            resp = self.session.get(url, timeout=self.config.timeout_s, allow_redirects=True)
        except requests.RequestException as exc:
            raise FetchError(url, str(exc)) from exc

        if resp.status_code >= 400:
            logger.warning("HTTP %d for %s", resp.status_code, url)

        content_type = (resp.headers.get("content-type") or "").lower()
        if content_type and not any(ct in content_type for ct in HTML_CONTENT_TYPES):
            raise ParseError(url, f"not an HTML document ({content_type})")
        return resp.text, resp.status_code

    def extract_page(self, url: str) -> Page:
        """Fetch and parse a page, keeping the response status. No retries."""
        html, status_code = self.fetch(url)
        soup = parse_document(url, html)
        article = parse_article(url, soup)
        links = extract_links(soup, self.config.base_url)
        logger.debug("Extracted %s (title=%r, %d links)", url, article.title, len(links))
        return Page(article=article, links=links, status_code=status_code)

    def extract(self, url: str) -> Tuple[Article, List[str]]:
        """Fetch and parse a page. No retries."""
        page = self.extract_page(url)
        return page.article, page.links

    def close(self) -> None:
        self.session.close()
