"""
Single-site article crawler backed by a persistent SQLite frontier.
Extracts title, publish date and body from each page and follows same-site links.
"""
from article_crawler.config import CrawlConfig
from article_crawler.core import crawl, Crawler, CrawlStats
from article_crawler.extractor import Article, Extractor
from article_crawler.store import ArticleStore, Frontier, open_stores

__version__ = "1.0.0"
__all__ = [
    "crawl",
    "Crawler",
    "CrawlStats",
    "CrawlConfig",
    "Article",
    "Extractor",
    "ArticleStore",
    "Frontier",
    "open_stores",
]
