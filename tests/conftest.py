"""
Test configuration and fixtures for crawler tests
"""

import pytest

from article_crawler.config import CrawlConfig
from article_crawler.store import ArticleStore, Frontier
from fakes import BASE_URL


@pytest.fixture
def config(tmp_path):
    """Crawl config with temporary databases and no pause between batches"""
    return CrawlConfig(
        seed_url=BASE_URL,
        batch_size=10,
        poll_interval=0,
        max_workers=4,
        urls_db=str(tmp_path / "urls.db"),
        articles_db=str(tmp_path / "articles.db"),
    )


@pytest.fixture
def frontier(config):
    return Frontier(config.urls_db)


@pytest.fixture
def articles(config):
    return ArticleStore(config.articles_db)
