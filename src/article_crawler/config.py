"""
Crawl configuration.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

DEFAULT_SEED_URL = "https://www.eenadu.net"
DEFAULT_BATCH_SIZE = 100
DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_MAX_WORKERS = 16
DEFAULT_TIMEOUT_S = 15.0
DEFAULT_USER_AGENT = "ArticleCrawler/1.0"
DEFAULT_URLS_DB = "urls.db"
DEFAULT_ARTICLES_DB = "articles.db"


@dataclass(slots=True)
class CrawlConfig:
    """Settings for a single-site crawl."""
    seed_url: str = DEFAULT_SEED_URL
    # Outbound links are kept only when they start with this prefix
    base_url: Optional[str] = None
    batch_size: int = DEFAULT_BATCH_SIZE
    poll_interval: float = DEFAULT_POLL_INTERVAL
    max_workers: int = DEFAULT_MAX_WORKERS
    timeout_s: float = DEFAULT_TIMEOUT_S
    user_agent: str = DEFAULT_USER_AGENT
    urls_db: str = DEFAULT_URLS_DB
    articles_db: str = DEFAULT_ARTICLES_DB
    # Claims allowed per URL before a failed URL is abandoned
    max_attempts: int = 1

    def __post_init__(self) -> None:
        if not self.seed_url:
            raise ValueError("seed_url must not be empty")
        if self.base_url is None:
            self.base_url = self.seed_url
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {self.batch_size}")
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be positive, got {self.max_workers}")
        if self.poll_interval < 0:
            raise ValueError(f"poll_interval must not be negative, got {self.poll_interval}")
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")
