"""
Crawl orchestration: seeding, batched draining of the frontier and the worker pool.
"""
from __future__ import annotations

import logging
import threading
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from article_crawler.config import CrawlConfig
from article_crawler.errors import FetchError, ParseError, StoreWriteError
from article_crawler.extractor import Extractor
from article_crawler.store import ArticleStore, Frontier, open_stores

logger = logging.getLogger(__name__)

# Task outcomes
SCRAPED = "scraped"
FETCH_ERROR = "fetch_error"
PARSE_ERROR = "parse_error"
STORE_ERROR = "store_error"
UNKNOWN_ERROR = "unknown_error"


@dataclass(slots=True)
class TaskResult:
    """What a single URL task did. Every task returns exactly one."""
    url: str
    outcome: str
    article_stored: bool = False
    new_links: int = 0
    released: bool = False
    status_code: Optional[int] = None


@dataclass(slots=True)
class CrawlStats:
    """Statistics collected during a crawl for summary output."""
    batches: int = 0
    urls_claimed: int = 0
    pages_scraped: int = 0
    articles_stored: int = 0
    links_discovered: int = 0
    urls_released: int = 0
    completed: bool = False
    error_counts: Dict[str, int] = field(default_factory=lambda: defaultdict(int))

    def record(self, result: TaskResult) -> None:
        """Fold one task result into the totals."""
        self.record_status(result.status_code)
        if result.outcome == SCRAPED:
            self.pages_scraped += 1
        else:
            self.error_counts[result.outcome] += 1
        if result.article_stored:
            self.articles_stored += 1
        if result.released:
            self.urls_released += 1
        self.links_discovered += result.new_links

    def record_status(self, status_code: Optional[int]) -> None:
        """Count HTTP error statuses by code."""
        if status_code is not None and status_code >= 400:
            self.error_counts[str(status_code)] += 1


class Crawler:
    """
    Two-state crawl loop.

    Seeding extracts the seed URL once, inline. Draining then repeatedly claims
    a batch of unvisited URLs, marks the whole batch visited, processes it on a
    fixed-width thread pool and waits for every task before the next batch.
    """

    def __init__(
        self,
        config: CrawlConfig,
        frontier: Frontier,
        articles: ArticleStore,
        extractor: Optional[Extractor] = None,
    ) -> None:
        self.config = config
        self.frontier = frontier
        self.articles = articles
        self.extractor = extractor or Extractor(config)
        self.stats = CrawlStats()
        self._stop = threading.Event()

    def stop(self) -> None:
        """Ask the loop to exit after the current batch."""
        self._stop.set()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def run(self, max_batches: Optional[int] = None) -> CrawlStats:
        """Seed, then drain until the frontier is exhausted or the loop is stopped."""
        self.seed()
        self.stats.completed = self.drain(max_batches=max_batches)
        return self.stats

    def seed(self) -> Optional[TaskResult]:
        """
        Bootstrap from the seed URL without batching.

        Failures are logged and never retried; draining proceeds regardless.
        """
        url = self.config.seed_url
        try:
            if self.frontier.seed(url):
                logger.info("Seeded empty frontier with %s", url)
            elif self.frontier.insert_if_absent([url]):
                logger.info("Added seed %s to existing frontier", url)
            self.frontier.mark_visited([url])
        except StoreWriteError as exc:
            logger.error("Error seeding frontier with %s: %s", url, exc)
            return None

        result = self.process_url(url, retry=False)
        self.stats.record(result)
        return result

    def drain(self, max_batches: Optional[int] = None) -> bool:
        """
        Process batches until the frontier yields no unvisited URL.

        Args:
            max_batches: Stop after this many iterations (None = unbounded).

        Returns:
            True if the frontier was exhausted, False if stopped early.
        """
        iterations = 0
        with ThreadPoolExecutor(
            max_workers=self.config.max_workers, thread_name_prefix="crawl"
        ) as pool:
            while not self._stop.is_set():
                if max_batches is not None and iterations >= max_batches:
                    return False
                iterations += 1

                try:
                    urls = self.frontier.next_batch(self.config.batch_size)
                except StoreWriteError as exc:
                    logger.error("Error getting next URLs: %s", exc)
                    self._pause()
                    continue

                if not urls:
                    logger.info("No more URLs to process")
                    return True

                # The whole batch is claimed before any task runs
                try:
                    self.frontier.mark_visited(urls)
                except StoreWriteError as exc:
                    logger.error("Error marking %d URLs as visited: %s", len(urls), exc)
                    self._pause()
                    continue

                try:
                    self.run_batch(pool, urls)
                except KeyboardInterrupt:
                    # Queued tasks of the batch are dropped; running ones finish
                    pool.shutdown(wait=False, cancel_futures=True)
                    raise
                self._pause()
        return False

    def run_batch(self, pool: ThreadPoolExecutor, urls: List[str]) -> List[TaskResult]:
        """Run one task per URL and block until all of them finish."""
        logger.info("Processing batch %d (%d URLs)", self.stats.batches + 1, len(urls))
        futures = [pool.submit(self.process_url, url) for url in urls]

        results = []
        for future in as_completed(futures):
            result = future.result()
            self.stats.record(result)
            results.append(result)

        self.stats.batches += 1
        self.stats.urls_claimed += len(urls)
        return results

    def process_url(self, url: str, retry: bool = True) -> TaskResult:
        """
        Fetch, extract and persist one URL.

        Any failure ends the task early. The URL is already visited; it is
        handed out again only if retry is set and it has attempts left.
        """
        result = TaskResult(url=url, outcome=SCRAPED)
        try:
            page = self.extractor.extract_page(url)
            result.status_code = page.status_code
            result.article_stored = self.articles.insert_if_absent(page.article)
            self.frontier.mark_scraped(url)
            result.new_links = self.frontier.insert_if_absent(page.links)
            logger.info("Scraped %s (+%d new links)", url, result.new_links)
            return result
        except FetchError as exc:
            logger.warning("Error while requesting %s: %s", url, exc.reason)
            result.outcome = FETCH_ERROR
        except ParseError as exc:
            logger.warning("Error parsing %s: %s", url, exc.reason)
            result.outcome = PARSE_ERROR
        except StoreWriteError as exc:
            logger.warning("Error storing results for %s: %s", url, exc)
            result.outcome = STORE_ERROR
        except Exception:
            logger.error("Unexpected error processing %s", url, exc_info=True)
            result.outcome = UNKNOWN_ERROR

        if retry and self.config.max_attempts > 1:
            result.released = self._release(url)
        return result

    def _release(self, url: str) -> bool:
        try:
            released = self.frontier.release(url, self.config.max_attempts)
        except StoreWriteError as exc:
            logger.error("Error releasing %s for retry: %s", url, exc)
            return False
        if released:
            logger.info("Released %s for retry", url)
        else:
            logger.info("Abandoning %s", url)
        return released

    def _pause(self) -> None:
        if self.config.poll_interval > 0:
            self._stop.wait(self.config.poll_interval)


def crawl(config: CrawlConfig, max_batches: Optional[int] = None) -> CrawlStats:
    """
    Crawl a site from config.seed_url until the frontier is exhausted.

    Raises:
        StoreInitError: if either store cannot be opened.
    """
    frontier, articles = open_stores(config)
    extractor = Extractor(config)
    try:
        return Crawler(config, frontier, articles, extractor).run(max_batches=max_batches)
    finally:
        extractor.close()
