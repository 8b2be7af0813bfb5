"""
Command-line interface for the crawler.
"""
from __future__ import annotations

import argparse
import logging
import signal
import sys

from article_crawler.config import (
    DEFAULT_ARTICLES_DB,
    DEFAULT_BATCH_SIZE,
    DEFAULT_MAX_WORKERS,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_SEED_URL,
    DEFAULT_TIMEOUT_S,
    DEFAULT_URLS_DB,
    DEFAULT_USER_AGENT,
    CrawlConfig,
)
from article_crawler.core import Crawler, CrawlStats
from article_crawler.errors import StoreInitError, StoreWriteError
from article_crawler.extractor import Extractor
from article_crawler.store import Frontier, open_stores

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # urllib3 logs every connection at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def print_summary(stats: CrawlStats, frontier: Frontier) -> None:
    """Print crawl summary to stderr."""
    counts = frontier.counts()

    sys.stderr.write("=" * 50 + "\n")
    sys.stderr.write("CRAWL SUMMARY\n")
    sys.stderr.write("=" * 50 + "\n\n")

    sys.stderr.write(f"Batches processed:      {stats.batches}\n")
    sys.stderr.write(f"Pages scraped:          {stats.pages_scraped}\n")
    sys.stderr.write(f"Articles stored:        {stats.articles_stored}\n")
    sys.stderr.write(f"New links discovered:   {stats.links_discovered}\n")
    sys.stderr.write(f"URLs released to retry: {stats.urls_released}\n\n")

    sys.stderr.write(f"Frontier total:         {counts['total']}\n")
    sys.stderr.write(f"  unvisited:            {counts['unvisited']}\n")
    sys.stderr.write(f"  visited, unscraped:   {counts['in_flight_or_abandoned']}\n")
    sys.stderr.write(f"  scraped:              {counts['scraped']}\n\n")

    if stats.error_counts:
        sys.stderr.write("Errors by type:\n")
        for error_type, count in sorted(stats.error_counts.items()):
            sys.stderr.write(f"  {error_type}: {count}\n")
    else:
        sys.stderr.write("No errors encountered.\n")

    sys.stderr.write("\n")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Crawl a site from a seed URL, storing articles and same-site links in SQLite."
    )
    parser.add_argument(
        "seed_url", nargs="?", default=DEFAULT_SEED_URL,
        help=f"Seed URL (default: {DEFAULT_SEED_URL})",
    )
    parser.add_argument("--base-url", help="Only follow links starting with this prefix (default: seed URL)")
    parser.add_argument(
        "--batch-size", type=int, default=DEFAULT_BATCH_SIZE,
        help=f"URLs claimed from the frontier per batch (default: {DEFAULT_BATCH_SIZE})",
    )
    parser.add_argument(
        "--poll-interval", type=float, default=DEFAULT_POLL_INTERVAL,
        help=f"Seconds to pause between batches (default: {DEFAULT_POLL_INTERVAL})",
    )
    parser.add_argument(
        "--workers", type=int, default=DEFAULT_MAX_WORKERS,
        help=f"Concurrent fetch workers (default: {DEFAULT_MAX_WORKERS})",
    )
    parser.add_argument(
        "--timeout", type=float, default=DEFAULT_TIMEOUT_S,
        help=f"Request timeout in seconds (default: {DEFAULT_TIMEOUT_S:g})",
    )
    parser.add_argument("--user-agent", default=DEFAULT_USER_AGENT, help="User-Agent header")
    parser.add_argument("--urls-db", default=DEFAULT_URLS_DB, help=f"Frontier database (default: {DEFAULT_URLS_DB})")
    parser.add_argument(
        "--articles-db", default=DEFAULT_ARTICLES_DB,
        help=f"Article database (default: {DEFAULT_ARTICLES_DB})",
    )
    parser.add_argument(
        "--max-attempts", type=int, default=1,
        help="Times a failing URL is claimed before it is abandoned (default: 1)",
    )
    parser.add_argument("--max-batches", type=int, help="Stop after this many batches")
    parser.add_argument("--verbose", action="store_true", help="Debug logging and summary")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the crawler CLI."""
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    try:
        config = CrawlConfig(
            seed_url=args.seed_url,
            base_url=args.base_url,
            batch_size=args.batch_size,
            poll_interval=args.poll_interval,
            max_workers=args.workers,
            timeout_s=args.timeout,
            user_agent=args.user_agent,
            urls_db=args.urls_db,
            articles_db=args.articles_db,
            max_attempts=args.max_attempts,
        )
    except ValueError as exc:
        sys.stderr.write(f"error: {exc}\n")
        return 2

    try:
        frontier, articles = open_stores(config)
    except StoreInitError as exc:
        logger.critical("Failed to initialize databases: %s", exc)
        return 1

    extractor = Extractor(config)
    crawler = Crawler(config, frontier, articles, extractor)
    signal.signal(signal.SIGTERM, lambda signum, frame: crawler.stop())

    logger.info("Starting crawl from: %s", config.seed_url)
    try:
        stats = crawler.run(max_batches=args.max_batches)
    except KeyboardInterrupt:
        logger.warning("Interrupted; partial progress is saved in %s", config.urls_db)
        return 130
    finally:
        extractor.close()

    if stats.completed:
        logger.info("Frontier exhausted after %d batches", stats.batches)

    if args.verbose:
        try:
            print_summary(stats, frontier)
        except StoreWriteError as exc:
            logger.error("Could not read frontier for summary: %s", exc)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
