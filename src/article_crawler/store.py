"""
Persistent storage for the URL frontier and extracted articles.

Both stores are plain SQLite files. Connections are opened per operation, so
a single store object can be shared by every worker thread.
"""
from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from article_crawler.config import CrawlConfig
from article_crawler.errors import StoreInitError, StoreWriteError
from article_crawler.extractor import Article

logger = logging.getLogger(__name__)

# Seconds a connection waits on a locked database before failing
LOCK_TIMEOUT_S = 30.0

URLS_SCHEMA = """
CREATE TABLE IF NOT EXISTS urls (
    url TEXT PRIMARY KEY,
    visited BOOLEAN NOT NULL DEFAULT FALSE,
    scraped BOOLEAN NOT NULL DEFAULT FALSE,
    attempts INTEGER NOT NULL DEFAULT 0
);

CREATE INDEX IF NOT EXISTS idx_urls_visited ON urls(visited);
"""

ARTICLES_SCHEMA = """
CREATE TABLE IF NOT EXISTS articles (
    url TEXT PRIMARY KEY,
    title TEXT,
    date_published TEXT,
    content TEXT
);
"""


def get_connection(db_path: str) -> sqlite3.Connection:
    return sqlite3.connect(db_path, timeout=LOCK_TIMEOUT_S)


def _init_db(db_path: str, schema: str) -> None:
    """Create the database file and schema if missing."""
    try:
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        con = get_connection(db_path)
        try:
            con.execute("PRAGMA journal_mode=WAL")
            con.executescript(schema)
        finally:
            con.close()
    except (OSError, sqlite3.Error) as exc:
        raise StoreInitError(f"Failed to initialize {db_path}: {exc}") from exc


@dataclass(slots=True)
class UrlRecord:
    url: str
    visited: bool
    scraped: bool
    attempts: int


class Frontier:
    """
    Persistent URL frontier.

    Each URL moves through unvisited -> visited -> scraped. A URL is handed out
    by next_batch() only while unvisited, and scraped always implies visited.
    """

    def __init__(self, db_path: str) -> None:
        self.db_path = db_path
        _init_db(db_path, URLS_SCHEMA)

    def seed(self, url: str) -> bool:
        """
        Insert the root URL if the frontier is empty.

        Returns:
            True if the URL was inserted, False if the frontier already had rows
        """
        con = get_connection(self.db_path)
        try:
            with con:
                count = con.execute("SELECT COUNT(*) FROM urls").fetchone()[0]
                if count:
                    return False
                con.execute(
                    "INSERT OR IGNORE INTO urls (url, visited, scraped) VALUES (?, FALSE, FALSE)",
                    (url,),
                )
            return True
        except sqlite3.Error as exc:
            raise StoreWriteError(f"Failed to seed {url}: {exc}") from exc
        finally:
            con.close()

    def next_batch(self, count: int) -> List[str]:
        """
        Return up to count unvisited URLs in storage order.

        An empty list means the frontier is exhausted.
        """
        if count <= 0:
            return []

        con = get_connection(self.db_path)
        try:
            cur = con.execute(
                "SELECT url FROM urls WHERE visited = FALSE ORDER BY rowid LIMIT ?",
                (count,),
            )
            return [row[0] for row in cur.fetchall()]
        except sqlite3.Error as exc:
            raise StoreWriteError(f"Failed to read next batch: {exc}") from exc
        finally:
            con.close()

    def mark_visited(self, urls: Iterable[str]) -> None:
        """Mark every URL visited in one transaction (all or nothing)."""
        params = [(url,) for url in urls]
        if not params:
            return

        con = get_connection(self.db_path)
        try:
            with con:
                con.executemany(
                    "UPDATE urls SET visited = TRUE, attempts = attempts + 1 WHERE url = ?",
                    params,
                )
        except sqlite3.Error as exc:
            raise StoreWriteError(f"Failed to mark {len(params)} URLs visited: {exc}") from exc
        finally:
            con.close()

    def insert_if_absent(self, urls: Iterable[str]) -> int:
        """
        Insert URLs as unvisited in one transaction, skipping known ones.

        Returns:
            Number of URLs actually added
        """
        params = [(url,) for url in urls]
        if not params:
            return 0

        con = get_connection(self.db_path)
        try:
            with con:
                cur = con.executemany(
                    "INSERT OR IGNORE INTO urls (url, visited, scraped) VALUES (?, FALSE, FALSE)",
                    params,
                )
            return max(cur.rowcount, 0)
        except sqlite3.Error as exc:
            raise StoreWriteError(f"Failed to insert {len(params)} URLs: {exc}") from exc
        finally:
            con.close()

    def mark_scraped(self, url: str) -> None:
        con = get_connection(self.db_path)
        try:
            with con:
                con.execute(
                    "UPDATE urls SET visited = TRUE, scraped = TRUE WHERE url = ?",
                    (url,),
                )
        except sqlite3.Error as exc:
            raise StoreWriteError(f"Failed to mark {url} scraped: {exc}") from exc
        finally:
            con.close()

    def release(self, url: str, max_attempts: int) -> bool:
        """
        Return a failed URL to the unvisited pool if it has attempts left.

        Returns:
            True if the URL will be handed out again, False if it stays abandoned
        """
        con = get_connection(self.db_path)
        try:
            with con:
                cur = con.execute(
                    """
                    UPDATE urls SET visited = FALSE
                    WHERE url = ? AND scraped = FALSE AND attempts < ?
                    """,
                    (url, max_attempts),
                )
            return cur.rowcount > 0
        except sqlite3.Error as exc:
            raise StoreWriteError(f"Failed to release {url}: {exc}") from exc
        finally:
            con.close()

    def get(self, url: str) -> Optional[UrlRecord]:
        con = get_connection(self.db_path)
        try:
            row = con.execute(
                "SELECT url, visited, scraped, attempts FROM urls WHERE url = ?",
                (url,),
            ).fetchone()
        except sqlite3.Error as exc:
            raise StoreWriteError(f"Failed to read {url}: {exc}") from exc
        finally:
            con.close()
        if row is None:
            return None
        return UrlRecord(url=row[0], visited=bool(row[1]), scraped=bool(row[2]), attempts=row[3])

    def counts(self) -> Dict[str, int]:
        """Return row counts by crawl state."""
        con = get_connection(self.db_path)
        try:
            row = con.execute(
                """
                SELECT COUNT(*),
                       COALESCE(SUM(visited = FALSE), 0),
                       COALESCE(SUM(visited = TRUE AND scraped = FALSE), 0),
                       COALESCE(SUM(scraped = TRUE), 0)
                FROM urls
                """
            ).fetchone()
        except sqlite3.Error as exc:
            raise StoreWriteError(f"Failed to count URLs: {exc}") from exc
        finally:
            con.close()
        return {
            "total": row[0],
            "unvisited": row[1],
            "in_flight_or_abandoned": row[2],
            "scraped": row[3],
        }

    def __len__(self) -> int:
        con = get_connection(self.db_path)
        try:
            return con.execute("SELECT COUNT(*) FROM urls").fetchone()[0]
        except sqlite3.Error as exc:
            raise StoreWriteError(f"Failed to count urls: {exc}") from exc
        finally:
            con.close()


class ArticleStore:
    """Persistent table of extracted articles keyed by URL."""

    def __init__(self, db_path: str) -> None:
        self.db_path = db_path
        _init_db(db_path, ARTICLES_SCHEMA)

    def insert_if_absent(self, article: Article) -> bool:
        """
        Store an article unless one already exists for its URL.

        Returns:
            True if inserted, False if an article was already stored
        """
        con = get_connection(self.db_path)
        try:
            with con:
                cur = con.execute(
                    """
                    INSERT OR IGNORE INTO articles (url, title, date_published, content)
                    VALUES (?, ?, ?, ?)
                    """,
                    (article.url, article.title, article.date_published, article.content),
                )
            return cur.rowcount > 0
        except sqlite3.Error as exc:
            raise StoreWriteError(f"Failed to insert article {article.url}: {exc}") from exc
        finally:
            con.close()

    def get(self, url: str) -> Optional[Article]:
        con = get_connection(self.db_path)
        try:
            row = con.execute(
                "SELECT url, title, date_published, content FROM articles WHERE url = ?",
                (url,),
            ).fetchone()
        except sqlite3.Error as exc:
            raise StoreWriteError(f"Failed to read article {url}: {exc}") from exc
        finally:
            con.close()
        if row is None:
            return None
        return Article(url=row[0], title=row[1], date_published=row[2], content=row[3])

    def __len__(self) -> int:
        con = get_connection(self.db_path)
        try:
            return con.execute("SELECT COUNT(*) FROM articles").fetchone()[0]
        except sqlite3.Error as exc:
            raise StoreWriteError(f"Failed to count articles: {exc}") from exc
        finally:
            con.close()


def open_stores(config: CrawlConfig) -> Tuple[Frontier, ArticleStore]:
    """Open both stores once at startup. Raises StoreInitError on failure."""
    frontier = Frontier(config.urls_db)
    articles = ArticleStore(config.articles_db)
    logger.info("Opened stores: urls=%s articles=%s", config.urls_db, config.articles_db)
    return frontier, articles
