"""SQLite-backed local cache for visits and favorites.

Each entry carries the schema version of its namespace and a write
timestamp. Entries written under a different schema version, or whose
payload no longer decodes, are dropped and reported as absent.
"""

import json
import logging
import sqlite3
import threading
import time
from typing import Any, Callable, Dict, Optional

from ..core.config import CACHE_FRESHNESS_SECONDS
from ..core.errors import CacheCorruptError

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA_VERSION = 1


def namespace_for(key: str) -> str:
    """Namespace is the part of the key before the first ':'."""
    return key.split(":", 1)[0]


class CacheStore:
    """Versioned key/value cache with write timestamps.

    Thread-safe: a single connection is shared (check_same_thread=False)
    and every statement runs under a lock.
    """

    def __init__(self, db_path: str, schema_versions: Optional[Dict[str, int]] = None,
                 clock: Callable[[], float] = time.time):
        """Open (or create) the cache database.

        Args:
            db_path: Full path to the SQLite file, or ":memory:"
            schema_versions: Expected schema version per namespace
            clock: Returns the current time in epoch seconds
        """
        self.db_path = db_path
        self.schema_versions = dict(schema_versions or {})
        self.clock = clock
        self.conn = None
        self._lock = threading.Lock()
        self._connect()
        self._create_tables()

    def _connect(self):
        try:
            self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self.conn.row_factory = sqlite3.Row
            logger.info(f"Connected to cache database: {self.db_path}")
        except sqlite3.Error as e:
            logger.error(f"Failed to connect to cache database: {e}")
            raise

    def _create_tables(self):
        with self._lock:
            cursor = self.conn.cursor()
            cursor.execute('''
                CREATE TABLE IF NOT EXISTS cache_entries (
                    key TEXT PRIMARY KEY,
                    namespace TEXT NOT NULL,
                    schema_version INTEGER NOT NULL,
                    payload TEXT NOT NULL,
                    written_at REAL NOT NULL
                )
            ''')
            cursor.execute('CREATE INDEX IF NOT EXISTS idx_cache_namespace ON cache_entries(namespace)')
            self.conn.commit()

    def expected_version(self, key: str) -> int:
        return self.schema_versions.get(namespace_for(key), DEFAULT_SCHEMA_VERSION)

    def close(self):
        """Close database connection."""
        with self._lock:
            if self.conn:
                self.conn.close()
                self.conn = None
                logger.info("Cache database connection closed")

    # =========================================================================
    # Read / write
    # =========================================================================

    def save(self, key: str, value: Any):
        """Store a JSON-serializable value under key, replacing any previous entry."""
        payload = json.dumps(value)
        with self._lock:
            self.conn.execute('''
                INSERT OR REPLACE INTO cache_entries (key, namespace, schema_version, payload, written_at)
                VALUES (?, ?, ?, ?, ?)
            ''', (key, namespace_for(key), self.expected_version(key), payload, self.clock()))
            self.conn.commit()
        logger.debug(f"Cached '{key}' ({len(payload)} bytes)")

    def _read_row(self, key: str) -> Optional[sqlite3.Row]:
        with self._lock:
            cursor = self.conn.cursor()
            cursor.execute(
                'SELECT schema_version, payload, written_at FROM cache_entries WHERE key = ?',
                (key,),
            )
            return cursor.fetchone()

    def _decode(self, key: str, row: sqlite3.Row) -> Any:
        expected = self.expected_version(key)
        if row['schema_version'] != expected:
            logger.info(
                f"Cache schema changed for '{namespace_for(key)}' "
                f"({row['schema_version']} -> {expected}), dropping namespace"
            )
            self.delete_namespace(namespace_for(key))
            return None
        try:
            return json.loads(row['payload'])
        except (TypeError, ValueError) as e:
            error = CacheCorruptError(f"cache entry '{key}' is corrupt: {e}")
            logger.warning(str(error))
            self.delete(key)
            return None

    def load(self, key: str) -> Any:
        """Return the cached value, or None if absent, outdated or corrupt."""
        row = self._read_row(key)
        if row is None:
            return None
        return self._decode(key, row)

    def load_fresh(self, key: str, max_age: float = CACHE_FRESHNESS_SECONDS) -> Any:
        """Like load(), but entries older than max_age seconds count as absent."""
        row = self._read_row(key)
        if row is None:
            return None
        age = self.clock() - row['written_at']
        if age > max_age:
            logger.debug(f"Cache entry '{key}' is stale ({age:.0f}s old)")
            return None
        return self._decode(key, row)

    def written_at(self, key: str) -> Optional[float]:
        row = self._read_row(key)
        return row['written_at'] if row is not None else None

    # =========================================================================
    # Deletion
    # =========================================================================

    def delete(self, key: str):
        with self._lock:
            self.conn.execute('DELETE FROM cache_entries WHERE key = ?', (key,))
            self.conn.commit()

    def delete_namespace(self, namespace: str):
        with self._lock:
            self.conn.execute('DELETE FROM cache_entries WHERE namespace = ?', (namespace,))
            self.conn.commit()

    def delete_all(self):
        """Remove every cache entry (used on sign-out)."""
        with self._lock:
            self.conn.execute('DELETE FROM cache_entries')
            self.conn.commit()
        logger.info("Cleared all cache entries")


__all__ = ['CacheStore', 'namespace_for', 'DEFAULT_SCHEMA_VERSION']
