import sqlite3
import json
import logging
import time
from typing import Optional, Any

logger = logging.getLogger(__name__)

class SQLiteCache:
    """
    Key-Value response cache backed by SQLite.
    Schema: responses(key TEXT PRIMARY KEY, data TEXT, created_at REAL)
    created_at is unix seconds so max-age checks need no date parsing.
    """
    def __init__(self, db_path: str = "tickerfeed.db"):
        self.db_path = db_path
        self._init_db()

    def _init_db(self):
        try:
            with sqlite3.connect(self.db_path) as conn:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS responses (
                        key TEXT PRIMARY KEY,
                        data TEXT,
                        created_at REAL
                    )
                """)
                conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Failed to init cache at {self.db_path}: {e}")

    def get(self, key: str, max_age_seconds: Optional[float] = None) -> Optional[Any]:
        """
        Retrieve and parse JSON data from cache.
        Entries older than max_age_seconds count as misses.
        """
        try:
            with sqlite3.connect(self.db_path) as conn:
                cursor = conn.execute(
                    "SELECT data, created_at FROM responses WHERE key = ?", (key,)
                )
                row = cursor.fetchone()
        except sqlite3.Error as e:
            logger.warning(f"Cache get failed for {key}: {e}")
            return None

        if not row:
            return None
        data, created_at = row
        if max_age_seconds is not None and time.time() - (created_at or 0) > max_age_seconds:
            return None
        try:
            return json.loads(data)
        except ValueError as e:
            logger.warning(f"Cache entry for {key} is not valid JSON: {e}")
            return None

    def put(self, key: str, value: Any):
        """Store data as JSON string."""
        try:
            json_str = json.dumps(value)
            with sqlite3.connect(self.db_path) as conn:
                conn.execute("""
                    INSERT OR REPLACE INTO responses (key, data, created_at)
                    VALUES (?, ?, ?)
                """, (key, json_str, time.time()))
                conn.commit()
        except (sqlite3.Error, TypeError, ValueError) as e:
            logger.error(f"Cache put failed for {key}: {e}")

    def clear(self):
        try:
            with sqlite3.connect(self.db_path) as conn:
                conn.execute("DELETE FROM responses")
                conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Cache clear failed: {e}")
