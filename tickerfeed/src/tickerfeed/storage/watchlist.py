import logging
import sqlite3
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)


def _clean(symbol) -> str:
    return symbol.strip().upper() if isinstance(symbol, str) else ""


class WatchlistStore:
    """Per-user watchlists in SQLite. One row per (user, symbol)."""

    def __init__(self, db_path: str = "tickerfeed.db"):
        self.db_path = Path(db_path)
        self._init_db()

    def _init_db(self) -> None:
        try:
            with sqlite3.connect(self.db_path) as conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS watchlist (
                        user_id TEXT NOT NULL,
                        symbol TEXT NOT NULL,
                        company TEXT,
                        added_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                        PRIMARY KEY (user_id, symbol)
                    )
                    """
                )
                conn.commit()
        except sqlite3.Error as exc:
            logger.error(f"Failed to init watchlist store at {self.db_path}: {exc}")

    def add(self, user_id: str, symbol: str, company: Optional[str] = None) -> bool:
        """Add a symbol. Returns False when it was already there or invalid."""
        symbol = _clean(symbol)
        if not user_id or not symbol:
            return False
        if isinstance(company, str):
            company = company.strip() or None
        else:
            company = None
        try:
            with sqlite3.connect(self.db_path) as conn:
                cursor = conn.execute(
                    "INSERT OR IGNORE INTO watchlist (user_id, symbol, company) VALUES (?, ?, ?)",
                    (user_id, symbol, company),
                )
                conn.commit()
                return cursor.rowcount > 0
        except sqlite3.Error as exc:
            logger.error(f"Failed to add {symbol} to watchlist for {user_id}: {exc}")
            return False

    def remove(self, user_id: str, symbol: str) -> bool:
        symbol = _clean(symbol)
        if not user_id or not symbol:
            return False
        try:
            with sqlite3.connect(self.db_path) as conn:
                cursor = conn.execute(
                    "DELETE FROM watchlist WHERE user_id = ? AND symbol = ?",
                    (user_id, symbol),
                )
                conn.commit()
                return cursor.rowcount > 0
        except sqlite3.Error as exc:
            logger.error(f"Failed to remove {symbol} from watchlist for {user_id}: {exc}")
            return False

    def get_symbols(self, user_id: str) -> List[str]:
        """Symbols on a user's watchlist in the order they were added."""
        if not user_id or not isinstance(user_id, str):
            return []
        try:
            with sqlite3.connect(self.db_path) as conn:
                rows = conn.execute(
                    "SELECT symbol FROM watchlist WHERE user_id = ? ORDER BY added_at, rowid",
                    (user_id,),
                ).fetchall()
        except sqlite3.Error as exc:
            logger.error(f"Watchlist lookup failed for {user_id}: {exc}")
            return []
        return [_clean(symbol) for (symbol,) in rows if _clean(symbol)]

    def contains(self, user_id: str, symbol: str) -> bool:
        return _clean(symbol) in self.get_symbols(user_id)
