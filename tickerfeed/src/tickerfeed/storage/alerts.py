import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import pydantic

from ..models.alert import Alert

logger = logging.getLogger(__name__)


class AlertStore:
    """
    Price alerts in SQLite.
    (user_id, symbol) is the primary key, so saving an alert for a symbol
    that already has one updates it in place instead of adding a second row.
    """

    def __init__(self, db_path: str = "tickerfeed.db"):
        self.db_path = Path(db_path)
        self._init_db()

    def _init_db(self) -> None:
        try:
            with sqlite3.connect(self.db_path) as conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS alerts (
                        user_id TEXT NOT NULL,
                        symbol TEXT NOT NULL,
                        company TEXT,
                        alert_price REAL NOT NULL CHECK (alert_price >= 0),
                        condition TEXT NOT NULL DEFAULT 'greater',
                        frequency TEXT NOT NULL DEFAULT 'day',
                        created_at TEXT NOT NULL,
                        updated_at TEXT NOT NULL,
                        PRIMARY KEY (user_id, symbol)
                    )
                    """
                )
                conn.commit()
        except sqlite3.Error as exc:
            logger.error(f"Failed to init alert store at {self.db_path}: {exc}")

    def upsert(self, user_id: str, symbol: str, company: Optional[str], alert_price: float,
               condition: str = "greater", frequency: str = "day") -> Dict[str, Any]:
        """Create or update the alert for (user, symbol)."""
        try:
            alert = Alert(
                user_id=user_id,
                symbol=symbol,
                company=company,
                alert_price=alert_price,
                condition=condition,
                frequency=frequency,
            )
        except pydantic.ValidationError as exc:
            logger.error(f"Alert rejected for {symbol!r}: {exc}")
            return {"success": False, "error": "Failed to save alert"}

        now = datetime.now(timezone.utc).isoformat()
        try:
            with sqlite3.connect(self.db_path) as conn:
                conn.execute(
                    """
                    INSERT INTO alerts (
                        user_id, symbol, company, alert_price, condition, frequency,
                        created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT (user_id, symbol) DO UPDATE SET
                        company = excluded.company,
                        alert_price = excluded.alert_price,
                        condition = excluded.condition,
                        frequency = excluded.frequency,
                        updated_at = excluded.updated_at
                    """,
                    (
                        alert.user_id,
                        alert.symbol,
                        alert.company,
                        alert.alert_price,
                        alert.condition,
                        alert.frequency,
                        now,
                        now,
                    ),
                )
                conn.commit()
        except sqlite3.Error as exc:
            logger.error(f"Alert upsert failed for {alert.symbol}: {exc}")
            return {"success": False, "error": "Failed to save alert"}
        return {"success": True}

    def remove(self, user_id: str, symbol: str) -> Dict[str, Any]:
        clean = symbol.strip().upper() if isinstance(symbol, str) else ""
        if not user_id or not clean:
            return {"success": False, "error": "Failed to remove alert"}
        try:
            with sqlite3.connect(self.db_path) as conn:
                conn.execute(
                    "DELETE FROM alerts WHERE user_id = ? AND symbol = ?",
                    (user_id, clean),
                )
                conn.commit()
        except sqlite3.Error as exc:
            logger.error(f"Alert removal failed for {clean}: {exc}")
            return {"success": False, "error": "Failed to remove alert"}
        return {"success": True}

    def list_alerts(self, user_id: str) -> List[Alert]:
        if not user_id:
            return []
        try:
            with sqlite3.connect(self.db_path) as conn:
                rows = conn.execute(
                    "SELECT user_id, symbol, company, alert_price, condition, frequency, "
                    "created_at, updated_at FROM alerts WHERE user_id = ? ORDER BY symbol",
                    (user_id,),
                ).fetchall()
        except sqlite3.Error as exc:
            logger.error(f"Alert lookup failed for {user_id}: {exc}")
            return []

        alerts = []
        for (uid, symbol, company, price, condition, frequency, created_at, updated_at) in rows:
            if not symbol:
                continue
            try:
                alerts.append(Alert(
                    user_id=uid,
                    symbol=symbol,
                    company=company,
                    alert_price=price or 0,
                    condition=condition,
                    frequency=frequency,
                    created_at=created_at,
                    updated_at=updated_at,
                ))
            except pydantic.ValidationError as exc:
                logger.warning(f"Skipping malformed alert row for {symbol}: {exc}")
        return alerts

    def get_alerts_map(self, user_id: str) -> Dict[str, Dict[str, Any]]:
        """Alert settings keyed by symbol, for pre-filling alert forms."""
        return {
            a.symbol: {
                "alert_price": a.alert_price,
                "condition": a.condition,
                "frequency": a.frequency,
            }
            for a in self.list_alerts(user_id)
        }
