from pathlib import Path
from typing import Dict, Any
import yaml
from .errors import ValidationError


def load_watchlist_file(path: str = "watchlist.yaml") -> Dict[str, Any]:
    """
    Load a watchlist to import from YAML.
    Expected shape:
      watchlist:
        name: "Tech"
        tickers: [AAPL, MSFT]
    Tickers are trimmed, uppercased and deduplicated.
    """
    p = Path(path)
    if not p.exists():
        raise ValidationError(f"Watchlist file not found: {path}")

    try:
        data = yaml.safe_load(p.read_text()) or {}
    except yaml.YAMLError as e:
        raise ValidationError(f"Invalid watchlist YAML: {e}")

    if not isinstance(data, dict) or not isinstance(data.get("watchlist"), dict):
        raise ValidationError("Watchlist file must contain a 'watchlist' object.")

    watchlist = data["watchlist"]
    name = watchlist.get("name") or "Watchlist"
    tickers = watchlist.get("tickers")

    if not isinstance(tickers, list) or not tickers:
        raise ValidationError("'watchlist.tickers' must be a non-empty list.")

    norm = []
    for t in tickers:
        if not isinstance(t, str) or not t.strip():
            raise ValidationError("All tickers must be non-empty strings.", details={"ticker": t})
        t = t.strip().upper()
        if t not in norm:
            norm.append(t)

    return {"name": name, "tickers": norm}
