import datetime
import hashlib
from typing import Any, Dict, Optional, Tuple

from ..models.news import NewsArticle

COMPANY_SUMMARY_LIMIT = 200
MARKET_SUMMARY_LIMIT = 150


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def coerce_timestamp(value: Any) -> Optional[int]:
    """
    Unix seconds as a positive int, or None.
    Accepts ints, floats and numeric strings; bools are rejected.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        if isinstance(value, (int, float)):
            ts = int(value)
        elif isinstance(value, str):
            s = value.strip()
            try:
                ts = int(s)
            except ValueError:
                ts = int(float(s))
        else:
            return None
    except (ValueError, OverflowError):
        return None
    return ts if ts > 0 else None


def validate_article(article: Any) -> bool:
    """An article is usable only with a headline, a url and a positive datetime."""
    if not isinstance(article, dict):
        return False
    return bool(
        _text(article.get("headline"))
        and _text(article.get("url"))
        and coerce_timestamp(article.get("datetime")) is not None
    )


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + "..."


def _article_id(article: Dict[str, Any], ts: int) -> str:
    raw = article.get("id")
    if raw is not None and raw != "":
        return str(raw)
    # Fallback checksum
    s = f"{_text(article.get('headline'))}-{ts}"
    return hashlib.md5(s.encode()).hexdigest()


def format_article(article: Dict[str, Any], is_company_news: bool,
                   symbol: Optional[str] = None, rank: int = 0) -> NewsArticle:
    """Normalize a validated raw article for output."""
    ts = coerce_timestamp(article.get("datetime")) or 0
    limit = COMPANY_SUMMARY_LIMIT if is_company_news else MARKET_SUMMARY_LIMIT

    if is_company_news:
        category = "company"
        related = symbol or ""
    else:
        category = _text(article.get("category")) or "general"
        related = _text(article.get("related"))

    return NewsArticle(
        id=_article_id(article, ts),
        headline=_text(article.get("headline")),
        summary=_truncate(_text(article.get("summary")), limit),
        url=_text(article.get("url")),
        datetime=ts,
        source=_text(article.get("source")) or ("Company News" if is_company_news else "Market News"),
        image=_text(article.get("image")),
        category=category,
        related=related,
        symbol=symbol if is_company_news else None,
        rank=rank,
    )


def article_signature(article: Dict[str, Any], index: int) -> str:
    """Dedup key for general news: id (or feed index), url and trimmed headline."""
    ident = article.get("id") or index
    return f"{ident}|{article.get('url')}|{_text(article.get('headline'))}"


def get_date_range(days: int, today: Optional[datetime.date] = None) -> Tuple[str, str]:
    """(from, to) ISO dates covering the last `days` days up to and including today."""
    end = today or datetime.date.today()
    start = end - datetime.timedelta(days=days)
    return start.isoformat(), end.isoformat()
