"""
News feed for a watchlist.

Symbol news is interleaved round-robin so every symbol gets a slot before any
symbol gets a second one, then sorted newest first. When there are no symbols,
or none of them produced a usable article, the feed falls back to general
market news, deduplicated and left in provider order.

The two paths order their output differently (symbol news is sorted by
datetime, general news is not). Callers that care about ordering across both
must not assume one or the other.
"""
import concurrent.futures
import logging
from typing import Any, Dict, Iterable, List, Optional

from ..errors import NewsFetchFailed
from ..models.news import NewsArticle
from ..providers import finnhub
from .articles import article_signature, format_article, get_date_range, validate_article

logger = logging.getLogger(__name__)

MAX_ARTICLES = 6
MAX_ROUNDS = 6
NEWS_WINDOW_DAYS = 5


def clean_symbols(symbols: Optional[Iterable[Any]]) -> List[str]:
    """Trim, uppercase and dedupe symbols, keeping first-seen order."""
    seen = []
    for s in symbols or []:
        if not isinstance(s, str):
            continue
        s = s.strip().upper()
        if s and s not in seen:
            seen.append(s)
    return seen


def _fetch_symbol_news(symbols: List[str], max_workers: int) -> List[List[Dict[str, Any]]]:
    start, end = get_date_range(NEWS_WINDOW_DAYS)

    def _fetch(symbol: str) -> List[Dict[str, Any]]:
        data = finnhub.fetch_company_news(symbol, start, end)
        return [a for a in data if validate_article(a)]

    workers = max(1, min(max_workers, len(symbols)))
    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [executor.submit(_fetch, symbol) for symbol in symbols]
        concurrent.futures.wait(futures)

    results = []
    for symbol, fut in zip(symbols, futures):
        try:
            results.append(fut.result())
        except Exception as e:
            logger.warning(f"company-news fetch failed for {symbol}: {e}")
            results.append([])
    return results


def _round_robin(symbols: List[str], per_symbol: List[List[Dict[str, Any]]]) -> List[NewsArticle]:
    picks: List[NewsArticle] = []
    cursors = [0] * len(per_symbol)
    rounds = 0

    while len(picks) < MAX_ARTICLES and rounds < MAX_ROUNDS:
        for i, articles in enumerate(per_symbol):
            if len(picks) >= MAX_ARTICLES:
                break
            idx = cursors[i]
            while idx < len(articles) and not validate_article(articles[idx]):
                idx += 1
            if idx < len(articles):
                picks.append(format_article(articles[idx], True, symbols[i], len(picks)))
                idx += 1
            cursors[i] = idx
        rounds += 1
        if all(cursors[i] >= len(articles) for i, articles in enumerate(per_symbol)):
            break

    return picks


def _general_news() -> List[NewsArticle]:
    try:
        raw = finnhub.fetch_market_news(category="general")
    except Exception as e:
        logger.error(f"Failed to fetch news: {e}")
        raise NewsFetchFailed(f"Failed to fetch news: {e}") from e

    seen = set()
    seen_urls = set()
    unique: List[NewsArticle] = []
    for idx, article in enumerate(raw):
        if not validate_article(article):
            continue
        sig = article_signature(article, idx)
        # Wire services republish the same story under fresh ids
        url = article["url"].strip()
        if sig in seen or url in seen_urls:
            continue
        seen.add(sig)
        seen_urls.add(url)
        unique.append(format_article(article, False, None, len(unique)))
        if len(unique) >= MAX_ARTICLES:
            break
    return unique


def get_news(symbols: Optional[Iterable[Any]] = None, *, max_workers: int = 4) -> List[NewsArticle]:
    """
    Up to six articles for the given symbols, or general market news.

    Per-symbol fetch failures are logged and treated as no news for that
    symbol. Raises NewsFetchFailed only when the general news fetch fails.
    """
    clean = clean_symbols(symbols)

    if clean:
        per_symbol = _fetch_symbol_news(clean, max_workers)
        picks = _round_robin(clean, per_symbol)
        if picks:
            picks.sort(key=lambda a: a.datetime or 0, reverse=True)
            return picks[:MAX_ARTICLES]
        logger.info("No company news found, falling back to general market news")

    return _general_news()
