import requests
import logging
import datetime
from typing import Any, Dict, List, Optional, Union
from ..errors import ProviderError
from ..config import get_finnhub_key, get_http_timeout
from ..cache.sqlite import SQLiteCache

logger = logging.getLogger(__name__)

BASE_URL = "https://finnhub.io/api/v1"

# Company and market news may be served from cache for this long
NEWS_REVALIDATE_SECONDS = 300

_response_cache: Optional[SQLiteCache] = None

DateLike = Union[datetime.date, str]

def set_response_cache(cache: Optional[SQLiteCache]) -> None:
    """Install (or with None, remove) the cache used for cacheable requests."""
    global _response_cache
    _response_cache = cache

def _cache_key(url: str, params: Dict[str, Any]) -> str:
    # Full request URL minus the token
    return requests.Request("GET", url, params=params).prepare().url

def fetch_json(path: str, params: Optional[Dict[str, Any]] = None,
               revalidate_seconds: Optional[int] = None) -> Any:
    """
    GET a Finnhub endpoint and return the decoded JSON body.

    With revalidate_seconds set and a response cache installed, a cached body
    younger than that is returned without touching the network. Without it
    the request always goes out and nothing is cached.
    """
    api_key = get_finnhub_key()
    if not api_key:
        raise ProviderError(
            "FINNHUB_API_KEY is missing or invalid. "
            "Please add it to your .env file."
        )

    url = f"{BASE_URL}{path}"
    params = dict(params or {})
    cache = _response_cache if revalidate_seconds else None
    key = _cache_key(url, params)

    if cache is not None:
        cached = cache.get(key, max_age_seconds=revalidate_seconds)
        if cached is not None:
            logger.debug(f"Cache hit: {key}")
            return cached

    try:
        resp = requests.get(url, params={**params, "token": api_key}, timeout=get_http_timeout())
        resp.raise_for_status()
        data = resp.json()
    except requests.HTTPError as e:
        status = e.response.status_code if e.response is not None else None
        body = e.response.text[:200] if e.response is not None else ""
        raise ProviderError(
            f"HTTP {status} for {key}" + (f" - {body}" if body else ""),
            details={"status": status, "url": key},
        )
    except requests.RequestException as e:
        raise ProviderError(f"Finnhub request failed for {key}: {e}", details={"url": key})
    except ValueError as e:
        raise ProviderError(f"Finnhub returned invalid JSON for {key}: {e}", details={"url": key})

    if cache is not None:
        cache.put(key, data)
    return data

def _as_article_list(data: Any, what: str) -> List[Dict[str, Any]]:
    if not isinstance(data, list):
        raise ProviderError(f"Finnhub {what} response is not a list")
    return [item for item in data if isinstance(item, dict)]

def _iso(d: DateLike) -> str:
    return d.isoformat() if isinstance(d, datetime.date) else str(d)

def fetch_company_news(symbol: str, start: DateLike, end: DateLike) -> List[Dict[str, Any]]:
    """
    Fetch raw company news articles for one symbol between two calendar dates.
    Reference: https://finnhub.io/docs/api/company-news
    """
    params = {
        "symbol": symbol,
        "from": _iso(start),
        "to": _iso(end),
    }
    data = fetch_json("/company-news", params, revalidate_seconds=NEWS_REVALIDATE_SECONDS)
    return _as_article_list(data, "company-news")

def fetch_market_news(category: str = "general", min_id: int = 0) -> List[Dict[str, Any]]:
    """
    Fetch raw market news articles for a category.
    Reference: https://finnhub.io/docs/api/market-news
    """
    params: Dict[str, Any] = {"category": category}
    if min_id:
        params["minId"] = min_id
    data = fetch_json("/news", params, revalidate_seconds=NEWS_REVALIDATE_SECONDS)
    return _as_article_list(data, "market news")

def fetch_quote(symbol: str) -> float:
    """Current price for a symbol. Quotes are never cached."""
    data = fetch_json("/quote", {"symbol": symbol})
    price = data.get("c") if isinstance(data, dict) else None
    if not isinstance(price, (int, float)) or isinstance(price, bool) or price <= 0:
        raise ProviderError(f"No quote available for {symbol}", details={"symbol": symbol})
    return float(price)
