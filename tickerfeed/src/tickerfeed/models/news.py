from typing import Optional
from pydantic import BaseModel

class NewsArticle(BaseModel):
    """
    Normalized news article as returned by the feed.
    """
    id: str
    headline: str
    summary: str = ""
    url: str
    datetime: int = 0  # unix seconds
    source: str
    image: str = ""
    category: str = "general"
    related: str = ""

    symbol: Optional[str] = None  # None for general market news
    rank: int = 0
