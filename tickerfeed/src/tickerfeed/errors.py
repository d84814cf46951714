import json
import traceback

class TickerFeedError(Exception):
    """Base exception for tickerfeed"""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

class ValidationError(TickerFeedError):
    """Input validation errors"""
    pass

class ProviderError(TickerFeedError):
    """External provider errors"""
    pass

class NewsFetchFailed(ProviderError):
    """News feed could not be produced because the general news fetch failed"""
    pass

class StorageError(TickerFeedError):
    """Watchlist/alert storage errors"""
    pass

def format_error(e: Exception) -> str:
    """Format exception as the JSON error envelope printed by the CLI."""

    if isinstance(e, TickerFeedError):
        error_type = e.__class__.__name__
        message = e.message
        details = e.details
    else:
        error_type = "UnknownError"
        message = str(e)
        details = {
            "traceback": traceback.format_exc().splitlines()
        }

    payload = {
        "ok": False,
        "error": {
            "type": error_type,
            "message": message,
            "details": details
        },
        "meta": {
            "version": 1
        }
    }

    return json.dumps(payload, indent=2)
