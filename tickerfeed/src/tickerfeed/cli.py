import sys
import json
import click
import logging
from .errors import format_error, StorageError, TickerFeedError
from .logging import configure_logging
from .config import get_db_path
from .cache.sqlite import SQLiteCache
from .feed import aggregator
from .providers import finnhub
from .storage.alerts import AlertStore
from .storage.watchlist import WatchlistStore
from .watchlist_file import load_watchlist_file

VERSION = "0.1.0"

logger = logging.getLogger(__name__)


def _watchlist_store() -> WatchlistStore:
    return WatchlistStore(db_path=get_db_path())


def _alert_store() -> AlertStore:
    return AlertStore(db_path=get_db_path())


def _split_symbols(value):
    return [s.strip().upper() for s in (value or "").split(',') if s.strip()]


@click.group()
def cli():
    """tickerfeed: watchlist news and price alerts."""
    pass


@cli.command()
def version():
    """Print version information."""
    _print_json({"version": VERSION})


@cli.command()
@click.option("--symbols", required=False, help="Comma-separated tickers (e.g. AAPL,MSFT)")
@click.option("--user", "user_id", required=False, help="Use the symbols on this user's watchlist")
@click.option("--no-cache", is_flag=True, help="Always hit the provider")
@click.option("--workers", default=4, show_default=True, type=int, help="Max parallel company-news fetches")
def news(symbols, user_id, no_cache, workers):
    """
    Fetch up to six news articles.
    With symbols (or a watchlist) company news is interleaved per symbol;
    otherwise general market news is returned.
    """
    if workers < 1:
        raise click.BadParameter("--workers must be >= 1.")

    symbol_list = _split_symbols(symbols)
    if user_id:
        symbol_list += _watchlist_store().get_symbols(user_id)
        logger.info(f"Loaded watchlist for {user_id}: {len(symbol_list)} symbols")

    finnhub.set_response_cache(None if no_cache else SQLiteCache(db_path=get_db_path()))

    articles = aggregator.get_news(symbol_list, max_workers=workers)
    _print_json(
        [a.model_dump(mode="json") for a in articles],
        symbols=aggregator.clean_symbols(symbol_list),
    )


@cli.group()
def watchlist():
    """Manage a user's watchlist."""
    pass


@watchlist.command("add")
@click.option("--user", "user_id", required=True, help="User id")
@click.option("--symbol", required=True, help="Stock ticker symbol")
@click.option("--company", required=False, help="Company name")
def watchlist_add(user_id, symbol, company):
    """Add a symbol to the watchlist."""
    symbol = (symbol or "").strip().upper()
    if not symbol:
        raise click.BadParameter("symbol must be a non-empty ticker.")
    added = _watchlist_store().add(user_id, symbol, company)
    _print_json({"symbol": symbol, "added": added})


@watchlist.command("remove")
@click.option("--user", "user_id", required=True, help="User id")
@click.option("--symbol", required=True, help="Stock ticker symbol")
def watchlist_remove(user_id, symbol):
    """Remove a symbol from the watchlist."""
    removed = _watchlist_store().remove(user_id, symbol)
    _print_json({"symbol": (symbol or "").strip().upper(), "removed": removed})


@watchlist.command("list")
@click.option("--user", "user_id", required=True, help="User id")
def watchlist_list(user_id):
    """List watchlist symbols."""
    _print_json(_watchlist_store().get_symbols(user_id))


@watchlist.command("import")
@click.option("--user", "user_id", required=True, help="User id")
@click.option("--file", "path", default="watchlist.yaml", show_default=True, help="YAML watchlist file")
def watchlist_import(user_id, path):
    """Add every ticker from a YAML watchlist file."""
    data = load_watchlist_file(path)
    store = _watchlist_store()
    added = [t for t in data["tickers"] if store.add(user_id, t)]
    _print_json({
        "name": data["name"],
        "added": added,
        "symbols": store.get_symbols(user_id),
    })


@cli.group()
def alert():
    """Manage price alerts."""
    pass


@alert.command("set")
@click.option("--user", "user_id", required=True, help="User id")
@click.option("--symbol", required=True, help="Stock ticker symbol")
@click.option("--price", required=True, type=click.FloatRange(min=0), help="Alert threshold price")
@click.option("--condition", default="greater", show_default=True,
              type=click.Choice(["lesser", "equal", "greater"]), help="Trigger when price is lesser/equal/greater")
@click.option("--frequency", default="day", show_default=True,
              type=click.Choice(["minute", "hour", "day"]), help="How often the alert may fire")
@click.option("--company", required=False, help="Company name")
def alert_set(user_id, symbol, price, condition, frequency, company):
    """Create or update the alert for a symbol."""
    result = _alert_store().upsert(user_id, symbol, company, price, condition, frequency)
    if not result["success"]:
        raise StorageError(result["error"], details={"symbol": symbol})
    _print_json(result)


@alert.command("remove")
@click.option("--user", "user_id", required=True, help="User id")
@click.option("--symbol", required=True, help="Stock ticker symbol")
def alert_remove(user_id, symbol):
    """Delete the alert for a symbol."""
    result = _alert_store().remove(user_id, symbol)
    if not result["success"]:
        raise StorageError(result["error"], details={"symbol": symbol})
    _print_json(result)


@alert.command("list")
@click.option("--user", "user_id", required=True, help="User id")
def alert_list(user_id):
    """Show alert settings keyed by symbol."""
    _print_json(_alert_store().get_alerts_map(user_id))


@alert.command("check")
@click.option("--user", "user_id", required=True, help="User id")
def alert_check(user_id):
    """Fetch live quotes and report which alerts are triggered."""
    results = []
    for a in _alert_store().list_alerts(user_id):
        entry = {
            "symbol": a.symbol,
            "alert_price": a.alert_price,
            "condition": a.condition,
        }
        try:
            price = finnhub.fetch_quote(a.symbol)
        except TickerFeedError as e:
            logger.warning(f"Quote fetch failed for {a.symbol}: {e.message}")
            entry.update({"price": None, "triggered": False, "error": e.message})
        else:
            entry.update({"price": price, "triggered": a.is_triggered(price)})
        results.append(entry)
    _print_json(results)


def _print_json(data, **meta):
    """Helper to print standard JSON envelope."""
    payload = {
        "ok": True,
        "data": data,
        "meta": {
            "version": 1,
            **meta
        }
    }
    click.echo(json.dumps(payload, indent=2))


def main():
    """Entry point for the CLI."""
    configure_logging()
    try:
        cli(standalone_mode=False)
    except click.exceptions.Exit as e:
        sys.exit(e.exit_code)
    except click.exceptions.Abort:
        sys.exit(130)
    except Exception as e:
        print(format_error(e))
        sys.exit(1)

if __name__ == "__main__":
    main()
