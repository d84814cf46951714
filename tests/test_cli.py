import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock
import sys

from click.testing import CliRunner

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "tickerfeed" / "src"
sys.path.insert(0, str(SRC))

from tickerfeed.cli import cli
from tickerfeed.errors import NewsFetchFailed, ProviderError, StorageError, ValidationError, format_error
from tickerfeed.providers import finnhub
from tickerfeed.watchlist_file import load_watchlist_file


def _article(symbol, n, ts):
    return {
        "id": f"{symbol}-{n}",
        "headline": f"{symbol} story {n}",
        "url": f"https://example.com/{symbol.lower()}/{n}",
        "datetime": ts,
        "source": "Example Wire",
    }


class CliTestCase(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)
        self.runner = CliRunner()
        self.env = {"TICKERFEED_DB": str(Path(self.tmpdir.name) / "tickerfeed.db")}
        self.addCleanup(finnhub.set_response_cache, None)

    def invoke(self, *args):
        result = self.runner.invoke(cli, list(args), env=self.env)
        return result

    def data(self, result):
        self.assertEqual(result.exit_code, 0, result.output)
        payload = json.loads(result.stdout)
        self.assertTrue(payload["ok"])
        return payload["data"]


class TestWatchlistCommands(CliTestCase):
    def test_add_list_remove(self):
        self.data(self.invoke("watchlist", "add", "--user", "u1", "--symbol", "aapl"))
        self.data(self.invoke("watchlist", "add", "--user", "u1", "--symbol", "MSFT"))
        self.assertEqual(self.data(self.invoke("watchlist", "list", "--user", "u1")), ["AAPL", "MSFT"])

        removed = self.data(self.invoke("watchlist", "remove", "--user", "u1", "--symbol", "aapl"))
        self.assertEqual(removed, {"symbol": "AAPL", "removed": True})
        self.assertEqual(self.data(self.invoke("watchlist", "list", "--user", "u1")), ["MSFT"])

    def test_import_from_yaml(self):
        path = Path(self.tmpdir.name) / "watchlist.yaml"
        path.write_text("watchlist:\n  name: Tech\n  tickers: [aapl, ' msft ', AAPL]\n")

        data = self.data(self.invoke("watchlist", "import", "--user", "u1", "--file", str(path)))

        self.assertEqual(data["name"], "Tech")
        self.assertEqual(data["added"], ["AAPL", "MSFT"])
        self.assertEqual(data["symbols"], ["AAPL", "MSFT"])


class TestNewsCommand(CliTestCase):
    def test_news_for_user_watchlist(self):
        self.invoke("watchlist", "add", "--user", "u1", "--symbol", "AAPL")
        feeds = {"AAPL": [_article("AAPL", 1, 100)], "MSFT": [_article("MSFT", 1, 200)]}

        with mock.patch("tickerfeed.providers.finnhub.fetch_company_news",
                        side_effect=lambda s, start, end: feeds[s]):
            result = self.invoke("news", "--user", "u1", "--symbols", "msft", "--no-cache")

        payload = json.loads(result.stdout)
        self.assertEqual(payload["meta"]["symbols"], ["MSFT", "AAPL"])
        self.assertEqual([a["symbol"] for a in payload["data"]], ["MSFT", "AAPL"])

    def test_news_without_symbols(self):
        with mock.patch("tickerfeed.providers.finnhub.fetch_market_news",
                        return_value=[_article("MKT", 1, 100)]):
            data = self.data(self.invoke("news", "--no-cache"))

        self.assertEqual(len(data), 1)
        self.assertIsNone(data[0]["symbol"])

    def test_news_rejects_bad_workers(self):
        result = self.invoke("news", "--workers", "0")
        self.assertNotEqual(result.exit_code, 0)


class TestAlertCommands(CliTestCase):
    def test_set_list_remove(self):
        self.data(self.invoke("alert", "set", "--user", "u1", "--symbol", "aapl", "--price", "150",
                              "--condition", "lesser", "--frequency", "hour"))

        self.assertEqual(self.data(self.invoke("alert", "list", "--user", "u1")), {
            "AAPL": {"alert_price": 150.0, "condition": "lesser", "frequency": "hour"},
        })

        self.data(self.invoke("alert", "remove", "--user", "u1", "--symbol", "AAPL"))
        self.assertEqual(self.data(self.invoke("alert", "list", "--user", "u1")), {})

    def test_negative_price_is_rejected(self):
        result = self.invoke("alert", "set", "--user", "u1", "--symbol", "AAPL", "--price", "-1")
        self.assertNotEqual(result.exit_code, 0)

    def test_blank_symbol_is_a_storage_error(self):
        result = self.invoke("alert", "set", "--user", "u1", "--symbol", " ", "--price", "1")
        self.assertIsInstance(result.exception, StorageError)

    def test_check(self):
        self.invoke("alert", "set", "--user", "u1", "--symbol", "AAPL", "--price", "150")
        self.invoke("alert", "set", "--user", "u1", "--symbol", "MSFT", "--price", "300", "--condition", "lesser")
        self.invoke("alert", "set", "--user", "u1", "--symbol", "ZZZZ", "--price", "1")

        def quote(symbol):
            if symbol == "ZZZZ":
                raise ProviderError("No quote available for ZZZZ")
            return {"AAPL": 160.0, "MSFT": 310.0}[symbol]

        with mock.patch("tickerfeed.providers.finnhub.fetch_quote", side_effect=quote):
            data = self.data(self.invoke("alert", "check", "--user", "u1"))

        by_symbol = {row["symbol"]: row for row in data}
        self.assertTrue(by_symbol["AAPL"]["triggered"])
        self.assertFalse(by_symbol["MSFT"]["triggered"])
        self.assertFalse(by_symbol["ZZZZ"]["triggered"])
        self.assertIn("ZZZZ", by_symbol["ZZZZ"]["error"])


class TestErrorEnvelope(unittest.TestCase):
    def test_known_error(self):
        payload = json.loads(format_error(NewsFetchFailed("Failed to fetch news: boom", {"url": "x"})))
        self.assertFalse(payload["ok"])
        self.assertEqual(payload["error"]["type"], "NewsFetchFailed")
        self.assertEqual(payload["error"]["details"], {"url": "x"})

    def test_unexpected_error(self):
        try:
            raise RuntimeError("kaput")
        except RuntimeError as e:
            payload = json.loads(format_error(e))
        self.assertEqual(payload["error"]["type"], "UnknownError")
        self.assertEqual(payload["error"]["message"], "kaput")
        self.assertIn("traceback", payload["error"]["details"])


class TestWatchlistFile(unittest.TestCase):
    def test_invalid_files(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            cases = {
                "missing.yaml": None,
                "broken.yaml": "watchlist: [unclosed",
                "no_object.yaml": "tickers: [AAPL]\n",
                "empty_tickers.yaml": "watchlist:\n  tickers: []\n",
                "bad_ticker.yaml": "watchlist:\n  tickers: [AAPL, 5]\n",
            }
            for name, content in cases.items():
                path = Path(tmpdir) / name
                if content is not None:
                    path.write_text(content)
                with self.subTest(name=name):
                    with self.assertRaises(ValidationError):
                        load_watchlist_file(str(path))

    def test_default_name(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "watchlist.yaml"
            path.write_text("watchlist:\n  tickers: [tsla]\n")
            self.assertEqual(load_watchlist_file(str(path)), {"name": "Watchlist", "tickers": ["TSLA"]})


if __name__ == "__main__":
    unittest.main()
