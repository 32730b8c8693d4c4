"""
tests/test_data_loader.py
-------------------------
Unit tests for StockCatalog.

Each test that needs a custom file writes it to a fresh temporary
directory, so the per-path cache never serves stale content.
"""

import os
import tempfile
import textwrap
import unittest

from stockfolio.data_loader import StockCatalog
from stockfolio.errors import StockNotFoundError


def _write_csv(directory: str, body: str, name: str = "stocks.csv") -> str:
    path = os.path.join(directory, name)
    with open(path, "w", encoding="utf-8") as fh:
        fh.write(textwrap.dedent(body).lstrip())
    return path


SAMPLE = """
    symbol,name,price,expected_return,volatility,sector,market_cap
    aapl ,Apple Inc.,175.50,12.5,22.3,Technology,2800000000000
    MSFT,Microsoft Corporation,380.25,11.8,20.5,Technology,2820000000000
    JPM,JPMorgan Chase & Co.,155.40,9.5,18.7,Finance,450000000000
    PFE,Pfizer Inc.,28.95,6.5,16.3,Healthcare,165000000000
    MYST,Mystery Holdings,12.00,4.0,30.0,,
    AAPL,Apple Duplicate,1.00,1.0,1.0,Technology,1
"""


class TestPackagedCatalog(unittest.TestCase):

    def setUp(self):
        self.catalog = StockCatalog()

    def test_loads_seed_stocks(self):
        self.assertEqual(len(self.catalog), 25)

    def test_seed_values(self):
        aapl = self.catalog.get_stock("AAPL")
        self.assertEqual(aapl.name, "Apple Inc.")
        self.assertAlmostEqual(aapl.price, 175.50)
        self.assertAlmostEqual(aapl.expected_return, 12.5)
        self.assertAlmostEqual(aapl.volatility, 22.3)
        self.assertEqual(aapl.sector, "Technology")

    def test_sectors_sorted(self):
        sectors = self.catalog.sectors()
        self.assertEqual(sectors, sorted(sectors))
        self.assertIn("Technology", sectors)
        self.assertIn("Finance", sectors)

    def test_every_seed_stock_has_valid_numbers(self):
        for stock in self.catalog.all_stocks():
            self.assertGreater(stock.price, 0)
            self.assertGreaterEqual(stock.volatility, 0)


class TestCustomCatalog(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.catalog = StockCatalog(_write_csv(self._tmp.name, SAMPLE))

    def tearDown(self):
        self._tmp.cleanup()

    # ── normalisation ──────────────────────────────────────────────────

    def test_symbols_are_stripped_and_upper_cased(self):
        symbols = [s.symbol for s in self.catalog.all_stocks()]
        self.assertIn("AAPL", symbols)
        self.assertNotIn("aapl ", symbols)

    def test_duplicate_symbols_keep_first(self):
        stocks = self.catalog.all_stocks()
        self.assertEqual(len(stocks), 5)
        self.assertEqual(self.catalog.get_stock("AAPL").name, "Apple Inc.")

    def test_blank_sector_becomes_unknown(self):
        self.assertEqual(self.catalog.get_stock("MYST").sector, "Unknown")

    def test_blank_market_cap_becomes_zero(self):
        self.assertEqual(self.catalog.get_stock("MYST").market_cap, 0.0)

    def test_unknown_sector_not_listed(self):
        self.assertEqual(self.catalog.sectors(), ["Finance", "Healthcare", "Technology"])

    # ── lookup ─────────────────────────────────────────────────────────

    def test_get_stock_is_case_insensitive(self):
        self.assertEqual(self.catalog.get_stock(" msft ").symbol, "MSFT")

    def test_get_stock_missing_raises(self):
        with self.assertRaises(StockNotFoundError) as ctx:
            self.catalog.get_stock("nope")
        self.assertEqual(ctx.exception.symbol, "NOPE")
        self.assertIsInstance(ctx.exception, LookupError)

    def test_get_stocks_skips_unknown_and_keeps_order(self):
        with self.assertLogs("stockfolio.data_loader", level="WARNING"):
            stocks = self.catalog.get_stocks(["PFE", "ZZZZ", "aapl"])
        self.assertEqual([s.symbol for s in stocks], ["PFE", "AAPL"])

    # ── listing ────────────────────────────────────────────────────────

    def test_list_sorted_by_symbol(self):
        symbols = [s.symbol for s in self.catalog.list_stocks()]
        self.assertEqual(symbols, sorted(symbols))

    def test_list_by_sector(self):
        stocks = self.catalog.list_stocks(sector="Technology")
        self.assertEqual([s.symbol for s in stocks], ["AAPL", "MSFT"])

    def test_list_by_price_band(self):
        stocks = self.catalog.list_stocks(min_price=20, max_price=200)
        self.assertEqual([s.symbol for s in stocks], ["AAPL", "JPM", "PFE"])

    def test_list_limit(self):
        self.assertEqual(len(self.catalog.list_stocks(limit=2)), 2)

    # ── search ─────────────────────────────────────────────────────────

    def test_search_by_name(self):
        stocks = self.catalog.search("apple")
        self.assertEqual([s.symbol for s in stocks], ["AAPL"])

    def test_search_by_symbol_fragment(self):
        stocks = self.catalog.search("ms")
        self.assertEqual([s.symbol for s in stocks], ["MSFT"])

    def test_search_treats_query_literally(self):
        self.assertEqual(
            [s.symbol for s in self.catalog.search("chase & co.")], ["JPM"]
        )

    def test_empty_query_returns_nothing(self):
        self.assertEqual(self.catalog.search("   "), [])


class TestCatalogErrors(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()

    def tearDown(self):
        self._tmp.cleanup()

    def test_missing_file(self):
        catalog = StockCatalog(os.path.join(self._tmp.name, "absent.csv"))
        with self.assertRaises(FileNotFoundError):
            catalog.all_stocks()

    def test_missing_required_column(self):
        path = _write_csv(self._tmp.name, """
            symbol,name
            AAPL,Apple Inc.
        """)
        with self.assertRaises(ValueError) as ctx:
            StockCatalog(path).all_stocks()
        self.assertIn("price", str(ctx.exception))

    def test_header_only_file(self):
        path = _write_csv(self._tmp.name, """
            symbol,name,price
        """)
        with self.assertRaises(ValueError):
            StockCatalog(path).all_stocks()

    def test_optional_columns_default(self):
        path = _write_csv(self._tmp.name, """
            symbol,name,price
            ABC,Alphabet Soup,10
        """)
        stock = StockCatalog(path).get_stock("ABC")
        self.assertEqual(stock.expected_return, 0.0)
        self.assertEqual(stock.volatility, 0.0)
        self.assertEqual(stock.sector, "Unknown")

    def test_unparseable_numbers_become_nan(self):
        path = _write_csv(self._tmp.name, """
            symbol,name,price,expected_return,volatility
            BAD,Bad Data,n/a,5,10
        """)
        stock = StockCatalog(path).get_stock("BAD")
        self.assertNotEqual(stock.price, stock.price)


if __name__ == "__main__":
    unittest.main()
