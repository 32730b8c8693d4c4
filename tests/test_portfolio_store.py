"""
Tests for stockfolio/portfolio_store.py

Covers:
  - create / get / list / save / delete
  - sanitize(): non-finite totals and allocations
  - JSON persistence and reload
"""

import json
import math
import os
import tempfile
import unittest

from stockfolio.enums import PortfolioStatus, RiskLevel
from stockfolio.errors import PortfolioNotFoundError
from stockfolio.models import Allocation, Portfolio
from stockfolio.portfolio_store import PortfolioStore, sanitize


def _allocation(symbol="AAPL", invested=300.0, expected=30.0, weight=30.0):
    return Allocation(symbol=symbol, name=f"{symbol} Inc.", shares=3,
                      invested_amount=invested, expected_return=expected,
                      weight=weight)


def _portfolio(user="alice", name="Growth", allocations=None):
    return Portfolio(
        user=user,
        name=name,
        total_budget=1000.0,
        risk_level=RiskLevel.MEDIUM,
        allocations=allocations if allocations is not None else [_allocation()],
        total_expected_return=30.0,
        total_risk=6.0,
        diversification_score=19.0,
    )


class TestSanitize(unittest.TestCase):

    def test_finite_portfolio_unchanged(self):
        p = sanitize(_portfolio())
        self.assertEqual(len(p.allocations), 1)
        self.assertEqual(p.total_risk, 6.0)

    def test_non_finite_totals_become_zero(self):
        p = _portfolio()
        p.total_expected_return = float("nan")
        p.total_risk = float("inf")
        sanitize(p)
        self.assertEqual(p.total_expected_return, 0.0)
        self.assertEqual(p.total_risk, 0.0)
        self.assertEqual(p.diversification_score, 19.0)

    def test_non_finite_allocation_dropped(self):
        p = _portfolio(allocations=[
            _allocation("AAPL"),
            _allocation("BAD", expected=float("nan")),
            _allocation("INF", invested=float("inf")),
        ])
        with self.assertLogs("stockfolio.portfolio_store", level="WARNING") as logs:
            sanitize(p)
        self.assertEqual([a.symbol for a in p.allocations], ["AAPL"])
        self.assertTrue(any("BAD" in line for line in logs.output))


class TestInMemoryStore(unittest.TestCase):

    def setUp(self):
        self.store = PortfolioStore()

    def test_create_assigns_id_and_timestamps(self):
        p = self.store.create(_portfolio())
        self.assertTrue(p.id)
        self.assertIsNotNone(p.created_at)
        self.assertEqual(p.created_at, p.updated_at)
        self.assertEqual(len(self.store), 1)

    def test_ids_are_unique(self):
        a = self.store.create(_portfolio())
        b = self.store.create(_portfolio())
        self.assertNotEqual(a.id, b.id)

    def test_create_sanitizes(self):
        p = self.store.create(_portfolio(allocations=[
            _allocation("BAD", weight=float("nan")),
        ]))
        self.assertEqual(p.allocations, [])

    def test_get_round_trip(self):
        p = self.store.create(_portfolio())
        self.assertIs(self.store.get(p.id), p)

    def test_get_missing_raises(self):
        with self.assertRaises(PortfolioNotFoundError) as ctx:
            self.store.get("missing")
        self.assertEqual(ctx.exception.portfolio_id, "missing")

    def test_list_newest_first_for_user_only(self):
        first = self.store.create(_portfolio(name="first"))
        self.store.create(_portfolio(user="bob"))
        second = self.store.create(_portfolio(name="second"))
        listed = self.store.list_for_user("alice")
        self.assertEqual([p.id for p in listed], [second.id, first.id])

    def test_list_filters_status(self):
        kept = self.store.create(_portfolio())
        archived = self.store.create(_portfolio())
        archived.status = PortfolioStatus.ARCHIVED
        self.store.save(archived)
        active = self.store.list_for_user("alice", status=PortfolioStatus.ACTIVE)
        self.assertEqual([p.id for p in active], [kept.id])

    def test_save_unknown_raises(self):
        with self.assertRaises(PortfolioNotFoundError):
            self.store.save(_portfolio())

    def test_save_updates_timestamp(self):
        p = self.store.create(_portfolio())
        p.updated_at = "2000-01-01T00:00:00+00:00"
        p.name = "Renamed"
        saved = self.store.save(p)
        self.assertEqual(self.store.get(p.id).name, "Renamed")
        self.assertNotEqual(saved.updated_at, "2000-01-01T00:00:00+00:00")

    def test_delete(self):
        p = self.store.create(_portfolio())
        self.store.delete(p.id)
        self.assertEqual(len(self.store), 0)
        with self.assertRaises(PortfolioNotFoundError):
            self.store.delete(p.id)


class TestFileStore(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.path = os.path.join(self._tmp.name, "nested", "portfolios.json")

    def tearDown(self):
        self._tmp.cleanup()

    def test_missing_file_is_empty_store(self):
        self.assertEqual(len(PortfolioStore(self.path)), 0)
        self.assertFalse(os.path.exists(self.path))

    def test_create_writes_json(self):
        p = PortfolioStore(self.path).create(_portfolio())
        with open(self.path, encoding="utf-8") as fh:
            payload = json.load(fh)
        self.assertEqual(payload["portfolios"][0]["id"], p.id)
        self.assertEqual(payload["portfolios"][0]["risk_level"], "medium")

    def test_reload_restores_records(self):
        store = PortfolioStore(self.path)
        p = store.create(_portfolio())
        reloaded = PortfolioStore(self.path).get(p.id)
        self.assertEqual(reloaded.to_dict(), p.to_dict())

    def test_no_temp_file_left_behind(self):
        PortfolioStore(self.path).create(_portfolio())
        leftovers = [f for f in os.listdir(os.path.dirname(self.path))
                     if f.endswith(".tmp")]
        self.assertEqual(leftovers, [])

    def test_delete_persists(self):
        store = PortfolioStore(self.path)
        p = store.create(_portfolio())
        store.delete(p.id)
        self.assertEqual(len(PortfolioStore(self.path)), 0)

    def test_written_file_contains_only_finite_numbers(self):
        p = _portfolio()
        p.total_risk = float("nan")
        PortfolioStore(self.path).create(p)
        with open(self.path, encoding="utf-8") as fh:
            payload = json.load(fh)
        self.assertTrue(math.isfinite(payload["portfolios"][0]["total_risk"]))

    def test_corrupt_file_raises(self):
        os.makedirs(os.path.dirname(self.path))
        with open(self.path, "w", encoding="utf-8") as fh:
            fh.write("{not json")
        with self.assertRaises(ValueError):
            PortfolioStore(self.path)

    def test_record_missing_fields_raises_value_error(self):
        os.makedirs(os.path.dirname(self.path))
        record = _portfolio().to_dict()
        del record["total_budget"]
        with open(self.path, "w", encoding="utf-8") as fh:
            json.dump({"portfolios": [record]}, fh)
        with self.assertRaises(ValueError) as ctx:
            PortfolioStore(self.path)
        self.assertIn(self.path, str(ctx.exception))
        self.assertIsInstance(ctx.exception.__cause__, KeyError)


if __name__ == "__main__":
    unittest.main()
