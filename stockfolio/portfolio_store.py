"""
stockfolio/portfolio_store.py
-----------------------------
Record store for saved portfolios.

Design
------
* Records live in an ordered dict keyed by portfolio id; insertion order is
  creation order, so listing newest-first is a reversed walk.
* With a *path*, the whole store is one JSON document written atomically via
  a temp file + rename.
  Without a path the store is purely in-memory (tests, one-off CLI runs).
* Every write passes through :func:`sanitize`: allocations with any
  non-finite number are dropped and non-finite totals become ``0``.  JSON is
  written with ``allow_nan=False``.
"""

from __future__ import annotations

import json
import logging
import math
import os
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from stockfolio.enums import PortfolioStatus
from stockfolio.errors import PortfolioNotFoundError
from stockfolio.models import Portfolio

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def sanitize(portfolio: Portfolio) -> Portfolio:
    """
    Drop allocations carrying non-finite numbers and zero out non-finite
    totals.  Mutates and returns *portfolio*.
    """
    for attr in ("total_expected_return", "total_risk", "diversification_score"):
        if not math.isfinite(getattr(portfolio, attr)):
            setattr(portfolio, attr, 0.0)

    kept = []
    for allocation in portfolio.allocations:
        if allocation.is_finite():
            kept.append(allocation)
        else:
            logger.warning(f"Removing invalid allocation for {allocation.symbol}")
    portfolio.allocations = kept
    return portfolio


class PortfolioStore:
    """
    CRUD store for :class:`Portfolio` records.

    Usage
    -----
    ::

        store = PortfolioStore("~/.stockfolio/portfolios.json")
        saved = store.create(portfolio)
        store.list_for_user("alice", status=PortfolioStatus.ACTIVE)
    """

    def __init__(self, path: Optional[str | Path] = None):
        self._path = Path(path).expanduser() if path is not None else None
        self._records: Dict[str, Portfolio] = {}
        if self._path is not None:
            self._records = self._load()

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def create(self, portfolio: Portfolio) -> Portfolio:
        """Sanitize, stamp and store a new record; returns it with an id."""
        sanitize(portfolio)
        portfolio.id = uuid.uuid4().hex
        portfolio.created_at = portfolio.updated_at = _now()
        self._records[portfolio.id] = portfolio
        self._persist()
        logger.info(
            f"Created portfolio {portfolio.id} for {portfolio.user} "
            f"({len(portfolio.allocations)} allocations)"
        )
        return portfolio

    def get(self, portfolio_id: str) -> Portfolio:
        try:
            return self._records[portfolio_id]
        except KeyError:
            raise PortfolioNotFoundError(portfolio_id) from None

    def list_for_user(
        self,
        user: str,
        status: Optional[PortfolioStatus] = None,
    ) -> List[Portfolio]:
        """Portfolios owned by *user*, newest first."""
        return [
            p for p in reversed(list(self._records.values()))
            if p.user == user and (status is None or p.status == status)
        ]

    def save(self, portfolio: Portfolio) -> Portfolio:
        """Write back an existing record after an in-place change."""
        if portfolio.id not in self._records:
            raise PortfolioNotFoundError(portfolio.id)
        sanitize(portfolio)
        portfolio.updated_at = _now()
        self._records[portfolio.id] = portfolio
        self._persist()
        return portfolio

    def delete(self, portfolio_id: str) -> None:
        if portfolio_id not in self._records:
            raise PortfolioNotFoundError(portfolio_id)
        del self._records[portfolio_id]
        self._persist()
        logger.info(f"Deleted portfolio {portfolio_id}")

    def __len__(self) -> int:
        return len(self._records)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _load(self) -> Dict[str, Portfolio]:
        """
        Read all records from disk.  A missing file is an empty store; a
        corrupt file or malformed record raises ``ValueError``.
        """
        if not self._path.exists():
            return {}

        with open(self._path, encoding="utf-8") as fh:
            payload = json.load(fh)
        if not isinstance(payload, dict):
            raise ValueError(f"Portfolio store {self._path} is not a JSON object")

        records: Dict[str, Portfolio] = {}
        for position, raw in enumerate(payload.get("portfolios", [])):
            try:
                portfolio = Portfolio.from_dict(raw)
            except (KeyError, TypeError, ValueError) as exc:
                raise ValueError(
                    f"Portfolio store {self._path} has a malformed record "
                    f"at position {position}: {exc!r}"
                ) from exc
            records[portfolio.id] = portfolio
        return records

    def _persist(self) -> None:
        """Atomically write the store (temp → rename)."""
        if self._path is None:
            return

        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(".tmp")
        payload = {
            "portfolios": [p.to_dict() for p in self._records.values()],
        }

        try:
            with open(tmp, "w", encoding="utf-8") as fh:
                json.dump(payload, fh, allow_nan=False, indent=2)
            os.replace(tmp, self._path)   # atomic on POSIX and Windows
        except (OSError, ValueError):
            tmp.unlink(missing_ok=True)
            raise
