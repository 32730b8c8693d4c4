from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Iterable, List, Optional

import pandas as pd

from stockfolio.config import CATALOG_PATH
from stockfolio.constants import (
    CATALOG_COLUMNS,
    DEFAULT_LIST_LIMIT,
    DEFAULT_SEARCH_LIMIT,
    REQUIRED_CATALOG_COLUMNS,
    UNKNOWN_SECTOR,
)
from stockfolio.errors import StockNotFoundError
from stockfolio.models import Stock

logger = logging.getLogger(__name__)


class StockCatalog:
    """
    Read-only catalog of candidate stocks backed by a single CSV file.

    File layout::

        symbol,name,price,expected_return,volatility,sector,market_cap
        AAPL,Apple Inc.,175.50,12.5,22.3,Technology,2800000000000

    ``symbol``, ``name`` and ``price`` are required; the other columns are
    optional and default to ``0`` (``"Unknown"`` for sector).
    """

    def __init__(self, csv_path: str | Path = CATALOG_PATH):
        self._path = Path(csv_path)

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    @property
    def frame(self) -> pd.DataFrame:
        """
        The normalised catalog as a DataFrame (cached per path).

        Raises
        ------
        FileNotFoundError
            If the CSV does not exist.
        ValueError
            If required columns are missing or the file has no rows.
        """
        return _load_cached(str(self._path))

    def all_stocks(self) -> List[Stock]:
        """Every stock in catalog order."""
        return _to_stocks(self.frame)

    def list_stocks(
        self,
        sector: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> List[Stock]:
        """Filter by sector / price band, sorted by symbol, at most *limit*."""
        df = self.frame
        if sector:
            df = df[df["sector"] == sector]
        if min_price is not None:
            df = df[df["price"] >= float(min_price)]
        if max_price is not None:
            df = df[df["price"] <= float(max_price)]
        df = df.sort_values("symbol", kind="stable").head(int(limit))
        return _to_stocks(df)

    def get_stock(self, symbol: str) -> Stock:
        """Case-insensitive lookup; raises :class:`StockNotFoundError`."""
        key = symbol.strip().upper()
        df = self.frame
        match = df[df["symbol"] == key]
        if match.empty:
            raise StockNotFoundError(key)
        return _to_stocks(match)[0]

    def get_stocks(self, symbols: Iterable[str]) -> List[Stock]:
        """
        Look up several symbols in the order given.

        Unknown symbols are logged and skipped.
        """
        stocks = []
        for symbol in symbols:
            try:
                stocks.append(self.get_stock(symbol))
            except StockNotFoundError as exc:
                logger.warning(f"Error fetching {symbol}: {exc}")
        return stocks

    def search(self, query: str, limit: int = DEFAULT_SEARCH_LIMIT) -> List[Stock]:
        """Case-insensitive substring match against symbol or name."""
        query = query.strip()
        if not query:
            return []
        df = self.frame
        mask = (
            df["symbol"].str.contains(query, case=False, regex=False)
            | df["name"].str.contains(query, case=False, regex=False)
        )
        return _to_stocks(df[mask].head(int(limit)))

    def sectors(self) -> List[str]:
        """Distinct known sectors, sorted."""
        values = self.frame["sector"].unique()
        return sorted(s for s in values if s and s != UNKNOWN_SECTOR)

    def __len__(self) -> int:
        return len(self.frame)


# ------------------------------------------------------------------
# Module-level cached loader (keyed on the path string only).
# ------------------------------------------------------------------

@lru_cache(maxsize=16)
def _load_cached(path: str) -> pd.DataFrame:
    """Read, validate and normalise the catalog CSV."""
    csv_path = Path(path)
    if not csv_path.exists():
        raise FileNotFoundError(f"Stock catalog not found: {csv_path}")

    df = pd.read_csv(csv_path)

    missing = REQUIRED_CATALOG_COLUMNS - set(df.columns)
    if missing:
        raise ValueError(f"Stock catalog {csv_path} is missing columns: {missing}")

    if df.empty:
        raise ValueError(f"Stock catalog {csv_path} has no rows.")

    for column in ("expected_return", "volatility", "market_cap"):
        if column not in df.columns:
            df[column] = 0.0
    if "sector" not in df.columns:
        df["sector"] = UNKNOWN_SECTOR

    df = df[list(CATALOG_COLUMNS)].copy()
    df["symbol"] = df["symbol"].astype(str).str.strip().str.upper()
    df["name"] = df["name"].astype(str).str.strip()
    df["sector"] = df["sector"].fillna(UNKNOWN_SECTOR).astype(str).str.strip()
    df.loc[df["sector"] == "", "sector"] = UNKNOWN_SECTOR
    for column in ("price", "expected_return", "volatility", "market_cap"):
        df[column] = pd.to_numeric(df[column], errors="coerce")
    df["market_cap"] = df["market_cap"].fillna(0.0)

    duplicated = df["symbol"].duplicated(keep="first")
    if duplicated.any():
        logger.warning(
            f"Dropping duplicate symbols from catalog: "
            f"{sorted(set(df.loc[duplicated, 'symbol']))}"
        )
        df = df[~duplicated]

    df.reset_index(drop=True, inplace=True)
    logger.info(f"Loaded {len(df)} stocks from {csv_path}")
    return df


def _to_stocks(df: pd.DataFrame) -> List[Stock]:
    """Convert catalog rows to plain :class:`Stock` values."""
    return [
        Stock(
            symbol=row.symbol,
            name=row.name,
            price=float(row.price),
            expected_return=float(row.expected_return),
            volatility=float(row.volatility),
            sector=row.sector,
            market_cap=float(row.market_cap),
        )
        for row in df.itertuples(index=False)
    ]
