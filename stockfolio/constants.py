"""
stockfolio/constants.py
-----------------------
Business-logic constants shared across modules.
"""

from __future__ import annotations

from stockfolio.enums import RiskLevel


# ---------------------------------------------------------------------------
# Risk level → volatility penalty
# ---------------------------------------------------------------------------
# score = expected_return / (1 + volatility * penalty / 100)
# A larger penalty makes volatile stocks rank lower.

RISK_PENALTY: dict = {
    RiskLevel.LOW:    2.0,
    RiskLevel.MEDIUM: 1.0,
    RiskLevel.HIGH:   0.5,
}


# ---------------------------------------------------------------------------
# Catalog / record defaults
# ---------------------------------------------------------------------------

UNKNOWN_SECTOR: str = "Unknown"
DEFAULT_PORTFOLIO_NAME: str = "My Portfolio"

CATALOG_COLUMNS: tuple = (
    "symbol", "name", "price", "expected_return", "volatility",
    "sector", "market_cap",
)
REQUIRED_CATALOG_COLUMNS: set = {"symbol", "name", "price"}

DEFAULT_LIST_LIMIT: int = 50
DEFAULT_SEARCH_LIMIT: int = 20
TOP_HOLDINGS: int = 5
