"""
stockfolio/config.py
--------------------
Tunable allocation policy and environment-driven locations.
Enum-keyed business constants live in stockfolio/constants.py.
"""

import os
from pathlib import Path

# ---------------------------------------------------------------------------
# Concentration limits
# ---------------------------------------------------------------------------
# Greedy never invests more than this fraction of the *nominal* budget in a
# single stock, and stops after MAX_HOLDINGS selections.

MAX_POSITION_PCT: float = 0.30
MAX_HOLDINGS: int = 10

# ---------------------------------------------------------------------------
# Knapsack discretisation
# ---------------------------------------------------------------------------
# Budgets above KNAPSACK_MAX_BUDGET always run greedy.  Above
# KNAPSACK_SCALE_THRESHOLD the budget axis is divided by KNAPSACK_SCALE_FACTOR,
# capping the DP table at 1 001 columns; at or below it the axis is in whole
# currency units, up to 10 001 columns.

KNAPSACK_MAX_BUDGET: float = 100_000
KNAPSACK_SCALE_THRESHOLD: float = 10_000
KNAPSACK_SCALE_FACTOR: int = 100
KNAPSACK_MAX_BUNDLE_SHARES: int = 10

# ---------------------------------------------------------------------------
# Diversification score
# ---------------------------------------------------------------------------

SECTOR_POINTS: int = 15
SECTOR_POINTS_CAP: int = 60
HOLDING_POINTS: int = 4
HOLDING_POINTS_CAP: int = 40

# ---------------------------------------------------------------------------
# Locations / runtime
# ---------------------------------------------------------------------------

CATALOG_PATH: Path = Path(
    os.environ.get(
        "STOCKFOLIO_CATALOG",
        Path(__file__).parent / "data" / "stocks.csv",
    )
)

STORE_PATH: Path = Path(
    os.environ.get(
        "STOCKFOLIO_STORE",
        Path.home() / ".stockfolio" / "portfolios.json",
    )
)

LOG_LEVEL: str = os.environ.get("STOCKFOLIO_LOG_LEVEL", "WARNING").upper()
