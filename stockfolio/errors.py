"""
stockfolio/errors.py
--------------------
Exception taxonomy.

Optimization errors subclass ``ValueError`` and lookup errors subclass
``LookupError`` so callers that only know the builtin hierarchy still catch
them.  Messages are meant to be shown to the end user unchanged.
"""


class StockfolioError(Exception):
    """Base class for every error raised by this package."""


# ---------------------------------------------------------------------------
# Allocation input errors
# ---------------------------------------------------------------------------

class OptimizationError(StockfolioError, ValueError):
    """The optimizer rejected its input; no partial result exists."""


class NoStocksError(OptimizationError):
    def __init__(self, message: str = "No stocks provided for optimization"):
        super().__init__(message)


class InvalidBudgetError(OptimizationError):
    def __init__(self, message: str = "Budget must be greater than 0"):
        super().__init__(message)


class InvalidRiskLevelError(OptimizationError):
    def __init__(self, value=None):
        super().__init__(
            f"Invalid risk level {value!r}. Choose from 'low', 'medium', 'high'."
        )


class NoAffordableStocksError(OptimizationError):
    def __init__(self):
        super().__init__(
            "No affordable stocks with valid data for the given budget. "
            "Please ensure stocks have valid price, expected return, "
            "and volatility values."
        )


# ---------------------------------------------------------------------------
# Record lookup errors
# ---------------------------------------------------------------------------

class StockNotFoundError(StockfolioError, LookupError):
    def __init__(self, symbol: str):
        super().__init__(f"Stock {symbol!r} not found")
        self.symbol = symbol


class PortfolioNotFoundError(StockfolioError, LookupError):
    def __init__(self, portfolio_id: str):
        super().__init__(f"Portfolio {portfolio_id!r} not found")
        self.portfolio_id = portfolio_id


class PortfolioAccessError(StockfolioError):
    def __init__(self, portfolio_id: str):
        super().__init__(
            f"Not authorized to access portfolio {portfolio_id!r}"
        )
        self.portfolio_id = portfolio_id
