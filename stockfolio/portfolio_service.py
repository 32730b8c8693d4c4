"""
stockfolio/portfolio_service.py
-------------------------------
Orchestration between the catalog, the optimizer and the store.

This class is the only place that knows about users and ownership; the
engine stays a pure function of its inputs and the store stays a dumb
record keeper.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Tuple, Union

from stockfolio.constants import TOP_HOLDINGS
from stockfolio.data_loader import StockCatalog
from stockfolio.enums import Algorithm, PortfolioStatus, RiskLevel
from stockfolio.errors import (
    InvalidBudgetError,
    NoStocksError,
    PortfolioAccessError,
    StockNotFoundError,
)
from stockfolio.models import Portfolio
from stockfolio.optimizer_engine import OptimizerEngine, is_valid_number
from stockfolio.portfolio_store import PortfolioStore

logger = logging.getLogger(__name__)


class PortfolioService:
    """
    Build, save and inspect portfolios on behalf of a user.

    Parameters
    ----------
    catalog : StockCatalog
        Instrument source.
    store : PortfolioStore
        Result sink.
    config : dict, optional
        Passed straight to :meth:`OptimizerEngine.optimize`.
    """

    def __init__(
        self,
        catalog: StockCatalog,
        store: PortfolioStore,
        config: Optional[Dict] = None,
    ):
        self.catalog = catalog
        self.store = store
        self.config = config

    # ------------------------------------------------------------------ #
    #  Create
    # ------------------------------------------------------------------ #

    def optimize_and_create(
        self,
        user: str,
        budget: float,
        risk_level: Union[RiskLevel, str],
        symbols: Optional[Iterable[str]] = None,
        algorithm: Union[Algorithm, str] = Algorithm.GREEDY,
        name: Optional[str] = None,
    ) -> Tuple[Portfolio, Dict]:
        """
        Optimize over *symbols* (or the whole catalog) and save the result.

        Returns
        -------
        (Portfolio, dict)
            The stored portfolio and optimization metadata:
            ``used_budget``, ``remaining_budget``, ``algorithm``.
        """
        if not is_valid_number(budget) or budget <= 0:
            raise InvalidBudgetError("Please provide a valid budget")
        risk = OptimizerEngine.parse_risk_level(risk_level)

        # one candidate per instrument, first mention wins
        symbols = list(dict.fromkeys(
            s.strip().upper() for s in symbols or [] if s and s.strip()
        ))
        if symbols:
            stocks = self.catalog.get_stocks(symbols)
        else:
            stocks = self.catalog.all_stocks()

        if not stocks:
            raise NoStocksError("No stocks available for optimization")

        logger.info(
            f"Optimizing portfolio with {len(stocks)} stocks, "
            f"budget: {budget:,.2f}, risk: {risk.value}"
        )
        result = OptimizerEngine.optimize(
            stocks, budget, risk, algorithm=algorithm, config=self.config
        )
        logger.info(
            f"Optimization complete: {len(result.allocations)} stocks selected, "
            f"used: {result.used_budget:,.2f}"
        )

        portfolio = self.store.create(
            Portfolio.from_result(user, budget, risk, result, name=name)
        )
        meta = {
            "used_budget":      result.used_budget,
            "remaining_budget": result.remaining_budget,
            "algorithm":        result.algorithm.value,
        }
        return portfolio, meta

    # ------------------------------------------------------------------ #
    #  Read / update / delete
    # ------------------------------------------------------------------ #

    def list_portfolios(
        self,
        user: str,
        status: Union[PortfolioStatus, str, None] = None,
    ) -> List[Portfolio]:
        if isinstance(status, str):
            status = PortfolioStatus(status.lower())
        return self.store.list_for_user(user, status=status)

    def get_portfolio(self, user: str, portfolio_id: str) -> Portfolio:
        """Fetch a portfolio, refusing records that belong to someone else."""
        portfolio = self.store.get(portfolio_id)
        if portfolio.user != user:
            raise PortfolioAccessError(portfolio_id)
        return portfolio

    def update_portfolio(
        self,
        user: str,
        portfolio_id: str,
        name: Optional[str] = None,
        status: Union[PortfolioStatus, str, None] = None,
    ) -> Portfolio:
        """Only the name and status of a saved portfolio may change."""
        portfolio = self.get_portfolio(user, portfolio_id)
        if name:
            portfolio.name = name.strip()
        if status:
            if isinstance(status, str):
                status = PortfolioStatus(status.lower())
            portfolio.status = status
        return self.store.save(portfolio)

    def delete_portfolio(self, user: str, portfolio_id: str) -> None:
        self.get_portfolio(user, portfolio_id)
        self.store.delete(portfolio_id)

    # ------------------------------------------------------------------ #
    #  Statistics
    # ------------------------------------------------------------------ #

    def portfolio_stats(self, user: str, portfolio_id: str) -> Dict:
        """
        Summary figures for one saved portfolio.

        ``sector_distribution`` maps sector → summed weight (percent) using
        the *current* catalog; holdings whose symbol has since left the
        catalog are left out of it.
        """
        portfolio = self.get_portfolio(user, portfolio_id)

        sector_distribution: Dict[str, float] = {}
        for allocation in portfolio.allocations:
            try:
                sector = self.catalog.get_stock(allocation.symbol).sector
            except StockNotFoundError:
                continue
            if sector:
                sector_distribution[sector] = (
                    sector_distribution.get(sector, 0.0) + allocation.weight
                )

        top = sorted(portfolio.allocations, key=lambda a: a.weight, reverse=True)

        return {
            "total_stocks":            len(portfolio.allocations),
            "total_invested":          sum(a.invested_amount for a in portfolio.allocations),
            "average_expected_return": portfolio.total_expected_return,
            "risk_score":              portfolio.total_risk,
            "diversification_score":   portfolio.diversification_score,
            "sector_distribution":     sector_distribution,
            "top_holdings": [
                {
                    "symbol":          a.symbol,
                    "name":            a.name,
                    "weight":          a.weight,
                    "invested_amount": a.invested_amount,
                }
                for a in top[:TOP_HOLDINGS]
            ],
        }
