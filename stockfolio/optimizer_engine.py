"""
stockfolio/optimizer_engine.py
------------------------------
Pure allocation engine: candidate stocks + budget + risk level → share counts.

Design contract:
  - No I/O, no persistence, no catalog access
  - Inputs are never mutated; every call builds fresh result objects
  - Fully deterministic (stable sort, fixed iteration order)
  - All methods are @staticmethod
"""

from __future__ import annotations

import logging
import math
import numbers
from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from stockfolio.config import (
    HOLDING_POINTS,
    HOLDING_POINTS_CAP,
    KNAPSACK_MAX_BUDGET,
    KNAPSACK_MAX_BUNDLE_SHARES,
    KNAPSACK_SCALE_FACTOR,
    KNAPSACK_SCALE_THRESHOLD,
    MAX_HOLDINGS,
    MAX_POSITION_PCT,
    SECTOR_POINTS,
    SECTOR_POINTS_CAP,
)
from stockfolio.constants import RISK_PENALTY
from stockfolio.enums import Algorithm, RiskLevel
from stockfolio.errors import (
    InvalidBudgetError,
    InvalidRiskLevelError,
    NoAffordableStocksError,
    NoStocksError,
)
from stockfolio.models import Allocation, OptimizationResult, Stock

logger = logging.getLogger(__name__)


def is_valid_number(value) -> bool:
    """Real, non-bool, non-NaN."""
    return (
        isinstance(value, numbers.Real)
        and not isinstance(value, bool)
        and not math.isnan(value)
    )


def _nan_to_zero(value: float) -> float:
    return 0.0 if math.isnan(value) else value


class OptimizerEngine:
    """
    Select a subset of stocks and share counts for a budget.

    Two strategies share the same risk-adjusted score:
        ``greedy``   – rank by score, buy top names under a per-stock cap
        ``knapsack`` – 0/1 DP over share bundles on a discretised budget

    Optional overrides for greedy (passed via *config*):
        ``max_position_pct`` – largest fraction of budget in one stock
        ``max_holdings``     – stop after this many selections
    """

    MAX_POSITION_PCT: float = MAX_POSITION_PCT
    MAX_HOLDINGS: int = MAX_HOLDINGS

    # ------------------------------------------------------------------ #
    #  Public entry point
    # ------------------------------------------------------------------ #

    @staticmethod
    def optimize(
        stocks: Sequence[Stock],
        budget: float,
        risk_level: Union[RiskLevel, str],
        algorithm: Union[Algorithm, str] = Algorithm.GREEDY,
        config: Optional[Dict] = None,
    ) -> OptimizationResult:
        """
        Validate the request, filter to affordable stocks and run a strategy.

        Knapsack only runs when requested *and* the budget is at most
        ``KNAPSACK_MAX_BUDGET``; everything else runs greedy.

        Raises
        ------
        NoStocksError
            *stocks* is empty (checked before anything else).
        InvalidBudgetError
            *budget* is not a finite number greater than zero.
        InvalidRiskLevelError
            *risk_level* is not low / medium / high.
        NoAffordableStocksError
            No stock has valid numbers and a price within *budget*.
        ValueError
            *config* overrides a cap with an out-of-range value.
        """
        if not stocks:
            raise NoStocksError()

        if not is_valid_number(budget) or not math.isfinite(budget) or budget <= 0:
            raise InvalidBudgetError()

        risk = OptimizerEngine.parse_risk_level(risk_level)
        OptimizerEngine._limits(config)

        affordable = OptimizerEngine.filter_affordable(stocks, budget)
        if not affordable:
            raise NoAffordableStocksError()

        strategy = OptimizerEngine.parse_algorithm(algorithm)
        if strategy is Algorithm.KNAPSACK and budget <= KNAPSACK_MAX_BUDGET:
            return OptimizerEngine.knapsack(affordable, budget, risk)
        return OptimizerEngine.greedy(affordable, budget, risk, config)

    # ------------------------------------------------------------------ #
    #  Shared helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def parse_risk_level(value: Union[RiskLevel, str]) -> RiskLevel:
        """Accept a :class:`RiskLevel` or its case-insensitive string value."""
        if isinstance(value, RiskLevel):
            return value
        if isinstance(value, str):
            try:
                return RiskLevel(value.strip().lower())
            except ValueError:
                pass
        raise InvalidRiskLevelError(value)

    @staticmethod
    def parse_algorithm(value: Union[Algorithm, str, None]) -> Algorithm:
        """Anything other than knapsack means greedy."""
        if isinstance(value, Algorithm):
            return value
        if isinstance(value, str) and value.strip().lower() == Algorithm.KNAPSACK.value:
            return Algorithm.KNAPSACK
        return Algorithm.GREEDY

    @staticmethod
    def filter_affordable(stocks: Sequence[Stock], budget: float) -> List[Stock]:
        """
        Stocks with usable numbers whose single-share price fits in *budget*.

        Only the first entry per symbol is kept.
        """
        seen = set()
        kept: List[Stock] = []
        for stock in stocks:
            if stock.symbol in seen:
                continue
            seen.add(stock.symbol)
            if (
                is_valid_number(stock.price) and stock.price > 0
                and is_valid_number(stock.expected_return)
                and is_valid_number(stock.volatility) and stock.volatility >= 0
                and stock.price <= budget
            ):
                kept.append(stock)
        return kept

    @staticmethod
    def risk_adjusted_score(
        expected_return: float,
        volatility: float,
        risk_level: Union[RiskLevel, str],
    ) -> float:
        """
        Sharpe-like ranking signal; higher is better.

        ::

            score = expected_return / (1 + volatility * penalty / 100)

        where penalty is 2.0 / 1.0 / 0.5 for low / medium / high risk.
        """
        penalty = RISK_PENALTY[OptimizerEngine.parse_risk_level(risk_level)]
        return expected_return / (1 + volatility * penalty / 100)

    @staticmethod
    def diversification_score(
        allocations: Sequence[Allocation],
        pool: Sequence[Stock],
    ) -> int:
        """
        Reward sector breadth and holding count, 0–100.

        Sectors are looked up in *pool* by symbol; stocks without a sector
        do not count toward breadth.
        """
        if not allocations:
            return 0

        sector_of: Dict[str, str] = {}
        for stock in pool:
            sector_of.setdefault(stock.symbol, stock.sector)

        sectors = set()
        for allocation in allocations:
            sector = sector_of.get(allocation.symbol)
            if sector:
                sectors.add(sector)

        sector_score = min(len(sectors) * SECTOR_POINTS, SECTOR_POINTS_CAP)
        holding_score = min(len(allocations) * HOLDING_POINTS, HOLDING_POINTS_CAP)
        return min(sector_score + holding_score, 100)

    # ------------------------------------------------------------------ #
    #  Greedy
    # ------------------------------------------------------------------ #

    @staticmethod
    def greedy(
        stocks: Sequence[Stock],
        budget: float,
        risk_level: Union[RiskLevel, str],
        config: Optional[Dict] = None,
    ) -> OptimizationResult:
        """
        Walk stocks by descending score, buying as many shares as the
        remaining budget and the per-stock cap allow.

        Weights are percentages of the *nominal* budget, so they sum to less
        than 100 whenever cash is left over.
        """
        max_pct, max_holdings = OptimizerEngine._limits(config)
        risk = OptimizerEngine.parse_risk_level(risk_level)

        # sorted() keeps original order among equal scores, reverse included
        ranked = sorted(
            (
                (stock, OptimizerEngine.risk_adjusted_score(
                    stock.expected_return, stock.volatility, risk))
                for stock in stocks
            ),
            key=lambda pair: pair[1],
            reverse=True,
        )

        logger.info(f"Greedy optimization: {len(ranked)} stocks, budget: {budget:,.2f}")
        logger.info(
            "Top 3 stocks: "
            + ", ".join(f"{s.symbol}({s.price})" for s, _ in ranked[:3])
        )

        selected: List[Allocation] = []
        remaining = budget
        total_return = 0.0
        total_risk = 0.0
        max_position = budget * max_pct

        for stock, _score in ranked:
            if remaining < stock.price:
                continue

            max_shares = math.floor(remaining / stock.price)
            shares = min(max_shares, math.floor(max_position / stock.price))
            if shares <= 0:
                continue

            invested = shares * stock.price
            expected = invested * stock.expected_return / 100

            if math.isnan(invested) or math.isnan(expected):
                logger.warning(f"Skipping stock {stock.symbol} due to invalid calculations")
                continue

            selected.append(Allocation(
                symbol=stock.symbol,
                name=stock.name,
                shares=shares,
                invested_amount=invested,
                expected_return=expected,
            ))
            logger.debug(
                f"Selected: {stock.symbol} - {shares} shares @ {stock.price} = {invested:,.2f}"
            )

            remaining -= invested
            total_return += expected
            total_risk += stock.volatility * (invested / budget)

            if len(selected) >= max_holdings:
                break

        for allocation in selected:
            allocation.weight = allocation.invested_amount / budget * 100

        diversification = OptimizerEngine.diversification_score(selected, stocks)

        return OptimizationResult(
            allocations=selected,
            total_expected_return=_nan_to_zero(total_return),
            total_risk=_nan_to_zero(total_risk),
            diversification_score=_nan_to_zero(diversification),
            used_budget=budget - remaining,
            remaining_budget=remaining,
            algorithm=Algorithm.GREEDY,
        )

    # ------------------------------------------------------------------ #
    #  Knapsack
    # ------------------------------------------------------------------ #

    @staticmethod
    def knapsack(
        stocks: Sequence[Stock],
        budget: float,
        risk_level: Union[RiskLevel, str],
    ) -> OptimizationResult:
        """
        Bounded knapsack via 0/1 DP over share bundles.

        Each stock contributes bundles of 1..10 shares as separate items, so
        a stock can be bought several times (e.g. bundles of 1 and 3 shares);
        bundles are merged per symbol afterwards.  Prices are rounded *up*
        onto the budget grid, so the real cost never exceeds *budget*.

        Weights are percentages of the amount actually invested and sum to
        100 for any non-empty result.
        """
        risk = OptimizerEngine.parse_risk_level(risk_level)

        scale = KNAPSACK_SCALE_FACTOR if budget > KNAPSACK_SCALE_THRESHOLD else 1
        capacity = math.floor(budget / scale)

        items = OptimizerEngine._share_bundles(stocks, capacity, scale, risk)
        logger.info(
            f"Knapsack optimization: {len(stocks)} stocks, {len(items)} bundles, "
            f"capacity: {capacity} x {scale}"
        )
        picked = OptimizerEngine._solve_knapsack(items, capacity)

        merged: Dict[str, Allocation] = {}
        for index in picked:
            item = items[index]
            stock = item["stock"]
            invested = stock.price * item["shares"]
            existing = merged.get(stock.symbol)
            if existing is not None:
                existing.shares += item["shares"]
                existing.invested_amount += invested
                existing.expected_return += item["expected_return"]
            else:
                merged[stock.symbol] = Allocation(
                    symbol=stock.symbol,
                    name=stock.name,
                    shares=item["shares"],
                    invested_amount=invested,
                    expected_return=item["expected_return"],
                )

        allocations = list(merged.values())

        total_return = 0.0
        total_risk = 0.0
        used = 0.0
        by_symbol: Dict[str, Stock] = {}
        for stock in stocks:
            by_symbol.setdefault(stock.symbol, stock)

        for allocation in allocations:
            total_return += allocation.expected_return
            used += allocation.invested_amount
            stock = by_symbol.get(allocation.symbol)
            if stock is not None:
                total_risk += stock.volatility * (allocation.invested_amount / budget)

        for allocation in allocations:
            allocation.weight = allocation.invested_amount / used * 100

        diversification = OptimizerEngine.diversification_score(allocations, stocks)

        return OptimizationResult(
            allocations=allocations,
            total_expected_return=_nan_to_zero(total_return),
            total_risk=_nan_to_zero(total_risk),
            diversification_score=_nan_to_zero(diversification),
            used_budget=used,
            remaining_budget=budget - used,
            algorithm=Algorithm.KNAPSACK,
        )

    # ------------------------------------------------------------------ #
    #  Private helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _limits(config: Optional[Dict]) -> Tuple[float, int]:
        """Greedy caps with per-call overrides; bad overrides raise ValueError."""
        config = config or {}
        max_pct = config.get("max_position_pct", OptimizerEngine.MAX_POSITION_PCT)
        max_holdings = config.get("max_holdings", OptimizerEngine.MAX_HOLDINGS)

        if not is_valid_number(max_pct) or not 0 < max_pct <= 1:
            raise ValueError(
                f"Invalid max_position_pct: {max_pct!r}. "
                "Must be greater than 0 and at most 1."
            )
        if (
            not isinstance(max_holdings, numbers.Integral)
            or isinstance(max_holdings, bool)
            or max_holdings < 1
        ):
            raise ValueError(
                f"Invalid max_holdings: {max_holdings!r}. Must be an integer of at least 1."
            )
        return max_pct, int(max_holdings)

    @staticmethod
    def _share_bundles(
        stocks: Sequence[Stock],
        capacity: int,
        scale: int,
        risk: RiskLevel,
    ) -> List[Dict]:
        """One knapsack item per (stock, share count) pair, in input order."""
        items: List[Dict] = []
        for stock in stocks:
            score = OptimizerEngine.risk_adjusted_score(
                stock.expected_return, stock.volatility, risk
            )
            unit_cost = math.ceil(stock.price / scale)
            max_shares = min(KNAPSACK_MAX_BUNDLE_SHARES, capacity // unit_cost)

            for shares in range(1, max_shares + 1):
                items.append({
                    "stock":           stock,
                    "shares":          shares,
                    "weight":          unit_cost * shares,
                    "value":           score * shares,
                    "expected_return": stock.expected_return * stock.price * shares / 100,
                })
        return items

    @staticmethod
    def _solve_knapsack(items: List[Dict], capacity: int) -> List[int]:
        """
        Classic 0/1 knapsack maximising total ``value``.

        ``best[i, w]`` is the best value using the first *i* items within
        capacity *w*; ``choice[i, w]`` holds the index of the item taken to
        reach it, or -1 when row *i* simply inherits row *i - 1*.

        Returns the chosen item indices in backtracking order (last item
        first).
        """
        n = len(items)
        best = np.zeros((n + 1, capacity + 1), dtype=np.float64)
        choice = np.full((n + 1, capacity + 1), -1, dtype=np.int64)

        for i in range(1, n + 1):
            item = items[i - 1]
            weight = item["weight"]
            prev = best[i - 1]
            best[i] = prev

            if weight > capacity:
                continue

            include = prev[: capacity + 1 - weight] + item["value"]
            exclude = prev[weight:]
            take = include > exclude

            best[i, weight:] = np.where(take, include, exclude)
            choice[i, weight:] = np.where(take, i - 1, -1)

        picked: List[int] = []
        row, room = n, capacity
        while row > 0 and room > 0:
            source = int(choice[row, room])
            if source >= 0:
                picked.append(source)
                room -= items[source]["weight"]
                row = source
            else:
                row -= 1
        return picked
