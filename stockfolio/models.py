from __future__ import annotations

import math
from dataclasses import dataclass, field, asdict
from typing import List, Optional

from stockfolio.constants import DEFAULT_PORTFOLIO_NAME, UNKNOWN_SECTOR
from stockfolio.enums import Algorithm, PortfolioStatus, RiskLevel


@dataclass(frozen=True)
class Stock:
    """
    A candidate instrument as held in the catalog.

    ``expected_return`` and ``volatility`` are percentages (``12.5`` means
    12.5 %).  Instances are never mutated by the optimizer.
    """
    symbol: str
    name: str
    price: float
    expected_return: float = 0.0
    volatility: float = 0.0
    sector: str = UNKNOWN_SECTOR
    market_cap: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Allocation:
    """One selected stock inside an optimization result or saved portfolio."""
    symbol: str
    name: str
    shares: int
    invested_amount: float
    expected_return: float
    weight: float = 0.0

    def is_finite(self) -> bool:
        """True when every numeric field is a finite number."""
        return all(
            math.isfinite(v)
            for v in (self.shares, self.invested_amount,
                      self.expected_return, self.weight)
        )

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Allocation":
        return cls(
            symbol=data["symbol"],
            name=data.get("name", data["symbol"]),
            shares=int(data["shares"]),
            invested_amount=float(data["invested_amount"]),
            expected_return=float(data["expected_return"]),
            weight=float(data.get("weight", 0.0)),
        )


@dataclass
class OptimizationResult:
    """
    Output of :meth:`OptimizerEngine.optimize`.

    ``allocations`` keep selection order.  ``algorithm`` is the strategy that
    actually ran, which is greedy whenever knapsack was requested for a
    budget above the knapsack limit.
    """
    allocations: List[Allocation]
    total_expected_return: float
    total_risk: float
    diversification_score: float
    used_budget: float
    remaining_budget: float
    algorithm: Algorithm = Algorithm.GREEDY

    def to_dict(self) -> dict:
        return {
            "allocations":           [a.to_dict() for a in self.allocations],
            "total_expected_return": self.total_expected_return,
            "total_risk":            self.total_risk,
            "diversification_score": self.diversification_score,
            "used_budget":           self.used_budget,
            "remaining_budget":      self.remaining_budget,
            "algorithm":             self.algorithm.value,
        }


@dataclass
class Portfolio:
    """A saved optimization result attributed to a user."""
    user: str
    total_budget: float
    risk_level: RiskLevel
    allocations: List[Allocation] = field(default_factory=list)
    total_expected_return: float = 0.0
    total_risk: float = 0.0
    diversification_score: float = 0.0
    name: str = DEFAULT_PORTFOLIO_NAME
    status: PortfolioStatus = PortfolioStatus.ACTIVE
    id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_result(
        cls,
        user: str,
        total_budget: float,
        risk_level: RiskLevel,
        result: OptimizationResult,
        name: Optional[str] = None,
    ) -> "Portfolio":
        return cls(
            user=user,
            name=name or DEFAULT_PORTFOLIO_NAME,
            total_budget=total_budget,
            risk_level=risk_level,
            allocations=list(result.allocations),
            total_expected_return=result.total_expected_return,
            total_risk=result.total_risk,
            diversification_score=result.diversification_score,
        )

    def to_dict(self) -> dict:
        return {
            "id":                    self.id,
            "user":                  self.user,
            "name":                  self.name,
            "total_budget":          self.total_budget,
            "risk_level":            self.risk_level.value,
            "allocations":           [a.to_dict() for a in self.allocations],
            "total_expected_return": self.total_expected_return,
            "total_risk":            self.total_risk,
            "diversification_score": self.diversification_score,
            "status":                self.status.value,
            "created_at":            self.created_at,
            "updated_at":            self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Portfolio":
        return cls(
            id=data.get("id"),
            user=data["user"],
            name=data.get("name", DEFAULT_PORTFOLIO_NAME),
            total_budget=float(data["total_budget"]),
            risk_level=RiskLevel(data["risk_level"]),
            allocations=[Allocation.from_dict(a) for a in data.get("allocations", [])],
            total_expected_return=float(data.get("total_expected_return", 0.0)),
            total_risk=float(data.get("total_risk", 0.0)),
            diversification_score=float(data.get("diversification_score", 0.0)),
            status=PortfolioStatus(data.get("status", PortfolioStatus.ACTIVE.value)),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )
