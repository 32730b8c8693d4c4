from enum import Enum


class RiskLevel(Enum):
    """Investor risk tolerance levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Algorithm(Enum):
    """Allocation strategy used by the optimizer."""
    GREEDY = "greedy"
    KNAPSACK = "knapsack"


class PortfolioStatus(Enum):
    """Lifecycle state of a saved portfolio."""
    ACTIVE = "active"
    ARCHIVED = "archived"
