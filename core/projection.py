"""
Resource Projection Calculator

A small planning aid that sits beside the meter tool: given a current
stock, a daily income and a bonus percentage, project when a target
amount is reached.

The daily gain is the income plus the bonus:

    daily_with_bonus = daily_income × (1 + bonus_percentage / 100)

Only the deterministic projection lives here. Advisory text is left to
whatever consumes the summary.
"""

import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from .metering import round_half_up


@dataclass
class ResourceConfig:
    """
    Projection inputs.

    Attributes:
        current_amount: Stock on hand today
        daily_income: Gain per day before bonus
        target_amount: Amount to reach
        bonus_percentage: Bonus on the daily income (0-100)
    """
    current_amount: float = 12000
    daily_income: float = 450
    target_amount: float = 24000
    bonus_percentage: float = 10

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current_amount": self.current_amount,
            "daily_income": self.daily_income,
            "target_amount": self.target_amount,
            "bonus_percentage": self.bonus_percentage,
        }


@dataclass(frozen=True)
class ProjectionPoint:
    """One day of the projected series."""
    date: date
    amount: int
    is_peak: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "amount": self.amount,
            "is_peak": self.is_peak,
        }


class ProjectionCalculator:
    """
    Projects a resource balance forward day by day.

    Example:
        calc = ProjectionCalculator(ResourceConfig())
        print(calc.days_to_target())      # 25
        print(calc.completion_percent())  # 50
    """

    DEFAULT_DAYS = 60

    def __init__(self, config: Optional[ResourceConfig] = None):
        """
        Initialize the calculator.

        Raises:
            ValueError: If amounts or income are negative, or the bonus
                        is outside 0-100
        """
        self.config = config or ResourceConfig()

        for name in ("current_amount", "daily_income", "target_amount"):
            value = getattr(self.config, name)
            if value < 0:
                raise ValueError(f"{name} cannot be negative, got {value}")

        if not 0 <= self.config.bonus_percentage <= 100:
            raise ValueError(
                f"bonus_percentage must be 0-100, got {self.config.bonus_percentage}"
            )

    @property
    def daily_with_bonus(self) -> float:
        return self.config.daily_income * (1 + self.config.bonus_percentage / 100)

    def simulate(self, days: int = DEFAULT_DAYS, start: Optional[date] = None) -> List[ProjectionPoint]:
        """
        Project the balance for a number of days.

        Args:
            days: Number of daily points, starting with today
            start: First date of the series. If None, uses today.

        Returns:
            One ProjectionPoint per day; amounts are floored
        """
        start = start or date.today()
        current = self.config.current_amount
        gain = self.daily_with_bonus
        points = []

        for i in range(days):
            points.append(ProjectionPoint(
                date=start + timedelta(days=i),
                amount=math.floor(current),
                is_peak=current >= self.config.target_amount,
            ))
            current += gain

        return points

    def days_to_target(self) -> Optional[int]:
        """
        Whole days until the target is reached.

        Returns:
            0 if already reached, None if there is no daily gain to get there
        """
        needed = self.config.target_amount - self.config.current_amount
        if needed <= 0:
            return 0

        gain = self.daily_with_bonus
        if gain <= 0:
            return None

        return math.ceil(needed / gain)

    def completion_percent(self) -> int:
        """Current amount as a whole percentage of the target."""
        if self.config.target_amount <= 0:
            return 100
        return round_half_up(self.config.current_amount / self.config.target_amount * 100)

    def summary(self, days: int = DEFAULT_DAYS, start: Optional[date] = None) -> Dict[str, Any]:
        """Projection figures and series for JSON serialization."""
        return {
            "config": self.config.to_dict(),
            "daily_with_bonus": self.daily_with_bonus,
            "days_to_target": self.days_to_target(),
            "completion_percent": self.completion_percent(),
            "series": [p.to_dict() for p in self.simulate(days, start)],
        }
