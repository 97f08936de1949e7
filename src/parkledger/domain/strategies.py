# File: src/parkledger/domain/strategies.py
"""
Pricing Strategies for the Parking Billing Calculator

A pricing strategy maps a stay (entry/exit timestamps) and a zone rate to a
duration and a fee. Strategies are pure: no store access, no clock access.

Standard rule (HourlyPricingStrategy):
- duration_minutes = ceil(seconds / 60), so any started minute counts
- billed_hours = max(1, ceil(duration_minutes / 60))
- fee = billed_hours * hourly_rate
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Union
import logging
import math

from .models import Money, TimeRange, to_decimal


@dataclass(frozen=True)
class FeeQuote:
    """Result of pricing one stay"""
    duration_minutes: int
    billed_hours: int
    fee: Money


# ============================================================================
# STRATEGY INTERFACE
# ============================================================================

class PricingStrategy(ABC):
    """
    Abstract base class for pricing strategies
    Defines the interface for fee calculation algorithms
    """

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def quote(self, entry_time: datetime, exit_time: datetime, rate: Money) -> FeeQuote:
        """
        Price a stay
        Raises: InvalidInterval if exit_time does not come after entry_time
        """
        pass

    def billed_hours(self, duration_minutes: int) -> int:
        """Billable hours for a stay of this length, used when no quote is at hand"""
        return max(1, math.ceil(duration_minutes / 60))

    def get_strategy_name(self) -> str:
        return self.__class__.__name__.replace("Strategy", "")

    def __str__(self) -> str:
        return f"{self.get_strategy_name()} Strategy"


# ============================================================================
# PRICING STRATEGIES
# ============================================================================

class HourlyPricingStrategy(PricingStrategy):
    """
    Whole-hour billing with a one hour minimum
    """

    @staticmethod
    def duration_minutes(time_range: TimeRange) -> int:
        # TimeRange guarantees a positive interval, so this is at least 1
        return max(1, math.ceil(time_range.duration_seconds / 60))

    def quote(self, entry_time: datetime, exit_time: datetime, rate: Money) -> FeeQuote:
        time_range = TimeRange(entry_time, exit_time)
        minutes = self.duration_minutes(time_range)
        hours = self.billed_hours(minutes)
        fee = rate * Decimal(hours)

        self.logger.debug(
            f"Priced {minutes} min as {hours} h at {rate.format()}/h = {fee.format()}"
        )
        return FeeQuote(duration_minutes=minutes, billed_hours=hours, fee=fee)


_default_strategy = HourlyPricingStrategy()


def compute_fee(
    entry_time: datetime,
    exit_time: datetime,
    hourly_rate: Union[Decimal, int, float, str],
    currency: str = "USD"
) -> FeeQuote:
    """Price a stay with the standard hourly rule"""
    rate = Money(to_decimal(hourly_rate, "Hourly rate"), currency)
    return _default_strategy.quote(entry_time, exit_time, rate)
