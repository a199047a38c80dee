from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from .money import Number, to_decimal

SATURDAY = 5  # date.weekday()


@dataclass(frozen=True)
class OvertimeRule:
    """Daily overtime threshold by day of week.

    The threshold is deliberately not the default full-day figure: a weekday
    defaults to 7 hours but overtime only starts after 8.
    """

    weekday_threshold: float = 8.0
    saturday_threshold: float = 5.0
    weekday_default_hours: float = 7.0
    saturday_default_hours: float = 5.0

    def default_hours(self, worked_date: Optional[date]) -> float:
        if worked_date is not None and worked_date.weekday() == SATURDAY:
            return self.saturday_default_hours
        return self.weekday_default_hours

    def threshold(self, worked_date: Optional[date]) -> float:
        if worked_date is not None and worked_date.weekday() == SATURDAY:
            return self.saturday_threshold
        return self.weekday_threshold

    def natural_hours(self, worked_hours: Number, worked_date: Optional[date] = None) -> Decimal:
        excess = to_decimal(worked_hours) - to_decimal(self.threshold(worked_date))
        return max(Decimal(0), excess)

    def total_hours(
        self,
        worked_hours: Number,
        worked_date: Optional[date] = None,
        forced_hours: Number = 0,
    ) -> Decimal:
        forced = max(Decimal(0), to_decimal(forced_hours))
        return self.natural_hours(worked_hours, worked_date) + forced


DEFAULT_RULE = OvertimeRule()


def default_hours_for(worked_date: Optional[date]) -> float:
    return DEFAULT_RULE.default_hours(worked_date)


def overtime_threshold_for(worked_date: Optional[date]) -> float:
    return DEFAULT_RULE.threshold(worked_date)


def natural_overtime_hours(worked_hours: Number, worked_date: Optional[date] = None) -> Decimal:
    return DEFAULT_RULE.natural_hours(worked_hours, worked_date)


def total_overtime_hours(
    worked_hours: Number,
    worked_date: Optional[date] = None,
    forced_hours: Number = 0,
) -> Decimal:
    return DEFAULT_RULE.total_hours(worked_hours, worked_date, forced_hours)


def rebase_default_hours(hours: float, old_date: Optional[date], new_date: Optional[date]) -> float:
    """Move hours to the new date's default, unless the user typed their own figure."""
    old_default = default_hours_for(old_date)
    if hours == old_default:
        return default_hours_for(new_date)
    return hours
