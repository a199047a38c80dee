from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional

from .models import DayType, PayCode
from .money import Number, is_zero, round_money

SUNDAY = 6  # date.weekday()


def _pick(override: Optional[Number], base: Number) -> Decimal:
    # An override of zero counts as "not set" and falls back to the base rate
    if override is not None and not is_zero(override):
        return round_money(override)
    return round_money(base)


def resolve_rate(pay_code: PayCode, day_type: DayType | str) -> Decimal:
    day_type = DayType(day_type)
    if day_type is DayType.UMUM:
        return _pick(pay_code.override_rate_umum, pay_code.rate_umum)
    if day_type is DayType.AHAD:
        return _pick(pay_code.override_rate_ahad, pay_code.rate_ahad)
    return _pick(pay_code.override_rate_biasa, pay_code.rate_biasa)


def determine_day_type(log_date: date, is_holiday: bool) -> DayType:
    """Umum for an active registered holiday, otherwise Ahad on Sunday, else Biasa."""
    if is_holiday:
        return DayType.UMUM
    if log_date.weekday() == SUNDAY:
        return DayType.AHAD
    return DayType.BIASA
