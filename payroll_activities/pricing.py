from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Optional

from .core.logging import get_logger
from .models import LOCATION_ALLOWANCE_PAY_CODES, QUANTITY_RATE_UNITS, Activity, LocationType, PayType, RateUnit
from .money import ZERO, Number, is_zero, multiply, percentage_of, to_decimal, total
from .overtime import total_overtime_hours

logger = get_logger(__name__)


def _context_units(context: Optional[Mapping[str, Any]], field_name: str) -> float:
    if not context or context.get(field_name) is None:
        logger.debug("context_field_missing", field=field_name)
        return 0
    value = to_decimal(context[field_name])
    return float(value)


def _off_location_allowance(pay_code_id: str, location_type: Optional[LocationType | str]) -> bool:
    if location_type is None:
        return False
    current = LocationType(location_type)
    return any(
        code == pay_code_id and location is not current
        for location, code in LOCATION_ALLOWANCE_PAY_CODES.items()
    )


def price_activity(
    activity: Activity,
    hours: Number,
    context: Optional[Mapping[str, Any]] = None,
    location_type: Optional[LocationType | str] = None,
    forced_overtime_hours: Number = 0,
    *,
    log_date: Optional[date] = None,
    context_field: Optional[str] = None,
) -> Decimal:
    """Amount earned by one activity.

    Unselected activities earn nothing. Hour codes are paid on worked hours,
    except Overtime codes which are paid on ``hours_applied`` when it is set
    and on the hours past the day's threshold (plus any forced overtime)
    otherwise. Day, Bag and Trip codes need units; Percent treats the units
    as the base amount; Fixed pays the rate as is. Anything else is 0.
    """
    if not activity.is_selected:
        return ZERO
    if _off_location_allowance(activity.pay_code_id, location_type):
        return ZERO

    units: Number = activity.units_produced
    if activity.is_context_linked and context_field is not None:
        units = _context_units(context, context_field)

    unit = activity.rate_unit
    if unit == RateUnit.HOUR.value:
        if activity.pay_type == PayType.OVERTIME.value:
            if activity.hours_applied is not None:
                return multiply(activity.rate, activity.hours_applied)
            return multiply(activity.rate, total_overtime_hours(hours, log_date, forced_overtime_hours))
        return multiply(activity.rate, hours)
    if unit in QUANTITY_RATE_UNITS:
        if units is None:
            return ZERO
        return multiply(activity.rate, units)
    if unit == RateUnit.PERCENT.value:
        if units is None:
            return ZERO
        return percentage_of(units, activity.rate)
    if unit == RateUnit.FIXED.value:
        return multiply(activity.rate, 1)

    logger.debug("unknown_rate_unit", pay_code=activity.pay_code_id, rate_unit=unit)
    return ZERO


def price_activities(
    activities: Iterable[Activity],
    hours: Number,
    context: Optional[Mapping[str, Any]] = None,
    location_type: Optional[LocationType | str] = None,
    log_date: Optional[date] = None,
    forced_overtime_hours: Number = 0,
    context_links: Optional[Mapping[str, str]] = None,
) -> List[Activity]:
    """Price a list of activities and return new copies.

    ``context_links`` maps a pay code id to the context field that drives its
    units; those units always come from the context, replacing whatever was
    entered by hand.
    """
    links = context_links or {}
    priced: List[Activity] = []
    for original in activities:
        activity = original.copy()
        field_name = links.get(activity.pay_code_id)
        if field_name is not None:
            activity.is_context_linked = True
            activity.units_produced = _context_units(context, field_name)

        amount = price_activity(
            activity,
            hours,
            context,
            location_type,
            forced_overtime_hours,
            log_date=log_date,
        )
        activity.calculated_amount = amount

        # Only rows already off are settled here: a selection made by the user
        # or replayed from a snapshot survives a zero amount.
        if (
            is_zero(amount)
            and not activity.is_context_linked
            and not activity.is_selected
            and activity.rate_unit not in QUANTITY_RATE_UNITS
        ):
            activity.is_selected = False
        priced.append(activity)
    return priced


def total_amount(activities: Iterable[Activity]) -> Decimal:
    return total(activity.calculated_amount for activity in activities if activity.is_selected)
