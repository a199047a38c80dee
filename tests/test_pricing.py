from datetime import date
from decimal import Decimal

import pytest

from payroll_activities.models import Activity, LocationType
from payroll_activities.pricing import price_activities, price_activity, total_amount

MONDAY = date(2024, 6, 3)
SATURDAY = date(2024, 6, 1)


def make(unit, rate, pay_type="Base", selected=True, units=None, hours_applied=None, code="X"):
    return Activity(
        pay_code_id=code,
        description=code,
        pay_type=pay_type,
        rate_unit=unit,
        rate=Decimal(rate),
        is_selected=selected,
        units_produced=units,
        hours_applied=hours_applied,
    )


@pytest.mark.parametrize("unit", ["Hour", "Day", "Bag", "Trip", "Percent", "Fixed", "Bill"])
def test_unselected_activity_earns_nothing(unit):
    activity = make(unit, "12.00", selected=False, units=5)
    assert price_activity(activity, 9) == Decimal("0.00")


def test_natural_overtime_uses_day_threshold():
    overtime = make("Hour", "5.00", pay_type="Overtime")
    assert price_activity(overtime, 9, log_date=MONDAY) == Decimal("5.00")
    assert price_activity(overtime, 9, log_date=SATURDAY) == Decimal("20.00")
    assert price_activity(overtime, 7, log_date=MONDAY) == Decimal("0.00")


def test_explicit_and_forced_overtime_hours():
    assert price_activity(make("Hour", "5.00", pay_type="Overtime", hours_applied=3), 0) == Decimal("15.00")
    forced = make("Hour", "5.00", pay_type="Overtime")
    assert price_activity(forced, 8, forced_overtime_hours=2, log_date=MONDAY) == Decimal("10.00")


def test_hourly_base_pay_ignores_threshold():
    assert price_activity(make("Hour", "10.01"), 7) == Decimal("70.07")
    assert price_activity(make("Hour", "10.00"), 9, log_date=SATURDAY) == Decimal("90.00")


def test_fixed_rate_ignores_hours_and_units():
    fixed = make("Fixed", "50.00", units=3)
    assert price_activity(fixed, 0) == Decimal("50.00")
    assert price_activity(fixed, 100) == Decimal("50.00")


def test_quantity_and_percent_units():
    assert price_activity(make("Trip", "2.50", units=None), 0) == Decimal("0.00")
    assert price_activity(make("Trip", "2.50", units=3), 0) == Decimal("7.50")
    assert price_activity(make("Percent", "10", units=200), 0) == Decimal("20.00")
    assert price_activity(make("Percent", "10", units=None), 0) == Decimal("0.00")


def test_unknown_rate_unit_prices_at_zero():
    assert price_activity(make("Bill", "9.00", units=4), 8) == Decimal("0.00")
    assert price_activity(make("Litre", "9.00", units=4), 8) == Decimal("0.00")


def test_allowance_for_the_other_location_prices_at_zero():
    outstation = make("Fixed", "20.00", code="ELAUN_MO")
    assert price_activity(outstation, 0, location_type=LocationType.LOCAL) == Decimal("0.00")
    assert price_activity(outstation, 0, location_type="Outstation") == Decimal("20.00")
    assert price_activity(outstation, 0) == Decimal("20.00")


def test_unselected_trip_without_units_stays_unselected():
    trip = make("Trip", "4.00", selected=False, units=None)

    [priced] = price_activities([trip], 8)

    assert priced.is_selected is False
    assert priced.calculated_amount == Decimal("0.00")


def test_context_linked_units_come_from_context():
    bags = make("Bag", "1.50", units=99, code="CTX")

    [priced] = price_activities([bags], 0, {"bags": 4}, context_links={"CTX": "bags"})
    [missing] = price_activities([bags], 0, {}, context_links={"CTX": "bags"})

    assert priced.is_context_linked
    assert priced.units_produced == 4
    assert priced.calculated_amount == Decimal("6.00")
    assert missing.units_produced == 0
    assert missing.calculated_amount == Decimal("0.00")


def test_price_activities_returns_copies():
    original = make("Hour", "10.00")

    [priced] = price_activities([original], 8)

    assert priced.calculated_amount == Decimal("80.00")
    assert original.calculated_amount == Decimal("0.00")
    assert priced is not original


def test_total_amount_counts_selected_only():
    selected = make("Fixed", "10.10")
    selected.calculated_amount = Decimal("10.10")
    unselected = make("Fixed", "5.00", selected=False)
    unselected.calculated_amount = Decimal("5.00")

    assert total_amount([selected, unselected, selected]) == Decimal("20.20")


def test_selected_zero_amount_activity_stays_selected():
    zero_rate = make("Hour", "0.00")
    off = make("Fixed", "0.00", selected=False)

    kept, settled = price_activities([zero_rate, off], 8)

    assert kept.is_selected
    assert kept.calculated_amount == Decimal("0.00")
    assert not settled.is_selected


def test_very_large_rates_do_not_raise():
    assert price_activity(make("Fixed", "1e27"), 0) == Decimal("1e27")
