from datetime import date
from decimal import Decimal

from payroll_activities.overtime import (
    OvertimeRule,
    default_hours_for,
    natural_overtime_hours,
    overtime_threshold_for,
    rebase_default_hours,
    total_overtime_hours,
)

SATURDAY = date(2024, 6, 1)
MONDAY = date(2024, 6, 3)


def test_default_hours_and_threshold_differ_on_weekdays():
    assert default_hours_for(MONDAY) == 7
    assert default_hours_for(SATURDAY) == 5
    assert default_hours_for(None) == 7
    assert overtime_threshold_for(MONDAY) == 8
    assert overtime_threshold_for(SATURDAY) == 5


def test_natural_and_forced_overtime():
    assert natural_overtime_hours(9, MONDAY) == Decimal("1")
    assert natural_overtime_hours(9, SATURDAY) == Decimal("4")
    assert natural_overtime_hours(6, MONDAY) == 0
    assert total_overtime_hours(9, MONDAY, forced_hours=2) == Decimal("3")
    assert total_overtime_hours(7, MONDAY, forced_hours=-1) == 0


def test_custom_rule():
    rule = OvertimeRule(weekday_threshold=9)
    assert rule.natural_hours(10, MONDAY) == Decimal("1")


def test_rebase_only_moves_untouched_default_hours():
    assert rebase_default_hours(7, MONDAY, SATURDAY) == 5
    assert rebase_default_hours(9, MONDAY, SATURDAY) == 9
