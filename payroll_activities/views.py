from __future__ import annotations

from decimal import Decimal
from typing import Dict, Iterable

from .models import Activity
from .money import format_money
from .pricing import total_amount


def _quantity(activity: Activity) -> str:
    if activity.hours_applied is not None:
        return f"{activity.hours_applied:g}h"
    if activity.units_produced is None:
        return "-"
    return f"{activity.units_produced:g}"


def format_activities(title: str, activities: Iterable[Activity], show_unselected: bool = False) -> str:
    activities = list(activities)
    rows = [title, "Sel  Pay code          Unit     Rate      Qty       Amount"]
    for activity in activities:
        if not activity.is_selected and not show_unselected:
            continue
        mark = "[x]" if activity.is_selected else "[ ]"
        rows.append(
            f"{mark}  {activity.pay_code_id:<16}  {activity.rate_unit:<7}  {format_money(activity.rate):>7}  "
            f"{_quantity(activity):>7}  {format_money(activity.calculated_amount):>10}"
        )
    rows.append(f"Total: {format_money(total_amount(activities))}")
    return "\n".join(rows)


def format_totals(totals: Dict[str, Decimal], grand_total: Decimal) -> str:
    rows = ["Employee totals"]
    for employee_id, amount in totals.items():
        rows.append(f"{employee_id:<16}  {format_money(amount):>10}")
    rows.append(f"Grand total: {format_money(grand_total)}")
    return "\n".join(rows)
