from __future__ import annotations

import csv
from pathlib import Path
from typing import Dict, List

from .models import Activity, WorkEntryKey
from .money import format_money

CSV_HEADERS = [
    "employee_id",
    "job_id",
    "pay_code_id",
    "description",
    "pay_type",
    "rate_unit",
    "rate",
    "units_produced",
    "hours_applied",
    "calculated_amount",
    "source",
]

LEAVE_JOB_ID = "LEAVE"


def _format_quantity(value) -> str:
    return "" if value is None else f"{value:g}"


def export_activities(
    path: Path,
    activities: Dict[WorkEntryKey, List[Activity]],
    leave_activities: Dict[str, List[Activity]] | None = None,
) -> int:
    """Write selected activities, one row each; returns the number of rows."""
    rows = [(key, activity) for key, acts in activities.items() for activity in acts]
    for employee_id, acts in (leave_activities or {}).items():
        rows.extend((WorkEntryKey(employee_id, LEAVE_JOB_ID), activity) for activity in acts)

    written = 0
    with path.open("w", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=CSV_HEADERS)
        writer.writeheader()
        for key, activity in sorted(rows, key=lambda row: (row[0].employee_id, row[0].job_id)):
            if not activity.is_selected:
                continue
            writer.writerow(
                {
                    "employee_id": key.employee_id,
                    "job_id": key.job_id,
                    "pay_code_id": activity.pay_code_id,
                    "description": activity.description,
                    "pay_type": activity.pay_type,
                    "rate_unit": activity.rate_unit,
                    "rate": format_money(activity.rate),
                    "units_produced": _format_quantity(activity.units_produced),
                    "hours_applied": _format_quantity(activity.hours_applied),
                    "calculated_amount": format_money(activity.calculated_amount),
                    "source": activity.source.value,
                }
            )
            written += 1
    return written
