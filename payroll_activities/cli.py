from __future__ import annotations

import argparse
from datetime import date
from pathlib import Path

from .core.config import get_settings
from .core.logging import configure_logging
from .core.monitoring import configure_error_monitoring
from .csv_io import export_activities
from .errors import LeavePolicyError
from .leave import choose_leave_type, leave_balance_for, possible_leave_types, resolve_leave_eligibility
from .orchestrator import BatchRecalculator, BatchResult
from .overtime import default_hours_for, overtime_threshold_for
from .reference import ReferenceDataCache
from .storage import JsonStore, load_batch
from .views import format_activities, format_totals

DEFAULT_DATA_PATH = get_settings().data_path


def store_from_args(args: argparse.Namespace) -> JsonStore:
    return JsonStore(Path(args.data) if args.data else DEFAULT_DATA_PATH)


def parse_date(value: str) -> date:
    return date.fromisoformat(value)


def recalculate(args: argparse.Namespace) -> BatchResult:
    settings = get_settings()
    store = store_from_args(args)
    batch = load_batch(Path(args.batch), store)
    reference = ReferenceDataCache(store, ttl_seconds=settings.reference_cache_ttl_seconds)
    recalculator = BatchRecalculator(reference, store, leave_default_hours=settings.leave_default_hours)
    return recalculator.recalculate(batch)


def cmd_recalc(args: argparse.Namespace) -> None:
    result = recalculate(args)
    print(f"Work log {result.log_date.isoformat()} ({result.day_type.value})")
    for key, activities in result.activities.items():
        print(format_activities(f"{key.employee_id} / {key.job_id}", activities, args.show_unselected))
    for employee_id, activities in result.leave_activities.items():
        print(format_activities(f"{employee_id} / leave", activities, args.show_unselected))
    for key, message in result.errors.items():
        print(f"Failed {key}: {message}")
    print(format_totals(result.totals_by_employee(), result.total))


def cmd_export(args: argparse.Namespace) -> None:
    result = recalculate(args)
    path = Path(args.path)
    rows = export_activities(path, result.activities, result.leave_activities)
    print(f"Exported {rows} activities to {path}")


def cmd_leave(args: argparse.Namespace) -> None:
    store = store_from_args(args)
    log_date = parse_date(args.date)
    day_type = ReferenceDataCache(store, ttl_seconds=0).day_type_for(log_date)
    balance = leave_balance_for(store, args.employee, log_date)
    for leave_type in possible_leave_types(day_type):
        availability = resolve_leave_eligibility(balance, leave_type)
        status = "available" if availability.available else availability.message
        print(f"{leave_type.value:<14} remaining {availability.remaining:g}  {status}")
    try:
        choice = choose_leave_type(args.employee, balance, day_type)
    except LeavePolicyError as exc:
        print(f"Rejected: {exc.reason}")
        return
    print(choice.notice)


def cmd_day_type(args: argparse.Namespace) -> None:
    store = store_from_args(args)
    log_date = parse_date(args.date)
    reference = ReferenceDataCache(store, ttl_seconds=0)
    day_type = reference.day_type_for(log_date)
    line = f"{log_date.isoformat()} {day_type.value}"
    description = reference.holiday_description(log_date)
    if description:
        line += f" ({description})"
    print(line)
    print(f"Default hours: {default_hours_for(log_date):g}  Overtime after: {overtime_threshold_for(log_date):g}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Payroll activity pricing CLI")
    parser.add_argument("--data", help="JSON store with pay codes, holidays, leave balances and sales")
    sub = parser.add_subparsers(dest="command", required=True)

    recalc = sub.add_parser("recalc", help="Recompute and show the activities of a work log")
    recalc.add_argument("batch", help="Work log batch file (JSON)")
    recalc.add_argument("--show-unselected", action="store_true")
    recalc.set_defaults(func=cmd_recalc)

    export = sub.add_parser("export", help="Recompute a work log and export selected activities to CSV")
    export.add_argument("batch")
    export.add_argument("path")
    export.set_defaults(func=cmd_export)

    leave = sub.add_parser("leave", help="Show leave eligibility for an employee on a date")
    leave.add_argument("employee")
    leave.add_argument("date")
    leave.set_defaults(func=cmd_leave)

    day_type = sub.add_parser("day-type", help="Show the day type and hours rules for a date")
    day_type.add_argument("date")
    day_type.set_defaults(func=cmd_day_type)

    return parser


def main(argv: list[str] | None = None) -> None:
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)
    configure_error_monitoring(settings)
    parser = build_parser()
    args = parser.parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()
