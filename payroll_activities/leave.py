from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional, Set

from .catalog import merge_pay_codes
from .core.logging import get_logger
from .errors import LeavePolicyError, SelectionConflictError
from .models import (
    Activity,
    DayType,
    EntryMode,
    LeaveBalance,
    LeaveType,
    PayCode,
    PayType,
    SavedActivitySnapshot,
    WorkEntryKey,
)
from .pricing import price_activities
from .rates import resolve_rate
from .reference import LeaveBalanceProvider

logger = get_logger(__name__)

BALANCE_NOT_LOADED = "Leave balance not loaded"
NO_LEAVE_AVAILABLE = "No leave types available for this employee (all balances exhausted)"


@dataclass(frozen=True)
class LeaveAvailability:
    leave_type: LeaveType
    available: bool
    remaining: float
    total_allowed: float
    taken: float = 0
    message: str = ""


@dataclass(frozen=True)
class LeaveChoice:
    """The leave type picked for an employee and whether it was the day's default."""

    leave_type: LeaveType
    default_type: LeaveType
    availability: LeaveAvailability

    @property
    def used_fallback(self) -> bool:
        return self.leave_type is not self.default_type

    @property
    def notice(self) -> str:
        text = f"{self.leave_type.label} selected - {self.availability.remaining:g} days remaining"
        if self.used_fallback:
            text += f"; {self.default_type.label} is exhausted, using {self.leave_type.label} instead"
        return text


def resolve_leave_eligibility(balance: Optional[LeaveBalance], leave_type: LeaveType | str) -> LeaveAvailability:
    leave_type = LeaveType(leave_type)
    if balance is None:
        return LeaveAvailability(leave_type, False, 0, 0, message=BALANCE_NOT_LOADED)

    total_allowed, taken = balance.figures_for(leave_type)
    remaining = total_allowed - taken
    available = remaining > 0
    message = ""
    if not available:
        message = f"{leave_type.label} balance exhausted ({taken:g}/{total_allowed:g} days used)"
    return LeaveAvailability(leave_type, available, remaining, total_allowed, taken, message)


def leave_balance_for(balances: LeaveBalanceProvider, employee_id: str, log_date: date) -> Optional[LeaveBalance]:
    """The employee's balance for the year of ``log_date``, if one is on record."""
    return balances.leave_balance(employee_id, log_date.year)


def default_leave_type(day_type: DayType | str) -> LeaveType:
    if DayType(day_type) is DayType.UMUM:
        return LeaveType.PUBLIC_HOLIDAY
    return LeaveType.SICK


def possible_leave_types(day_type: DayType | str) -> List[LeaveType]:
    """Leave types in preference order; public-holiday leave only on a holiday."""
    types = [LeaveType.SICK, LeaveType.ANNUAL]
    if DayType(day_type) is DayType.UMUM:
        types.append(LeaveType.PUBLIC_HOLIDAY)
    return types


def choose_leave_type(employee_id: str, balance: Optional[LeaveBalance], day_type: DayType | str) -> LeaveChoice:
    """Pick the day's default leave type, or the first one that still has balance.

    Raises LeavePolicyError when no leave type has any balance left.
    """
    default = default_leave_type(day_type)
    available = [
        availability
        for availability in (resolve_leave_eligibility(balance, t) for t in possible_leave_types(day_type))
        if availability.available
    ]
    if not available:
        reason = BALANCE_NOT_LOADED if balance is None else NO_LEAVE_AVAILABLE
        raise LeavePolicyError(employee_id, reason, default.value)

    for availability in available:
        if availability.leave_type is default:
            return LeaveChoice(default, default, availability)
    return LeaveChoice(available[0].leave_type, default, available[0])


class WorkLogSelection:
    """Who works which jobs and who is on leave, for one log date.

    An employee is either working or on leave, never both: every method that
    changes one side clears the other for that employee in the same call.
    """

    def __init__(self, day_type: DayType | str = DayType.BIASA) -> None:
        self.day_type = DayType(day_type)
        self._work: Dict[str, Set[str]] = {}
        self._leave: Dict[str, LeaveType] = {}

    def select_work(self, employee_id: str, job_id: str) -> None:
        if self._leave.pop(employee_id, None) is not None:
            logger.info("leave_cleared_for_work", employee_id=employee_id, job_id=job_id)
        self._work.setdefault(employee_id, set()).add(job_id)

    def deselect_work(self, employee_id: str, job_id: str) -> None:
        jobs = self._work.get(employee_id)
        if not jobs:
            return
        jobs.discard(job_id)
        if not jobs:
            del self._work[employee_id]

    def select_for_leave(self, employee_id: str, balance: Optional[LeaveBalance]) -> LeaveChoice:
        choice = choose_leave_type(employee_id, balance, self.day_type)
        self._work.pop(employee_id, None)
        self._leave[employee_id] = choice.leave_type
        logger.info(
            "leave_selected",
            employee_id=employee_id,
            leave_type=choice.leave_type.value,
            fallback=choice.used_fallback,
            remaining=choice.availability.remaining,
        )
        return choice

    def release_leave(self, employee_id: str) -> None:
        self._leave.pop(employee_id, None)

    def change_leave_type(
        self,
        employee_id: str,
        leave_type: LeaveType | str,
        balance: Optional[LeaveBalance],
    ) -> LeaveAvailability:
        if employee_id not in self._leave:
            raise SelectionConflictError(f"Employee {employee_id} is not on leave")
        leave_type = LeaveType(leave_type)
        if leave_type is LeaveType.PUBLIC_HOLIDAY and self.day_type is not DayType.UMUM:
            raise LeavePolicyError(
                employee_id,
                "Public Holiday Leave is only available on a public holiday",
                leave_type.value,
            )
        availability = resolve_leave_eligibility(balance, leave_type)
        if not availability.available:
            raise LeavePolicyError(employee_id, availability.message, leave_type.value)
        self._leave[employee_id] = leave_type
        return availability

    def apply_day_type(self, day_type: DayType | str) -> List[str]:
        """Switch the log's day type; returns employees moved off public-holiday leave."""
        self.day_type = DayType(day_type)
        reverted: List[str] = []
        if self.day_type is DayType.UMUM:
            return reverted
        for employee_id, leave_type in self._leave.items():
            if leave_type is LeaveType.PUBLIC_HOLIDAY:
                self._leave[employee_id] = LeaveType.SICK
                reverted.append(employee_id)
        return reverted

    def is_working(self, employee_id: str) -> bool:
        return bool(self._work.get(employee_id))

    def is_on_leave(self, employee_id: str) -> bool:
        return employee_id in self._leave

    def leave_type_of(self, employee_id: str) -> Optional[LeaveType]:
        return self._leave.get(employee_id)

    def work_entries(self) -> List[WorkEntryKey]:
        return [
            WorkEntryKey(employee_id, job_id)
            for employee_id in sorted(self._work)
            for job_id in sorted(self._work[employee_id])
        ]

    @property
    def leave(self) -> Dict[str, LeaveType]:
        return dict(self._leave)


def build_leave_activities(
    job_pay_codes: Iterable[PayCode],
    employee_pay_codes: Iterable[PayCode] = (),
    *,
    hours: float = 8,
    mode: EntryMode = EntryMode.CREATE,
    snapshot: Optional[SavedActivitySnapshot] = None,
    log_date: Optional[date] = None,
) -> List[Activity]:
    """Activities paying one day of leave from the employee's primary job.

    Leave always pays the Biasa rate. New leave selects the default Base
    codes; saved leave (edit mode) selects exactly what was saved.
    """
    catalog = merge_pay_codes(job_pay_codes, employee_pay_codes)
    replay = EntryMode(mode) is EntryMode.EDIT and snapshot is not None

    activities: List[Activity] = []
    for pay_code in catalog.values():
        saved = snapshot.get(pay_code.id) if replay else None
        if replay:
            selected = saved is not None and saved.is_selected
        else:
            selected = pay_code.is_default_setting and pay_code.pay_type == PayType.BASE.value

        units = saved.units_produced if saved is not None else None
        if units is None and pay_code.requires_units_input:
            units = 0
        activities.append(
            Activity(
                pay_code_id=pay_code.id,
                description=pay_code.description,
                pay_type=pay_code.pay_type,
                rate_unit=pay_code.rate_unit,
                rate=resolve_rate(pay_code, DayType.BIASA),
                is_selected=selected,
                units_produced=units,
                source=pay_code.source,
                is_default=pay_code.is_default_setting,
            )
        )
    return price_activities(activities, hours, log_date=log_date)
