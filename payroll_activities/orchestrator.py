"""Recompute every entry of one work log in dependency order.

Leads go first so that followers always see the lead's final activities;
production and monthly rows have no dependencies. Each entry is rebuilt in
isolation: a failure is logged, reported and recorded, and the entry keeps
its previous activities while the rest of the batch completes.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

import sentry_sdk
import structlog

from .cascade import apply_lead_product_sales, propagate_follower_from_lead
from .core.logging import get_logger
from .leave import build_leave_activities
from .models import (
    Activity,
    DayType,
    EntryMode,
    LeaveType,
    LocationType,
    ProductSale,
    RoleLink,
    SavedActivitySnapshot,
    WorkEntryKey,
    WorkRole,
)
from .money import total
from .pricing import total_amount
from .reference import ProductSalesProvider, ReferenceDataCache
from .selection import EntryInputs, rebuild_activities_for_entry

logger = get_logger(__name__)

_ROLE_ORDER = {
    WorkRole.SALESMAN: 0,
    WorkRole.PRODUCTION: 1,
    WorkRole.MONTHLY: 1,
    WorkRole.FOLLOWER: 2,
}


@dataclass
class WorkEntryState:
    key: WorkEntryKey
    inputs: EntryInputs = field(default_factory=EntryInputs)
    activities: List[Activity] = field(default_factory=list)
    snapshot: Optional[SavedActivitySnapshot] = None
    # leads: sales for the log date; None asks the sales provider
    product_sales: Optional[List[ProductSale]] = None
    # followers only
    role_link: Optional[RoleLink] = None


@dataclass
class LeaveEntryState:
    employee_id: str
    job_id: str
    leave_type: LeaveType = LeaveType.SICK
    activities: List[Activity] = field(default_factory=list)
    snapshot: Optional[SavedActivitySnapshot] = None


@dataclass
class WorkLogBatch:
    log_date: date
    mode: EntryMode = EntryMode.CREATE
    entries: List[WorkEntryState] = field(default_factory=list)
    leave: List[LeaveEntryState] = field(default_factory=list)
    # None derives it from the holiday calendar
    day_type: Optional[DayType] = None


@dataclass
class BatchResult:
    log_date: date
    day_type: DayType
    activities: Dict[WorkEntryKey, List[Activity]] = field(default_factory=dict)
    leave_activities: Dict[str, List[Activity]] = field(default_factory=dict)
    errors: Dict[WorkEntryKey, str] = field(default_factory=dict)
    skipped: List[WorkEntryKey] = field(default_factory=list)

    @property
    def total(self) -> Decimal:
        work = [total_amount(acts) for acts in self.activities.values()]
        leave = [total_amount(acts) for acts in self.leave_activities.values()]
        return total(work + leave)

    def totals_by_employee(self) -> Dict[str, Decimal]:
        amounts: Dict[str, List[Decimal]] = {}
        for key, activities in self.activities.items():
            amounts.setdefault(key.employee_id, []).append(total_amount(activities))
        for employee_id, activities in self.leave_activities.items():
            amounts.setdefault(employee_id, []).append(total_amount(activities))
        return {employee_id: total(values) for employee_id, values in sorted(amounts.items())}


@dataclass
class _LeadState:
    activities: List[Activity]
    product_sales: List[ProductSale]
    location_type: Optional[LocationType]


class BatchRecalculator:
    def __init__(
        self,
        reference: ReferenceDataCache,
        product_sales: Optional[ProductSalesProvider] = None,
        leave_default_hours: float = 8,
    ) -> None:
        self.reference = reference
        self.product_sales = product_sales
        self.leave_default_hours = leave_default_hours

    def recalculate(self, batch: WorkLogBatch) -> BatchResult:
        day_type = batch.day_type or self.reference.day_type_for(batch.log_date)
        result = BatchResult(log_date=batch.log_date, day_type=DayType(day_type))
        on_leave = {leave.employee_id for leave in batch.leave}
        leads: Dict[str, _LeadState] = {}

        with structlog.contextvars.bound_contextvars(log_date=batch.log_date.isoformat()):
            for entry in sorted(batch.entries, key=lambda e: _ROLE_ORDER[WorkRole(e.inputs.role)]):
                if entry.key.employee_id in on_leave:
                    logger.warning("work_entry_for_employee_on_leave", entry=str(entry.key))
                    result.skipped.append(entry.key)
                    continue
                try:
                    result.activities[entry.key] = self._rebuild(entry, batch, result.day_type, leads)
                except Exception as exc:
                    self._record_failure(result, entry.key, exc)
                    result.activities[entry.key] = [a.copy() for a in entry.activities]

            for leave in batch.leave:
                key = WorkEntryKey(leave.employee_id, leave.job_id)
                try:
                    result.leave_activities[leave.employee_id] = self._rebuild_leave(leave, batch)
                except Exception as exc:
                    self._record_failure(result, key, exc)
                    result.leave_activities[leave.employee_id] = [a.copy() for a in leave.activities]

            logger.info(
                "batch_recalculated",
                day_type=result.day_type.value,
                entries=len(result.activities),
                leave=len(result.leave_activities),
                failed=len(result.errors),
                total=str(result.total),
            )
        return result

    def _record_failure(self, result: BatchResult, key: WorkEntryKey, exc: Exception) -> None:
        logger.exception("work_entry_failed", entry=str(key))
        sentry_sdk.capture_exception(exc)
        result.errors[key] = str(exc)

    def _rebuild(
        self,
        entry: WorkEntryState,
        batch: WorkLogBatch,
        day_type: DayType,
        leads: Dict[str, _LeadState],
    ) -> List[Activity]:
        key = entry.key
        inputs = replace(entry.inputs, day_type=day_type, log_date=batch.log_date, mode=batch.mode)
        activities = rebuild_activities_for_entry(
            self.reference.job_pay_codes(key.job_id),
            self.reference.employee_pay_codes(key.employee_id),
            inputs,
            snapshot=entry.snapshot,
            existing=entry.activities,
        )

        role = WorkRole(inputs.role)
        if role is WorkRole.SALESMAN:
            sales = self._sales_for(entry, batch.log_date)
            activities = apply_lead_product_sales(activities, sales, inputs.location_type)
            leads[key.employee_id] = _LeadState(activities, sales, inputs.location_type)
        elif role is WorkRole.FOLLOWER:
            activities = self._follow(entry, activities, leads)
        return activities

    def _sales_for(self, entry: WorkEntryState, log_date: date) -> List[ProductSale]:
        if entry.product_sales is not None:
            return list(entry.product_sales)
        if self.product_sales is None:
            return []
        return list(self.product_sales.product_sales(entry.key.employee_id, log_date))

    def _follow(
        self,
        entry: WorkEntryState,
        activities: List[Activity],
        leads: Dict[str, _LeadState],
    ) -> List[Activity]:
        link = entry.role_link or RoleLink(follower_id=entry.key.employee_id)
        lead = leads.get(link.lead_id) if link.lead_id else None
        if link.lead_id and lead is None:
            logger.warning("follower_lead_missing", entry=str(entry.key), lead_id=link.lead_id)
        return propagate_follower_from_lead(
            lead.activities if lead is not None else None,
            lead.product_sales if lead is not None else None,
            activities,
            link.doubled,
            location_type=lead.location_type if lead is not None else None,
            bag_counts=link.bag_counts,
            lead_selected=lead is not None,
        )

    def _rebuild_leave(self, leave: LeaveEntryState, batch: WorkLogBatch) -> List[Activity]:
        return build_leave_activities(
            self.reference.job_pay_codes(leave.job_id),
            self.reference.employee_pay_codes(leave.employee_id),
            hours=self.leave_default_hours,
            mode=batch.mode,
            snapshot=leave.snapshot,
            log_date=batch.log_date,
        )

