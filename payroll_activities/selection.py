"""Rebuild the activity list of one work entry.

A rebuild happens whenever anything feeding an entry changes: its catalog,
hours, day type or context. The result is always derived from scratch from
the merged catalog, the saved snapshot (edit mode) and the live activities,
so running it twice with the same inputs gives the same list.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .catalog import NON_HOURLY_DROPPED_UNITS, PayCodeCatalog, merge_pay_codes
from .models import (
    LOCATION_ALLOWANCE_PAY_CODES,
    QUANTITY_RATE_UNITS,
    Activity,
    ActivitySource,
    DayType,
    EntryMode,
    LocationType,
    PayCode,
    PayType,
    RateUnit,
    SavedActivitySnapshot,
    WorkRole,
)
from .money import to_decimal
from .overtime import total_overtime_hours
from .pricing import price_activities
from .rates import resolve_rate

TRAY_LINKED_PAY_CODE = "BHANGKUT"
CLEANING_PAY_CODE = "HARI_AHAD_JAM"


@dataclass
class EntryInputs:
    """Everything about a work entry other than its pay codes."""

    mode: EntryMode = EntryMode.CREATE
    day_type: DayType = DayType.BIASA
    role: WorkRole = WorkRole.PRODUCTION
    hours: float = 0
    log_date: Optional[date] = None
    context: Dict[str, Any] = field(default_factory=dict)
    # pay code id -> context field supplying its units
    context_links: Dict[str, str] = field(default_factory=dict)
    forced_overtime_hours: float = 0
    # monthly rows state their overtime directly
    overtime_hours: float = 0
    tray_count: Optional[int] = None
    cleaning_mode: bool = False
    cleaning_pay_code: Optional[PayCode] = None
    location_type: Optional[LocationType] = None

    @property
    def effective_hours(self) -> float:
        return self.hours if self.role.hour_based else 0

    @property
    def rate_day_type(self) -> DayType:
        if self.role is WorkRole.MONTHLY:
            return DayType.BIASA
        return DayType(self.day_type)

    @property
    def cleaning_active(self) -> bool:
        return (
            self.cleaning_mode
            and self.cleaning_pay_code is not None
            and DayType(self.day_type) is DayType.AHAD
        )

    def overtime(self) -> Decimal:
        if not self.role.hour_based:
            return Decimal(0)
        if self.role is WorkRole.MONTHLY:
            return max(Decimal(0), to_decimal(self.overtime_hours))
        return total_overtime_hours(self.hours, self.log_date, self.forced_overtime_hours)


def build_catalog(
    job_pay_codes: Iterable[PayCode],
    employee_pay_codes: Iterable[PayCode],
    inputs: EntryInputs,
) -> PayCodeCatalog:
    if inputs.cleaning_active:
        cleaning = replace(
            inputs.cleaning_pay_code,
            source=ActivitySource.CLEANING_MODE,
            is_default_setting=True,
        )
        return {cleaning.id: cleaning}
    return merge_pay_codes(job_pay_codes, employee_pay_codes, hour_based=inputs.role.hour_based)


def _default_selection(
    pay_code: PayCode,
    inputs: EntryInputs,
    has_overtime: bool,
    context_linked: bool,
    prior: Optional[Activity],
) -> bool:
    role = inputs.role
    if not role.hour_based and prior is not None:
        if prior.units_produced is not None and prior.units_produced > 0:
            return prior.is_selected
        if prior.is_selected and pay_code.rate_unit not in NON_HOURLY_DROPPED_UNITS:
            return True

    if pay_code.pay_type == PayType.TAMBAHAN.value:
        selected = False
    elif pay_code.pay_type == PayType.OVERTIME.value:
        selected = role.hour_based and has_overtime and pay_code.is_default_setting
    else:
        selected = pay_code.is_default_setting

    if context_linked or pay_code.rate_unit in QUANTITY_RATE_UNITS:
        selected = False
    if not role.hour_based and pay_code.rate_unit in NON_HOURLY_DROPPED_UNITS:
        selected = False
    if role is WorkRole.FOLLOWER and pay_code.id in LOCATION_ALLOWANCE_PAY_CODES.values():
        selected = False
    if pay_code.id == TRAY_LINKED_PAY_CODE and inputs.tray_count is not None:
        selected = inputs.tray_count > 0
    return selected


def _initial_units(
    pay_code: PayCode,
    inputs: EntryInputs,
    prior: Optional[Activity],
) -> Optional[float]:
    if pay_code.id == TRAY_LINKED_PAY_CODE and inputs.tray_count is not None:
        return inputs.tray_count
    if prior is not None:
        return prior.units_produced
    if pay_code.requires_units_input:
        return 0
    return None


def rebuild_activities_for_entry(
    job_pay_codes: Iterable[PayCode],
    employee_pay_codes: Iterable[PayCode],
    inputs: EntryInputs,
    snapshot: Optional[SavedActivitySnapshot] = None,
    existing: Optional[Iterable[Activity]] = None,
) -> List[Activity]:
    """Merge, select, resolve units and price the activities of one entry.

    In edit mode with a ``snapshot`` (the entry was saved before) a pay code
    is selected exactly when the snapshot has it, and its units come from
    the snapshot. Otherwise the default rules apply, seeded from the live
    ``existing`` activities. Neither input is modified.
    """
    catalog = build_catalog(job_pay_codes, employee_pay_codes, inputs)
    replay = EntryMode(inputs.mode) is EntryMode.EDIT and snapshot is not None
    live: Mapping[str, Activity] = {a.pay_code_id: a for a in existing or ()}
    overtime = inputs.overtime()
    has_overtime = overtime > 0
    rate_day_type = inputs.rate_day_type
    hours = inputs.effective_hours

    activities: List[Activity] = []
    for pay_code in catalog.values():
        is_overtime = pay_code.pay_type == PayType.OVERTIME.value
        if inputs.role.hour_based and is_overtime and not has_overtime:
            continue

        context_linked = pay_code.id in inputs.context_links
        prior = snapshot.get(pay_code.id) if replay else live.get(pay_code.id)
        if replay:
            selected = pay_code.id in snapshot and prior.is_selected
        else:
            selected = _default_selection(pay_code, inputs, has_overtime, context_linked, prior)
        if pay_code.source is ActivitySource.CLEANING_MODE:
            selected = True

        hours_applied = None
        if inputs.role is WorkRole.MONTHLY and pay_code.rate_unit == RateUnit.HOUR.value:
            hours_applied = float(overtime) if is_overtime else inputs.hours

        activities.append(
            Activity(
                pay_code_id=pay_code.id,
                description=pay_code.description,
                pay_type=pay_code.pay_type,
                rate_unit=pay_code.rate_unit,
                rate=resolve_rate(pay_code, rate_day_type),
                is_selected=selected,
                units_produced=_initial_units(pay_code, inputs, prior),
                hours_applied=hours_applied,
                is_context_linked=context_linked,
                source=pay_code.source,
                is_default=pay_code.is_default_setting,
            )
        )

    return price_activities(
        activities,
        hours,
        inputs.context,
        inputs.location_type,
        inputs.log_date,
        inputs.forced_overtime_hours,
        inputs.context_links,
    )
