from __future__ import annotations

import json
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import ReferenceDataError
from .models import (
    Activity,
    ActivitySource,
    BagCounts,
    DayType,
    EntryMode,
    Holiday,
    LeaveBalance,
    LeaveType,
    LocationType,
    PayCode,
    ProductSale,
    RoleLink,
    SavedActivitySnapshot,
    WorkEntryKey,
    WorkRole,
)
from .orchestrator import LeaveEntryState, WorkEntryState, WorkLogBatch
from .selection import CLEANING_PAY_CODE, EntryInputs


class PayCodeRecord(BaseModel):
    id: str
    description: str = ""
    pay_type: str = "Base"
    rate_unit: str = "Hour"
    rate_biasa: Decimal = Decimal("0")
    rate_ahad: Decimal = Decimal("0")
    rate_umum: Decimal = Decimal("0")
    override_rate_biasa: Optional[Decimal] = None
    override_rate_ahad: Optional[Decimal] = None
    override_rate_umum: Optional[Decimal] = None
    requires_units_input: bool = False
    is_default_setting: bool = False

    def to_domain(self) -> PayCode:
        return PayCode(**self.model_dump())


class HolidayRecord(BaseModel):
    holiday_date: date
    description: str = ""
    is_active: bool = True


class LeaveBalanceRecord(BaseModel):
    employee_id: str
    year: int
    annual_total: float = 0
    annual_taken: float = 0
    sick_total: float = 0
    sick_taken: float = 0
    public_holiday_total: float = 0
    public_holiday_taken: float = 0

    def to_domain(self) -> LeaveBalance:
        return LeaveBalance(**self.model_dump(exclude={"year"}))


class ProductSaleRecord(BaseModel):
    employee_id: str
    log_date: date
    product_id: str
    quantity: float = Field(default=0, ge=0)

    @field_validator("product_id", mode="before")
    @classmethod
    def coerce_product_id(cls, value: Any) -> str:
        return str(value)


class StoreFile(BaseModel):
    jobs: Dict[str, List[PayCodeRecord]] = Field(default_factory=dict)
    employee_pay_codes: Dict[str, List[PayCodeRecord]] = Field(default_factory=dict)
    holidays: List[HolidayRecord] = Field(default_factory=list)
    leave_balances: List[LeaveBalanceRecord] = Field(default_factory=list)
    product_sales: List[ProductSaleRecord] = Field(default_factory=list)


class JsonStore:
    """Reference data, leave balances and product sales kept in one JSON file."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.content = StoreFile()
        if path.exists():
            self.load()

    def load(self) -> None:
        try:
            self.content = StoreFile.model_validate(json.loads(self.path.read_text()))
        except (ValueError, ValidationError) as exc:
            raise ReferenceDataError(f"Invalid store file {self.path}: {exc}") from exc

    def job_pay_codes(self, job_id: str) -> List[PayCode]:
        return [record.to_domain() for record in self.content.jobs.get(job_id, [])]

    def employee_pay_codes(self, employee_id: str) -> List[PayCode]:
        return [record.to_domain() for record in self.content.employee_pay_codes.get(employee_id, [])]

    def holidays(self) -> List[Holiday]:
        return [Holiday(**record.model_dump()) for record in self.content.holidays]

    def leave_balance(self, employee_id: str, year: int) -> Optional[LeaveBalance]:
        for record in self.content.leave_balances:
            if record.employee_id == employee_id and record.year == year:
                return record.to_domain()
        return None

    def product_sales(self, employee_id: str, log_date: date) -> List[ProductSale]:
        return [
            ProductSale(record.product_id, record.quantity)
            for record in self.content.product_sales
            if record.employee_id == employee_id and record.log_date == log_date
        ]

    def pay_code(self, pay_code_id: str) -> Optional[PayCode]:
        """First pay code with this id in any job or employee catalog."""
        for records in list(self.content.jobs.values()) + list(self.content.employee_pay_codes.values()):
            for record in records:
                if record.id == pay_code_id:
                    return record.to_domain()
        return None


class ActivityRecord(BaseModel):
    pay_code_id: str
    description: str = ""
    pay_type: str = "Base"
    rate_unit: str = "Hour"
    rate: Decimal = Decimal("0")
    is_selected: bool = True
    units_produced: Optional[float] = None
    hours_applied: Optional[float] = None
    calculated_amount: Decimal = Decimal("0")
    is_context_linked: bool = False
    source: ActivitySource = ActivitySource.JOB

    def to_domain(self) -> Activity:
        return Activity(**self.model_dump())


class BagCountsRecord(BaseModel):
    muat_mee: int = Field(default=0, ge=0)
    muat_bihun: int = Field(default=0, ge=0)


class WorkEntryRecord(BaseModel):
    employee_id: str
    job_id: str
    role: WorkRole = WorkRole.PRODUCTION
    hours: float = Field(default=0, ge=0)
    forced_overtime_hours: float = Field(default=0, ge=0)
    overtime_hours: float = Field(default=0, ge=0)
    tray_count: Optional[int] = None
    cleaning_mode: bool = False
    location_type: Optional[LocationType] = None
    context: Dict[str, Any] = Field(default_factory=dict)
    context_links: Dict[str, str] = Field(default_factory=dict)
    lead_id: Optional[str] = None
    doubled: bool = False
    bag_counts: BagCountsRecord = Field(default_factory=BagCountsRecord)
    product_sales: Optional[Dict[str, float]] = None
    saved_activities: Optional[List[ActivityRecord]] = None


class LeaveEntryRecord(BaseModel):
    employee_id: str
    job_id: str
    leave_type: LeaveType = LeaveType.SICK
    saved_activities: Optional[List[ActivityRecord]] = None


class BatchFile(BaseModel):
    log_date: date
    mode: EntryMode = EntryMode.CREATE
    day_type: Optional[DayType] = None
    entries: List[WorkEntryRecord] = Field(default_factory=list)
    leave: List[LeaveEntryRecord] = Field(default_factory=list)


def _snapshot(records: Optional[List[ActivityRecord]]) -> Optional[SavedActivitySnapshot]:
    if records is None:
        return None
    return SavedActivitySnapshot.capture(record.to_domain() for record in records)


def _work_entry(record: WorkEntryRecord, store: Optional[JsonStore]) -> WorkEntryState:
    cleaning_pay_code = None
    if record.cleaning_mode and store is not None:
        cleaning_pay_code = store.pay_code(CLEANING_PAY_CODE)
    inputs = EntryInputs(
        role=record.role,
        hours=record.hours,
        context=dict(record.context),
        context_links=dict(record.context_links),
        forced_overtime_hours=record.forced_overtime_hours,
        overtime_hours=record.overtime_hours,
        tray_count=record.tray_count,
        cleaning_mode=record.cleaning_mode,
        cleaning_pay_code=cleaning_pay_code,
        location_type=record.location_type,
    )
    role_link = None
    if record.role is WorkRole.FOLLOWER:
        role_link = RoleLink(
            follower_id=record.employee_id,
            lead_id=record.lead_id,
            doubled=record.doubled,
            bag_counts=BagCounts(**record.bag_counts.model_dump()),
        )
    product_sales = None
    if record.product_sales is not None:
        product_sales = [ProductSale(product_id, qty) for product_id, qty in record.product_sales.items()]
    snapshot = _snapshot(record.saved_activities)
    return WorkEntryState(
        key=WorkEntryKey(record.employee_id, record.job_id),
        inputs=inputs,
        activities=snapshot.restore() if snapshot is not None else [],
        snapshot=snapshot,
        product_sales=product_sales,
        role_link=role_link,
    )


def load_batch(path: Path, store: Optional[JsonStore] = None) -> WorkLogBatch:
    """Read a work-log batch file; ``store`` supplies the cleaning-mode pay code."""
    try:
        batch = BatchFile.model_validate(json.loads(path.read_text()))
    except (ValueError, ValidationError) as exc:
        raise ReferenceDataError(f"Invalid batch file {path}: {exc}") from exc

    leave = []
    for record in batch.leave:
        snapshot = _snapshot(record.saved_activities)
        leave.append(
            LeaveEntryState(
                employee_id=record.employee_id,
                job_id=record.job_id,
                leave_type=record.leave_type,
                activities=snapshot.restore() if snapshot is not None else [],
                snapshot=snapshot,
            )
        )
    return WorkLogBatch(
        log_date=batch.log_date,
        mode=batch.mode,
        day_type=batch.day_type,
        entries=[_work_entry(record, store) for record in batch.entries],
        leave=leave,
    )
