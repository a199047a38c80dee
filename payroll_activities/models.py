from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Iterable, List, NamedTuple, Optional, Tuple

from .money import ZERO


class PayType(str, Enum):
    BASE = "Base"
    OVERTIME = "Overtime"
    TAMBAHAN = "Tambahan"  # allowance-like extra, never auto-selected


class RateUnit(str, Enum):
    HOUR = "Hour"
    DAY = "Day"
    BAG = "Bag"
    TRIP = "Trip"
    PERCENT = "Percent"
    FIXED = "Fixed"


# Legacy per-bill unit: treated like Hour for salesman roles, priced as unknown
BILL_RATE_UNIT = "Bill"

# Zero on these units usually means "quantity not entered yet"
QUANTITY_RATE_UNITS = frozenset({RateUnit.DAY.value, RateUnit.BAG.value, RateUnit.TRIP.value})


class DayType(str, Enum):
    BIASA = "Biasa"
    AHAD = "Ahad"
    UMUM = "Umum"


class ActivitySource(str, Enum):
    JOB = "job"
    EMPLOYEE = "employee"
    CLEANING_MODE = "cleaning_mode"


class EntryMode(str, Enum):
    CREATE = "create"
    EDIT = "edit"


class WorkRole(str, Enum):
    PRODUCTION = "production"
    MONTHLY = "monthly"
    SALESMAN = "salesman"
    FOLLOWER = "follower"

    @property
    def hour_based(self) -> bool:
        return self in (WorkRole.PRODUCTION, WorkRole.MONTHLY)


class LocationType(str, Enum):
    LOCAL = "Local"
    OUTSTATION = "Outstation"


LOCATION_ALLOWANCE_PAY_CODES = {
    LocationType.LOCAL: "ELAUN_MT",
    LocationType.OUTSTATION: "ELAUN_MO",
}


class LeaveType(str, Enum):
    SICK = "cuti_sakit"
    ANNUAL = "cuti_tahunan"
    PUBLIC_HOLIDAY = "cuti_umum"

    @property
    def label(self) -> str:
        return {
            LeaveType.SICK: "Sick Leave",
            LeaveType.ANNUAL: "Annual Leave",
            LeaveType.PUBLIC_HOLIDAY: "Public Holiday Leave",
        }[self]


@dataclass(frozen=True)
class PayCode:
    id: str
    description: str
    pay_type: str
    rate_unit: str
    rate_biasa: Decimal = ZERO
    rate_ahad: Decimal = ZERO
    rate_umum: Decimal = ZERO
    override_rate_biasa: Optional[Decimal] = None
    override_rate_ahad: Optional[Decimal] = None
    override_rate_umum: Optional[Decimal] = None
    requires_units_input: bool = False
    is_default_setting: bool = False
    source: ActivitySource = ActivitySource.JOB


@dataclass
class Activity:
    pay_code_id: str
    description: str
    pay_type: str
    rate_unit: str
    rate: Decimal = ZERO
    is_selected: bool = False
    units_produced: Optional[float] = None
    hours_applied: Optional[float] = None
    calculated_amount: Decimal = ZERO
    is_context_linked: bool = False
    source: ActivitySource = ActivitySource.JOB
    is_default: bool = False

    def copy(self) -> "Activity":
        return replace(self)


class WorkEntryKey(NamedTuple):
    """One row of work: an employee doing one job on the log date."""

    employee_id: str
    job_id: str

    def __str__(self) -> str:
        return f"{self.employee_id}/{self.job_id}"


@dataclass(frozen=True)
class SavedActivitySnapshot:
    """Activities exactly as last persisted for a work entry.

    Only selected activities are ever persisted, so absence of a pay code
    here means the user had it off (or it did not exist at save time).
    The snapshot hands out copies and is never mutated by recalculation.
    """

    activities: Tuple[Activity, ...] = ()

    @classmethod
    def capture(cls, activities: Iterable[Activity]) -> "SavedActivitySnapshot":
        return cls(tuple(activity.copy() for activity in activities if activity.is_selected))

    def get(self, pay_code_id: str) -> Optional[Activity]:
        for activity in self.activities:
            if activity.pay_code_id == pay_code_id:
                return activity.copy()
        return None

    def restore(self) -> List[Activity]:
        """Fresh copies of the saved activities, safe to edit."""
        return [activity.copy() for activity in self.activities]

    def __contains__(self, pay_code_id: object) -> bool:
        return any(activity.pay_code_id == pay_code_id for activity in self.activities)

    def __len__(self) -> int:
        return len(self.activities)


@dataclass(frozen=True)
class Holiday:
    holiday_date: date
    description: str
    is_active: bool = True


@dataclass
class LeaveBalance:
    employee_id: str
    annual_total: float = 0
    annual_taken: float = 0
    sick_total: float = 0
    sick_taken: float = 0
    public_holiday_total: float = 0
    public_holiday_taken: float = 0

    def figures_for(self, leave_type: LeaveType) -> Tuple[float, float]:
        """Return (total allowed, taken) for one leave category."""
        if leave_type is LeaveType.ANNUAL:
            return self.annual_total or 0, self.annual_taken or 0
        if leave_type is LeaveType.SICK:
            return self.sick_total or 0, self.sick_taken or 0
        return self.public_holiday_total or 0, self.public_holiday_taken or 0


@dataclass(frozen=True)
class ProductSale:
    product_id: str
    quantity: float


@dataclass(frozen=True)
class BagCounts:
    """Manually entered loading bags, stored as the base (undoubled) count."""

    muat_mee: int = 0
    muat_bihun: int = 0


@dataclass(frozen=True)
class RoleLink:
    """A follower riding with a lead salesman on the log date."""

    follower_id: str
    lead_id: Optional[str] = None
    doubled: bool = False
    bag_counts: BagCounts = field(default_factory=BagCounts)
