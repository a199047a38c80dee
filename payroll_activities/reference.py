"""Reference data consumed by the engine, and a read-through cache over it."""

from __future__ import annotations

import time
from datetime import date
from typing import Any, Callable, Dict, Hashable, List, Optional, Protocol, Tuple

from .core.logging import get_logger
from .errors import ReferenceDataError
from .models import DayType, Holiday, LeaveBalance, PayCode, ProductSale
from .rates import determine_day_type

logger = get_logger(__name__)


class ReferenceDataProvider(Protocol):
    """Source of pay-code catalogs and the holiday calendar."""

    def job_pay_codes(self, job_id: str) -> List[PayCode]:
        ...

    def employee_pay_codes(self, employee_id: str) -> List[PayCode]:
        ...

    def holidays(self) -> List[Holiday]:
        ...


class LeaveBalanceProvider(Protocol):
    def leave_balance(self, employee_id: str, year: int) -> Optional[LeaveBalance]:
        ...


class ProductSalesProvider(Protocol):
    def product_sales(self, employee_id: str, log_date: date) -> List[ProductSale]:
        ...


class ReferenceDataCache:
    """Read-through cache in front of a ReferenceDataProvider.

    Each value is kept for ``ttl_seconds`` after it was loaded and then
    fetched again on next use; so a catalog or holiday edited at the source
    can stay invisible for up to that long unless ``invalidate()`` or
    ``refresh()`` is called. A ``ttl_seconds`` of 0 disables caching.
    Provider failures surface as ReferenceDataError.
    """

    def __init__(
        self,
        provider: ReferenceDataProvider,
        ttl_seconds: float = 24 * 60 * 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.provider = provider
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[float, Any]] = {}

    def _cached(self, key: Hashable, loader: Callable[[], Any]) -> Any:
        now = self._clock()
        entry = self._entries.get(key)
        if entry is not None and now - entry[0] < self.ttl_seconds:
            return entry[1]
        try:
            value = loader()
        except ReferenceDataError:
            raise
        except Exception as exc:
            logger.error("reference_data_load_failed", key=str(key), error=str(exc))
            raise ReferenceDataError(f"Failed to load reference data for {key}") from exc
        self._entries[key] = (now, value)
        return value

    def invalidate(self) -> None:
        self._entries.clear()

    def refresh(self) -> None:
        """Drop everything and reload the holiday calendar straight away."""
        self.invalidate()
        self._holiday_index()
        logger.info("reference_data_refreshed")

    def job_pay_codes(self, job_id: str) -> List[PayCode]:
        return list(self._cached(("job", job_id), lambda: self.provider.job_pay_codes(job_id)))

    def employee_pay_codes(self, employee_id: str) -> List[PayCode]:
        return list(self._cached(("employee", employee_id), lambda: self.provider.employee_pay_codes(employee_id)))

    def _holiday_index(self) -> Dict[date, Holiday]:
        def load() -> Dict[date, Holiday]:
            return {
                holiday.holiday_date: holiday
                for holiday in self.provider.holidays()
                if holiday.is_active
            }

        return self._cached("holidays", load)

    def holidays(self) -> List[Holiday]:
        return sorted(self._holiday_index().values(), key=lambda h: h.holiday_date)

    def is_holiday(self, log_date: date) -> bool:
        return log_date in self._holiday_index()

    def holiday_description(self, log_date: date) -> Optional[str]:
        holiday = self._holiday_index().get(log_date)
        return holiday.description if holiday is not None else None

    def day_type_for(self, log_date: date) -> DayType:
        return determine_day_type(log_date, self.is_holiday(log_date))
