from __future__ import annotations

from dataclasses import replace
from typing import Dict, Iterable

from .models import BILL_RATE_UNIT, ActivitySource, PayCode, RateUnit

PayCodeCatalog = Dict[str, PayCode]

NON_HOURLY_DROPPED_UNITS = frozenset({RateUnit.HOUR.value, BILL_RATE_UNIT})


def merge_pay_codes(
    job_pay_codes: Iterable[PayCode],
    employee_pay_codes: Iterable[PayCode],
    *,
    hour_based: bool = True,
) -> PayCodeCatalog:
    """Merge a job's pay codes with an employee's own, keyed by pay code id.

    Job entries go in first; employee entries overwrite them by id. For roles
    that are never paid by the hour the Hour (and Bill) codes of the employee
    layer are left out before merging.
    """
    merged: PayCodeCatalog = {}
    for pay_code in job_pay_codes:
        merged[pay_code.id] = replace(pay_code, source=ActivitySource.JOB)
    for pay_code in employee_pay_codes:
        if not hour_based and pay_code.rate_unit in NON_HOURLY_DROPPED_UNITS:
            continue
        merged[pay_code.id] = replace(pay_code, source=ActivitySource.EMPLOYEE)
    return merged
