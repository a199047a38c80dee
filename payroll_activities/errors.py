from __future__ import annotations


class PayrollActivityError(Exception):
    """Base class for errors raised by the activity engine."""


class LeavePolicyError(PayrollActivityError):
    """A leave selection was rejected because no usable balance remains."""

    def __init__(self, employee_id: str, reason: str, leave_type: str | None = None) -> None:
        super().__init__(reason)
        self.employee_id = employee_id
        self.leave_type = leave_type
        self.reason = reason


class SelectionConflictError(PayrollActivityError):
    """A work/leave selection change would leave an employee in two states at once."""


class ReferenceDataError(PayrollActivityError):
    """The reference data provider failed to return jobs, pay codes or holidays."""
