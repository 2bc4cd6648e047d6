"""
Typed exceptions for PayDesk services.

The payroll engine and the business-day counter raise nothing of their own;
these are raised by the configuration loader and the persistence services
around them. Every class carries a machine-readable ``code``.
"""
from typing import List, Optional


class PayDeskError(Exception):
    """Base exception for all PayDesk errors."""

    code: str = "PAYDESK_ERROR"


class StatutoryConfigError(PayDeskError, ValueError):
    """Tax bands or statutory settings failed validation."""

    code: str = "STATUTORY_CONFIG_INVALID"

    def __init__(self, problems: List[str]):
        self.problems = list(problems)
        super().__init__("Invalid statutory configuration: " + "; ".join(self.problems))


class PayrollRunError(PayDeskError):
    """Base exception for payroll run persistence errors."""

    code: str = "PAYROLL_RUN_ERROR"


class PayrollRunFinalizedError(PayrollRunError):
    """Attempted to overwrite a finalized payroll run."""

    code: str = "PAYROLL_RUN_FINALIZED"

    def __init__(self, month: int, year: int):
        self.month = month
        self.year = year
        super().__init__(f"Payroll run {year}-{month:02d} is finalized and cannot be changed")


class PayrollRunNotFoundError(PayrollRunError):
    code: str = "PAYROLL_RUN_NOT_FOUND"

    def __init__(self, month: int, year: int, status: Optional[str] = None):
        self.month = month
        self.year = year
        self.status = status
        qualifier = f"{status} " if status else ""
        super().__init__(f"No {qualifier}payroll run found for {year}-{month:02d}")


class LeaveRequestError(PayDeskError):
    """A leave request could not be created or reviewed."""

    code: str = "LEAVE_REQUEST_ERROR"


class InsufficientLeaveBalanceError(LeaveRequestError):
    code: str = "INSUFFICIENT_LEAVE_BALANCE"

    def __init__(self, employee_id: str, requested: float, available: float):
        self.employee_id = employee_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Approving {requested:g} day(s) for {employee_id} would leave a negative "
            f"balance (available: {available:g})"
        )
