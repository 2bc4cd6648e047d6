"""
Leave requests, balances and the company holiday calendar.
"""
from datetime import date
from typing import Any, Dict, List, Optional

from paydesk.core.audit import AuditLogger
from paydesk.core.exceptions import InsufficientLeaveBalanceError, LeaveRequestError
from paydesk.core.utils import setup_logging
from paydesk.db.models import (
    CompanyHoliday,
    LeaveBalance,
    LeaveRequest,
    LeaveType,
)
from paydesk.db.session import SessionLocal
from paydesk.leave.calculations import count_business_days, to_calendar_date

PENDING = "Pending"
APPROVED = "Approved"
REJECTED = "Rejected"

class LeaveManager:
    """Leave workflow: request sizing, review and balance bookkeeping."""

    def __init__(self, tenant_id: str = "system", session_factory=None, audit_logger: AuditLogger = None):
        self.tenant_id = tenant_id
        self.session_factory = session_factory or SessionLocal
        self.audit_logger = audit_logger or AuditLogger(tenant_id)
        self.logger = setup_logging(tenant_id)

    # Holidays and leave types

    def add_holiday(self, name: str, holiday_date: Any) -> CompanyHoliday:
        day = to_calendar_date(holiday_date)
        if day is None:
            raise ValueError(f"Unreadable holiday date {holiday_date!r}")
        with self.session_factory() as session:
            with session.begin():
                holiday = CompanyHoliday(name=name, holiday_date=day)
                session.add(holiday)
        return holiday

    def get_holidays(self, *years: int) -> List[date]:
        """Holiday dates, optionally limited to the given calendar years."""
        with self.session_factory() as session:
            dates = [h.holiday_date for h in session.query(CompanyHoliday).order_by(CompanyHoliday.holiday_date)]
        if years:
            dates = [d for d in dates if d.year in years]
        return dates

    def delete_holiday(self, holiday_id: str) -> bool:
        with self.session_factory() as session:
            with session.begin():
                holiday = session.get(CompanyHoliday, holiday_id)
                if holiday is None:
                    return False
                session.delete(holiday)
        return True

    def add_leave_type(self, name: str) -> LeaveType:
        with self.session_factory() as session:
            with session.begin():
                leave_type = LeaveType(name=name)
                session.add(leave_type)
        return leave_type

    def update_leave_type(self, leave_type_id: str, name: str) -> LeaveType:
        with self.session_factory() as session:
            with session.begin():
                leave_type = session.get(LeaveType, leave_type_id)
                if leave_type is None:
                    raise KeyError(leave_type_id)
                leave_type.name = name
        return leave_type

    def delete_leave_type(self, leave_type_id: str) -> bool:
        """Remove a leave type that no balance or request refers to."""
        with self.session_factory() as session:
            with session.begin():
                leave_type = session.get(LeaveType, leave_type_id)
                if leave_type is None:
                    return False
                in_use = (
                    session.query(LeaveBalance).filter_by(leave_type_id=leave_type_id).count()
                    + session.query(LeaveRequest).filter_by(leave_type_id=leave_type_id).count()
                )
                if in_use:
                    raise LeaveRequestError(f"Leave type {leave_type.name} is still in use")
                session.delete(leave_type)
        return True

    # Balances

    def get_balance(self, employee_id: str, leave_type_id: str) -> float:
        with self.session_factory() as session:
            balance = (
                session.query(LeaveBalance)
                .filter_by(employee_id=employee_id, leave_type_id=leave_type_id)
                .one_or_none()
            )
            return balance.balance_days if balance else 0.0

    def get_balances(self, employee_id: str) -> List[Dict[str, Any]]:
        with self.session_factory() as session:
            return [
                {
                    'leave_type_id': b.leave_type_id,
                    'leave_type_name': b.leave_type.name if b.leave_type else None,
                    'balance_days': b.balance_days,
                }
                for b in session.query(LeaveBalance).filter_by(employee_id=employee_id)
            ]

    def adjust_balance(self, employee_id: str, leave_type_id: str, new_balance: float) -> None:
        """Set a balance outright, creating it if absent."""
        with self.session_factory() as session:
            with session.begin():
                balance = self._get_or_create_balance(session, employee_id, leave_type_id)
                previous = balance.balance_days
                balance.balance_days = float(new_balance)
        self.audit_logger.log_data_change(
            entity_type='leave_balance',
            operation='update',
            entity_id=f"{employee_id}:{leave_type_id}",
            changes={'balance_days': {'from': previous, 'to': float(new_balance)}},
        )

    # Requests

    def create_request(self, employee_id: str, leave_type_id: str, start: Any, end: Any) -> LeaveRequest:
        """Create a Pending request sized in business days, company holidays excluded."""
        start_date = to_calendar_date(start)
        end_date = to_calendar_date(end)
        if start_date is None or end_date is None:
            raise LeaveRequestError(f"Unreadable leave dates {start!r} to {end!r}")

        holidays = self.get_holidays(*range(start_date.year, end_date.year + 1))
        days = count_business_days(start_date, end_date, holidays)
        if days <= 0:
            raise LeaveRequestError(
                f"Leave from {start_date} to {end_date} covers no business days"
            )

        with self.session_factory() as session:
            with session.begin():
                request = LeaveRequest(
                    employee_id=employee_id,
                    leave_type_id=leave_type_id,
                    start_date=start_date,
                    end_date=end_date,
                    days=days,
                    status=PENDING,
                )
                session.add(request)
        self.logger.info("Leave request %s: %d day(s) for %s", request.id, days, employee_id)
        return request

    def get_requests(self, employee_id: Optional[str] = None, status: Optional[str] = None) -> List[Dict[str, Any]]:
        with self.session_factory() as session:
            query = session.query(LeaveRequest)
            if employee_id:
                query = query.filter_by(employee_id=employee_id)
            if status:
                query = query.filter_by(status=status)
            return [
                {
                    'id': r.id,
                    'employee_id': r.employee_id,
                    'employee_name': r.employee.full_name if r.employee else 'N/A',
                    'leave_type_id': r.leave_type_id,
                    'leave_type': r.leave_type.name if r.leave_type else 'N/A',
                    'start_date': r.start_date,
                    'end_date': r.end_date,
                    'days': r.days,
                    'status': r.status,
                }
                for r in query.order_by(LeaveRequest.start_date.desc()).all()
            ]

    def days_taken(self, employee_id: str, year: Optional[int] = None) -> float:
        """Approved leave days, optionally limited to requests starting in ``year``."""
        with self.session_factory() as session:
            requests = session.query(LeaveRequest).filter_by(employee_id=employee_id, status=APPROVED).all()
            return float(sum(r.days for r in requests if year is None or r.start_date.year == year))

    def review_request(self, request_id: str, status: str, reviewed_by: Optional[str] = None) -> LeaveRequest:
        """Approve or reject a Pending request.

        Approval debits the balance and updates the status in one transaction;
        if the balance would go negative nothing is changed.
        """
        if status not in (APPROVED, REJECTED):
            raise LeaveRequestError(f"Leave requests can only be Approved or Rejected, not {status!r}")

        with self.session_factory() as session:
            try:
                with session.begin():
                    request = session.get(LeaveRequest, request_id)
                    if request is None:
                        raise LeaveRequestError(f"Leave request {request_id} not found")
                    if request.status != PENDING:
                        raise LeaveRequestError(
                            f"Leave request {request_id} is already {request.status}"
                        )

                    if status == APPROVED:
                        balance = self._get_or_create_balance(
                            session, request.employee_id, request.leave_type_id
                        )
                        remaining = balance.balance_days - request.days
                        if remaining < 0:
                            raise InsufficientLeaveBalanceError(
                                request.employee_id, request.days, balance.balance_days
                            )
                        balance.balance_days = remaining
                    request.status = status
            except LeaveRequestError as e:
                self.logger.warning("Leave review refused for %s: %s", request_id, e)
                raise

        self.audit_logger.log_data_change(
            entity_type='leave_request',
            operation='approve' if status == APPROVED else 'reject',
            entity_id=request_id,
            changes={'status': status, 'days': request.days},
            user_id=reviewed_by,
        )
        return request

    @staticmethod
    def _get_or_create_balance(session, employee_id: str, leave_type_id: str) -> LeaveBalance:
        balance = (
            session.query(LeaveBalance)
            .filter_by(employee_id=employee_id, leave_type_id=leave_type_id)
            .one_or_none()
        )
        if balance is None:
            balance = LeaveBalance(employee_id=employee_id, leave_type_id=leave_type_id, balance_days=0.0)
            session.add(balance)
        return balance
