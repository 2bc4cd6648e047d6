"""
Employee master data and the compensation snapshots the payroll engine consumes.
"""
from typing import Any, Dict, List, Optional

import pandas as pd

from paydesk.core.utils import setup_logging
from paydesk.db.models import EMPLOYEE_STATUSES, Employee, EmployeePayrollItem, PayrollItem
from paydesk.db.session import SessionLocal
from paydesk.payroll.models import (
    CalculationType,
    EmployeeCompensation,
    ItemType,
    make_compensation_item,
)

EMPLOYEE_COLUMNS = [
    'employee_number', 'full_name', 'email', 'nrc', 'tpin', 'napsa_number',
    'nhis_id', 'status', 'hire_date', 'salary',
]

class EmployeeManager:
    """Employee records, payroll item catalogue and per-employee item values."""

    def __init__(self, tenant_id: str = "system", session_factory=None):
        self.tenant_id = tenant_id
        self.session_factory = session_factory or SessionLocal
        self.logger = setup_logging(tenant_id)

    def add_employee(self, full_name: str, salary: float, **fields: Any) -> Employee:
        status = fields.get('status', 'Active')
        if status not in EMPLOYEE_STATUSES:
            raise ValueError(f"Unknown employee status {status!r}")
        with self.session_factory() as session:
            with session.begin():
                employee = Employee(full_name=full_name, salary=float(salary), **fields)
                session.add(employee)
        self.logger.info("Added employee %s (%s)", employee.id, full_name)
        return employee

    def get_employee(self, employee_id: str) -> Optional[Employee]:
        with self.session_factory() as session:
            return session.get(Employee, employee_id)

    def set_status(self, employee_id: str, status: str) -> None:
        if status not in EMPLOYEE_STATUSES:
            raise ValueError(f"Unknown employee status {status!r}")
        with self.session_factory() as session:
            with session.begin():
                employee = session.get(Employee, employee_id)
                if employee is None:
                    raise KeyError(employee_id)
                employee.status = status

    def update_employee(self, employee_id: str, **fields: Any) -> Employee:
        """Change employee fields; a new salary applies to every later payroll run."""
        if 'status' in fields and fields['status'] not in EMPLOYEE_STATUSES:
            raise ValueError(f"Unknown employee status {fields['status']!r}")
        unknown = [k for k in fields if k == 'id' or k not in Employee.__table__.columns]
        if unknown:
            raise ValueError(f"Unknown employee field(s): {', '.join(unknown)}")
        if 'salary' in fields:
            fields['salary'] = float(fields['salary'])

        with self.session_factory() as session:
            with session.begin():
                employee = session.get(Employee, employee_id)
                if employee is None:
                    raise KeyError(employee_id)
                for key, value in fields.items():
                    setattr(employee, key, value)
        self.logger.info("Updated employee %s: %s", employee_id, ", ".join(sorted(fields)))
        return employee

    def delete_employee(self, employee_id: str) -> bool:
        """Remove an employee and their payroll item values."""
        with self.session_factory() as session:
            with session.begin():
                employee = session.get(Employee, employee_id)
                if employee is None:
                    return False
                session.delete(employee)
        self.logger.info("Deleted employee %s", employee_id)
        return True

    def create_payroll_item(
        self,
        name: str,
        item_type: str,
        calculation_type: str = "Fixed",
        is_taxable: bool = False,
    ) -> PayrollItem:
        # Enum lookups reject unknown types before anything is stored
        item_type = ItemType(item_type).value
        calculation_type = CalculationType(calculation_type).value
        with self.session_factory() as session:
            with session.begin():
                item = PayrollItem(
                    name=name,
                    type=item_type,
                    calculation_type=calculation_type,
                    # Deductions never affect taxable income
                    is_taxable=bool(is_taxable) and item_type == ItemType.ADDITION.value,
                )
                session.add(item)
        return item

    def update_payroll_item(
        self,
        payroll_item_id: str,
        name: Optional[str] = None,
        item_type: Optional[str] = None,
        calculation_type: Optional[str] = None,
        is_taxable: Optional[bool] = None,
    ) -> PayrollItem:
        with self.session_factory() as session:
            with session.begin():
                item = session.get(PayrollItem, payroll_item_id)
                if item is None:
                    raise KeyError(payroll_item_id)
                if name is not None:
                    item.name = name
                if item_type is not None:
                    item.type = ItemType(item_type).value
                if calculation_type is not None:
                    item.calculation_type = CalculationType(calculation_type).value
                if is_taxable is not None:
                    item.is_taxable = bool(is_taxable)
                if item.type == ItemType.DEDUCTION.value:
                    item.is_taxable = False
        return item

    def delete_payroll_item(self, payroll_item_id: str) -> bool:
        """Remove an item from the catalogue along with every employee's value for it."""
        with self.session_factory() as session:
            with session.begin():
                item = session.get(PayrollItem, payroll_item_id)
                if item is None:
                    return False
                session.query(EmployeePayrollItem).filter_by(payroll_item_id=payroll_item_id).delete()
                session.delete(item)
        return True

    def assign_item(self, employee_id: str, payroll_item_id: str, value: float) -> EmployeePayrollItem:
        """Set an employee's value for a payroll item, replacing any previous value."""
        with self.session_factory() as session:
            with session.begin():
                link = (
                    session.query(EmployeePayrollItem)
                    .filter_by(employee_id=employee_id, payroll_item_id=payroll_item_id)
                    .one_or_none()
                )
                if link is None:
                    link = EmployeePayrollItem(
                        employee_id=employee_id, payroll_item_id=payroll_item_id, value=float(value)
                    )
                    session.add(link)
                else:
                    link.value = float(value)
        return link

    def remove_item(self, employee_id: str, payroll_item_id: str) -> bool:
        with self.session_factory() as session:
            with session.begin():
                deleted = (
                    session.query(EmployeePayrollItem)
                    .filter_by(employee_id=employee_id, payroll_item_id=payroll_item_id)
                    .delete()
                )
        return deleted > 0

    def get_compensation_snapshots(self, active_only: bool = True) -> List[EmployeeCompensation]:
        """Build one immutable compensation snapshot per employee, ordered by name."""
        with self.session_factory() as session:
            query = session.query(Employee)
            if active_only:
                query = query.filter(Employee.status == "Active")
            snapshots = []
            for emp in query.order_by(Employee.full_name).all():
                items = [
                    make_compensation_item(
                        link.payroll_item.type,
                        link.payroll_item.name,
                        link.payroll_item.calculation_type,
                        link.value,
                        is_taxable=bool(link.payroll_item.is_taxable),
                    )
                    for link in sorted(emp.payroll_items, key=lambda link: link.payroll_item.name)
                ]
                snapshots.append(EmployeeCompensation(
                    basic_salary=emp.salary,
                    items=tuple(items),
                    employee_id=emp.id,
                    employee_name=emp.full_name,
                ))
        self.logger.info("Loaded %d compensation snapshot(s)", len(snapshots))
        return snapshots

    def list_employees(self, status: Optional[str] = None) -> pd.DataFrame:
        """Employee register as a DataFrame."""
        with self.session_factory() as session:
            query = session.query(Employee)
            if status:
                query = query.filter(Employee.status == status)
            rows: List[Dict[str, Any]] = [
                {'id': e.id, **{c: getattr(e, c) for c in EMPLOYEE_COLUMNS}}
                for e in query.order_by(Employee.full_name).all()
            ]
        return pd.DataFrame(rows, columns=['id'] + EMPLOYEE_COLUMNS)
