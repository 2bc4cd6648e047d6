import uuid
from datetime import datetime

from sqlalchemy import (
    Column, String, Integer, Float, ForeignKey, Date, DateTime, Boolean, JSON, UniqueConstraint
)
from sqlalchemy.orm import relationship

from paydesk.db.session import Base

def new_id() -> str:
    return str(uuid.uuid4())

EMPLOYEE_STATUSES = ("Active", "On Leave", "Terminated")
PAYROLL_RUN_STATUSES = ("Draft", "Finalized")
LEAVE_REQUEST_STATUSES = ("Pending", "Approved", "Rejected")

class Employee(Base):
    __tablename__ = "employees"
    id = Column(String, primary_key=True, default=new_id)
    employee_number = Column(String, nullable=True, unique=True)
    full_name = Column(String, nullable=False)
    email = Column(String, nullable=True, index=True)
    phone = Column(String, nullable=True)
    nrc = Column(String, nullable=True)
    tpin = Column(String, nullable=True)
    napsa_number = Column(String, nullable=True)
    social_security_number = Column(String, nullable=True)
    nhis_id = Column(String, nullable=True)
    grade = Column(String, nullable=True)
    pay_point = Column(String, nullable=True)
    division = Column(String, nullable=True)
    department = Column(String, nullable=True)
    job_title = Column(String, nullable=True)
    bank_name = Column(String, nullable=True)
    account_number = Column(String, nullable=True)
    status = Column(String, nullable=False, default="Active")  # see EMPLOYEE_STATUSES
    hire_date = Column(Date, nullable=True)
    salary = Column(Float, nullable=False, default=0.0)  # monthly basic salary
    created_at = Column(DateTime, default=datetime.utcnow)

    payroll_items = relationship(
        "EmployeePayrollItem", back_populates="employee", cascade="all, delete-orphan"
    )

class PayrollItem(Base):
    __tablename__ = "payroll_items"
    id = Column(String, primary_key=True, default=new_id)
    name = Column(String, nullable=False, unique=True)
    type = Column(String, nullable=False)  # 'Addition' / 'Deduction'
    calculation_type = Column(String, nullable=False, default="Fixed")  # 'Fixed' / 'Percentage'
    is_taxable = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)

class EmployeePayrollItem(Base):
    __tablename__ = "employee_payroll_items"
    __table_args__ = (UniqueConstraint("employee_id", "payroll_item_id"),)
    id = Column(String, primary_key=True, default=new_id)
    employee_id = Column(String, ForeignKey("employees.id"), nullable=False)
    payroll_item_id = Column(String, ForeignKey("payroll_items.id"), nullable=False)
    value = Column(Float, nullable=False)

    employee = relationship("Employee", back_populates="payroll_items")
    payroll_item = relationship("PayrollItem", lazy="joined")

class TaxBandRecord(Base):
    __tablename__ = "tax_bands"
    id = Column(String, primary_key=True, default=new_id)
    band_order = Column(Integer, nullable=False, unique=True)
    chargeable_amount = Column(Float, nullable=True)  # null for the top band
    rate = Column(Float, nullable=False)  # fraction, 0.37 for 37%

class PayrollSetting(Base):
    __tablename__ = "payroll_settings"
    id = Column(String, primary_key=True, default=new_id)
    setting_key = Column(String, nullable=False, unique=True)
    setting_value = Column(String, nullable=False)

class PayrollRun(Base):
    __tablename__ = "payroll_runs"
    __table_args__ = (UniqueConstraint("month", "year"),)
    id = Column(String, primary_key=True, default=new_id)
    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    status = Column(String, nullable=False, default="Draft")  # 'Draft' / 'Finalized'
    processed_by = Column(String, nullable=True)
    run_date = Column(DateTime, default=datetime.utcnow)

    details = relationship(
        "PayrollDetail", back_populates="run", cascade="all, delete-orphan",
        order_by="PayrollDetail.line_no",
    )

class PayrollDetail(Base):
    __tablename__ = "payroll_details"
    id = Column(String, primary_key=True, default=new_id)
    payroll_run_id = Column(String, ForeignKey("payroll_runs.id"), nullable=False)
    employee_id = Column(String, ForeignKey("employees.id"), nullable=True)
    employee_name = Column(String, nullable=True)
    line_no = Column(Integer, nullable=False, default=0)
    basic_salary = Column(Float, nullable=False)
    gross_pay = Column(Float, nullable=False)
    taxable_income = Column(Float, nullable=False)
    paye = Column(Float, nullable=False)
    napsa = Column(Float, nullable=False)
    nhima = Column(Float, nullable=False)
    net_pay = Column(Float, nullable=False)
    breakdown = Column(JSON, default={})

    run = relationship("PayrollRun", back_populates="details")
    employee = relationship("Employee")

class CompanyHoliday(Base):
    __tablename__ = "company_holidays"
    id = Column(String, primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    holiday_date = Column(Date, nullable=False, index=True)

class LeaveType(Base):
    __tablename__ = "leave_types"
    id = Column(String, primary_key=True, default=new_id)
    name = Column(String, nullable=False, unique=True)

class LeaveBalance(Base):
    __tablename__ = "leave_balances"
    __table_args__ = (UniqueConstraint("employee_id", "leave_type_id"),)
    id = Column(String, primary_key=True, default=new_id)
    employee_id = Column(String, ForeignKey("employees.id"), nullable=False)
    leave_type_id = Column(String, ForeignKey("leave_types.id"), nullable=False)
    balance_days = Column(Float, nullable=False, default=0.0)

    leave_type = relationship("LeaveType", lazy="joined")

class LeaveRequest(Base):
    __tablename__ = "leave_requests"
    id = Column(String, primary_key=True, default=new_id)
    employee_id = Column(String, ForeignKey("employees.id"), nullable=False)
    leave_type_id = Column(String, ForeignKey("leave_types.id"), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    days = Column(Integer, nullable=False)
    status = Column(String, nullable=False, default="Pending")  # see LEAVE_REQUEST_STATUSES
    created_at = Column(DateTime, default=datetime.utcnow)

    employee = relationship("Employee")
    leave_type = relationship("LeaveType", lazy="joined")
