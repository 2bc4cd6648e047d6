"""
Payslip data assembly. Layout and printing are left to the caller.
"""
from typing import Any, Dict, List, Mapping, Optional

from paydesk.core.config import settings
from paydesk.payroll.models import PayrollResult

EMPLOYEE_FIELDS = (
    'full_name', 'employee_number', 'nrc', 'tpin', 'napsa_number',
    'social_security_number', 'nhis_id', 'hire_date', 'grade', 'pay_point',
)

def _employee_info(employee: Any) -> Dict[str, Any]:
    if employee is None:
        return {}
    if isinstance(employee, Mapping):
        return {f: employee.get(f) for f in EMPLOYEE_FIELDS}
    return {f: getattr(employee, f, None) for f in EMPLOYEE_FIELDS}

def payslip_incomes(result: PayrollResult) -> List[Dict[str, Any]]:
    incomes = [{'name': 'BASIC PAY', 'amount': result.basic_salary}]
    incomes.extend({'name': a.name.upper(), 'amount': a.amount} for a in result.breakdown.additions)
    return incomes

def payslip_deductions(result: PayrollResult) -> List[Dict[str, Any]]:
    statutory = result.breakdown.statutory
    deductions = [
        {'name': 'PAYE', 'amount': statutory.income_tax},
        {'name': 'NAPSA', 'amount': statutory.pension_contribution},
        {'name': 'NATIONAL HEALTH SCHEME', 'amount': statutory.health_contribution},
    ]
    deductions.extend({'name': d.name, 'amount': d.amount} for d in result.breakdown.deductions)
    return deductions

def build_payslip(
    result: PayrollResult,
    employee: Any = None,
    period: str = "",
    ytd: Optional[Mapping[str, float]] = None,
    leave_balance: float = 0.0,
    leave_days_taken: float = 0.0,
    leave_value: float = 0.0,
    currency: Optional[str] = None,
) -> Dict[str, Any]:
    """Everything a payslip shows for one employee and period.

    ``ytd`` is the mapping returned by ``PayrollRunStore.ytd_totals``;
    ``leave_value`` normally comes from ``paydesk.leave.calculations.leave_value``.
    """
    info = _employee_info(employee)
    if not info.get('full_name'):
        info['full_name'] = result.employee_name

    incomes = payslip_incomes(result)
    deductions = payslip_deductions(result)
    ytd = ytd or {}

    return {
        'period': period,
        'currency': currency or settings.CURRENCY,
        'employee': info,
        'incomes': incomes,
        'deductions': deductions,
        'totals': {
            'gross_pay': result.gross_pay,
            'total_deductions': result.breakdown.total_deductions,
            'net_pay': result.net_pay,
        },
        'tax_bands': [
            {
                'band_description': line.band_description,
                'chargeable_income_in_band': line.chargeable_income_in_band,
                'rate': line.rate,
                'tax_due': line.tax_due,
            }
            for line in result.breakdown.tax_bands
        ],
        'ytd': {
            'taxable_pay_ytd': ytd.get('taxable_pay_ytd', 0.0),
            'tax_ytd': ytd.get('tax_ytd', 0.0),
            'napsa_ytd': ytd.get('napsa_ytd', 0.0),
            'gross_ytd': ytd.get('gross_ytd', 0.0),
        },
        'leave': {
            'balance': leave_balance,
            'leave_days_taken': leave_days_taken,
            'leave_value': leave_value,
        },
    }
