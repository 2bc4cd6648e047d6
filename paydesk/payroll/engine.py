"""
Payroll calculation engine.

``calculate_payroll`` maps one employee's compensation snapshot and the
statutory parameters to an itemized ``PayrollResult``. It is pure: no I/O,
no clock, no logging, and nothing is rounded. Callers validate statutory
configuration before calling (see ``paydesk.tax.config_manager``).
"""
import math
from typing import List, Sequence, Tuple

from paydesk.payroll.models import (
    Addition,
    EmployeeCompensation,
    PayeBandLine,
    PayrollBreakdown,
    PayrollResult,
    RealizedAddition,
    RealizedDeduction,
    StatutoryContributions,
    StatutoryParameters,
    TaxBand,
)


def format_amount(value: float, max_decimals: int = 3) -> str:
    """Grouped number with trailing fractional zeros dropped: 4000.01 -> '4,000.01'."""
    if math.isnan(value) or math.isinf(value):
        return str(value)
    text = f"{value:,.{max_decimals}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text == "-0":
        text = "0"
    return text


def describe_band(band: TaxBand, lower_bound: float, currency_symbol: str = "K") -> str:
    """Payslip label for a band starting just above ``lower_bound``."""
    if band.order == 1 and band.chargeable_amount:
        return f"First {currency_symbol}{format_amount(band.chargeable_amount)}"
    if band.chargeable_amount:
        upper_bound = lower_bound + band.chargeable_amount
        return (
            f"Next {currency_symbol}{format_amount(lower_bound + 0.01)} "
            f"to {currency_symbol}{format_amount(upper_bound)}"
        )
    return f"{currency_symbol}{format_amount(lower_bound + 0.01)} and Above"


def compute_paye(
    taxable_income: float,
    tax_bands: Sequence[TaxBand],
    currency_symbol: str = "K",
) -> Tuple[float, List[PayeBandLine]]:
    """Apportion taxable income across bands in ascending ``order``.

    Returns the total tax and one ledger row per band. Bands after the income
    is exhausted still get a zero row.
    """
    total_paye = 0.0
    income_remaining = taxable_income
    lines: List[PayeBandLine] = []
    lower_bound = 0.0

    for band in sorted(tax_bands, key=lambda b: b.order):
        description = describe_band(band, lower_bound, currency_symbol)

        if income_remaining <= 0:
            lines.append(PayeBandLine(description, 0.0, band.rate, 0.0))
        else:
            if band.chargeable_amount is None:
                amount_in_band = income_remaining
            else:
                amount_in_band = min(income_remaining, band.chargeable_amount)
            tax_in_band = amount_in_band * band.rate
            total_paye += tax_in_band
            lines.append(PayeBandLine(description, amount_in_band, band.rate, tax_in_band))
            income_remaining -= amount_in_band

        if band.chargeable_amount:
            lower_bound += band.chargeable_amount

    return total_paye, lines


def compute_pension(basic_salary: float, rate: float, ceiling: float) -> float:
    # No clamp at zero: historical runs were computed on the raw basic salary.
    return min(basic_salary, ceiling) * rate


def compute_health(basic_salary: float, rate: float, max_contribution: float) -> float:
    return min(basic_salary * rate, max_contribution)


def calculate_payroll(employee: EmployeeCompensation, params: StatutoryParameters) -> PayrollResult:
    """Compute gross pay, PAYE, NAPSA, NHIMA and net pay for one employee."""
    basic_salary = employee.basic_salary
    additions: List[RealizedAddition] = []
    deductions: List[RealizedDeduction] = []
    taxable_additions = 0.0
    non_taxable_additions = 0.0

    for item in employee.items:
        amount = item.amount_for(basic_salary)
        if isinstance(item, Addition):
            additions.append(RealizedAddition(item.name, amount, item.taxable))
            if item.taxable:
                taxable_additions += amount
            else:
                non_taxable_additions += amount
        else:
            deductions.append(RealizedDeduction(item.name, amount))

    pension = compute_pension(basic_salary, params.pension_rate, params.pension_ceiling)

    # Deductions never reduce taxable income.
    taxable_income = basic_salary + taxable_additions
    total_paye, paye_lines = compute_paye(
        taxable_income if taxable_income > 0 else 0.0,
        params.tax_bands,
        params.currency_symbol,
    )

    gross_pay = basic_salary + taxable_additions + non_taxable_additions
    health = compute_health(basic_salary, params.health_rate, params.health_max_contribution)

    total_custom_deductions = sum(d.amount for d in deductions)
    total_statutory = total_paye + pension + health
    net_pay = gross_pay - total_statutory - total_custom_deductions

    return PayrollResult(
        basic_salary=basic_salary,
        gross_pay=gross_pay,
        taxable_income=taxable_income,
        net_pay=net_pay,
        breakdown=PayrollBreakdown(
            additions=tuple(additions),
            deductions=tuple(deductions),
            statutory=StatutoryContributions(
                income_tax=total_paye,
                pension_contribution=pension,
                health_contribution=health,
            ),
            tax_bands=tuple(paye_lines),
        ),
        employee_id=employee.employee_id,
        employee_name=employee.employee_name,
    )


class PayrollEngine:
    """Binds one statutory parameter set for repeated per-employee calculations."""

    def __init__(self, params: StatutoryParameters):
        self.params = params

    def calculate(self, employee: EmployeeCompensation) -> PayrollResult:
        return calculate_payroll(employee, self.params)

    def run_payroll(self, employees: Sequence[EmployeeCompensation]) -> List[PayrollResult]:
        return [self.calculate(e) for e in employees]
