"""
Batch payroll processing: runs the calculation engine over a whole workforce
and summarizes the run for the payroll screen and run history.
"""
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Iterable, List, Optional

from paydesk.core.config import settings
from paydesk.core.utils import setup_logging
from paydesk.payroll.engine import PayrollEngine
from paydesk.payroll.models import EmployeeCompensation, PayrollResult, StatutoryParameters

class PayrollBatchProcessor:
    """Maps employee snapshots through one shared engine on a thread pool."""

    def __init__(self, tenant_id: str, params: StatutoryParameters, max_workers: Optional[int] = None):
        self.tenant_id = tenant_id
        self.engine = PayrollEngine(params)
        self.max_workers = max_workers or settings.PAYROLL_WORKERS
        self.logger = setup_logging(tenant_id)

    def process(self, employees: Iterable[EmployeeCompensation]) -> List[PayrollResult]:
        """Calculate every employee; results come back in input order."""
        employees = list(employees)
        if not employees:
            return []

        self.logger.info("Calculating payroll for %d employee(s) with %d worker(s)",
                         len(employees), self.max_workers)
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            results = list(pool.map(self.engine.calculate, employees))
        self.logger.info("Payroll calculation complete for %d employee(s)", len(results))
        return results

    def process_and_summarize(
        self,
        employees: Iterable[EmployeeCompensation],
        period: str,
    ) -> Dict[str, Any]:
        results = self.process(employees)
        return {
            'results': results,
            'summary': self.summarize(results, period),
        }

    @staticmethod
    def summarize(results: List[PayrollResult], period: str = "") -> Dict[str, Any]:
        """Generate run totals, averages and per-employee rows (rounded for display)."""

        if not results:
            return {'period': period, 'total_employees': 0}

        total_employees = len(results)
        total_gross = sum(r.gross_pay for r in results)
        total_paye = sum(r.breakdown.statutory.income_tax for r in results)
        total_napsa = sum(r.breakdown.statutory.pension_contribution for r in results)
        total_nhima = sum(r.breakdown.statutory.health_contribution for r in results)
        total_custom = sum(r.breakdown.custom_deductions_total for r in results)
        total_deductions = total_paye + total_napsa + total_nhima + total_custom
        total_net = sum(r.net_pay for r in results)

        # Employee breakdown
        employee_details = []
        for r in results:
            statutory = r.breakdown.statutory
            employee_details.append({
                'employee_id': r.employee_id,
                'employee_name': r.employee_name,
                'gross': round(r.gross_pay, 2),
                'paye': round(statutory.income_tax, 2),
                'napsa': round(statutory.pension_contribution, 2),
                'nhima': round(statutory.health_contribution, 2),
                'other_deductions': round(r.breakdown.custom_deductions_total, 2),
                'net': round(r.net_pay, 2),
            })

        return {
            'period': period,
            'total_employees': total_employees,
            'totals': {
                'gross': round(total_gross, 2),
                'paye': round(total_paye, 2),
                'napsa': round(total_napsa, 2),
                'nhima': round(total_nhima, 2),
                'other_deductions': round(total_custom, 2),
                'deductions': round(total_deductions, 2),
                'net': round(total_net, 2),
            },
            'averages': {
                'gross': round(total_gross / total_employees, 2),
                'net': round(total_net / total_employees, 2),
            },
            'employee_details': employee_details,
        }
