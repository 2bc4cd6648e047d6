"""
Payroll run persistence: one run per (month, year), Draft until finalized.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from paydesk.core.audit import AuditLogger
from paydesk.core.exceptions import PayrollRunFinalizedError, PayrollRunNotFoundError
from paydesk.core.utils import setup_logging
from paydesk.db.models import PAYROLL_RUN_STATUSES, PayrollDetail, PayrollRun
from paydesk.db.session import SessionLocal
from paydesk.payroll.models import PayrollResult

DRAFT = "Draft"
FINALIZED = "Finalized"

class PayrollRunStore:
    """Stores calculated results against a payroll period."""

    def __init__(self, tenant_id: str = "system", session_factory=None, audit_logger: AuditLogger = None):
        self.tenant_id = tenant_id
        self.session_factory = session_factory or SessionLocal
        self.audit_logger = audit_logger or AuditLogger(tenant_id)
        self.logger = setup_logging(tenant_id)

    def save_run(
        self,
        month: int,
        year: int,
        results: Sequence[PayrollResult],
        status: str = DRAFT,
        processed_by: Optional[str] = None,
    ) -> str:
        """Create or overwrite the run for a period and replace its details.

        Raises PayrollRunFinalizedError if the period is already finalized.
        """
        if status not in PAYROLL_RUN_STATUSES:
            raise ValueError(f"Unknown payroll run status {status!r}")

        with self.session_factory() as session:
            try:
                with session.begin():
                    run = session.query(PayrollRun).filter_by(month=month, year=year).one_or_none()
                    previous_status = run.status if run else None
                    if run is not None and run.status == FINALIZED:
                        raise PayrollRunFinalizedError(month, year)
                    if run is None:
                        run = PayrollRun(month=month, year=year)
                        session.add(run)
                    run.status = status
                    run.processed_by = processed_by
                    run.run_date = datetime.utcnow()

                    # Replace old details for this run to prevent duplicates
                    run.details = [self._to_detail(i, r) for i, r in enumerate(results)]
                    session.flush()
                    run_id = run.id
            except PayrollRunFinalizedError:
                self.logger.warning("Refused to overwrite finalized payroll run %d-%02d", year, month)
                raise
            except Exception as e:
                self.logger.error("Failed to save payroll run %d-%02d: %s", year, month, e)
                raise

        operation = 'finalize' if status == FINALIZED else ('update' if previous_status else 'create')
        self.audit_logger.log_data_change(
            entity_type='payroll_run',
            operation=operation,
            entity_id=f"{year}-{month:02d}",
            changes={'status': status, 'previous_status': previous_status, 'employees': len(results)},
            user_id=processed_by,
        )
        self.logger.info("Saved payroll run %d-%02d as %s with %d employee(s)",
                         year, month, status, len(results))
        return run_id

    def finalize_run(self, month: int, year: int, processed_by: Optional[str] = None) -> str:
        """Mark a stored Draft run as Finalized, keeping its details."""
        run = self.get_run(month, year)
        if run is None:
            raise PayrollRunNotFoundError(month, year, DRAFT)
        return self.save_run(month, year, run['results'], FINALIZED, processed_by)

    def get_run(self, month: int, year: int) -> Optional[Dict[str, Any]]:
        """Status and rebuilt results for a period, or None if nothing is stored.

        Results are rebuilt from the stored rows, so an employee with no name
        comes back as ``'N/A'`` and ``finalize_run`` stores that name.
        """
        with self.session_factory() as session:
            run = session.query(PayrollRun).filter_by(month=month, year=year).one_or_none()
            if run is None:
                return None
            return {
                'id': run.id,
                'month': run.month,
                'year': run.year,
                'status': run.status,
                'processed_by': run.processed_by,
                'run_date': run.run_date,
                'results': [self._from_detail(d) for d in run.details],
            }

    def list_runs(self, limit: int = 12) -> List[Dict[str, Any]]:
        """Recent payroll runs, newest period first."""
        with self.session_factory() as session:
            runs = (
                session.query(PayrollRun)
                .order_by(PayrollRun.year.desc(), PayrollRun.month.desc())
                .limit(limit)
                .all()
            )
            return [
                {'month': r.month, 'year': r.year, 'status': r.status,
                 'employees': len(r.details), 'run_date': r.run_date}
                for r in runs
            ]

    def get_finalized_details_for_year(self, employee_id: str, year: int) -> List[Dict[str, Any]]:
        """Per-month gross, taxable income, PAYE and NAPSA from finalized runs only."""
        with self.session_factory() as session:
            rows = (
                session.query(PayrollRun.month, PayrollDetail)
                .join(PayrollDetail, PayrollDetail.payroll_run_id == PayrollRun.id)
                .filter(
                    PayrollRun.year == year,
                    PayrollRun.status == FINALIZED,
                    PayrollDetail.employee_id == employee_id,
                )
                .order_by(PayrollRun.month)
                .all()
            )
            return [
                {
                    'month': month,
                    'gross_pay': d.gross_pay,
                    'taxable_income': d.taxable_income,
                    'paye': d.paye,
                    'napsa': d.napsa,
                }
                for month, d in rows
            ]

    def ytd_totals(
        self,
        employee_id: str,
        year: int,
        current: Optional[PayrollResult] = None,
    ) -> Dict[str, float]:
        """Year-to-date totals over finalized runs, plus ``current`` when previewing a payslip."""
        totals = {'gross_ytd': 0.0, 'taxable_pay_ytd': 0.0, 'tax_ytd': 0.0, 'napsa_ytd': 0.0}
        for item in self.get_finalized_details_for_year(employee_id, year):
            totals['gross_ytd'] += item['gross_pay']
            totals['taxable_pay_ytd'] += item['taxable_income']
            totals['tax_ytd'] += item['paye']
            totals['napsa_ytd'] += item['napsa']

        if current is not None:
            totals['gross_ytd'] += current.gross_pay
            totals['taxable_pay_ytd'] += current.taxable_income
            totals['tax_ytd'] += current.breakdown.statutory.income_tax
            totals['napsa_ytd'] += current.breakdown.statutory.pension_contribution
        return totals

    @staticmethod
    def _to_detail(line_no: int, result: PayrollResult) -> PayrollDetail:
        statutory = result.breakdown.statutory
        data = result.to_dict()
        return PayrollDetail(
            line_no=line_no,
            employee_id=result.employee_id,
            employee_name=result.employee_name,
            basic_salary=result.basic_salary,
            gross_pay=result.gross_pay,
            taxable_income=result.taxable_income,
            paye=statutory.income_tax,
            napsa=statutory.pension_contribution,
            nhima=statutory.health_contribution,
            net_pay=result.net_pay,
            breakdown=data['breakdown'],
        )

    @staticmethod
    def _from_detail(detail: PayrollDetail) -> PayrollResult:
        employee_name = detail.employee.full_name if detail.employee else detail.employee_name
        return PayrollResult.from_dict({
            'employeeId': detail.employee_id,
            'employeeName': employee_name or 'N/A',
            'basicSalary': detail.basic_salary,
            'grossPay': detail.gross_pay,
            'taxableIncome': detail.taxable_income,
            'netPay': detail.net_pay,
            'breakdown': detail.breakdown or {},
        })
