"""
Statutory returns (PAYE, NAPSA, NHIMA) built from finalized payroll runs.
"""
from typing import Any, Dict, List

import pandas as pd

from paydesk.core.config import settings
from paydesk.core.exceptions import PayrollRunNotFoundError
from paydesk.core.utils import setup_logging
from paydesk.db.models import Employee, PayrollDetail, PayrollRun
from paydesk.db.session import SessionLocal

CURRENCY = settings.CURRENCY

PAYE_COLUMNS = [
    'Employee Name', 'NRC', 'TPIN', f'Gross Pay ({CURRENCY})', f'PAYE ({CURRENCY})',
]
NAPSA_COLUMNS = [
    'Employee Name', 'NRC', 'NAPSA Number',
    f'Contribution Base ({CURRENCY})',
    f'Employee Contribution ({CURRENCY})',
    f'Employer Contribution ({CURRENCY})',
    f'Total Contribution ({CURRENCY})',
]
NHIMA_COLUMNS = [
    'Employee Name', 'NRC', 'NHIS ID', f'NHIMA Contribution ({CURRENCY})',
]

class StatutoryReturns:
    """Monthly return schedules for the tax authority, NAPSA and NHIMA."""

    def __init__(self, tenant_id: str = "system", session_factory=None):
        self.tenant_id = tenant_id
        self.session_factory = session_factory or SessionLocal
        self.logger = setup_logging(tenant_id)

    def _finalized_rows(self, month: int, year: int) -> List[Dict[str, Any]]:
        with self.session_factory() as session:
            run = (
                session.query(PayrollRun)
                .filter_by(month=month, year=year, status="Finalized")
                .one_or_none()
            )
            if run is None:
                raise PayrollRunNotFoundError(month, year, "Finalized")

            rows = (
                session.query(PayrollDetail, Employee)
                .outerjoin(Employee, PayrollDetail.employee_id == Employee.id)
                .filter(PayrollDetail.payroll_run_id == run.id)
                .order_by(PayrollDetail.line_no)
                .all()
            )
            return [
                {
                    'name': emp.full_name if emp else (detail.employee_name or 'N/A'),
                    'nrc': emp.nrc if emp else None,
                    'tpin': emp.tpin if emp else None,
                    'napsa_number': emp.napsa_number if emp else None,
                    'nhis_id': emp.nhis_id if emp else None,
                    'basic_salary': detail.basic_salary,
                    'gross_pay': detail.gross_pay,
                    'paye': detail.paye,
                    'napsa': detail.napsa,
                    'nhima': detail.nhima,
                }
                for detail, emp in rows
            ]

    def paye_return(self, month: int, year: int) -> pd.DataFrame:
        rows = self._finalized_rows(month, year)
        return pd.DataFrame(
            [[r['name'], r['nrc'], r['tpin'], r['gross_pay'], r['paye']] for r in rows],
            columns=PAYE_COLUMNS,
        )

    def napsa_return(self, month: int, year: int) -> pd.DataFrame:
        """NAPSA schedule; the employer matches the employee contribution."""
        rows = self._finalized_rows(month, year)
        return pd.DataFrame(
            [
                [r['name'], r['nrc'], r['napsa_number'], r['basic_salary'],
                 r['napsa'], r['napsa'], r['napsa'] * 2]
                for r in rows
            ],
            columns=NAPSA_COLUMNS,
        )

    def nhima_return(self, month: int, year: int) -> pd.DataFrame:
        rows = self._finalized_rows(month, year)
        return pd.DataFrame(
            [[r['name'], r['nrc'], r['nhis_id'], r['nhima']] for r in rows],
            columns=NHIMA_COLUMNS,
        )

    def export_csv(self, df: pd.DataFrame, file_path: str) -> str:
        """Write a return to CSV with amounts to two decimal places."""
        df.to_csv(file_path, index=False, float_format="%.2f")
        self.logger.info("Exported %d row(s) to %s", len(df), file_path)
        return file_path
