import pandas as pd
import pytest

from paydesk.core.exceptions import PayrollRunNotFoundError
from paydesk.employees.manager import EmployeeManager
from paydesk.payroll.engine import calculate_payroll
from paydesk.payroll.runs import PayrollRunStore
from paydesk.reports.payslip import build_payslip
from paydesk.reports.returns import NAPSA_COLUMNS, PAYE_COLUMNS, StatutoryReturns

@pytest.fixture
def finalized(session_factory, params):
    employees = EmployeeManager("tst", session_factory=session_factory)
    emp = employees.add_employee("Mwila Banda", 10000, nrc="123456/10/1", tpin="1000000001",
                                 napsa_number="N-77", nhis_id="H-9")
    housing = employees.create_payroll_item("Housing", "Addition", "Fixed", is_taxable=True)
    lunch = employees.create_payroll_item("Lunch", "Addition", "Fixed", is_taxable=False)
    dues = employees.create_payroll_item("Union Dues", "Deduction", "Fixed")
    employees.assign_item(emp.id, housing.id, 2000)
    employees.assign_item(emp.id, lunch.id, 500)
    employees.assign_item(emp.id, dues.id, 300)

    results = [calculate_payroll(s, params) for s in employees.get_compensation_snapshots()]
    PayrollRunStore("tst", session_factory=session_factory).save_run(6, 2024, results, status="Finalized")
    return results[0]

def test_paye_return(session_factory, finalized):
    df = StatutoryReturns("tst", session_factory=session_factory).paye_return(6, 2024)
    assert list(df.columns) == PAYE_COLUMNS
    row = df.iloc[0]
    assert row['TPIN'] == "1000000001"
    assert row['Gross Pay (ZMW)'] == 12500.0
    assert row['PAYE (ZMW)'] == 2500.0

def test_napsa_return_employer_matches_employee(session_factory, finalized):
    df = StatutoryReturns("tst", session_factory=session_factory).napsa_return(6, 2024)
    assert list(df.columns) == NAPSA_COLUMNS
    row = df.iloc[0]
    assert row['Contribution Base (ZMW)'] == 10000.0
    assert row['Employee Contribution (ZMW)'] == row['Employer Contribution (ZMW)'] == 500.0
    assert row['Total Contribution (ZMW)'] == 1000.0

def test_nhima_return(session_factory, finalized):
    df = StatutoryReturns("tst", session_factory=session_factory).nhima_return(6, 2024)
    assert df.iloc[0]['NHIS ID'] == "H-9"
    assert df.iloc[0]['NHIMA Contribution (ZMW)'] == 100.0

def test_draft_run_has_no_return(session_factory, params, employee):
    PayrollRunStore("tst", session_factory=session_factory).save_run(7, 2024, [calculate_payroll(employee, params)])
    returns = StatutoryReturns("tst", session_factory=session_factory)
    with pytest.raises(PayrollRunNotFoundError):
        returns.paye_return(7, 2024)
    with pytest.raises(PayrollRunNotFoundError):
        returns.nhima_return(8, 2024)

def test_export_csv_two_decimals(session_factory, finalized, tmp_path):
    returns = StatutoryReturns("tst", session_factory=session_factory)
    path = tmp_path / "paye.csv"
    returns.export_csv(returns.paye_return(6, 2024), str(path))
    text = path.read_text()
    assert "12500.00" in text and "2500.00" in text
    assert list(pd.read_csv(path).columns) == PAYE_COLUMNS

def test_payslip_layout(finalized):
    slip = build_payslip(
        finalized,
        employee={'full_name': "Mwila Banda", 'nrc': "123456/10/1"},
        period="June 2024",
        ytd={'taxable_pay_ytd': 72000.0, 'tax_ytd': 15000.0, 'napsa_ytd': 3000.0},
        leave_balance=12,
        leave_days_taken=3,
        leave_value=5000.0,
    )
    assert [i['name'] for i in slip['incomes']] == ["BASIC PAY", "HOUSING", "LUNCH"]
    assert [d['name'] for d in slip['deductions']] == ["PAYE", "NAPSA", "NATIONAL HEALTH SCHEME", "Union Dues"]
    assert slip['totals'] == {'gross_pay': 12500.0, 'total_deductions': 3400.0, 'net_pay': 9100.0}
    assert slip['tax_bands'][0]['band_description'] == "First K4,000"
    assert slip['ytd']['tax_ytd'] == 15000.0
    assert slip['leave'] == {'balance': 12, 'leave_days_taken': 3, 'leave_value': 5000.0}
    assert slip['currency'] == "ZMW"

def test_payslip_falls_back_to_result_name(finalized):
    assert build_payslip(finalized)['employee']['full_name'] == "Mwila Banda"
