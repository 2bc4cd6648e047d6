from paydesk.payroll.bulk_processor import PayrollBatchProcessor
from paydesk.payroll.engine import calculate_payroll
from paydesk.payroll.models import Addition, Deduction, EmployeeCompensation

def _workforce(n=25):
    return [
        EmployeeCompensation(
            basic_salary=3000.0 + 750.0 * i,
            items=(Addition.percentage("Housing", 20, taxable=True), Deduction.fixed("Welfare", 25.0)),
            employee_id=f"E{i:03d}",
        )
        for i in range(n)
    ]

def test_batch_matches_serial_map_in_order(params):
    employees = _workforce()
    proc = PayrollBatchProcessor("tst", params, max_workers=4)
    results = proc.process(employees)
    assert [r.employee_id for r in results] == [e.employee_id for e in employees]
    assert results == [calculate_payroll(e, params) for e in employees]

def test_empty_batch(params):
    proc = PayrollBatchProcessor("tst", params)
    assert proc.process([]) == []
    assert proc.summarize([], "2024-01") == {'period': "2024-01", 'total_employees': 0}

def test_summary_totals(params, employee):
    proc = PayrollBatchProcessor("tst", params, max_workers=2)
    out = proc.process_and_summarize([employee, employee], "2024-01")
    summary = out['summary']
    assert summary['total_employees'] == 2
    assert summary['totals']['gross'] == 25000.0
    assert summary['totals']['paye'] == 5000.0
    assert summary['totals']['other_deductions'] == 600.0
    assert summary['totals']['net'] == 18200.0
    assert summary['totals']['deductions'] == 6800.0
    assert summary['averages']['net'] == 9100.0
    assert summary['employee_details'][0]['napsa'] == 500.0
