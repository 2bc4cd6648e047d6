import pytest

from paydesk.core.audit import AuditLogger
from paydesk.core.exceptions import PayrollRunFinalizedError, PayrollRunNotFoundError
from paydesk.payroll.engine import calculate_payroll
from paydesk.payroll.models import EmployeeCompensation
from paydesk.payroll.runs import PayrollRunStore

@pytest.fixture
def store(session_factory, tmp_path):
    return PayrollRunStore("tst", session_factory=session_factory,
                           audit_logger=AuditLogger("tst", audit_dir=str(tmp_path)))

def test_save_and_get_run(store, params, employee):
    result = calculate_payroll(employee, params)
    store.save_run(1, 2024, [result])
    run = store.get_run(1, 2024)
    assert run['status'] == "Draft"
    assert run['results'] == [result]
    assert store.get_run(2, 2024) is None

def test_resave_draft_replaces_details(store, params, employee):
    other = calculate_payroll(EmployeeCompensation(5000.0, employee_id="E002", employee_name="Chanda"), params)
    store.save_run(1, 2024, [calculate_payroll(employee, params), other])
    store.save_run(1, 2024, [other])
    run = store.get_run(1, 2024)
    assert [r.employee_id for r in run['results']] == ["E002"]
    assert len(store.list_runs()) == 1

def test_finalized_run_cannot_be_overwritten(store, params, employee):
    result = calculate_payroll(employee, params)
    store.save_run(3, 2024, [result], status="Finalized")
    with pytest.raises(PayrollRunFinalizedError):
        store.save_run(3, 2024, [], status="Draft")
    assert store.get_run(3, 2024)['results'] == [result]

def test_finalize_run(store, params, employee):
    with pytest.raises(PayrollRunNotFoundError):
        store.finalize_run(4, 2024)
    store.save_run(4, 2024, [calculate_payroll(employee, params)])
    store.finalize_run(4, 2024, processed_by="admin")
    assert store.get_run(4, 2024)['status'] == "Finalized"
    history = store.audit_logger.get_change_history('payroll_run', '2024-04')
    assert {h['operation'] for h in history} == {'create', 'finalize'}

def test_ytd_counts_finalized_runs_only(store, params, employee):
    result = calculate_payroll(employee, params)
    store.save_run(1, 2024, [result], status="Finalized")
    store.save_run(2, 2024, [result], status="Finalized")
    store.save_run(3, 2024, [result], status="Draft")
    store.save_run(12, 2023, [result], status="Finalized")

    details = store.get_finalized_details_for_year("E001", 2024)
    assert [d['month'] for d in details] == [1, 2]

    ytd = store.ytd_totals("E001", 2024)
    assert ytd['gross_ytd'] == 25000.0
    assert ytd['taxable_pay_ytd'] == 24000.0
    assert ytd['tax_ytd'] == 5000.0
    assert ytd['napsa_ytd'] == 1000.0

    with_current = store.ytd_totals("E001", 2024, current=result)
    assert with_current['tax_ytd'] == 7500.0

def test_unknown_status_rejected(store):
    with pytest.raises(ValueError):
        store.save_run(1, 2024, [], status="Paid")

def test_unnamed_employee_reloads_as_na(store, params):
    result = calculate_payroll(EmployeeCompensation(4000.0, employee_id="E009"), params)
    store.save_run(5, 2024, [result])
    [loaded] = store.get_run(5, 2024)['results']
    assert loaded.employee_name == "N/A"
    assert loaded.net_pay == result.net_pay
