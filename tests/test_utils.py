import logging
import logging.handlers

from paydesk.core.audit import AuditLogger
from paydesk.core.exceptions import (
    InsufficientLeaveBalanceError,
    LeaveRequestError,
    PayDeskError,
    PayrollRunFinalizedError,
)
from paydesk.core.utils import format_money, setup_logging

def test_setup_logging_idempotent(tmp_path):
    tenant = "tmptest"
    logger1 = setup_logging(tenant)
    handlers_before = len(logger1.handlers)
    logger2 = setup_logging(tenant)
    handlers_after = len(logger2.handlers)
    assert handlers_before == handlers_after
    assert any(isinstance(h, logging.handlers.RotatingFileHandler) for h in logger2.handlers)

def test_format_money():
    assert format_money(9100) == "9,100.00"

def test_audit_history_newest_first(tmp_path):
    audit = AuditLogger("tst", audit_dir=str(tmp_path))
    audit.log_data_change('payroll_run', 'create', '2024-01', {'status': 'Draft'})
    audit.log_data_change('payroll_run', 'finalize', '2024-01', {'status': 'Finalized'}, user_id='admin')
    audit.log_data_change('leave_request', 'approve', 'R1', {})
    history = audit.get_change_history('payroll_run', '2024-01')
    assert len(history) == 2
    assert history[0]['timestamp'] >= history[1]['timestamp']
    assert (tmp_path / "audit" / "tst_changes.jsonl").exists()

def test_error_codes():
    err = InsufficientLeaveBalanceError("E001", 5, 2)
    assert isinstance(err, LeaveRequestError) and isinstance(err, PayDeskError)
    assert err.code == "INSUFFICIENT_LEAVE_BALANCE"
    assert "2024-03" in str(PayrollRunFinalizedError(3, 2024))
