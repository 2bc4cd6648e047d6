import pytest
from sqlalchemy.pool import StaticPool

from paydesk.core.config import settings
from paydesk.db.session import init_db, make_engine, make_session_factory
from paydesk.payroll.models import (
    Addition,
    Deduction,
    EmployeeCompensation,
    StatutoryParameters,
    TaxBand,
)

@pytest.fixture(autouse=True)
def _tmp_log_path(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "LOG_PATH", str(tmp_path / "logs"))

@pytest.fixture
def session_factory():
    engine = make_engine("sqlite://", poolclass=StaticPool)
    init_db(engine)
    yield make_session_factory(engine)
    engine.dispose()

@pytest.fixture
def params():
    return StatutoryParameters(
        tax_bands=(
            TaxBand(1, 4000.0, 0.0),
            TaxBand(2, 4000.0, 0.25),
            TaxBand(3, None, 0.375),
        ),
        pension_rate=0.05,
        pension_ceiling=20000.0,
        health_rate=0.01,
        health_max_contribution=1000.0,
    )

@pytest.fixture
def employee():
    return EmployeeCompensation(
        basic_salary=10000.0,
        items=(
            Addition.fixed("Housing", 2000.0, taxable=True),
            Addition.fixed("Lunch", 500.0, taxable=False),
            Deduction.fixed("Union Dues", 300.0),
        ),
        employee_id="E001",
        employee_name="Mwila Banda",
    )
