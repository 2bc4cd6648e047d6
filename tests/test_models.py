import dataclasses

import pytest

from paydesk.payroll.engine import calculate_payroll
from paydesk.payroll.models import (
    Addition,
    CalculationType,
    Deduction,
    ItemType,
    PayrollResult,
    make_compensation_item,
)

def test_addition_requires_taxable_flag():
    with pytest.raises(TypeError):
        Addition("Housing", CalculationType.FIXED, 100.0)
    with pytest.raises(TypeError):
        Addition("Housing", CalculationType.FIXED, 100.0, "yes")

def test_percentage_item_requires_numeric_value():
    with pytest.raises(TypeError):
        Deduction.percentage("Loan", None)
    with pytest.raises(TypeError):
        Addition.percentage("Bonus", True, taxable=True)

def test_unknown_calculation_type_rejected():
    with pytest.raises(ValueError):
        Deduction("Loan", "Bogus", 10.0)

def test_calculation_type_accepts_stored_strings():
    d = Deduction("Loan", "Percentage", 10)
    assert d.calculation_type is CalculationType.PERCENTAGE
    assert d.amount_for(5000.0) == 500.0

def test_make_compensation_item_picks_variant():
    add = make_compensation_item("Addition", "Housing", "Fixed", 1500, is_taxable=True)
    ded = make_compensation_item(ItemType.DEDUCTION, "Union Dues", "Fixed", 50, is_taxable=True)
    assert isinstance(add, Addition) and add.taxable is True
    assert isinstance(ded, Deduction)
    assert ded.kind is ItemType.DEDUCTION

def test_items_are_frozen():
    item = Addition.fixed("Housing", 100.0, taxable=True)
    with pytest.raises(dataclasses.FrozenInstanceError):
        item.value = 200.0

def test_result_dict_layout(params, employee):
    data = calculate_payroll(employee, params).to_dict()
    assert data["breakdown"]["statutory"] == {"paye": 2500.0, "napsa": 500.0, "nhima": 100.0}
    assert data["breakdown"]["payeBreakdown"][1]["bandDescription"] == "Next K4,000.01 to K8,000"
    assert data["breakdown"]["additions"][0] == {"name": "Housing", "amount": 2000.0, "isTaxable": True}

def test_result_from_dict_restores_result(params, employee):
    result = calculate_payroll(employee, params)
    assert PayrollResult.from_dict(result.to_dict()) == result
