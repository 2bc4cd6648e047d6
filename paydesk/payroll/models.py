"""
Value objects for the payroll calculation engine.

Inputs (``TaxBand``, ``StatutoryParameters``, ``Addition``/``Deduction``,
``EmployeeCompensation``) and outputs (``PayrollResult`` and its breakdown)
are frozen dataclasses holding tuples, so a snapshot can be handed to a worker
thread or process as-is and a result never changes after it is returned.
"""
from dataclasses import dataclass
from enum import Enum
from numbers import Real
from typing import Any, ClassVar, Dict, Optional, Tuple, Union


class ItemType(str, Enum):
    ADDITION = "Addition"
    DEDUCTION = "Deduction"


class CalculationType(str, Enum):
    FIXED = "Fixed"  # absolute currency amount
    PERCENTAGE = "Percentage"  # percentage points of basic salary


def _require_number(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise TypeError(f"{name} must be a number, got {value!r}")
    return float(value)


@dataclass(frozen=True)
class TaxBand:
    """One slice of a progressive income-tax schedule."""

    order: int
    chargeable_amount: Optional[float]  # None for the unbounded top band
    rate: float

    @property
    def is_unbounded(self) -> bool:
        return self.chargeable_amount is None


@dataclass(frozen=True)
class StatutoryParameters:
    """Jurisdiction-wide constants for one calculation."""

    tax_bands: Tuple[TaxBand, ...]
    pension_rate: float
    pension_ceiling: float
    health_rate: float
    health_max_contribution: float
    currency_symbol: str = "K"

    def __post_init__(self) -> None:
        object.__setattr__(self, "tax_bands", tuple(self.tax_bands))


@dataclass(frozen=True)
class _CompensationItem:
    name: str
    calculation_type: CalculationType
    value: float

    kind: ClassVar[ItemType]

    def __post_init__(self) -> None:
        # CalculationType("Bogus") raises ValueError
        object.__setattr__(self, "calculation_type", CalculationType(self.calculation_type))
        object.__setattr__(self, "value", _require_number(f"{self.name} value", self.value))

    def amount_for(self, basic_salary: float) -> float:
        """Realized currency amount of this item for the given basic salary."""
        if self.calculation_type is CalculationType.PERCENTAGE:
            return basic_salary * (self.value / 100)
        return self.value


@dataclass(frozen=True)
class Addition(_CompensationItem):
    """Recurring earning; taxability is part of the variant, not optional data."""

    taxable: bool

    kind: ClassVar[ItemType] = ItemType.ADDITION

    def __post_init__(self) -> None:
        super().__post_init__()
        if not isinstance(self.taxable, bool):
            raise TypeError(f"{self.name} taxable flag must be a bool, got {self.taxable!r}")

    @classmethod
    def fixed(cls, name: str, amount: float, taxable: bool) -> "Addition":
        return cls(name, CalculationType.FIXED, amount, taxable)

    @classmethod
    def percentage(cls, name: str, percent: float, taxable: bool) -> "Addition":
        return cls(name, CalculationType.PERCENTAGE, percent, taxable)


@dataclass(frozen=True)
class Deduction(_CompensationItem):
    """Recurring deduction. Never affects taxable income."""

    kind: ClassVar[ItemType] = ItemType.DEDUCTION

    @classmethod
    def fixed(cls, name: str, amount: float) -> "Deduction":
        return cls(name, CalculationType.FIXED, amount)

    @classmethod
    def percentage(cls, name: str, percent: float) -> "Deduction":
        return cls(name, CalculationType.PERCENTAGE, percent)


CompensationItem = Union[Addition, Deduction]


def make_compensation_item(
    item_type: Union[ItemType, str],
    name: str,
    calculation_type: Union[CalculationType, str],
    value: float,
    is_taxable: bool = False,
) -> CompensationItem:
    """Build the right variant from a stored (type, calculation type, value) row."""
    if ItemType(item_type) is ItemType.ADDITION:
        return Addition(name, calculation_type, value, bool(is_taxable))
    return Deduction(name, calculation_type, value)


@dataclass(frozen=True)
class EmployeeCompensation:
    """Calculation input for one employee."""

    basic_salary: float
    items: Tuple[CompensationItem, ...] = ()
    employee_id: Optional[str] = None
    employee_name: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", tuple(self.items))


@dataclass(frozen=True)
class PayeBandLine:
    """One row of the tax-band ledger."""

    band_description: str
    chargeable_income_in_band: float
    rate: float
    tax_due: float


@dataclass(frozen=True)
class RealizedAddition:
    name: str
    amount: float
    is_taxable: bool


@dataclass(frozen=True)
class RealizedDeduction:
    name: str
    amount: float


@dataclass(frozen=True)
class StatutoryContributions:
    income_tax: float  # PAYE
    pension_contribution: float  # NAPSA
    health_contribution: float  # NHIMA

    @property
    def total(self) -> float:
        return self.income_tax + self.pension_contribution + self.health_contribution


@dataclass(frozen=True)
class PayrollBreakdown:
    additions: Tuple[RealizedAddition, ...]
    deductions: Tuple[RealizedDeduction, ...]
    statutory: StatutoryContributions
    tax_bands: Tuple[PayeBandLine, ...]

    @property
    def custom_deductions_total(self) -> float:
        return sum(d.amount for d in self.deductions)

    @property
    def total_deductions(self) -> float:
        return self.statutory.total + self.custom_deductions_total


@dataclass(frozen=True)
class PayrollResult:
    """Calculation output for one employee and one period."""

    basic_salary: float
    gross_pay: float
    taxable_income: float
    net_pay: float
    breakdown: PayrollBreakdown
    employee_id: Optional[str] = None
    employee_name: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Serialize in the layout stored in the payroll detail ``breakdown`` column."""
        b = self.breakdown
        return {
            "employeeId": self.employee_id,
            "employeeName": self.employee_name,
            "basicSalary": self.basic_salary,
            "grossPay": self.gross_pay,
            "taxableIncome": self.taxable_income,
            "netPay": self.net_pay,
            "breakdown": breakdown_to_dict(b),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PayrollResult":
        return cls(
            basic_salary=data["basicSalary"],
            gross_pay=data["grossPay"],
            taxable_income=data["taxableIncome"],
            net_pay=data["netPay"],
            breakdown=breakdown_from_dict(data["breakdown"]),
            employee_id=data.get("employeeId"),
            employee_name=data.get("employeeName", ""),
        )


def breakdown_to_dict(b: PayrollBreakdown) -> Dict[str, Any]:
    return {
        "additions": [
            {"name": a.name, "amount": a.amount, "isTaxable": a.is_taxable} for a in b.additions
        ],
        "deductions": [{"name": d.name, "amount": d.amount} for d in b.deductions],
        "statutory": {
            "paye": b.statutory.income_tax,
            "napsa": b.statutory.pension_contribution,
            "nhima": b.statutory.health_contribution,
        },
        "payeBreakdown": [
            {
                "bandDescription": line.band_description,
                "chargeableIncomeInBand": line.chargeable_income_in_band,
                "rate": line.rate,
                "taxDue": line.tax_due,
            }
            for line in b.tax_bands
        ],
    }


def breakdown_from_dict(data: Dict[str, Any]) -> PayrollBreakdown:
    statutory = data.get("statutory", {})
    return PayrollBreakdown(
        additions=tuple(
            RealizedAddition(a["name"], a["amount"], bool(a.get("isTaxable", False)))
            for a in data.get("additions", [])
        ),
        deductions=tuple(RealizedDeduction(d["name"], d["amount"]) for d in data.get("deductions", [])),
        statutory=StatutoryContributions(
            income_tax=statutory.get("paye", 0.0),
            pension_contribution=statutory.get("napsa", 0.0),
            health_contribution=statutory.get("nhima", 0.0),
        ),
        tax_bands=tuple(
            PayeBandLine(
                line["bandDescription"],
                line["chargeableIncomeInBand"],
                line["rate"],
                line["taxDue"],
            )
            for line in data.get("payeBreakdown", [])
        ),
    )
