"""
Statutory configuration management: PAYE bands and NAPSA/NHIMA settings.

Band lists and settings are validated here, before they reach the payroll
engine, so the engine can assume a well-formed schedule.

Preconditions for ``build_statutory_parameters``:
    - band orders are exactly 1..n
    - exactly one band has no chargeable amount and it has the highest order
    - finite widths are positive and rates lie in 0..1
    - every key in ``REQUIRED_SETTINGS`` is present and numeric
"""
import math
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import pandas as pd

from paydesk.core.config import settings
from paydesk.core.exceptions import StatutoryConfigError
from paydesk.core.utils import setup_logging
from paydesk.db.models import PayrollSetting, TaxBandRecord
from paydesk.db.session import SessionLocal
from paydesk.payroll.models import StatutoryParameters, TaxBand

REQUIRED_SETTINGS = ("napsa_rate", "napsa_ceiling", "nhima_rate", "nhima_max_contribution")
TEMPLATE_COLUMNS = ["band_order", "chargeable_amount", "rate"]

def rate_to_percent(rate: float) -> float:
    return float(rate) * 100

def percent_to_rate(percent: float) -> float:
    return float(percent) / 100

def is_rate_key(key: str) -> bool:
    return "_rate" in key

def settings_for_form(values: Mapping[str, Any]) -> Dict[str, Any]:
    """Stored settings with rate keys shown as percentages (0.05 -> 5.0)."""
    return {k: rate_to_percent(v) if is_rate_key(k) else v for k, v in values.items()}

def settings_from_form(values: Mapping[str, Any]) -> Dict[str, str]:
    """Form values back to stored strings, rate keys converted to fractions."""
    return {k: str(percent_to_rate(v)) if is_rate_key(k) else str(v) for k, v in values.items()}

def default_tax_bands() -> List[TaxBand]:
    return [
        TaxBand(order=i, chargeable_amount=width, rate=rate)
        for i, (width, rate) in enumerate(settings.PAYE_BANDS, start=1)
    ]

def default_payroll_settings() -> Dict[str, str]:
    return {
        "napsa_rate": str(settings.NAPSA_RATE),
        "napsa_ceiling": str(settings.NAPSA_CEILING),
        "nhima_rate": str(settings.NHIMA_RATE),
        "nhima_max_contribution": str(settings.NHIMA_MAX_CONTRIBUTION),
    }

def validate_tax_bands(bands: Iterable[TaxBand]) -> List[str]:
    """Return a list of problems with a band schedule; empty means valid."""
    bands = list(bands)
    if not bands:
        return ["at least one tax band is required"]

    problems = []
    orders = sorted(b.order for b in bands)
    if orders != list(range(1, len(bands) + 1)):
        problems.append(f"band orders must be exactly 1..{len(bands)}, got {orders}")

    unbounded = [b for b in bands if b.chargeable_amount is None]
    if len(unbounded) != 1:
        problems.append(f"exactly one band must have no chargeable amount, found {len(unbounded)}")
    elif unbounded[0].order != max(orders):
        problems.append("the band with no chargeable amount must have the highest order")

    for band in sorted(bands, key=lambda b: b.order):
        width = band.chargeable_amount
        if width is not None and not (width > 0 and math.isfinite(width)):
            problems.append(f"band {band.order}: chargeable amount must be positive, got {width}")
        if not (0 <= band.rate <= 1):
            problems.append(f"band {band.order}: rate must be between 0 and 1, got {band.rate}")
    return problems

def parse_settings(values: Mapping[str, Any]) -> Tuple[Dict[str, float], List[str]]:
    """Convert required settings to floats, collecting problems instead of raising."""
    parsed: Dict[str, float] = {}
    problems = []
    for key in REQUIRED_SETTINGS:
        if key not in values or values[key] is None:
            problems.append(f"setting {key} is missing")
            continue
        try:
            number = float(values[key])
        except (TypeError, ValueError):
            problems.append(f"setting {key} is not numeric: {values[key]!r}")
            continue
        if not math.isfinite(number):
            problems.append(f"setting {key} is not numeric: {values[key]!r}")
            continue
        if is_rate_key(key) and not (0 <= number <= 1):
            problems.append(f"setting {key} must be between 0 and 1, got {number}")
        elif number < 0:
            problems.append(f"setting {key} must not be negative, got {number}")
        parsed[key] = number
    return parsed, problems

def build_statutory_parameters(
    bands: Iterable[TaxBand],
    values: Mapping[str, Any],
    currency_symbol: Optional[str] = None,
) -> StatutoryParameters:
    """Validate bands and settings together; raise StatutoryConfigError listing every problem."""
    bands = sorted(bands, key=lambda b: b.order)
    parsed, problems = parse_settings(values)
    problems = validate_tax_bands(bands) + problems
    if problems:
        raise StatutoryConfigError(problems)
    return StatutoryParameters(
        tax_bands=tuple(bands),
        pension_rate=parsed["napsa_rate"],
        pension_ceiling=parsed["napsa_ceiling"],
        health_rate=parsed["nhima_rate"],
        health_max_contribution=parsed["nhima_max_contribution"],
        currency_symbol=currency_symbol or settings.CURRENCY_SYMBOL,
    )

def tax_bands_from_dataframe(df: pd.DataFrame) -> List[TaxBand]:
    """Read bands from a DataFrame with ``band_order, chargeable_amount, rate`` columns.

    A blank chargeable amount marks the unbounded top band. Unreadable orders or
    rates raise StatutoryConfigError.
    """
    missing = [c for c in TEMPLATE_COLUMNS if c not in df.columns]
    if missing:
        raise StatutoryConfigError([f"missing column(s): {', '.join(missing)}"])

    orders = pd.to_numeric(df["band_order"], errors="coerce")
    widths = pd.to_numeric(df["chargeable_amount"], errors="coerce")
    rates = pd.to_numeric(df["rate"], errors="coerce")

    problems = []
    bands = []
    for row, (order, width, rate) in enumerate(zip(orders, widths, rates), start=1):
        if pd.isna(order) or pd.isna(rate):
            problems.append(f"row {row}: band_order and rate must be numeric")
            continue
        if order != int(order):
            problems.append(f"row {row}: band_order must be a whole number, got {order}")
            continue
        bands.append(TaxBand(
            order=int(order),
            chargeable_amount=None if pd.isna(width) else float(width),
            rate=float(rate),
        ))
    if problems:
        raise StatutoryConfigError(problems)
    return bands

class StatutoryConfigManager:
    """Loads, validates and stores the statutory parameter set."""

    def __init__(self, tenant_id: str = "system", session_factory=None):
        self.tenant_id = tenant_id
        self.session_factory = session_factory or SessionLocal
        self.logger = setup_logging(tenant_id)

    def get_template(self) -> pd.DataFrame:
        """Get tax band upload template pre-filled with the default schedule."""
        return pd.DataFrame(
            [
                {"band_order": b.order, "chargeable_amount": b.chargeable_amount, "rate": b.rate}
                for b in default_tax_bands()
            ],
            columns=TEMPLATE_COLUMNS,
        )

    def load_tax_bands(self) -> List[TaxBand]:
        with self.session_factory() as session:
            records = session.query(TaxBandRecord).order_by(TaxBandRecord.band_order).all()
            return [TaxBand(r.band_order, r.chargeable_amount, r.rate) for r in records]

    def load_settings(self) -> Dict[str, str]:
        with self.session_factory() as session:
            return {s.setting_key: s.setting_value for s in session.query(PayrollSetting).all()}

    def build_parameters(self) -> StatutoryParameters:
        """Statutory parameters from the store; raises StatutoryConfigError if invalid."""
        try:
            return build_statutory_parameters(self.load_tax_bands(), self.load_settings())
        except StatutoryConfigError as e:
            self.logger.error("Statutory configuration rejected: %s", "; ".join(e.problems))
            raise

    def save_tax_bands(self, bands: Iterable[TaxBand]) -> int:
        """Replace the stored schedule after validating it as a whole."""
        bands = sorted(bands, key=lambda b: b.order)
        problems = validate_tax_bands(bands)
        if problems:
            raise StatutoryConfigError(problems)

        with self.session_factory() as session:
            with session.begin():
                session.query(TaxBandRecord).delete()
                session.add_all([
                    TaxBandRecord(band_order=b.order, chargeable_amount=b.chargeable_amount, rate=b.rate)
                    for b in bands
                ])
        self.logger.info("Saved %d tax band(s)", len(bands))
        return len(bands)

    def save_settings(self, values: Mapping[str, Any]) -> Dict[str, int]:
        """Upsert payroll settings by key. Required keys are validated first."""
        to_check = {**self.load_settings(), **values}
        _, problems = parse_settings(to_check)
        if problems:
            raise StatutoryConfigError(problems)

        created = updated = 0
        with self.session_factory() as session:
            with session.begin():
                existing = {s.setting_key: s for s in session.query(PayrollSetting).all()}
                for key, value in values.items():
                    if key in existing:
                        existing[key].setting_value = str(value)
                        updated += 1
                    else:
                        session.add(PayrollSetting(setting_key=key, setting_value=str(value)))
                        created += 1
        self.logger.info("Saved payroll settings: %d created, %d updated", created, updated)
        return {"created": created, "updated": updated}

    def import_tax_bands_csv(self, file_path: str) -> int:
        df = pd.read_csv(file_path)
        return self.save_tax_bands(tax_bands_from_dataframe(df))

    def seed_defaults(self) -> bool:
        """Fill an empty store with the configured default schedule. Returns True if seeded."""
        seeded = False
        if not self.load_tax_bands():
            self.save_tax_bands(default_tax_bands())
            seeded = True
        current = self.load_settings()
        missing = {k: v for k, v in default_payroll_settings().items() if k not in current}
        if missing:
            self.save_settings(missing)
            seeded = True
        return seeded
