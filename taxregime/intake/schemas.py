"""
schemas.py — Intake Pydantic v2 data contracts.

Defines:
  - AgeBand, ResidencyStatus, DateBucket, Regime enums
  - Amount / DayCount lenient coercion types
  - IncomeInputs              (every income head and claimed deduction — annual INR)
  - CapitalGainsTransaction   (one STCG or LTCG realisation)
  - CapitalGainsInputs        (ordered STCG / LTCG transaction lists)
  - ResidencyRequest          (day counts + 2-of-10 history flag)
  - CalculateRequest          (body of POST /api/calculate)
  - ErrorDetail, ErrorBody, ErrorResponse  (cross-cutting error envelope)

LENIENCY RULE:
  Any amount that cannot be read as a finite number becomes 0 — an empty form
  field means "no value", never an error. Negative numbers are still numbers:
  they are rejected (ge=0) everywhere except house_property_income. Amounts
  above MAX_AMOUNT (either sign) are rejected too.

fiscal_year, age_band and date_bucket are plain strings on purpose. Unknown
values are a ConfigurationError raised by the rule-table lookup, not a 422
from Pydantic.
"""
from __future__ import annotations

import math
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Annotated, Any, List, Optional, Tuple

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator

ZERO = Decimal(0)

# Largest amount accepted on any field (10^15 INR). Keeps every intermediate
# figure well inside the 28-digit decimal context so paise quantization is exact.
MAX_AMOUNT = Decimal(10) ** 15

# Ten years of days. Day counts above this read as the cap.
MAX_DAY_COUNT = 3653


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class AgeBand(str, Enum):
    below60 = "below60"
    sixty_to_80 = "60to80"
    above80 = "above80"


class ResidencyStatus(str, Enum):
    ror = "ROR"      # Resident & Ordinarily Resident
    rnor = "RNOR"    # Resident but Not Ordinarily Resident
    nri = "NRI"      # Non-Resident


class DateBucket(str, Enum):
    """Transfer date relative to the 23 July 2024 capital-gains rate change."""
    before_cutoff = "before_cutoff"
    after_cutoff = "after_cutoff"


class Regime(str, Enum):
    old = "old"
    new = "new"


# ---------------------------------------------------------------------------
# Lenient coercion
# ---------------------------------------------------------------------------

def coerce_amount(value: Any) -> Decimal:
    """
    Read a form value as a Decimal amount; anything unreadable becomes 0.

    Accepts ints, floats, Decimals and strings ("1,50,000" and " 2500.50 " both
    parse). None, "", "abc", NaN and infinities all map to Decimal(0).
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(repr(value)) if math.isfinite(value) else ZERO
    if isinstance(value, str):
        text = value.strip().replace(",", "").replace("_", "")
        if not text:
            return ZERO
        try:
            amount = Decimal(text)
        except InvalidOperation:
            return ZERO
        return amount if amount.is_finite() else ZERO
    return ZERO


def coerce_days(value: Any) -> int:
    """
    Day counts: unreadable or negative → 0, fractional days truncated,
    anything above MAX_DAY_COUNT reads as MAX_DAY_COUNT.
    """
    days = coerce_amount(value)
    if days <= 0:
        return 0
    if days >= MAX_DAY_COUNT:
        return MAX_DAY_COUNT
    return int(days)


def coerce_flag(value: Any) -> bool:
    """'yes'/'true'/'1'/True → True; everything else (including junk) → False."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in ("yes", "y", "true", "1")
    if isinstance(value, (int, float, Decimal)):
        return value == 1
    return False


def _enum_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


Amount = Annotated[Decimal, BeforeValidator(coerce_amount), Field(le=MAX_AMOUNT)]
DayCount = Annotated[int, BeforeValidator(coerce_days)]
Flag = Annotated[bool, BeforeValidator(coerce_flag)]
RuleKey = Annotated[str, BeforeValidator(_enum_value)]


# ---------------------------------------------------------------------------
# IncomeInputs — every income head and claimed deduction
# ---------------------------------------------------------------------------

class IncomeInputs(BaseModel):
    """
    Caller-supplied annual amounts in INR. All values are RAW claims — the
    engine applies caps. For example deduction_80c=200000 is accepted and the
    old regime applies ₹1,50,000.

    frozen=True: the engine never mutates inputs, and callers can hash them for
    identical-input caching.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    # --- Income heads ---
    gross_salary: Amount = Field(default=ZERO, ge=0)
    other_income: Amount = Field(default=ZERO, ge=0)
    house_property_income: Amount = Field(
        default=ZERO,
        ge=-MAX_AMOUNT,
        description="Net annual value of let-out property before interest. May be negative.",
    )
    home_loan_interest_self_occupied: Amount = Field(
        default=ZERO, ge=0,
        description="Section 24(b) interest on a self-occupied property. Capped by the rule table.",
    )
    home_loan_interest_let_out: Amount = Field(
        default=ZERO, ge=0,
        description="Interest on a let-out property. Reduces house-property income, uncapped.",
    )

    # --- HRA ---
    hra_received: Amount = Field(default=ZERO, ge=0)
    rent_paid: Amount = Field(default=ZERO, ge=0, description="ANNUAL rent paid.")
    is_metro_city: bool = Field(default=False, description="Metro: 50% of salary HRA limb, else 40%.")

    # --- Chapter VI-A claims ---
    deduction_80c: Amount = Field(default=ZERO, ge=0)
    deduction_80d: Amount = Field(default=ZERO, ge=0)
    deduction_80e: Amount = Field(default=ZERO, ge=0)
    deduction_80g: Amount = Field(default=ZERO, ge=0)
    deduction_80tta: Amount = Field(
        default=ZERO, ge=0,
        description="Interest claim — 80TTA for below60, 80TTB for senior age bands.",
    )
    nps_employee_contribution: Amount = Field(default=ZERO, ge=0, description="80CCD(1B).")
    nps_employer_contribution: Amount = Field(default=ZERO, ge=0, description="80CCD(2).")


# ---------------------------------------------------------------------------
# Capital gains transactions
# ---------------------------------------------------------------------------

class CapitalGainsTransaction(BaseModel):
    """One realised gain. Term (short/long) is given by the list that holds it."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    id: int = Field(..., ge=1, description="Stable key, unique within its list.")
    amount: Amount = Field(default=ZERO, ge=0)
    date_bucket: RuleKey = Field(
        default=DateBucket.after_cutoff.value,
        description="'before_cutoff' or 'after_cutoff' (23 July 2024).",
    )


class CapitalGainsInputs(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    stcg: Tuple[CapitalGainsTransaction, ...] = ()
    ltcg: Tuple[CapitalGainsTransaction, ...] = ()


# ---------------------------------------------------------------------------
# Residency
# ---------------------------------------------------------------------------

class ResidencyRequest(BaseModel):
    """Body of POST /api/residency. Missing or junk values read as 0 / False."""
    model_config = ConfigDict(extra="forbid")

    days_current_fy: DayCount = 0
    days_prev_4_fy: DayCount = Field(default=0, description="Cumulative days over the 4 preceding FYs.")
    days_prev_7_fy: DayCount = Field(default=0, description="Cumulative days over the 7 preceding FYs.")
    was_resident_2_of_10: Flag = False


class ResidencyResponse(BaseModel):
    residency_status: ResidencyStatus


# ---------------------------------------------------------------------------
# CalculateRequest — POST /api/calculate
# ---------------------------------------------------------------------------

class CalculateRequest(BaseModel):
    """
    Either residency_status (already classified by the caller) or a residency
    block (classified server-side) must be present. If both are sent the
    explicit status wins.
    """
    model_config = ConfigDict(extra="forbid")

    fiscal_year: RuleKey
    age_band: RuleKey = AgeBand.below60.value
    residency_status: Optional[ResidencyStatus] = None
    residency: Optional[ResidencyRequest] = None
    income: IncomeInputs = Field(default_factory=IncomeInputs)
    capital_gains: CapitalGainsInputs = Field(default_factory=CapitalGainsInputs)
    preferred_regime: Optional[Regime] = Field(
        default=None,
        description="Informational only — both regimes are always computed.",
    )

    @model_validator(mode="after")
    def validate_residency_supplied(self) -> "CalculateRequest":
        if self.residency_status is None and self.residency is None:
            raise ValueError("Supply either residency_status or a residency block")
        return self


# ---------------------------------------------------------------------------
# Error response models — used by main.py exception handlers (cross-cutting)
# ---------------------------------------------------------------------------

class ErrorDetail(BaseModel):
    """Single field-level validation or configuration error."""
    model_config = ConfigDict(extra="forbid")

    field: Optional[str] = None   # Dot-notation field path, e.g. "income.gross_salary"
    issue: str


class ErrorBody(BaseModel):
    model_config = ConfigDict(extra="forbid")

    code: str                                      # VALIDATION_ERROR, CONFIGURATION_ERROR, ...
    message: str
    details: List[ErrorDetail] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """
    Standard error response format for all endpoints.

    Structure: {"error": {"code": "...", "message": "...", "details": [...]}}
    """
    model_config = ConfigDict(extra="forbid")

    error: ErrorBody


__all__ = [
    "AgeBand",
    "ResidencyStatus",
    "DateBucket",
    "Regime",
    "Amount",
    "MAX_AMOUNT",
    "MAX_DAY_COUNT",
    "coerce_amount",
    "coerce_days",
    "coerce_flag",
    "IncomeInputs",
    "CapitalGainsTransaction",
    "CapitalGainsInputs",
    "ResidencyRequest",
    "ResidencyResponse",
    "CalculateRequest",
    "ErrorDetail",
    "ErrorBody",
    "ErrorResponse",
]
