"""
schemas.py — Evaluator Pydantic v2 data contracts.

Defines:
  - LineItem           (label, amount) — deduction and tax breakdown rows
  - SlabBreakdownItem  one row per slab that taxed a non-zero amount
  - CapitalGainsLine   one row per non-zero STCG / LTCG transaction
  - RegimeResult       full tax computation for one regime
  - ComparisonResult   dual-regime comparison — main engine output

ROUNDING:
  The engine computes in exact Decimal. Money fields are quantized to paise
  (ROUND_HALF_UP) when these models are built — the reporting boundary — and
  serialised as JSON numbers. Rates are never rounded.
"""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Annotated, List, Literal, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, PlainSerializer

from taxregime.intake.schemas import Regime, ResidencyStatus

PAISE = Decimal("0.01")


def quantize_paise(value: Decimal) -> Decimal:
    """Round half-up to two decimal places."""
    return value.quantize(PAISE, rounding=ROUND_HALF_UP)


Money = Annotated[
    Decimal,
    AfterValidator(quantize_paise),
    PlainSerializer(float, return_type=float, when_used="json"),
]
Rate = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


# ---------------------------------------------------------------------------
# Breakdown rows
# ---------------------------------------------------------------------------

class LineItem(BaseModel):
    """
    Structured breakdown row. Labels are plain section names
    ("Standard Deduction", "Rebate u/s 87A"); currency formatting is left to
    the presentation layer.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    label: str
    amount: Money


class SlabBreakdownItem(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    lower_bound: Money
    upper_bound: Optional[Money] = None    # None → "and above"
    rate: Rate
    taxed_amount: Money
    tax: Money


class CapitalGainsLine(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    transaction_id: int
    term: Literal["short", "long"]
    date_bucket: str
    amount: Money
    rate: Rate
    exemption: Money          # 0 for short-term
    taxable_amount: Money
    tax: Money


# ---------------------------------------------------------------------------
# RegimeResult — full tax calculation for one regime
# ---------------------------------------------------------------------------

class RegimeResult(BaseModel):
    """
    Complete tax computation result for a single regime (old or new).

    Computation sequence (order determines correctness):
      1. taxable_income = salary + other + (house_property − let-out interest)
                          − deductions, floored at 0   (capital gains excluded)
      2. general_income_tax = progressive slab tax on taxable_income
      3. rebate = 87A on general_income_tax only        ← strictly after step 2
      4. tax_after_rebate = max(0, general + capital_gains_tax − rebate)
      5. surcharge = tier rate (on gross total income) × tax_after_rebate
      6. cess = 4% × (tax_after_rebate + surcharge)
      7. total_tax = tax_after_rebate + surcharge + cess

    tax_line_items order is fixed:
      slab tax → capital gains tax → rebate (negative) → surcharge → cess
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    regime: Regime
    taxable_income: Money
    total_deductions: Money
    general_income_tax: Money
    capital_gains_tax: Money
    rebate: Money
    tax_after_rebate: Money
    surcharge_rate: Rate
    surcharge: Money
    cess: Money
    total_tax: Money

    deduction_line_items: List[LineItem]
    notes: List[str] = []
    tax_line_items: List[LineItem]
    slab_breakdown: List[SlabBreakdownItem]
    capital_gains_breakdown: List[CapitalGainsLine]


# ---------------------------------------------------------------------------
# ComparisonResult — regime comparison output (public API of the engine)
# ---------------------------------------------------------------------------

class ComparisonResult(BaseModel):
    """
    Output of compute(). Both regimes are always present; preferred_regime is
    echoed back for display and never changes what is computed.

    cheaper_regime: "old" | "new" | "equal" (compared on total_tax after rounding)
    tax_difference: abs(old.total_tax − new.total_tax)
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    fiscal_year: str
    age_band: str
    residency_status: ResidencyStatus
    gross_total_income: Money
    total_capital_gains: Money

    old_regime: RegimeResult
    new_regime: RegimeResult

    cheaper_regime: Literal["old", "new", "equal"]
    tax_difference: Money
    preferred_regime: Optional[Regime] = None


__all__ = [
    "Money",
    "Rate",
    "quantize_paise",
    "LineItem",
    "SlabBreakdownItem",
    "CapitalGainsLine",
    "RegimeResult",
    "ComparisonResult",
]
