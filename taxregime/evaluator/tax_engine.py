"""
taxregime tax engine — FY 2024-25 and FY 2025-26.
Pure Python, deterministic. Same input → same output, no state kept between calls.

Pipeline, run once per regime:
  rule table → deductions → slab tax → 87A rebate → surcharge & cess
Capital gains are taxed once (independent of regime) and merged into both.

compute() raises ConfigurationError for an unknown fiscal year, age band,
residency status or date bucket. safe_compute() is the orchestration boundary:
any exception is logged and None is returned — never a partial result.
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Optional

from taxregime.evaluator.capital_gains import CapitalGainsTax, compute_capital_gains
from taxregime.evaluator.deductions import (
    aggregate_new_regime,
    aggregate_old_regime,
    taxable_income as compute_taxable_income,
)
from taxregime.evaluator.rebate import calculate_rebate, tax_after_rebate
from taxregime.evaluator.rules import (
    ConfigurationError,
    RuleTable,
    get_rule_table,
    resolve_age_band,
)
from taxregime.evaluator.schemas import (
    ComparisonResult,
    LineItem,
    RegimeResult,
    quantize_paise,
)
from taxregime.evaluator.slabs import calculate_slab_tax
from taxregime.evaluator.surcharge import apply_surcharge_and_cess
from taxregime.intake.schemas import (
    AgeBand,
    CapitalGainsInputs,
    IncomeInputs,
    Regime,
    ResidencyStatus,
)

logger = logging.getLogger(__name__)

LABEL_SLAB_TAX = "Tax on Income (Slab Rates)"
LABEL_CAPITAL_GAINS_TAX = "Capital Gains Tax"
LABEL_REBATE_OLD = "Rebate u/s 87A"
LABEL_REBATE_NEW = "Rebate u/s 87A (including Marginal Relief)"
LABEL_SURCHARGE = "Surcharge"
LABEL_CESS = "Health & Education Cess (4%)"


# ===========================================================================
# INTERNAL HELPERS
# ===========================================================================

def _resolve_residency(residency_status: Any) -> ResidencyStatus:
    try:
        return ResidencyStatus(residency_status)
    except ValueError:
        raise ConfigurationError(
            f"Unknown residency status {residency_status!r} — "
            f"expected one of {[s.value for s in ResidencyStatus]}"
        ) from None


def gross_total_income(income: IncomeInputs, capital_gains: CapitalGainsTax) -> Decimal:
    """
    All heads before any deduction: salary + other income + house property
    (before let-out interest) + every capital gain.
    """
    return (
        income.gross_salary
        + income.other_income
        + income.house_property_income
        + capital_gains.total_amount
    )


def _calculate_regime(
    rules: RuleTable,
    regime: Regime,
    age_band: AgeBand,
    residency_status: ResidencyStatus,
    income: IncomeInputs,
    capital_gains: CapitalGainsTax,
    gti: Decimal,
) -> RegimeResult:
    # Step 1: Deductions for this regime
    if regime is Regime.old:
        deductions = aggregate_old_regime(rules, age_band, residency_status, income)
        slabs = rules.old_slabs_for(age_band)
        rebate_label = LABEL_REBATE_OLD
    else:
        deductions = aggregate_new_regime(rules, residency_status, income)
        slabs = rules.slabs_new
        rebate_label = LABEL_REBATE_NEW

    # Step 2: Taxable income (capital gains excluded, never negative)
    taxable = compute_taxable_income(income, deductions)

    # Step 3: Slab tax on general income
    slab_tax = calculate_slab_tax(taxable, slabs)

    # Step 4: 87A rebate — strictly after the slab tax, on general income tax only
    rebate = calculate_rebate(rules, regime, residency_status, taxable, slab_tax.tax)
    after_rebate = tax_after_rebate(slab_tax.tax, capital_gains.tax, rebate)

    # Step 5: Surcharge on gross total income tier, then cess
    levy = apply_surcharge_and_cess(rules, regime, gti, after_rebate)

    # Fixed order: slab tax → capital gains → rebate → surcharge → cess
    tax_lines = [LineItem(label=LABEL_SLAB_TAX, amount=slab_tax.tax)]
    if capital_gains.tax > 0:
        tax_lines.append(LineItem(label=LABEL_CAPITAL_GAINS_TAX, amount=capital_gains.tax))
    if rebate > 0:
        tax_lines.append(LineItem(label=rebate_label, amount=-rebate))
    if levy.surcharge > 0:
        tax_lines.append(LineItem(label=LABEL_SURCHARGE, amount=levy.surcharge))
    tax_lines.append(LineItem(label=LABEL_CESS, amount=levy.cess))

    return RegimeResult(
        regime=regime,
        taxable_income=taxable,
        total_deductions=deductions.total,
        general_income_tax=slab_tax.tax,
        capital_gains_tax=capital_gains.tax,
        rebate=rebate,
        tax_after_rebate=after_rebate,
        surcharge_rate=levy.rate,
        surcharge=levy.surcharge,
        cess=levy.cess,
        total_tax=levy.total,
        deduction_line_items=deductions.line_items,
        notes=deductions.notes,
        tax_line_items=tax_lines,
        slab_breakdown=slab_tax.breakdown,
        capital_gains_breakdown=capital_gains.breakdown,
    )


# ===========================================================================
# COMPUTE — public API
# ===========================================================================

def compute(
    fiscal_year: str,
    age_band: Any,
    residency_status: Any,
    income: IncomeInputs,
    capital_gains: Optional[CapitalGainsInputs] = None,
    preferred_regime: Optional[Regime] = None,
) -> ComparisonResult:
    """
    Compute both regimes and compare them.

    preferred_regime is echoed into the result for display; both regimes are
    always computed regardless. Ties report cheaper_regime="equal".

    Raises:
        ConfigurationError: unknown fiscal year, age band, residency status or
            capital-gains date bucket.
    """
    rules = get_rule_table(fiscal_year)
    band = resolve_age_band(age_band)
    residency = _resolve_residency(residency_status)
    capital_gains = capital_gains if capital_gains is not None else CapitalGainsInputs()

    gains = compute_capital_gains(rules, capital_gains)
    gti = gross_total_income(income, gains)

    old = _calculate_regime(rules, Regime.old, band, residency, income, gains, gti)
    new = _calculate_regime(rules, Regime.new, band, residency, income, gains, gti)

    if old.total_tax < new.total_tax:
        cheaper = "old"
    elif new.total_tax < old.total_tax:
        cheaper = "new"
    else:
        cheaper = "equal"

    logger.info(
        "Regimes compared fy=%s age_band=%s residency=%s cheaper=%s",
        rules.fiscal_year, band.value, residency.value, cheaper,
    )

    return ComparisonResult(
        fiscal_year=rules.fiscal_year,
        age_band=band.value,
        residency_status=residency,
        gross_total_income=gti,
        total_capital_gains=gains.total_amount,
        old_regime=old,
        new_regime=new,
        cheaper_regime=cheaper,
        tax_difference=quantize_paise(abs(old.total_tax - new.total_tax)),
        preferred_regime=preferred_regime,
    )


def safe_compute(
    fiscal_year: str,
    age_band: Any,
    residency_status: Any,
    income: IncomeInputs,
    capital_gains: Optional[CapitalGainsInputs] = None,
    preferred_regime: Optional[Regime] = None,
) -> Optional[ComparisonResult]:
    """
    compute() for callers that render whatever comes back: returns None on ANY
    failure (configuration errors included) so a stale or partial result is
    never shown. The exception is logged with its traceback.
    """
    try:
        return compute(fiscal_year, age_band, residency_status, income, capital_gains, preferred_regime)
    except Exception:
        logger.exception("Tax computation failed fy=%r — returning no result", fiscal_year)
        return None
