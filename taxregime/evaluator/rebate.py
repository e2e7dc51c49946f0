"""
Section 87A rebate — applied to general_income_tax only (slab tax on
non-capital-gains income), strictly AFTER the slab tax is computed.

  Old regime:              taxable <= threshold → min(general_tax, amount)
  New regime, FY 2024-25:  taxable <= threshold → min(general_tax, amount)
  New regime, FY 2025-26:  taxable <= threshold → general_tax (full waiver)
                           above: marginal relief — the tax may not exceed the
                           income above the threshold:
                             excess = taxable − threshold
                             rebate = general_tax − excess if general_tax > excess else 0
  NRI:                     no rebate in either regime

Capital-gains tax is NOT eligible. It is added back before the floor at zero:
  tax_after_rebate = max(0, general_tax + capital_gains_tax − rebate)
"""
from __future__ import annotations

from decimal import Decimal

from taxregime.evaluator.rules import RuleTable
from taxregime.intake.schemas import Regime, ResidencyStatus

ZERO = Decimal(0)


def _fixed_rebate(taxable_income: Decimal, general_tax: Decimal,
                  threshold: Decimal, amount: Decimal) -> Decimal:
    if taxable_income <= threshold:
        return min(general_tax, amount)
    return ZERO


def _marginal_relief_rebate(taxable_income: Decimal, general_tax: Decimal,
                            threshold: Decimal) -> Decimal:
    if taxable_income <= threshold:
        return general_tax
    excess = taxable_income - threshold
    if general_tax > excess:
        return general_tax - excess
    return ZERO


def calculate_rebate(
    rules: RuleTable,
    regime: Regime,
    residency_status: ResidencyStatus,
    taxable_income: Decimal,
    general_tax: Decimal,
) -> Decimal:
    if residency_status is ResidencyStatus.nri:
        return ZERO

    limits = rules.deduction_limits
    if regime is Regime.old:
        return _fixed_rebate(
            taxable_income, general_tax, limits.old_rebate_threshold, limits.old_rebate_amount
        )
    if rules.new_rebate_marginal_relief:
        return _marginal_relief_rebate(taxable_income, general_tax, limits.new_rebate_threshold)
    return _fixed_rebate(
        taxable_income, general_tax, limits.new_rebate_threshold, limits.new_rebate_amount
    )


def tax_after_rebate(general_tax: Decimal, capital_gains_tax: Decimal, rebate: Decimal) -> Decimal:
    return max(ZERO, general_tax + capital_gains_tax - rebate)
