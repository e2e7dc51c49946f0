"""
Capital gains taxation — special rates outside the slab system.

  STCG (111A):  tax = amount × short_term_rate
  LTCG (112A):  tax = max(0, amount − exemption) × long_term_rate

The exemption applies per transaction, as the rule table defines it.
Capital gains never enter the slab base; total_amount only feeds gross total
income (and so the surcharge tier). Zero-amount transactions are skipped.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from taxregime.evaluator.rules import RuleTable
from taxregime.evaluator.schemas import CapitalGainsLine
from taxregime.intake.schemas import CapitalGainsInputs

logger = logging.getLogger(__name__)

ZERO = Decimal(0)


@dataclass(frozen=True)
class CapitalGainsTax:
    total_amount: Decimal
    tax: Decimal                       # exact, unrounded
    breakdown: list[CapitalGainsLine]  # STCG rows first, then LTCG, input order within each


def compute_capital_gains(rules: RuleTable, capital_gains: CapitalGainsInputs) -> CapitalGainsTax:
    """Raises ConfigurationError for an unknown date bucket."""
    total_amount = ZERO
    total_tax = ZERO
    breakdown: list[CapitalGainsLine] = []

    for tx in capital_gains.stcg:
        if tx.amount <= 0:
            continue
        rates = rules.capital_gains_rates_for(tx.date_bucket)
        tax = tx.amount * rates.short_term_rate
        total_amount += tx.amount
        total_tax += tax
        breakdown.append(CapitalGainsLine(
            transaction_id=tx.id,
            term="short",
            date_bucket=tx.date_bucket,
            amount=tx.amount,
            rate=rates.short_term_rate,
            exemption=ZERO,
            taxable_amount=tx.amount,
            tax=tax,
        ))

    for tx in capital_gains.ltcg:
        if tx.amount <= 0:
            continue
        rates = rules.capital_gains_rates_for(tx.date_bucket)
        taxable = max(ZERO, tx.amount - rates.long_term_exemption)
        tax = taxable * rates.long_term_rate
        total_amount += tx.amount
        total_tax += tax
        breakdown.append(CapitalGainsLine(
            transaction_id=tx.id,
            term="long",
            date_bucket=tx.date_bucket,
            amount=tx.amount,
            rate=rates.long_term_rate,
            exemption=rates.long_term_exemption,
            taxable_amount=taxable,
            tax=tax,
        ))

    logger.debug(
        "Capital gains computed fy=%s transactions=%d", rules.fiscal_year, len(breakdown)
    )
    return CapitalGainsTax(total_amount=total_amount, tax=total_tax, breakdown=breakdown)
