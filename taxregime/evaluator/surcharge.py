"""
Surcharge and Health & Education Cess.

Surcharge tier is picked on GROSS TOTAL INCOME (all heads before deductions,
capital gains included) and charged on the post-rebate tax:

  > 50L   10%
  > 1Cr   15%
  > 2Cr   25%
  > 5Cr   37%   old regime only — the new regime caps at 25%

Cess = 4% × (tax_after_rebate + surcharge).

No marginal relief on the surcharge step: crossing a tier boundary by one
rupee applies the full higher rate to the whole tax (known limitation).
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Tuple

from taxregime.evaluator.rules import RuleTable
from taxregime.intake.schemas import Regime

ZERO = Decimal(0)


@dataclass(frozen=True)
class SurchargeAndCess:
    rate: Decimal
    surcharge: Decimal
    cess: Decimal
    total: Decimal   # tax_after_rebate + surcharge + cess


def surcharge_rate_for(
    gross_total_income: Decimal,
    tiers: Iterable[Tuple[Decimal, Decimal]],
) -> Decimal:
    """Rate of the highest tier whose threshold gross_total_income strictly exceeds."""
    rate = ZERO
    for threshold, tier_rate in tiers:
        if gross_total_income > threshold:
            rate = tier_rate
    return rate


def apply_surcharge_and_cess(
    rules: RuleTable,
    regime: Regime,
    gross_total_income: Decimal,
    tax_after_rebate: Decimal,
) -> SurchargeAndCess:
    rate = surcharge_rate_for(gross_total_income, rules.surcharge_tiers(regime))
    surcharge = tax_after_rebate * rate
    cess = (tax_after_rebate + surcharge) * rules.cess_rate
    return SurchargeAndCess(
        rate=rate,
        surcharge=surcharge,
        cess=cess,
        total=tax_after_rebate + surcharge + cess,
    )
