"""
Progressive slab tax — pure function, no side effects, no I/O.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from taxregime.evaluator.rules import SlabTable
from taxregime.evaluator.schemas import SlabBreakdownItem

ZERO = Decimal(0)


@dataclass(frozen=True)
class SlabTax:
    tax: Decimal                          # exact, unrounded
    breakdown: list[SlabBreakdownItem]    # ascending by slab


def calculate_slab_tax(taxable_income: Decimal, slabs: SlabTable) -> SlabTax:
    """
    Apply progressive slab tax to taxable_income.

    Each slab taxes the income portion in (lower_bound, upper_bound]; the
    unbounded top slab takes whatever remains. A breakdown row is emitted for
    every slab that taxes a non-zero amount — including 0% slabs — and the
    walk stops as soon as the remaining income reaches 0.
    """
    tax = ZERO
    breakdown: list[SlabBreakdownItem] = []
    remaining = max(ZERO, taxable_income)
    lower = ZERO

    for slab in slabs:
        if remaining <= 0:
            break
        if slab.upper_limit is None:
            in_slab = remaining
        else:
            in_slab = min(remaining, slab.upper_limit - lower)

        slab_tax = in_slab * slab.rate
        tax += slab_tax
        if in_slab > 0:
            breakdown.append(SlabBreakdownItem(
                lower_bound=lower,
                upper_bound=slab.upper_limit,
                rate=slab.rate,
                taxed_amount=in_slab,
                tax=slab_tax,
            ))
        remaining -= in_slab
        if slab.upper_limit is not None:
            lower = slab.upper_limit

    return SlabTax(tax=tax, breakdown=breakdown)
