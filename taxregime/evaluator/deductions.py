"""
Deduction aggregator — per-regime allowed deductions and exemptions.

Pure functions. Raw claims in, capped deductions out. Every value is the
ACTUAL deduction applied, not the claim: deduction_80c=200000 yields 150000.

Old regime, resident (ROR / RNOR):
  standard deduction, HRA (Rule 2A, DA = 0), 80C + 80CCD(1B), 80D, 80E, 80G,
  80TTA / 80TTB
Old regime, any residency:
  24(b) self-occupied interest (capped), employer NPS 80CCD(2) (10% of salary)
New regime, resident:
  standard deduction, employer NPS 80CCD(2) — nothing else
NRI:
  old regime keeps only 24(b) and 80CCD(2); new regime allows nothing.
  A note explains the missing rows.

Simplifications kept on purpose:
  - 80E and 80G are uncapped pass-throughs.
  - 80D uses one age band for self and parents (senior limits for both when
    the taxpayer is 60+).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from taxregime.evaluator.rules import RuleTable, resolve_age_band
from taxregime.evaluator.schemas import LineItem
from taxregime.intake.schemas import AgeBand, IncomeInputs, ResidencyStatus

ZERO = Decimal(0)

HRA_METRO_PCT = Decimal("0.50")
HRA_NON_METRO_PCT = Decimal("0.40")
HRA_RENT_SALARY_PCT = Decimal("0.10")

SENIOR_AGE_BANDS = (AgeBand.sixty_to_80, AgeBand.above80)

# Line-item labels, in reporting order
LABEL_HOME_LOAN = "Home Loan Interest (Self-occupied) u/s 24(b)"
LABEL_STANDARD = "Standard Deduction"
LABEL_HRA = "HRA Exemption"
LABEL_80C = "Deductions u/s 80C/80CCD(1B)"
LABEL_80D = "Deductions u/s 80D"
LABEL_80E = "Deductions u/s 80E"
LABEL_80G = "Deductions u/s 80G"
LABEL_80TTA = "Deductions u/s 80TTA/80TTB"
LABEL_EMPLOYER_NPS = "Employer NPS Contribution u/s 80CCD(2)"

NRI_NOTE_OLD = "Most deductions and the 87A rebate are not applicable for Non-Residents (NRI)."
NRI_NOTE_NEW = (
    "Standard deduction, employer NPS and the 87A rebate are not applicable for "
    "Non-Residents (NRI) in the New Regime."
)


@dataclass(frozen=True)
class Deductions:
    total: Decimal
    line_items: list[LineItem] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)
    components: dict[str, Decimal] = field(default_factory=dict)


# ===========================================================================
# INTERNAL HELPERS
# ===========================================================================

def general_income(income: IncomeInputs) -> Decimal:
    """Salary + other income + (house property − let-out interest). Excludes capital gains."""
    return (
        income.gross_salary
        + income.other_income
        + (income.house_property_income - income.home_loan_interest_let_out)
    )


def calculate_hra_exemption(income: IncomeInputs) -> Decimal:
    """
    HRA exemption under Section 10(13A), Rule 2A — least of:
      1. HRA received
      2. max(0, annual rent − 10% of salary)
      3. 50% of salary (metro) or 40% (non-metro)
    Salary here is gross salary with DA taken as 0. Returns 0 if no HRA or no rent.
    """
    if income.hra_received == 0 or income.rent_paid == 0:
        return ZERO
    salary = income.gross_salary
    metro_pct = HRA_METRO_PCT if income.is_metro_city else HRA_NON_METRO_PCT
    return min(
        income.hra_received,
        max(ZERO, income.rent_paid - HRA_RENT_SALARY_PCT * salary),
        metro_pct * salary,
    )


def _employer_nps(rules: RuleTable, income: IncomeInputs) -> Decimal:
    cap = rules.deduction_limits.employer_nps_salary_pct * income.gross_salary
    return max(ZERO, min(income.nps_employer_contribution, cap))


def _section_80c_80ccd1b(rules: RuleTable, income: IncomeInputs) -> Decimal:
    limits = rules.deduction_limits
    section_80c = min(income.deduction_80c, limits.section_80c)
    section_80ccd1b = min(income.nps_employee_contribution, limits.section_80ccd1b)
    return min(section_80c + section_80ccd1b, limits.section_80c + limits.section_80ccd1b)


def _section_80d(rules: RuleTable, age_band: AgeBand, income: IncomeInputs) -> Decimal:
    limits = rules.deduction_limits
    if age_band in SENIOR_AGE_BANDS:
        cap = limits.section_80d_self_family_senior + limits.section_80d_parents_senior
    else:
        cap = limits.section_80d_self_family_below60 + limits.section_80d_parents_below60
    return min(income.deduction_80d, cap)


def _section_80tta_ttb(rules: RuleTable, age_band: AgeBand, income: IncomeInputs) -> Decimal:
    limits = rules.deduction_limits
    cap = limits.section_80ttb if age_band in SENIOR_AGE_BANDS else limits.section_80tta
    return min(income.deduction_80tta, cap)


def _collect(rows: list[tuple[str, str, Decimal]], notes: list[str]) -> Deductions:
    components = {key: amount for key, _, amount in rows}
    line_items = [LineItem(label=label, amount=amount) for _, label, amount in rows if amount > 0]
    return Deductions(
        total=sum(components.values(), ZERO),
        line_items=line_items,
        notes=notes,
        components=components,
    )


# ===========================================================================
# PER-REGIME AGGREGATION
# ===========================================================================

def aggregate_old_regime(
    rules: RuleTable,
    age_band: Any,
    residency_status: ResidencyStatus,
    income: IncomeInputs,
) -> Deductions:
    age_band = resolve_age_band(age_band)
    limits = rules.deduction_limits
    rows: list[tuple[str, str, Decimal]] = [
        ("home_loan_interest_self_occupied", LABEL_HOME_LOAN,
         min(income.home_loan_interest_self_occupied, limits.section_24b_self_occupied)),
    ]
    notes: list[str] = []

    if residency_status is ResidencyStatus.nri:
        notes.append(NRI_NOTE_OLD)
    else:
        rows += [
            ("standard_deduction", LABEL_STANDARD,
             max(ZERO, min(income.gross_salary, limits.old_standard_deduction))),
            ("hra_exemption", LABEL_HRA, calculate_hra_exemption(income)),
            ("section_80c_80ccd1b", LABEL_80C, _section_80c_80ccd1b(rules, income)),
            ("section_80d", LABEL_80D, _section_80d(rules, age_band, income)),
            ("section_80e", LABEL_80E, income.deduction_80e),
            ("section_80g", LABEL_80G, income.deduction_80g),
            ("section_80tta_ttb", LABEL_80TTA, _section_80tta_ttb(rules, age_band, income)),
        ]

    rows.append(("employer_nps_80ccd2", LABEL_EMPLOYER_NPS, _employer_nps(rules, income)))
    return _collect(rows, notes)


def aggregate_new_regime(
    rules: RuleTable,
    residency_status: ResidencyStatus,
    income: IncomeInputs,
) -> Deductions:
    if residency_status is ResidencyStatus.nri:
        return _collect([], [NRI_NOTE_NEW])

    limits = rules.deduction_limits
    rows: list[tuple[str, str, Decimal]] = [
        ("standard_deduction", LABEL_STANDARD,
         max(ZERO, min(income.gross_salary, limits.new_standard_deduction))),
        ("employer_nps_80ccd2", LABEL_EMPLOYER_NPS, _employer_nps(rules, income)),
    ]
    return _collect(rows, [])


def taxable_income(income: IncomeInputs, deductions: Deductions) -> Decimal:
    """General income less deductions, never negative."""
    return max(ZERO, general_income(income) - deductions.total)
