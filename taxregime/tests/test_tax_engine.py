"""
Tax engine test suite — FY 2024-25 and FY 2025-26.
All expected values hand-computed from first principles; assertions are exact
to the paisa (results are quantized ROUND_HALF_UP at the reporting boundary).

Groups:
  1. Parametrised regime-comparison cases
  2. Demo profiles
  3. Pipeline ordering and line items
  4. Determinism, residency gating, gross total income
  5. ConfigurationError and safe_compute
  6. Rounding and amount range
"""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

import pytest
from pydantic import ValidationError

from taxregime.evaluator.deductions import NRI_NOTE_NEW, NRI_NOTE_OLD
from taxregime.evaluator.rules import ConfigurationError
from taxregime.evaluator.tax_engine import (
    LABEL_CAPITAL_GAINS_TAX,
    LABEL_CESS,
    LABEL_REBATE_NEW,
    LABEL_SLAB_TAX,
    LABEL_SURCHARGE,
    compute,
    safe_compute,
)
from taxregime.evaluator.schemas import quantize_paise
from taxregime.intake.residency import classify_residency
from taxregime.intake.schemas import (
    MAX_AMOUNT,
    CalculateRequest,
    CapitalGainsInputs,
    IncomeInputs,
    Regime,
    ResidencyStatus,
)
from taxregime.tests.demo_profiles import DEMO_PROFILES


def _gains(stcg=(), ltcg=(), bucket="after_cutoff") -> CapitalGainsInputs:
    ids = iter(range(1, 100))
    return CapitalGainsInputs(
        stcg=[{"id": next(ids), "amount": a, "date_bucket": bucket} for a in stcg],
        ltcg=[{"id": next(ids), "amount": a, "date_bucket": bucket} for a in ltcg],
    )


# ===========================================================================
# TEST GROUP 1: Parametrised regime comparison cases
# ===========================================================================

@dataclass
class TaxCase:
    """Single parametrised test case for compute()."""
    description: str
    fiscal_year: str
    income_kwargs: dict
    expected_old_tax: str
    expected_new_tax: str
    expected_regime: str          # "old" | "new" | "equal"
    age_band: str = "below60"
    residency_status: str = "ROR"
    stcg: tuple = field(default_factory=tuple)
    ltcg: tuple = field(default_factory=tuple)


TAX_CASES: list[TaxCase] = [
    # Old: taxable 7,25,000 → 57,500 + cess 2,300
    # New FY24-25: taxable 7,00,000 → 20,000, fully rebated
    TaxCase(
        description="fy24_new_rebate_exactly_at_7L",
        fiscal_year="2024-25",
        income_kwargs=dict(gross_salary=775_000),
        expected_old_tax="59800",
        expected_new_tax="0",
        expected_regime="new",
    ),
    # One rupee above 7L: no rebate at all in FY24-25.
    # New: 20,000.10 + cess 800.004 → 20,800.10
    # Old: 57,500.20 + cess 2,300.008 → 59,800.21
    TaxCase(
        description="fy24_new_7L_plus_one_rupee",
        fiscal_year="2024-25",
        income_kwargs=dict(gross_salary=775_001),
        expected_old_tax="59800.21",
        expected_new_tax="20800.10",
        expected_regime="new",
    ),
    # New FY25-26: taxable 12,50,000 → 67,500; marginal relief rebate 17,500
    #   → 50,000 + cess 2,000
    # Old: taxable 12,75,000 → 1,12,500 + 82,500 = 1,95,000 + cess 7,800
    TaxCase(
        description="fy25_marginal_relief_12_5L",
        fiscal_year="2025-26",
        income_kwargs=dict(gross_salary=1_325_000),
        expected_old_tax="202800",
        expected_new_tax="52000",
        expected_regime="new",
    ),
    # GTI 60L → 10% surcharge in both regimes
    # Old: 16,12,500 + 1,61,250 + cess 70,950
    # New: 13,80,000 + 1,38,000 + cess 60,720
    TaxCase(
        description="surcharge_10pct_at_60L",
        fiscal_year="2025-26",
        income_kwargs=dict(other_income=6_000_000),
        expected_old_tax="1844700",
        expected_new_tax="1578720",
        expected_regime="new",
    ),
    # GTI 2.5Cr → 25% in both regimes
    # Old: 73,12,500 + 18,28,125 + cess 3,65,625
    # New: 70,80,000 + 17,70,000 + cess 3,54,000
    TaxCase(
        description="surcharge_25pct_at_2_5Cr",
        fiscal_year="2025-26",
        income_kwargs=dict(other_income=25_000_000),
        expected_old_tax="9506250",
        expected_new_tax="9204000",
        expected_regime="new",
    ),
    # Nothing declared: both zero
    TaxCase(
        description="no_income_equal",
        fiscal_year="2025-26",
        income_kwargs=dict(),
        expected_old_tax="0",
        expected_new_tax="0",
        expected_regime="equal",
    ),
    # Old: 2,500 fully rebated; New: under 4L
    TaxCase(
        description="small_income_both_rebated_equal",
        fiscal_year="2025-26",
        income_kwargs=dict(other_income=300_000),
        expected_old_tax="0",
        expected_new_tax="0",
        expected_regime="equal",
    ),
    # Capital gains only: 20,000 + 9,375 in both regimes, no rebate on CG tax,
    # cess 1,175
    TaxCase(
        description="capital_gains_only_identical_in_both_regimes",
        fiscal_year="2025-26",
        income_kwargs=dict(),
        expected_old_tax="30550",
        expected_new_tax="30550",
        expected_regime="equal",
        stcg=(100_000,),
        ltcg=(200_000,),
    ),
    # Super senior old slabs: 3,00,000 × 20% = 60,000 + cess 2,400
    # New: taxable 8L → 20,000, fully rebated
    TaxCase(
        description="super_senior_8L",
        fiscal_year="2025-26",
        age_band="above80",
        income_kwargs=dict(other_income=800_000),
        expected_old_tax="62400",
        expected_new_tax="0",
        expected_regime="new",
    ),
    # NRI: no standard deduction anywhere, no rebate
    # Old: 1,12,500 + cess 4,500; New: 40,000 + cess 1,600
    TaxCase(
        description="nri_salary_10L",
        fiscal_year="2025-26",
        residency_status="NRI",
        income_kwargs=dict(gross_salary=1_000_000),
        expected_old_tax="117000",
        expected_new_tax="41600",
        expected_regime="new",
    ),
    # Old: 24(b) 2L + std 50,000 + 80C/80CCD(1B) 2L + 80D 50,000 = 5L → taxable 10L
    #      1,12,500 + cess 4,500
    # New FY24-25: taxable 14,25,000 → 1,25,000 + cess 5,000
    TaxCase(
        description="fy24_heavy_deductions_old_wins",
        fiscal_year="2024-25",
        income_kwargs=dict(
            gross_salary=1_500_000,
            home_loan_interest_self_occupied=200_000,
            deduction_80c=150_000,
            nps_employee_contribution=50_000,
            deduction_80d=50_000,
        ),
        expected_old_tax="117000",
        expected_new_tax="130000",
        expected_regime="old",
    ),
]


@pytest.mark.parametrize("case", [pytest.param(c, id=c.description) for c in TAX_CASES])
def test_regime_comparison(case: TaxCase) -> None:
    result = compute(
        fiscal_year=case.fiscal_year,
        age_band=case.age_band,
        residency_status=case.residency_status,
        income=IncomeInputs(**case.income_kwargs),
        capital_gains=_gains(case.stcg, case.ltcg),
    )
    old_tax = Decimal(case.expected_old_tax)
    new_tax = Decimal(case.expected_new_tax)

    assert result.old_regime.total_tax == old_tax, case.description
    assert result.new_regime.total_tax == new_tax, case.description
    assert result.cheaper_regime == case.expected_regime
    assert result.tax_difference == abs(old_tax - new_tax)


# ===========================================================================
# TEST GROUP 2: Demo profiles
# ===========================================================================

@pytest.mark.parametrize("name", sorted(DEMO_PROFILES))
def test_demo_profiles(name: str) -> None:
    data = DEMO_PROFILES[name]
    request = CalculateRequest.model_validate(data["request"])
    expected = data["expected"]

    residency = request.residency_status or classify_residency(
        **request.residency.model_dump()
    )
    result = compute(
        request.fiscal_year,
        request.age_band,
        residency,
        request.income,
        request.capital_gains,
    )

    assert result.old_regime.taxable_income == expected["old_taxable"]
    assert result.new_regime.taxable_income == expected["new_taxable"]
    assert result.old_regime.total_tax == expected["old_total_tax"]
    assert result.new_regime.total_tax == expected["new_total_tax"]
    assert result.cheaper_regime == expected["cheaper_regime"]
    assert result.tax_difference == expected["tax_difference"]


# ===========================================================================
# TEST GROUP 3: Pipeline ordering and line items
# ===========================================================================

def test_rebate_applies_before_capital_gains_and_surcharge() -> None:
    """
    New FY25-26: taxable 12L → slab 60,000 fully rebated. LTCG 40L after cutoff
    is taxed at 12.5% on 38,75,000 = 4,84,375, untouched by the rebate.
    GTI 52,75,000 → 10% surcharge on 4,84,375.
    """
    result = compute(
        "2025-26", "below60", "ROR",
        IncomeInputs(gross_salary=1_275_000),
        _gains(ltcg=(4_000_000,)),
    )
    new = result.new_regime

    assert new.general_income_tax == Decimal(60_000)
    assert new.rebate == Decimal(60_000)
    assert new.capital_gains_tax == Decimal(484_375)
    assert new.tax_after_rebate == Decimal(484_375)
    assert new.surcharge_rate == Decimal("0.10")
    assert new.surcharge == Decimal("48437.50")
    assert new.cess == Decimal("21312.50")
    assert new.total_tax == Decimal(554_125)

    assert [(i.label, i.amount) for i in new.tax_line_items] == [
        (LABEL_SLAB_TAX, Decimal(60_000)),
        (LABEL_CAPITAL_GAINS_TAX, Decimal(484_375)),
        (LABEL_REBATE_NEW, Decimal(-60_000)),
        (LABEL_SURCHARGE, Decimal("48437.50")),
        (LABEL_CESS, Decimal("21312.50")),
    ]
    # Old: taxable 12,25,000 → 1,80,000 + 4,84,375 = 6,64,375; 10% surcharge; cess
    assert result.old_regime.total_tax == Decimal(760_045)


def test_zero_tax_keeps_slab_and_cess_lines() -> None:
    result = compute("2025-26", "below60", "ROR", IncomeInputs())
    for regime in (result.old_regime, result.new_regime):
        assert [i.label for i in regime.tax_line_items] == [LABEL_SLAB_TAX, LABEL_CESS]
        assert all(i.amount == 0 for i in regime.tax_line_items)


def test_line_items_sum_to_total_tax() -> None:
    result = compute(
        "2025-26", "60to80", "RNOR",
        IncomeInputs(gross_salary=3_500_000, other_income=2_000_000, deduction_80c=150_000),
        _gains(stcg=(250_000,), ltcg=(500_000,)),
    )
    for regime in (result.old_regime, result.new_regime):
        assert sum(i.amount for i in regime.tax_line_items) == pytest.approx(
            regime.total_tax, abs=Decimal("0.05")
        )
        assert sum(i.amount for i in regime.deduction_line_items) == regime.total_deductions


def test_capital_gains_breakdown_shared_by_both_regimes() -> None:
    result = compute(
        "2024-25", "below60", "ROR", IncomeInputs(),
        _gains(stcg=(100_000,), ltcg=(200_000,), bucket="before_cutoff"),
    )
    assert result.old_regime.capital_gains_breakdown == result.new_regime.capital_gains_breakdown
    assert result.old_regime.capital_gains_tax == Decimal(25_000)
    assert result.total_capital_gains == Decimal(300_000)


# ===========================================================================
# TEST GROUP 4: Determinism, residency gating, gross total income
# ===========================================================================

def test_compute_is_deterministic() -> None:
    args = (
        "2025-26", "below60", "ROR",
        IncomeInputs(gross_salary="18,50,000", hra_received=300_000, rent_paid=360_000),
        _gains(stcg=(75_000,), ltcg=(310_000,)),
    )
    assert compute(*args) == compute(*args)
    assert compute(*args).model_dump(mode="json") == compute(*args).model_dump(mode="json")


def test_nri_only_home_loan_and_employer_nps_deductions() -> None:
    result = compute(
        "2025-26", "below60", ResidencyStatus.nri,
        IncomeInputs(
            gross_salary=2_000_000,
            home_loan_interest_self_occupied=100_000,
            hra_received=400_000,
            rent_paid=500_000,
            deduction_80c=150_000,
            deduction_80d=25_000,
            nps_employer_contribution=150_000,
        ),
    )
    assert result.old_regime.total_deductions == Decimal(250_000)
    assert result.new_regime.total_deductions == 0
    assert result.old_regime.notes == [NRI_NOTE_OLD]
    assert result.new_regime.notes == [NRI_NOTE_NEW]
    assert result.old_regime.rebate == 0 and result.new_regime.rebate == 0


def test_gross_total_income_uses_house_property_before_let_out_interest() -> None:
    result = compute(
        "2025-26", "below60", "ROR",
        IncomeInputs(
            gross_salary=500_000,
            house_property_income=300_000,
            home_loan_interest_let_out=100_000,
        ),
        _gains(stcg=(50_000,)),
    )
    assert result.gross_total_income == Decimal(850_000)
    # 5L + (3L − 1L) − std 50,000; capital gains excluded
    assert result.old_regime.taxable_income == Decimal(650_000)


def test_preferred_regime_is_echoed_only() -> None:
    income = IncomeInputs(gross_salary=1_000_000)
    plain = compute("2025-26", "below60", "ROR", income)
    preferred = compute("2025-26", "below60", "ROR", income, preferred_regime=Regime.old)

    assert preferred.preferred_regime is Regime.old
    assert plain.preferred_regime is None
    assert preferred.old_regime == plain.old_regime
    assert preferred.new_regime == plain.new_regime


def test_result_serialises_money_as_numbers() -> None:
    payload = compute("2025-26", "below60", "ROR", IncomeInputs(gross_salary=1_325_000)).model_dump(
        mode="json"
    )
    assert payload["new_regime"]["total_tax"] == 52000.0
    assert payload["new_regime"]["surcharge_rate"] == 0.0
    assert payload["residency_status"] == "ROR"
    assert payload["cheaper_regime"] == "new"


# ===========================================================================
# TEST GROUP 5: ConfigurationError and safe_compute
# ===========================================================================

@pytest.mark.parametrize(
    "kwargs",
    [
        pytest.param(dict(fiscal_year="2019-20"), id="unknown_fiscal_year"),
        pytest.param(dict(age_band="ninety_plus"), id="unknown_age_band"),
        pytest.param(dict(residency_status="TOURIST"), id="unknown_residency"),
        pytest.param(
            dict(capital_gains=_gains(stcg=(1_000,), bucket="someday")),
            id="unknown_date_bucket",
        ),
    ],
)
def test_configuration_errors(kwargs: dict) -> None:
    args = dict(
        fiscal_year="2025-26",
        age_band="below60",
        residency_status="ROR",
        income=IncomeInputs(gross_salary=900_000),
    )
    args.update(kwargs)
    with pytest.raises(ConfigurationError):
        compute(**args)
    assert safe_compute(**args) is None


def test_safe_compute_returns_result_when_valid() -> None:
    result = safe_compute("2024-25", "below60", "RNOR", IncomeInputs(gross_salary=775_000))
    assert result is not None
    assert result.new_regime.total_tax == 0


def test_safe_compute_swallows_unexpected_errors(caplog) -> None:
    result = safe_compute("2025-26", "below60", "ROR", income=None)
    assert result is None
    assert "Tax computation failed" in caplog.text


# ===========================================================================
# TEST GROUP 6: Rounding and amount range
# ===========================================================================

@pytest.mark.parametrize(
    "exact, reported",
    [
        ("0.125", "0.13"),
        ("0.005", "0.01"),
        ("2.675", "2.68"),
        ("0.124", "0.12"),
    ],
)
def test_quantize_paise_rounds_half_up(exact: str, reported: str) -> None:
    assert quantize_paise(Decimal(exact)) == Decimal(reported)


def test_half_paisa_tax_reports_half_up() -> None:
    """
    LTCG 1,25,001 after cutoff → exact tax 0.125 and cess 0.005.
    Half-up reports 0.13 and 0.01 (banker's rounding would give 0.12 and 0.00).
    """
    result = compute("2025-26", "below60", "ROR", IncomeInputs(), _gains(ltcg=(125_001,)))
    for regime in (result.old_regime, result.new_regime):
        assert regime.capital_gains_tax == Decimal("0.13")
        assert regime.capital_gains_breakdown[0].tax == Decimal("0.13")
        assert regime.tax_after_rebate == Decimal("0.13")
        assert regime.cess == Decimal("0.01")
        assert regime.total_tax == Decimal("0.13")


@pytest.mark.parametrize(
    "kwargs",
    [
        pytest.param(dict(other_income=10**27), id="int_above_bound"),
        pytest.param(dict(gross_salary="1e999999"), id="huge_exponent_string"),
        pytest.param(dict(house_property_income=-(10**27)), id="negative_house_property_below_bound"),
    ],
)
def test_out_of_range_amounts_rejected(kwargs: dict) -> None:
    with pytest.raises(ValidationError):
        IncomeInputs(**kwargs)


def test_out_of_range_capital_gain_rejected() -> None:
    with pytest.raises(ValidationError):
        _gains(stcg=(10**27,))


def test_compute_total_at_amount_bound() -> None:
    result = compute(
        "2025-26", "below60", "ROR",
        IncomeInputs(
            gross_salary=MAX_AMOUNT,
            other_income=MAX_AMOUNT,
            house_property_income=-MAX_AMOUNT,
        ),
        _gains(stcg=(MAX_AMOUNT,), ltcg=(MAX_AMOUNT,)),
    )
    assert result.old_regime.surcharge_rate == Decimal("0.37")
    assert result.new_regime.surcharge_rate == Decimal("0.25")
    assert result.old_regime.total_tax > 0
    assert result.new_regime.total_tax > 0
