"""
Rule tables — FY 2024-25 and FY 2025-26 (AY 2025-26 / AY 2026-27).
Immutable, fiscal-year-keyed. Shared freely across concurrent calls.

Every number the engine uses lives here. Slab tables are validated when the
module is imported: a malformed table is a ConfigurationError at import time,
not a wrong tax figure at request time.

New regime slabs were COMPLETELY REVISED for FY 2025-26 (Finance Act 2025):
  FY 2024-25: 3L/7L/10L/12L/15L breakpoints
  FY 2025-26: 4L/8L/12L/16L/20L/24L breakpoints
Old regime slabs are identical in both years.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from types import MappingProxyType
from typing import Any, Mapping, Optional, Sequence, Tuple

from taxregime.intake.schemas import AgeBand, DateBucket, Regime

D = Decimal


class ConfigurationError(ValueError):
    """Unknown fiscal year, age band or date bucket, or a malformed rule table."""


# ===========================================================================
# SLAB TABLES
# ===========================================================================

@dataclass(frozen=True)
class Slab:
    upper_limit: Optional[Decimal]   # None = unbounded top slab
    rate: Decimal


SlabTable = Tuple[Slab, ...]


def build_slab_table(pairs: Sequence[Tuple[Optional[Any], Any]]) -> SlabTable:
    """
    Build a SlabTable from (upper_limit, rate) pairs, enforcing:
      - at least one slab
      - strictly increasing upper limits, all > 0 (contiguous from 0)
      - only the final slab unbounded, and it must be
      - rates in [0, 1] and non-decreasing
    """
    if not pairs:
        raise ConfigurationError("Slab table must contain at least one slab")

    slabs: list[Slab] = []
    prev_limit = D(0)
    prev_rate = D(0)
    for index, (limit, rate) in enumerate(pairs):
        is_last = index == len(pairs) - 1
        rate = D(str(rate))
        if not D(0) <= rate <= D(1):
            raise ConfigurationError(f"Slab rate {rate} outside [0, 1]")
        if rate < prev_rate:
            raise ConfigurationError(f"Slab rates must be non-decreasing: {rate} after {prev_rate}")
        if limit is None:
            if not is_last:
                raise ConfigurationError("Only the final slab may be unbounded")
            slabs.append(Slab(upper_limit=None, rate=rate))
        else:
            if is_last:
                raise ConfigurationError("Final slab must be unbounded")
            limit = D(str(limit))
            if limit <= prev_limit:
                raise ConfigurationError(
                    f"Slab limits must be strictly increasing: {limit} after {prev_limit}"
                )
            slabs.append(Slab(upper_limit=limit, rate=rate))
            prev_limit = limit
        prev_rate = rate
    return tuple(slabs)


OLD_REGIME_SLABS: Mapping[AgeBand, SlabTable] = MappingProxyType({
    AgeBand.below60: build_slab_table([
        (250_000,   "0.00"),   # 0–2.5L
        (500_000,   "0.05"),   # 2.5–5L
        (1_000_000, "0.20"),   # 5–10L
        (None,      "0.30"),   # >10L
    ]),
    AgeBand.sixty_to_80: build_slab_table([
        (300_000,   "0.00"),   # senior: 0–3L exempt
        (500_000,   "0.05"),
        (1_000_000, "0.20"),
        (None,      "0.30"),
    ]),
    AgeBand.above80: build_slab_table([
        (500_000,   "0.00"),   # super senior: 0–5L exempt, no 5% band
        (1_000_000, "0.20"),
        (None,      "0.30"),
    ]),
})

NEW_REGIME_SLABS_FY2024_25: SlabTable = build_slab_table([
    (300_000,   "0.00"),
    (700_000,   "0.05"),
    (1_000_000, "0.10"),
    (1_200_000, "0.15"),
    (1_500_000, "0.20"),
    (None,      "0.30"),
])

NEW_REGIME_SLABS_FY2025_26: SlabTable = build_slab_table([
    (400_000,   "0.00"),
    (800_000,   "0.05"),
    (1_200_000, "0.10"),
    (1_600_000, "0.15"),
    (2_000_000, "0.20"),
    (2_400_000, "0.25"),
    (None,      "0.30"),
])


# ===========================================================================
# DEDUCTION LIMITS
# ===========================================================================

@dataclass(frozen=True)
class DeductionLimits:
    old_standard_deduction: Decimal
    new_standard_deduction: Decimal
    section_80c: Decimal
    section_80ccd1b: Decimal
    section_80d_self_family_below60: Decimal
    section_80d_self_family_senior: Decimal
    section_80d_parents_below60: Decimal
    section_80d_parents_senior: Decimal
    section_80tta: Decimal
    section_80ttb: Decimal
    section_24b_self_occupied: Decimal
    old_rebate_threshold: Decimal
    old_rebate_amount: Decimal
    new_rebate_threshold: Decimal
    new_rebate_amount: Decimal           # 0 in a marginal-relief year: rebate is the full tax
    house_property_loss_setoff: Decimal  # carried for reference, not applied (see DESIGN.md)
    employer_nps_salary_pct: Decimal     # 80CCD(2) cap as a share of gross salary


_COMMON_LIMITS: dict[str, Decimal] = dict(
    old_standard_deduction=D(50_000),
    new_standard_deduction=D(75_000),
    section_80c=D(150_000),
    section_80ccd1b=D(50_000),
    section_80d_self_family_below60=D(25_000),
    section_80d_self_family_senior=D(50_000),
    section_80d_parents_below60=D(25_000),
    section_80d_parents_senior=D(50_000),
    section_80tta=D(10_000),
    section_80ttb=D(50_000),
    section_24b_self_occupied=D(200_000),
    old_rebate_threshold=D(500_000),
    old_rebate_amount=D(12_500),
    house_property_loss_setoff=D(200_000),
    # NOTE: Budget 2024 raised the private-sector 80CCD(2) cap to 14% in the new
    # regime. Both regimes use 10% here.
    employer_nps_salary_pct=D("0.10"),
)


# ===========================================================================
# CAPITAL GAINS RATES — listed equity / equity MFs (111A STCG, 112A LTCG)
# ===========================================================================

@dataclass(frozen=True)
class CapitalGainsRates:
    short_term_rate: Decimal
    long_term_rate: Decimal
    long_term_exemption: Decimal


_CAPITAL_GAINS_RATES: Mapping[DateBucket, CapitalGainsRates] = MappingProxyType({
    # Transfers before 23 July 2024
    DateBucket.before_cutoff: CapitalGainsRates(
        short_term_rate=D("0.15"),
        long_term_rate=D("0.10"),
        long_term_exemption=D(100_000),
    ),
    # Transfers on or after 23 July 2024
    DateBucket.after_cutoff: CapitalGainsRates(
        short_term_rate=D("0.20"),
        long_term_rate=D("0.125"),
        long_term_exemption=D(125_000),
    ),
})


# ===========================================================================
# SURCHARGE & CESS
# ===========================================================================

# (gross total income strictly above, rate) — ascending.
SurchargeTiers = Tuple[Tuple[Decimal, Decimal], ...]

SURCHARGE_TIERS_OLD: SurchargeTiers = (
    (D(5_000_000),  D("0.10")),   # >50L
    (D(10_000_000), D("0.15")),   # >1Cr
    (D(20_000_000), D("0.25")),   # >2Cr
    (D(50_000_000), D("0.37")),   # >5Cr
)

SURCHARGE_TIERS_NEW: SurchargeTiers = (
    (D(5_000_000),  D("0.10")),
    (D(10_000_000), D("0.15")),
    (D(20_000_000), D("0.25")),   # capped — no 37% tier in the new regime
)

CESS_RATE = D("0.04")


# ===========================================================================
# RULE TABLE
# ===========================================================================

@dataclass(frozen=True)
class RuleTable:
    fiscal_year: str
    slabs_old: Mapping[AgeBand, SlabTable]
    slabs_new: SlabTable
    deduction_limits: DeductionLimits
    new_rebate_marginal_relief: bool
    capital_gains_rates: Mapping[DateBucket, CapitalGainsRates]
    surcharge_tiers_old: SurchargeTiers = SURCHARGE_TIERS_OLD
    surcharge_tiers_new: SurchargeTiers = SURCHARGE_TIERS_NEW
    cess_rate: Decimal = CESS_RATE

    def old_slabs_for(self, age_band: Any) -> SlabTable:
        return self.slabs_old[resolve_age_band(age_band)]

    def capital_gains_rates_for(self, date_bucket: Any) -> CapitalGainsRates:
        try:
            bucket = DateBucket(date_bucket)
            return self.capital_gains_rates[bucket]
        except (ValueError, KeyError):
            raise ConfigurationError(
                f"Unknown capital-gains date bucket {date_bucket!r} for FY {self.fiscal_year} "
                f"— expected one of {[b.value for b in DateBucket]}"
            ) from None

    def surcharge_tiers(self, regime: Regime) -> SurchargeTiers:
        return self.surcharge_tiers_old if regime is Regime.old else self.surcharge_tiers_new


RULE_TABLES: Mapping[str, RuleTable] = MappingProxyType({
    "2024-25": RuleTable(
        fiscal_year="2024-25",
        slabs_old=OLD_REGIME_SLABS,
        slabs_new=NEW_REGIME_SLABS_FY2024_25,
        deduction_limits=DeductionLimits(
            **_COMMON_LIMITS,
            new_rebate_threshold=D(700_000),
            new_rebate_amount=D(25_000),
        ),
        new_rebate_marginal_relief=False,
        capital_gains_rates=_CAPITAL_GAINS_RATES,
    ),
    "2025-26": RuleTable(
        fiscal_year="2025-26",
        slabs_old=OLD_REGIME_SLABS,
        slabs_new=NEW_REGIME_SLABS_FY2025_26,
        deduction_limits=DeductionLimits(
            **_COMMON_LIMITS,
            new_rebate_threshold=D(1_200_000),
            new_rebate_amount=D(0),
        ),
        new_rebate_marginal_relief=True,
        # Rates assumed unchanged from post-23-July-2024 for FY 2025-26
        capital_gains_rates=_CAPITAL_GAINS_RATES,
    ),
})


def supported_fiscal_years() -> list[str]:
    return sorted(RULE_TABLES)


def get_rule_table(fiscal_year: str) -> RuleTable:
    """Look up the rule table. Unknown keys are an error — never a silent default."""
    try:
        return RULE_TABLES[fiscal_year]
    except (KeyError, TypeError):
        raise ConfigurationError(
            f"Unknown fiscal year {fiscal_year!r} — supported: {supported_fiscal_years()}"
        ) from None


def resolve_age_band(age_band: Any) -> AgeBand:
    try:
        return AgeBand(age_band)
    except ValueError:
        raise ConfigurationError(
            f"Unknown age band {age_band!r} — expected one of {[b.value for b in AgeBand]}"
        ) from None

