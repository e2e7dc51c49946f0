"""
Residency classifier — Section 6 of the Income-tax Act, simplified.

Pure decision procedure, no I/O. Never raises: absent or unreadable day counts
read as 0 and an absent history flag reads as False.

  Basic condition 1:  >= 182 days in India in the current FY
  Basic condition 2:  >= 60 days in the current FY AND >= 365 days over the 4 preceding FYs
  Neither            → NRI
  Resident and (resident in 2 of the 10 preceding FYs AND >= 730 days over the
  7 preceding FYs)    → ROR, otherwise RNOR
"""
from __future__ import annotations

import logging
from typing import Any

from taxregime.intake.schemas import ResidencyStatus, coerce_days, coerce_flag

logger = logging.getLogger(__name__)

BASIC_CURRENT_FY_DAYS = 182
SHORT_STAY_CURRENT_FY_DAYS = 60
SHORT_STAY_PREV_4_FY_DAYS = 365
ORDINARY_PREV_7_FY_DAYS = 730


def classify_residency(
    days_current_fy: Any = 0,
    days_prev_4_fy: Any = 0,
    days_prev_7_fy: Any = 0,
    was_resident_2_of_10: Any = False,
) -> ResidencyStatus:
    """Map day counts and the 2-of-10 history flag to ROR / RNOR / NRI."""
    current = coerce_days(days_current_fy)
    prev_4 = coerce_days(days_prev_4_fy)
    prev_7 = coerce_days(days_prev_7_fy)
    resident_2_of_10 = coerce_flag(was_resident_2_of_10)

    basic_1 = current >= BASIC_CURRENT_FY_DAYS
    basic_2 = current >= SHORT_STAY_CURRENT_FY_DAYS and prev_4 >= SHORT_STAY_PREV_4_FY_DAYS

    if not (basic_1 or basic_2):
        status = ResidencyStatus.nri
    elif resident_2_of_10 and prev_7 >= ORDINARY_PREV_7_FY_DAYS:
        status = ResidencyStatus.ror
    else:
        status = ResidencyStatus.rnor

    logger.debug("Residency classified status=%s", status.value)
    return status
