"""
Intake HTTP routes — POST /api/residency

Callers classify residency here whenever day counts or the 2-of-10 flag
change, then send the status to POST /api/calculate.
"""
from __future__ import annotations

import logging

from fastapi import APIRouter

from taxregime.intake.residency import classify_residency
from taxregime.intake.schemas import ResidencyRequest, ResidencyResponse

router = APIRouter(prefix="/api", tags=["intake"])
logger = logging.getLogger(__name__)


@router.post("/residency", response_model=ResidencyResponse)
async def determine_residency(body: ResidencyRequest) -> ResidencyResponse:
    """
    Classify ROR / RNOR / NRI from day counts.

    Never fails on values: missing or unreadable day counts read as 0.
    """
    status = classify_residency(
        body.days_current_fy,
        body.days_prev_4_fy,
        body.days_prev_7_fy,
        body.was_resident_2_of_10,
    )
    return ResidencyResponse(residency_status=status)
