"""
Evaluator HTTP routes — POST /api/calculate,
                         GET  /api/fiscal-years

POST /api/calculate runs the deterministic engine for both regimes. When the
Redis result cache is enabled, identical requests are served from cache.
A ConfigurationError (unknown fiscal year / age band / date bucket) is turned
into a 422 CONFIGURATION_ERROR envelope by main.py. Any other engine failure
is a 500 CALCULATION_ERROR. No partial result is ever returned.
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from taxregime.cache import get_cached_result, make_result_key, set_cached_result
from taxregime.config import settings
from taxregime.evaluator.rules import ConfigurationError, supported_fiscal_years
from taxregime.evaluator.tax_engine import compute
from taxregime.intake.residency import classify_residency
from taxregime.intake.schemas import (
    CalculateRequest,
    ErrorBody,
    ErrorResponse,
    ResidencyStatus,
)

router = APIRouter(prefix="/api", tags=["evaluator"])
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_calculation_error_response() -> JSONResponse:
    """500 envelope for an engine failure. Details stay in the server log."""
    body = ErrorResponse(
        error=ErrorBody(
            code="CALCULATION_ERROR",
            message="Tax calculation failed — no result was produced",
        )
    )
    return JSONResponse(status_code=500, content=body.model_dump())


def _resolve_residency(body: CalculateRequest) -> ResidencyStatus:
    """Explicit residency_status wins; otherwise classify the residency block."""
    if body.residency_status is not None:
        return body.residency_status
    block = body.residency
    return classify_residency(
        block.days_current_fy,
        block.days_prev_4_fy,
        block.days_prev_7_fy,
        block.was_resident_2_of_10,
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/calculate")
async def calculate_tax(request: Request, body: CalculateRequest) -> JSONResponse:
    """
    Compare Old and New regime tax.

    Returns:
        200: ComparisonResult
        422: VALIDATION_ERROR (malformed body) or CONFIGURATION_ERROR
        500: CALCULATION_ERROR
    """
    redis = getattr(request.app.state, "redis", None)
    cache_key = make_result_key(body) if redis is not None else None

    if cache_key is not None:
        cached = await get_cached_result(redis, cache_key)
        if cached is not None:
            return JSONResponse(status_code=200, content=cached)

    try:
        result = compute(
            fiscal_year=body.fiscal_year,
            age_band=body.age_band,
            residency_status=_resolve_residency(body),
            income=body.income,
            capital_gains=body.capital_gains,
            preferred_regime=body.preferred_regime,
        )
    except ConfigurationError:
        raise
    except Exception:
        logger.exception("Tax calculation failed fy=%r", body.fiscal_year)
        return _make_calculation_error_response()

    content = result.model_dump(mode="json")

    if cache_key is not None:
        await set_cached_result(redis, cache_key, content)

    logger.info(
        "Tax calculated fy=%s cheaper=%s preferred=%s",
        result.fiscal_year,
        result.cheaper_regime,
        result.preferred_regime.value if result.preferred_regime else None,
    )
    return JSONResponse(status_code=200, content=content)


@router.get("/fiscal-years")
async def list_fiscal_years() -> dict:
    """Fiscal years with a rule table, and the suggested default."""
    return {
        "fiscal_years": supported_fiscal_years(),
        "default": settings.default_fiscal_year,
    }
