"""Signal API endpoints."""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..services import SignalService

logger = logging.getLogger(__name__)

# Create router for signal endpoints
router = APIRouter(prefix="/api/signals", tags=["signals"])


def get_signal_service(request: Request) -> SignalService:
    """FastAPI dependency for the application's SignalService."""
    service = getattr(request.app.state, "signal_service", None)
    if service is None:
        logger.error("Signal service not initialized")
        raise HTTPException(status_code=503, detail="Signal service not available")
    return service


# ============================================================================
# Request / Response Models
# ============================================================================


class ProposeSignalRequest(BaseModel):
    """Request body for signal proposal.

    Fields are loose here; the pipeline schemas report missing or malformed
    values in the service's {success, error} shape.
    """

    asset: Optional[Any] = Field(
        default=None, description="The asset for the trading signal (e.g., AAPL or EUR/USD)."
    )
    approximateTimestamp: Optional[Any] = Field(
        default=None,
        description="The approximate date/timestamp for the signal (UTC, ISO-8601).",
    )


class SignalResponse(BaseModel):
    success: bool = Field(description="True when the operation produced a complete result")
    data: Optional[Dict[str, Any]] = Field(default=None, description="Result payload")
    error: Optional[str] = Field(default=None, description="Single failure reason")
    stage: Optional[str] = Field(default=None, description="Stage that failed, if any")


class TimeframesResponse(BaseModel):
    timeframes: List[str] = Field(description="Configured signal timeframes")


def _respond(result: Dict[str, Any]) -> JSONResponse:
    if result["success"]:
        status_code = 200
    elif result.get("error_type") == "invalid_request":
        status_code = 422
    else:
        status_code = 502

    body = SignalResponse(**{k: v for k, v in result.items() if k != "error_type"})
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


# ============================================================================
# Endpoints
# ============================================================================


@router.post("/propose", response_model=SignalResponse)
async def propose_signal(
    body: ProposeSignalRequest,
    service: SignalService = Depends(get_signal_service),
) -> JSONResponse:
    """
    Propose, validate and summarize a trading signal.

    Notification of valid signals is dispatched in the background and never
    delays or alters this response.

    Example Request:
        {"asset": "AAPL", "approximateTimestamp": "2024-01-01T00:00:00Z"}

    Example Response:
        {
            "success": true,
            "data": {
                "proposedSignal": {"asset": "AAPL", "tradeDirection": "BUY", ...},
                "isValid": true,
                "validationOutcome": {"confidenceLevel": "High", ...},
                "summary": {"shortMessage": "..."}
            }
        }
    """
    result = await service.propose_and_validate(body.model_dump())
    return _respond(result)


@router.post("/validate", response_model=SignalResponse)
async def validate_signal(
    body: Dict[str, Any],
    service: SignalService = Depends(get_signal_service),
) -> JSONResponse:
    """Validate an existing ProposedSignal (camelCase fields) without generating one."""
    result = await service.validate_signal(body)
    return _respond(result)


@router.get("/timeframes", response_model=TimeframesResponse)
async def get_timeframes(
    service: SignalService = Depends(get_signal_service),
) -> TimeframesResponse:
    return TimeframesResponse(timeframes=list(service.timeframes))
