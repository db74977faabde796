"""
Chemical safety endpoints.
"""

from fastapi import APIRouter, Depends

from leafcare.api.routes.diagnosis import to_warning_response
from leafcare.core.dependencies import get_safety_filter
from leafcare.models.schemas import SafetyCheckRequest, SafetyWarningResponse
from leafcare.services.safety_filter import SafetyFilter

router = APIRouter(prefix="/safety", tags=["Safety"])


@router.post("/check", response_model=SafetyWarningResponse, summary="Screen a substance")
async def check_substance(
    request: SafetyCheckRequest,
    safety_filter: SafetyFilter = Depends(get_safety_filter),
) -> SafetyWarningResponse:
    """
    Check a chemical against the banned and restricted substance lists.

    Globally banned substances come back restricted with no protective
    equipment list; substances banned only for the crop category come back
    with the mandatory equipment checklist.
    """
    return to_warning_response(safety_filter.check(request.substance, request.crop_category))
