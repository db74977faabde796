"""
Diagnosis API endpoints.

- Leaf diagnosis for a selected crop
- Crop catalog for crop selection
"""

import asyncio
import logging

from fastapi import APIRouter, HTTPException, Depends

from leafcare.core.dependencies import get_diagnosis_pipeline, get_preprocessor
from leafcare.core.exceptions import PreprocessError
from leafcare.ml.crops import all_crops, default_crop, get_profile
from leafcare.ml.preprocessor import ImagePreprocessor
from leafcare.models.schemas import (
    CropInfo,
    CropListResponse,
    DiagnoseRequest,
    DiagnosisResponse,
    ErrorResponse,
    PredictionScore,
    RemedyResponse,
    SafetyWarningResponse,
)
from leafcare.services.diagnosis_pipeline import DiagnosisPipeline, DiagnosisResult
from leafcare.services.safety_filter import SafetyWarning

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Diagnosis"])


def to_warning_response(warning: SafetyWarning) -> SafetyWarningResponse:
    return SafetyWarningResponse(
        substance=warning.substance,
        is_restricted=warning.is_restricted,
        warning_message=warning.warning_message,
        mandatory_gear=list(warning.mandatory_gear) if warning.mandatory_gear else None,
    )


def to_diagnosis_response(result: DiagnosisResult) -> DiagnosisResponse:
    return DiagnosisResponse(
        crop=result.crop,
        disease=result.disease,
        status=result.status,
        confidence=result.confidence,
        remedies=RemedyResponse(
            chemical=list(result.remedies.chemical),
            organic=list(result.remedies.organic),
            traditional=list(result.remedies.traditional),
        ),
        safety_warnings=[to_warning_response(w) for w in result.safety_warnings],
        top_predictions=[
            PredictionScore(label=label, score=score) for label, score in result.top_predictions
        ],
        processing_time_ms=result.processing_time_ms,
    )


@router.post(
    "/diagnose",
    response_model=DiagnosisResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Undecodable image"},
        422: {"description": "Diagnosis unavailable for this attempt"},
    },
    summary="Diagnose a leaf image",
    description="""
    Runs the selected crop's model on a leaf photo and returns the disease,
    confidence and safety-screened remedies (chemical, organic, traditional).

    **Image Requirements:**
    - Base64-encoded JPEG or PNG
    - Any resolution; images are resampled to the model input size
    """
)
async def diagnose(
    request: DiagnoseRequest,
    pipeline: DiagnosisPipeline = Depends(get_diagnosis_pipeline),
    preprocessor: ImagePreprocessor = Depends(get_preprocessor),
) -> DiagnosisResponse:
    try:
        image = preprocessor.load_image(request.image)
    except PreprocessError as e:
        logger.info(f"Rejected image upload: {e}")
        raise HTTPException(status_code=400, detail=f"Invalid image: {e}")

    # Inference is blocking; keep it off the event loop
    loop = asyncio.get_event_loop()
    result = await loop.run_in_executor(
        None, pipeline.diagnose, image, get_profile(request.crop)
    )
    if result is None:
        raise HTTPException(
            status_code=422,
            detail=f"Diagnosis unavailable for {request.crop.value}. Please try again."
        )
    return to_diagnosis_response(result)


@router.get("/crops", response_model=CropListResponse, summary="List supported crops")
async def list_crops() -> CropListResponse:
    return CropListResponse(
        crops=[
            CropInfo(
                id=profile.crop,
                display_name=profile.display_name,
                model_file=profile.model_file,
                category=profile.category,
                input_width=profile.input_width,
                input_height=profile.input_height,
                normalization=profile.normalization,
            )
            for profile in all_crops()
        ],
        default=default_crop().crop,
    )
