"""
Pydantic schemas for API request/response validation.

These schemas define the contract between the API and clients,
ensuring type safety and automatic documentation.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional
import base64
import binascii

from leafcare.models.enums import (
    CropCategory,
    CropType,
    HealthStatus,
    ModelState,
    NormalizationScheme,
)


# === Request Schemas ===

class DiagnoseRequest(BaseModel):
    """
    Request schema for leaf diagnosis.

    Attributes:
        image: Base64-encoded image data (JPEG, PNG supported)
        crop: Crop whose model should be used
    """
    image: str = Field(
        ...,
        description="Base64-encoded image data",
        min_length=16
    )
    crop: CropType = Field(
        default=CropType.TOMATO,
        description="Crop identifier selecting the diagnosis model"
    )

    @field_validator("image")
    @classmethod
    def validate_base64(cls, v: str) -> str:
        """Validate that the image is valid base64."""
        # Remove data URL prefix if present
        if "," in v:
            v = v.split(",", 1)[1]
        try:
            decoded = base64.b64decode(v, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f"Invalid base64 image data: {e}")
        if not decoded:
            raise ValueError("Image data is empty")
        return v


class SafetyCheckRequest(BaseModel):
    """Request to screen a single substance."""
    substance: str = Field(..., min_length=1, description="Product or active ingredient name")
    crop_category: str = Field(
        default=CropCategory.VEGETABLE.value,
        description="Crop category or crop name, e.g. 'vegetable', 'tomato', 'fruit'"
    )


# === Response Schemas ===

class RemedyResponse(BaseModel):
    """Categorized recommendations in display order."""
    chemical: list[str] = Field(default_factory=list)
    organic: list[str] = Field(default_factory=list)
    traditional: list[str] = Field(default_factory=list)


class SafetyWarningResponse(BaseModel):
    """Safety verdict for one substance."""
    substance: Optional[str] = None
    is_restricted: bool
    warning_message: Optional[str] = None
    mandatory_gear: Optional[list[str]] = None


class PredictionScore(BaseModel):
    """One ranked class prediction."""
    label: str
    score: float


class DiagnosisResponse(BaseModel):
    """Complete diagnosis for one image."""
    crop: CropType
    disease: str
    status: HealthStatus
    confidence: float = Field(..., ge=0.0, le=1.0)
    remedies: RemedyResponse
    safety_warnings: list[SafetyWarningResponse] = Field(default_factory=list)
    top_predictions: list[PredictionScore] = Field(default_factory=list)
    processing_time_ms: float = 0.0


class CropInfo(BaseModel):
    """Public description of a supported crop."""
    id: CropType
    display_name: str
    model_file: str
    category: CropCategory
    input_width: int
    input_height: int
    normalization: NormalizationScheme


class CropListResponse(BaseModel):
    """Crop catalog."""
    crops: list[CropInfo]
    default: CropType


class ErrorResponse(BaseModel):
    """Error payload."""
    error: str
    message: str
    details: Optional[str] = None


class HealthResponse(BaseModel):
    """Liveness payload."""
    status: str
    timestamp: float
    version: str


class ModelSlotStatus(BaseModel):
    """State of the single model slot."""
    state: ModelState
    crop: Optional[CropType] = None
    artifact: Optional[str] = None
    num_classes: Optional[int] = None
    last_error: Optional[str] = None


class ReadinessResponse(BaseModel):
    """Readiness payload with the resident model."""
    status: str
    timestamp: float
    version: str
    slot: ModelSlotStatus
    uptime_seconds: Optional[float] = None
