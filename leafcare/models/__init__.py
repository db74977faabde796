# Data models module
from leafcare.models.schemas import (
    DiagnoseRequest,
    DiagnosisResponse,
    RemedyResponse,
    SafetyWarningResponse,
    CropInfo,
    SafetyCheckRequest,
)
from leafcare.models.enums import CropType, CropCategory, HealthStatus, NormalizationScheme

__all__ = [
    "DiagnoseRequest",
    "DiagnosisResponse",
    "RemedyResponse",
    "SafetyWarningResponse",
    "CropInfo",
    "SafetyCheckRequest",
    "CropType",
    "CropCategory",
    "HealthStatus",
    "NormalizationScheme",
]
