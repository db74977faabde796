# Services module
from leafcare.services.diagnosis_pipeline import DiagnosisPipeline, DiagnosisResult
from leafcare.services.frame_sampler import FrameSampler
from leafcare.services.remedy_engine import RemedyRecommendations, RemedyRuleEngine
from leafcare.services.safety_filter import BannedSubstanceRegistry, SafetyFilter, SafetyWarning

__all__ = [
    "DiagnosisPipeline",
    "DiagnosisResult",
    "FrameSampler",
    "RemedyRecommendations",
    "RemedyRuleEngine",
    "BannedSubstanceRegistry",
    "SafetyFilter",
    "SafetyWarning",
]
