"""
FastAPI dependency injection.

Every component is built once here and handed to its consumers
explicitly, so tests can override any of them through
``app.dependency_overrides``.
"""

from functools import lru_cache

from leafcare.core.config import get_settings
from leafcare.ml.inference import InferenceRunner
from leafcare.ml.labels import LabelTable
from leafcare.ml.model_store import ModelStore
from leafcare.ml.preprocessor import ImagePreprocessor
from leafcare.services.diagnosis_pipeline import DiagnosisPipeline
from leafcare.services.frame_sampler import FrameSampler
from leafcare.services.remedy_engine import RemedyRuleEngine
from leafcare.services.safety_filter import BannedSubstanceRegistry, SafetyFilter


@lru_cache()
def get_model_store() -> ModelStore:
    """Get the process's model store."""
    return ModelStore(get_settings().artifact_dir)


@lru_cache()
def get_preprocessor() -> ImagePreprocessor:
    """Get cached image preprocessor."""
    settings = get_settings()
    return ImagePreprocessor(max_image_bytes=int(settings.max_image_size_mb * 1024 * 1024))


@lru_cache()
def get_inference_runner() -> InferenceRunner:
    """Get cached inference runner."""
    return InferenceRunner(LabelTable())


@lru_cache()
def get_remedy_engine() -> RemedyRuleEngine:
    """Get cached remedy rule engine."""
    return RemedyRuleEngine()


@lru_cache()
def get_substance_registry() -> BannedSubstanceRegistry:
    """Load the configured registry, or the built-in CIBRC lists."""
    path = get_settings().substance_registry_path
    if path:
        return BannedSubstanceRegistry.load(path)
    return BannedSubstanceRegistry.default()


@lru_cache()
def get_safety_filter() -> SafetyFilter:
    """Get cached safety filter."""
    return SafetyFilter(get_substance_registry())


@lru_cache()
def get_diagnosis_pipeline() -> DiagnosisPipeline:
    """Get the diagnosis pipeline wired to the shared components."""
    return DiagnosisPipeline(
        model_store=get_model_store(),
        preprocessor=get_preprocessor(),
        runner=get_inference_runner(),
        remedy_engine=get_remedy_engine(),
        safety_filter=get_safety_filter(),
    )


def get_frame_sampler() -> FrameSampler:
    """
    Create a sampler for one camera session.

    Not cached: each session owns its sampler, and closing it releases the
    shared pipeline's model.
    """
    return FrameSampler(
        get_diagnosis_pipeline(),
        min_interval_ms=get_settings().min_frame_interval_ms,
    )


__all__ = [
    "get_model_store",
    "get_preprocessor",
    "get_inference_runner",
    "get_remedy_engine",
    "get_substance_registry",
    "get_safety_filter",
    "get_diagnosis_pipeline",
    "get_frame_sampler",
]
