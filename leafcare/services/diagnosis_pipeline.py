"""
Diagnosis Pipeline

Coordinates one diagnosis:
1. Make the crop's model active (ModelStore)
2. Build the input tensor (ImagePreprocessor)
3. Forward pass and decoding (InferenceRunner)
4. Remedy generation (RemedyRuleEngine)
5. Chemical safety screening (SafetyFilter)

Every component is constructed by the caller and injected; the pipeline
holds no global state. Failures never escape diagnose(): a missing
artifact, an unreadable image or a failed forward pass all produce None
and leave the loaded model in place for the next attempt.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Optional

from leafcare.core.exceptions import DiagnosisError, ModelLoadError
from leafcare.ml.crops import CropProfile
from leafcare.ml.inference import InferenceRunner
from leafcare.ml.model_store import ModelStore
from leafcare.ml.preprocessor import ImageInput, ImagePreprocessor
from leafcare.models.enums import CropType, HealthStatus
from leafcare.services.remedy_engine import (
    GENERIC_ADVICE,
    RemedyRecommendations,
    RemedyRuleEngine,
)
from leafcare.services.safety_filter import SafetyFilter, SafetyWarning

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiagnosisResult:
    """
    Outcome of one successful diagnosis.

    Attributes:
        disease: Decoded disease label, e.g. "Early Blight" or "Healthy"
        confidence: Model confidence, always within [0, 1]
        crop: Crop the model was run for
        remedies: Safety-screened recommendations
        safety_warnings: Restricted substances found while screening
    """
    disease: str
    confidence: float
    crop: CropType
    remedies: RemedyRecommendations
    safety_warnings: tuple[SafetyWarning, ...] = field(default_factory=tuple)
    label_index: int = -1
    top_predictions: tuple[tuple[str, float], ...] = field(default_factory=tuple)
    processing_time_ms: float = 0.0

    @property
    def status(self) -> HealthStatus:
        return HealthStatus.from_label(self.disease)

    @property
    def is_healthy(self) -> bool:
        return self.status is HealthStatus.HEALTHY


class DiagnosisPipeline:
    """
    Single-model, single-flight diagnosis orchestrator.

    Usage:
        pipeline = DiagnosisPipeline(ModelStore("./models"))
        result = pipeline.diagnose(image, get_profile("tomato"))
        if result is None:
            ...  # "diagnosis unavailable" for this attempt
        pipeline.release()
    """

    def __init__(
        self,
        model_store: ModelStore,
        preprocessor: Optional[ImagePreprocessor] = None,
        runner: Optional[InferenceRunner] = None,
        remedy_engine: Optional[RemedyRuleEngine] = None,
        safety_filter: Optional[SafetyFilter] = None,
    ):
        """
        Initialize the pipeline with its components.

        Components can be injected for testing or replaced with
        alternative implementations.
        """
        self.model_store = model_store
        self.preprocessor = preprocessor or ImagePreprocessor()
        self.runner = runner or InferenceRunner()
        self.remedy_engine = remedy_engine or RemedyRuleEngine()
        self.safety_filter = safety_filter or SafetyFilter()

    def diagnose(self, image: ImageInput, profile: CropProfile) -> Optional[DiagnosisResult]:
        """
        Diagnose one leaf image.

        Args:
            image: PIL image or HxWx3 uint8 array
            profile: Crop whose model should be used

        Returns:
            DiagnosisResult, or None when no result is available
        """
        start_time = time.perf_counter()

        try:
            with self.model_store.use(profile) as model:
                tensor = self.preprocessor.preprocess(image, profile)
                decoded = self.runner.run(model, tensor)
        except ModelLoadError as e:
            logger.warning(f"Diagnosis unavailable for {profile.identifier}: {e}")
            return None
        except DiagnosisError as e:
            logger.warning(f"Diagnosis aborted for {profile.identifier}: {e}")
            return None
        except Exception as e:
            logger.exception(f"Unexpected diagnosis failure for {profile.identifier}: {e}")
            return None

        disease = self.runner.label_for(profile.crop, decoded.label_index)
        remedies, warnings = self._screen(self.remedy_engine.generate(disease, profile.crop), profile)

        top_predictions = tuple(
            (self.runner.label_for(profile.crop, index), score)
            for index, score in decoded.top_k(3)
        )
        elapsed = (time.perf_counter() - start_time) * 1000
        logger.info(
            f"Diagnosis for {profile.identifier}: {disease} "
            f"({decoded.confidence:.2f}) in {elapsed:.1f}ms"
        )

        return DiagnosisResult(
            disease=disease,
            confidence=decoded.confidence,
            crop=profile.crop,
            remedies=remedies,
            safety_warnings=tuple(warnings),
            label_index=decoded.label_index,
            top_predictions=top_predictions,
            processing_time_ms=elapsed,
        )

    def _screen(
        self,
        remedies: RemedyRecommendations,
        profile: CropProfile
    ) -> tuple[RemedyRecommendations, list[SafetyWarning]]:
        """Run the chemical group through the safety filter."""
        chemical, warnings = self.safety_filter.filter_recommendations(
            remedies.chemical, profile.category
        )
        if remedies.chemical and not chemical:
            # Everything was redacted; never show an empty chemical group
            chemical = [GENERIC_ADVICE]
        screened = RemedyRecommendations.of(
            chemical=chemical,
            organic=remedies.organic,
            traditional=remedies.traditional,
        )
        return screened, warnings

    def current_crop(self) -> Optional[CropType]:
        return self.model_store.current()

    def release(self) -> None:
        """Free the loaded model, e.g. when the consuming session ends."""
        self.model_store.release()
