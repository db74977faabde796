"""
Tests for DiagnosisPipeline - end-to-end with fake interpreters.

Tests cover:
- Successful diagnosis and confidence bounds
- Failures producing None without raising
- Crop switching
- Safety screening of generated remedies
"""

import numpy as np
import pytest
from PIL import Image

from leafcare.ml.crops import get_profile
from leafcare.ml.model_store import ModelStore
from leafcare.models.enums import CropType, HealthStatus
from leafcare.services.diagnosis_pipeline import DiagnosisPipeline
from leafcare.services.remedy_engine import (
    GENERIC_ADVICE,
    RemedyRecommendations,
    RemedyRuleEngine,
)
from leafcare.services.safety_filter import PROTECTIVE_EQUIPMENT

from tests.conftest import FakeInterpreterFactory

TOMATO_HEALTHY_SCORES = [0.01, 0.01, 0.01, 0.01, 0.01, 0.01, 0.01, 0.93]


class FixedRemedyEngine(RemedyRuleEngine):
    """Returns the same chemical list for every diagnosis."""

    def __init__(self, chemical):
        super().__init__()
        self.chemical = chemical

    def generate(self, disease_label, crop):
        return RemedyRecommendations.of(
            chemical=self.chemical,
            organic=["Spray neem oil (5 ml/L)"],
            traditional=["Remove infected leaves"],
        )


def make_pipeline(artifact_dir, **kwargs):
    engine = kwargs.pop("remedy_engine", None)
    factory = FakeInterpreterFactory(**kwargs)
    store = ModelStore(artifact_dir, interpreter_factory=factory)
    return DiagnosisPipeline(store, remedy_engine=engine), factory


class TestDiagnose:
    """Successful diagnoses."""

    def test_black_tomato_image(self, pipeline, black_image):
        result = pipeline.diagnose(black_image, get_profile("tomato"))

        assert result is not None
        assert 0.0 <= result.confidence <= 1.0
        assert result.crop is CropType.TOMATO
        assert result.disease == "Early Blight"
        assert result.confidence == pytest.approx(0.7)
        assert len(result.remedies.chemical) > 0
        assert len(result.remedies.organic) > 0
        assert len(result.remedies.traditional) > 0

    def test_healthy_result(self, artifact_dir, leaf_image):
        pipeline, _ = make_pipeline(artifact_dir, default_scores=TOMATO_HEALTHY_SCORES)

        result = pipeline.diagnose(leaf_image, get_profile("tomato"))

        assert result.disease == "Healthy"
        assert result.is_healthy
        assert result.status is HealthStatus.HEALTHY
        assert result.remedies.chemical == ()
        assert result.safety_warnings == ()

    def test_numpy_frame(self, pipeline):
        frame = np.zeros((480, 640, 3), dtype=np.uint8)
        result = pipeline.diagnose(frame, get_profile("potato"))

        assert result is not None
        assert result.disease == "Late Blight"

    def test_logit_output_clamped(self, artifact_dir, leaf_image):
        pipeline, _ = make_pipeline(artifact_dir, default_scores=[-1.5, 4.2, 0.3, 1.1])

        result = pipeline.diagnose(leaf_image, get_profile("apple"))

        assert result.disease == "Black Rot"
        assert result.confidence == 1.0

    def test_top_predictions(self, pipeline, leaf_image):
        result = pipeline.diagnose(leaf_image, get_profile("tomato"))

        labels = [label for label, _ in result.top_predictions]
        assert labels == ["Early Blight", "Late Blight", "Bacterial Spot"]
        assert result.label_index == 1

    def test_preprocessed_tensor_reaches_model(self, pipeline, interpreter_factory, black_image):
        pipeline.diagnose(black_image, get_profile("mango"))

        _, interpreter = interpreter_factory.created[-1]
        assert interpreter.last_input.shape == (1, 224, 224, 3)
        assert not interpreter.last_input.any()


class TestUnavailable:
    """Every failure yields None."""

    def test_missing_artifact(self, tmp_path, black_image):
        store = ModelStore(tmp_path, interpreter_factory=FakeInterpreterFactory())
        pipeline = DiagnosisPipeline(store)

        assert pipeline.diagnose(black_image, get_profile("tomato")) is None
        assert pipeline.current_crop() is None

    def test_malformed_image_keeps_model(self, pipeline):
        result = pipeline.diagnose(Image.new("RGB", (0, 0)), get_profile("tomato"))

        assert result is None
        assert pipeline.current_crop() is CropType.TOMATO

    def test_unsupported_image_type(self, pipeline):
        assert pipeline.diagnose("not an image", get_profile("guava")) is None

    def test_inference_failure(self, artifact_dir, black_image):
        pipeline, _ = make_pipeline(artifact_dir, fail_on_invoke=True)

        assert pipeline.diagnose(black_image, get_profile("cotton")) is None
        assert pipeline.current_crop() is CropType.COTTON

    def test_recovers_on_next_attempt(self, artifact_dir, black_image):
        pipeline, _ = make_pipeline(artifact_dir, corrupt={"Apple_model_unquant.tflite"})

        assert pipeline.diagnose(black_image, get_profile("apple")) is None
        assert pipeline.diagnose(black_image, get_profile("tomato")) is not None


class TestCropSwitching:

    def test_switch_replaces_model(self, pipeline, interpreter_factory, black_image):
        pipeline.diagnose(black_image, get_profile("tomato"))
        pipeline.diagnose(black_image, get_profile("apple"))

        assert pipeline.current_crop() is CropType.APPLE
        assert len(interpreter_factory.live()) == 1

    def test_repeat_crop_reuses_model(self, pipeline, interpreter_factory, black_image):
        for _ in range(5):
            pipeline.diagnose(black_image, get_profile("guava"))

        assert len(interpreter_factory.created) == 1

    def test_release(self, pipeline, interpreter_factory, black_image):
        pipeline.diagnose(black_image, get_profile("potato"))
        pipeline.release()

        assert pipeline.current_crop() is None
        assert interpreter_factory.live() == []


class TestSafetyScreening:
    """Remedies pass through the safety filter before they are returned."""

    def test_prohibited_chemical_redacted(self, artifact_dir, black_image):
        engine = FixedRemedyEngine(["Spray Monocrotophos insecticide (1.6 ml/L)"])
        pipeline, _ = make_pipeline(artifact_dir, remedy_engine=engine)

        result = pipeline.diagnose(black_image, get_profile("tomato"))

        assert result.remedies.chemical == (GENERIC_ADVICE,)
        assert all("Monocrotophos" not in entry for entry in result.remedies.chemical)
        assert len(result.safety_warnings) == 1
        assert result.safety_warnings[0].is_prohibited

    def test_partial_redaction_keeps_safe_entries(self, artifact_dir, black_image):
        engine = FixedRemedyEngine([
            "Spray Endosulfan insecticide (2 ml/L)",
            "Spray Mancozeb fungicide (2.5 g/L)",
        ])
        pipeline, _ = make_pipeline(artifact_dir, remedy_engine=engine)

        result = pipeline.diagnose(black_image, get_profile("mango"))

        assert result.remedies.chemical == ("Spray Mancozeb fungicide (2.5 g/L)",)

    def test_vegetable_restriction_attaches_gear(self, artifact_dir, black_image):
        engine = FixedRemedyEngine(["Spray Chlorpyrifos insecticide (2 ml/L)"])
        pipeline, _ = make_pipeline(artifact_dir, remedy_engine=engine)

        result = pipeline.diagnose(black_image, get_profile("potato"))

        assert result.remedies.chemical == ("Spray Chlorpyrifos insecticide (2 ml/L)",)
        assert result.safety_warnings[0].mandatory_gear == PROTECTIVE_EQUIPMENT

    def test_vegetable_restriction_ignored_for_fibre(self, artifact_dir, black_image):
        # Cotton "Curl Virus" recommends Acephate, restricted only on vegetables
        pipeline, _ = make_pipeline(artifact_dir, default_scores=[0.1, 0.8, 0.05, 0.05])

        result = pipeline.diagnose(black_image, get_profile("cotton"))

        assert result.disease == "Curl Virus"
        assert "Acephate" in result.remedies.chemical[0]
        assert result.safety_warnings == ()

    def test_shipped_rules_pass_screening_unchanged(self, pipeline, black_image):
        result = pipeline.diagnose(black_image, get_profile("tomato"))
        expected = RemedyRuleEngine().generate("Early Blight", CropType.TOMATO)

        assert result.remedies == expected
        assert result.safety_warnings == ()
