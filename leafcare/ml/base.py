"""
Base types shared by the ML components.

Design Principles:
1. A loaded model is an exclusively owned handle, never shared
2. Decoded outputs always carry a confidence clamped into [0, 1]
3. Interpreters are duck-typed to the TensorFlow Lite Interpreter API
   (get_input_details / get_output_details / set_tensor / invoke / get_tensor)
"""

from dataclasses import dataclass, field
from typing import Any, Optional
import logging
import math
import time

from leafcare.models.enums import CropType, ModelState

logger = logging.getLogger(__name__)


@dataclass
class LoadedModel:
    """
    Handle to a mapped model artifact.

    Owned by ModelStore. Once released the interpreter reference is
    dropped and the handle refuses further inference.

    Attributes:
        crop: Crop the artifact was loaded for
        artifact: Artifact file name
        interpreter: TFLite-compatible interpreter
        input_shape: Declared input tensor shape, e.g. (1, 224, 224, 3)
        output_shape: Declared output tensor shape, e.g. (1, num_classes)
    """
    crop: CropType
    artifact: str
    interpreter: Any
    input_shape: tuple[int, ...]
    output_shape: tuple[int, ...]
    state: ModelState = ModelState.LOADED
    loaded_at: float = field(default_factory=time.time)

    @property
    def is_active(self) -> bool:
        return self.state is ModelState.LOADED and self.interpreter is not None

    def release(self) -> None:
        """Free the interpreter. Safe to call more than once."""
        if self.state is ModelState.RELEASED:
            return
        close = getattr(self.interpreter, "close", None)
        if callable(close):
            close()
        self.interpreter = None
        self.state = ModelState.RELEASED
        logger.debug(f"Released model handle: {self.artifact}")


@dataclass(frozen=True)
class DecodedOutput:
    """
    Decoded classification output.

    Attributes:
        label_index: Index of the highest score (lowest index on ties)
        confidence: Winning score clamped into [0, 1]
        raw_scores: Scores as emitted by the model
    """
    label_index: int
    confidence: float
    raw_scores: tuple[float, ...]
    latency_ms: float = 0.0

    def top_k(self, k: int = 3) -> list[tuple[int, float]]:
        """Highest scoring (index, score) pairs, stable on ties."""
        ranked = sorted(
            ((i, s) for i, s in enumerate(self.raw_scores) if not math.isnan(s)),
            key=lambda pair: (-pair[1], pair[0])
        )
        return ranked[:k]


@dataclass(frozen=True)
class ModelInfo:
    """Information about the currently loaded model."""
    crop: CropType
    artifact: str
    input_shape: tuple[int, ...]
    output_shape: tuple[int, ...]
    loaded_at: float
    num_classes: Optional[int] = None
