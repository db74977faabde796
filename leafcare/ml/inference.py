"""
Inference Runner

Runs one synchronous forward pass on the active model and decodes the
output tensor.

Decoding rules:
- The class count is read from the output tensor shape at call time.
  A degenerate shape (rank < 2 or a zero class dimension) falls back to
  the crop's label table size.
- The winning index is the first maximum, so ties resolve to the
  smallest index. NaN scores never win.
- Confidence is the winning score clamped into [0, 1]. The shipped models
  end in a softmax layer, so the clamp is a no-op for them; for a model
  that emits raw logits the clamp is the only normalization applied and
  the confidence is an approximation, not a probability.
"""

from typing import Optional, Sequence
import logging
import time

import numpy as np

from leafcare.core.exceptions import InferenceError
from leafcare.ml.base import DecodedOutput, LoadedModel
from leafcare.ml.labels import LabelTable
from leafcare.models.enums import CropType

logger = logging.getLogger(__name__)

# Used when neither the output shape nor a label table gives a class count
DEFAULT_NUM_CLASSES = 1


def decode_scores(scores: Sequence[float]) -> DecodedOutput:
    """
    Pick the winning class from a score vector.

    Raises:
        InferenceError: If the vector is empty
    """
    raw = np.asarray(scores, dtype=np.float64).reshape(-1)
    if raw.size == 0:
        raise InferenceError("Model produced no scores")

    ranked = np.where(np.isnan(raw), -np.inf, raw)
    # np.argmax returns the first occurrence of the maximum
    index = int(np.argmax(ranked))

    winner = float(raw[index])
    confidence = 0.0 if np.isnan(winner) else float(min(max(winner, 0.0), 1.0))

    return DecodedOutput(
        label_index=index,
        confidence=confidence,
        raw_scores=tuple(float(s) for s in raw),
    )


class InferenceRunner:
    """
    Forward pass and output decoding for TFLite-style interpreters.

    Usage:
        runner = InferenceRunner()
        decoded = runner.run(model, tensor)
        label = runner.label_for(model.crop, decoded.label_index)
    """

    def __init__(self, label_table: Optional[LabelTable] = None):
        self.label_table = label_table or LabelTable()

    def run(self, model: LoadedModel, tensor: np.ndarray) -> DecodedOutput:
        """
        Execute the model on one input tensor.

        Args:
            model: Active model handle from ModelStore
            tensor: Flat or shaped float tensor from the preprocessor

        Raises:
            InferenceError: If the model is released or the pass fails
        """
        if not model.is_active:
            raise InferenceError(f"Model {model.artifact} has been released")

        interpreter = model.interpreter
        start_time = time.perf_counter()

        try:
            input_detail = interpreter.get_input_details()[0]
            output_detail = interpreter.get_output_details()[0]

            input_data = np.asarray(tensor, dtype=np.float32).reshape(
                tuple(int(d) for d in input_detail["shape"])
            )
            interpreter.set_tensor(input_detail["index"], input_data)
            interpreter.invoke()
            output = np.asarray(interpreter.get_tensor(output_detail["index"]), dtype=np.float32)
        except Exception as e:
            raise InferenceError(f"Forward pass failed on {model.artifact}: {e}") from e

        num_classes = self.resolve_num_classes(output_detail.get("shape"), model.crop)
        scores = output.reshape(-1)[:num_classes]
        decoded = decode_scores(scores)

        latency = (time.perf_counter() - start_time) * 1000
        logger.debug(
            f"Inference on {model.artifact}: index={decoded.label_index} "
            f"confidence={decoded.confidence:.3f} ({latency:.1f}ms)"
        )
        return DecodedOutput(
            label_index=decoded.label_index,
            confidence=decoded.confidence,
            raw_scores=decoded.raw_scores,
            latency_ms=latency,
        )

    def resolve_num_classes(self, output_shape, crop: CropType) -> int:
        """Class count from the declared output shape, or the fallback."""
        if output_shape is not None:
            shape = [int(d) for d in output_shape]
            if len(shape) > 1 and shape[1] > 0:
                return shape[1]
        fallback = self.label_table.num_classes(crop) or DEFAULT_NUM_CLASSES
        logger.warning(
            f"Degenerate output shape {output_shape} for {crop.value}, "
            f"assuming {fallback} classes"
        )
        return fallback

    def label_for(self, crop: CropType, index: int) -> str:
        return self.label_table.get_label(crop, index)
