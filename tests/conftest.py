"""
Shared fixtures.

FakeInterpreter mimics the TensorFlow Lite Interpreter API closely enough
for the store and runner, so the suite runs without real model artifacts.
"""

from pathlib import Path
from typing import Optional

import numpy as np
import pytest
from PIL import Image

from leafcare.ml.crops import all_crops
from leafcare.ml.model_store import ModelStore
from leafcare.services.diagnosis_pipeline import DiagnosisPipeline


class FakeInterpreter:
    """TFLite-style interpreter returning fixed scores."""

    def __init__(
        self,
        scores,
        input_shape=(1, 224, 224, 3),
        output_shape=None,
        fail_on_invoke: bool = False,
    ):
        self.scores = np.asarray(scores, dtype=np.float32).reshape(1, -1)
        self.input_shape = np.array(input_shape, dtype=np.int32)
        self.output_shape = np.array(
            self.scores.shape if output_shape is None else output_shape, dtype=np.int32
        )
        self.fail_on_invoke = fail_on_invoke
        self.last_input: Optional[np.ndarray] = None
        self.invocations = 0
        self.closed = False

    def get_input_details(self):
        return [{"index": 0, "shape": self.input_shape, "dtype": np.float32}]

    def get_output_details(self):
        return [{"index": 1, "shape": self.output_shape, "dtype": np.float32}]

    def set_tensor(self, index, value):
        self.last_input = value

    def invoke(self):
        if self.fail_on_invoke:
            raise RuntimeError("delegate failure")
        self.invocations += 1

    def get_tensor(self, index):
        return self.scores

    def close(self):
        self.closed = True


class FakeInterpreterFactory:
    """
    Records every interpreter it builds.

    Scores are looked up by artifact file name; files listed in
    ``corrupt`` raise like an unreadable flatbuffer.
    """

    def __init__(self, scores_by_file=None, default_scores=(0.1, 0.7, 0.2), corrupt=(), **kwargs):
        self.scores_by_file = scores_by_file or {}
        self.default_scores = default_scores
        self.corrupt = set(corrupt)
        self.kwargs = kwargs
        self.created: list[tuple[Path, FakeInterpreter]] = []

    def __call__(self, path: Path) -> FakeInterpreter:
        if path.name in self.corrupt:
            raise ValueError(f"Could not open '{path}': not a valid flatbuffer")
        interpreter = FakeInterpreter(
            self.scores_by_file.get(path.name, self.default_scores), **self.kwargs
        )
        self.created.append((path, interpreter))
        return interpreter

    def live(self) -> list[FakeInterpreter]:
        return [interp for _, interp in self.created if not interp.closed]


@pytest.fixture
def artifact_dir(tmp_path):
    """Directory holding a placeholder artifact for every crop."""
    for profile in all_crops():
        (tmp_path / profile.model_file).write_bytes(b"TFL3\x00\x00\x00\x00")
    return tmp_path


@pytest.fixture
def interpreter_factory():
    return FakeInterpreterFactory()


@pytest.fixture
def model_store(artifact_dir, interpreter_factory):
    return ModelStore(artifact_dir, interpreter_factory=interpreter_factory)


@pytest.fixture
def pipeline(model_store):
    return DiagnosisPipeline(model_store)


@pytest.fixture
def black_image():
    """400x300 all-black RGB image."""
    return Image.new("RGB", (400, 300), color=(0, 0, 0))


@pytest.fixture
def leaf_image():
    """Green leaf-like pattern on a dark background."""
    img_array = np.zeros((256, 256, 3), dtype=np.uint8)
    img_array[40:220, 40:220, 1] = 150
    img_array[40:220, 40:220, 0] = 50
    img_array[40:220, 40:220, 2] = 50
    return Image.fromarray(img_array)
