"""
Model Store

Owns at most one loaded crop model at a time.

Switching crops always releases the current interpreter before the next
artifact is mapped, so two models are never resident together. Load and
release run under one re-entrant lock, which inference also takes through
``use()``; a load can therefore never interleave with a forward pass.

Load failures are returned as ModelLoadError values and leave the store
unloaded. Callers decide whether to retry.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Iterator, Optional, Union
import logging
import threading

from leafcare.core.exceptions import ModelLoadError
from leafcare.ml.base import LoadedModel, ModelInfo
from leafcare.ml.crops import CropProfile
from leafcare.models.enums import CropType, ModelState

logger = logging.getLogger(__name__)

InterpreterFactory = Callable[[Path], Any]


def load_tflite_interpreter(path: Path) -> Any:
    """Map a TFLite flatbuffer and allocate its tensors."""
    # Deferred: importing tensorflow is slow and only needed on first load
    import tensorflow as tf

    interpreter = tf.lite.Interpreter(model_path=str(path))
    interpreter.allocate_tensors()
    return interpreter


class ModelStore:
    """
    Single-slot model holder.

    Lifecycle of the slot: unloaded -> loading -> loaded -> released.

    Usage:
        store = ModelStore("./models")
        error = store.ensure_loaded(get_profile("tomato"))
        if error is None:
            with store.use(profile) as model:
                ...
        store.release()
    """

    def __init__(
        self,
        artifact_dir: Union[str, Path],
        interpreter_factory: Optional[InterpreterFactory] = None,
    ):
        """
        Args:
            artifact_dir: Directory holding the .tflite artifacts
            interpreter_factory: Builds an interpreter from an artifact path;
                defaults to the TensorFlow Lite interpreter
        """
        self.artifact_dir = Path(artifact_dir)
        self._factory = interpreter_factory or load_tflite_interpreter
        self._lock = threading.RLock()
        self._model: Optional[LoadedModel] = None
        self._state = ModelState.UNLOADED
        self.load_count = 0
        self.last_error: Optional[ModelLoadError] = None

    @property
    def state(self) -> ModelState:
        return self._state

    def current(self) -> Optional[CropType]:
        """Crop whose model is active, if any."""
        with self._lock:
            return self._model.crop if self._model is not None else None

    def ensure_loaded(self, profile: CropProfile) -> Optional[ModelLoadError]:
        """
        Make the profile's model the active one.

        No-op when it is already active. Otherwise the current model is
        released and the new artifact loaded, as one step under the lock.

        Returns:
            None on success, the ModelLoadError on failure
        """
        with self._lock:
            if self._model is not None and self._model.crop is profile.crop:
                return None

            self._release_locked()
            self._state = ModelState.LOADING
            try:
                model = self._load(profile)
            except ModelLoadError as e:
                self._state = ModelState.UNLOADED
                self.last_error = e
                logger.error(f"Failed to load model for {profile.identifier}: {e}")
                return e

            self._model = model
            self._state = ModelState.LOADED
            self.load_count += 1
            self.last_error = None
            logger.info(
                f"Model loaded: {profile.model_file} "
                f"(input={model.input_shape}, output={model.output_shape})"
            )
            return None

    def release(self) -> None:
        """Free the active model. No-op when nothing is loaded."""
        with self._lock:
            self._release_locked()

    @contextmanager
    def use(self, profile: CropProfile) -> Iterator[LoadedModel]:
        """
        Hold the store lock with the profile's model active.

        Raises:
            ModelLoadError: If the model cannot be made active
        """
        with self._lock:
            error = self.ensure_loaded(profile)
            if error is not None:
                raise error
            yield self._model

    def get_model_info(self) -> Optional[ModelInfo]:
        """Describe the active model, if any."""
        with self._lock:
            model = self._model
            if model is None:
                return None
            num_classes = model.output_shape[1] if len(model.output_shape) > 1 else None
            return ModelInfo(
                crop=model.crop,
                artifact=model.artifact,
                input_shape=model.input_shape,
                output_shape=model.output_shape,
                loaded_at=model.loaded_at,
                num_classes=num_classes,
            )

    def _release_locked(self) -> None:
        if self._model is None:
            return
        artifact = self._model.artifact
        self._model.release()
        self._model = None
        self._state = ModelState.RELEASED
        logger.info(f"Model released: {artifact}")

    def _load(self, profile: CropProfile) -> LoadedModel:
        """Map the artifact and validate its tensor shapes."""
        path = self.artifact_dir / profile.model_file
        if not path.is_file():
            raise ModelLoadError(f"Model artifact not found: {path}", artifact=profile.model_file)

        try:
            interpreter = self._factory(path)
        except Exception as e:
            raise ModelLoadError(
                f"Could not read model artifact {path}: {e}", artifact=profile.model_file
            ) from e

        try:
            input_details = interpreter.get_input_details()
            output_details = interpreter.get_output_details()
            if not input_details or not output_details:
                raise ModelLoadError(
                    f"Model {profile.model_file} declares no input or output tensor",
                    artifact=profile.model_file,
                )
            input_shape = tuple(int(d) for d in input_details[0]["shape"])
            output_shape = tuple(int(d) for d in output_details[0]["shape"])
            self._validate_input_shape(profile, input_shape)
            if not output_shape:
                raise ModelLoadError(
                    f"Model {profile.model_file} declares a scalar output",
                    artifact=profile.model_file,
                )
        except Exception as e:
            close = getattr(interpreter, "close", None)
            if callable(close):
                close()
            if isinstance(e, ModelLoadError):
                raise
            raise ModelLoadError(
                f"Malformed tensor details in {profile.model_file}: {e}",
                artifact=profile.model_file,
            ) from e

        return LoadedModel(
            crop=profile.crop,
            artifact=profile.model_file,
            interpreter=interpreter,
            input_shape=input_shape,
            output_shape=output_shape,
        )

    @staticmethod
    def _validate_input_shape(profile: CropProfile, shape: tuple[int, ...]) -> None:
        expected = (1, profile.input_height, profile.input_width, 3)
        if shape != expected:
            raise ModelLoadError(
                f"Unsupported input shape {shape} for {profile.model_file}, expected {expected}",
                artifact=profile.model_file,
            )
