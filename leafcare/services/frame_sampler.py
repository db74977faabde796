"""
Frame Sampler

Adapter between a camera frame producer and the diagnosis pipeline.

- Keep-latest backpressure: only the most recent submitted frame is held;
  a newer frame replaces a pending one, which is dropped, never queued.
- Rate limit: a pending frame is processed only when the minimum interval
  has elapsed since the previous processed frame (333 ms, ~3 per second).
- Cancellation: close() releases the pipeline's model at once. A diagnosis
  already in flight finishes, but its result is discarded.

The sampler runs no threads of its own; the host calls poll() from its
frame loop.
"""

import logging
import threading
import time
from typing import Callable, Optional

from leafcare.ml.crops import CropProfile
from leafcare.ml.preprocessor import ImageInput
from leafcare.services.diagnosis_pipeline import DiagnosisPipeline, DiagnosisResult

logger = logging.getLogger(__name__)

DEFAULT_MIN_INTERVAL_MS = 333


class FrameSampler:
    """
    Latest-frame-only, rate-limited driver for a DiagnosisPipeline.

    Usage:
        sampler = FrameSampler(pipeline)
        sampler.submit(frame, profile)     # from the camera callback
        result = sampler.poll()            # from the frame loop
        sampler.close()                    # when the session ends
    """

    def __init__(
        self,
        pipeline: DiagnosisPipeline,
        min_interval_ms: int = DEFAULT_MIN_INTERVAL_MS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.pipeline = pipeline
        self.min_interval_ms = min_interval_ms
        self._clock = clock
        self._lock = threading.Lock()
        self._pending: Optional[tuple[ImageInput, CropProfile]] = None
        self._last_processed: Optional[float] = None
        self._closed = False
        self.dropped_frames = 0
        self.processed_frames = 0

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    def submit(self, image: ImageInput, profile: CropProfile) -> None:
        """Offer a frame; replaces any frame still waiting."""
        with self._lock:
            if self._closed:
                return
            if self._pending is not None:
                self.dropped_frames += 1
            self._pending = (image, profile)

    def poll(self) -> Optional[DiagnosisResult]:
        """
        Diagnose the pending frame if the rate limit allows.

        Returns:
            The result, or None when nothing was due, the diagnosis was
            unavailable, or the sampler was closed meanwhile
        """
        with self._lock:
            if self._closed or self._pending is None:
                return None
            now = self._clock()
            if (
                self._last_processed is not None
                and (now - self._last_processed) * 1000 < self.min_interval_ms
            ):
                return None
            image, profile = self._pending
            self._pending = None
            self._last_processed = now

        result = self.pipeline.diagnose(image, profile)

        with self._lock:
            self.processed_frames += 1
            closed = self._closed
        if closed:
            # The diagnosis may have reloaded the model after close() freed it
            logger.debug("Discarding diagnosis completed after close")
            self.pipeline.release()
            return None
        return result

    def close(self) -> None:
        """End the session: drop the pending frame and release the model."""
        with self._lock:
            self._closed = True
            self._pending = None
        self.pipeline.release()
        logger.info(
            f"Frame sampler closed ({self.processed_frames} processed, "
            f"{self.dropped_frames} dropped)"
        )
