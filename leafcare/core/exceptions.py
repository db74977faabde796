"""
Error types for the diagnosis pipeline.

Every failure here is recoverable: it aborts the current attempt only and
the pipeline reports it to its caller as an absent result.
"""

from typing import Optional


class DiagnosisError(Exception):
    """Base class for recoverable diagnosis failures."""


class ModelLoadError(DiagnosisError):
    """A model artifact is missing, corrupt or has an unsupported shape."""

    def __init__(self, message: str, artifact: Optional[str] = None):
        super().__init__(message)
        self.artifact = artifact


class PreprocessError(DiagnosisError):
    """The input image is malformed, undecodable or zero-size."""


class InferenceError(DiagnosisError):
    """The forward pass failed or produced no usable scores."""
