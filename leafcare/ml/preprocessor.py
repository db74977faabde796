"""
Image preprocessing pipeline.

Handles:
- Base64 / raw byte decoding and image loading
- Exact resampling to a model's input resolution
- Per-profile normalization
- Flattening into the channel-interleaved layout TFLite models expect

Layout: row-major pixels (top-to-bottom, left-to-right), 3 float channels
per pixel (R, G, B), so a 224x224 image becomes 150528 values.
"""

from typing import Optional, Union
import base64
import binascii
import io
import logging

import numpy as np
from PIL import Image, UnidentifiedImageError

from leafcare.core.exceptions import PreprocessError
from leafcare.ml.crops import CropProfile
from leafcare.models.enums import NormalizationScheme

logger = logging.getLogger(__name__)

ImageInput = Union[Image.Image, np.ndarray]


def normalize(values: np.ndarray, scheme: NormalizationScheme) -> np.ndarray:
    """Apply a normalization scheme to 0-255 channel values."""
    if scheme is NormalizationScheme.SCALE_0_1:
        return values / 255.0
    if scheme is NormalizationScheme.CENTER_128:
        return (values - 128.0) / 128.0
    raise PreprocessError(f"Unsupported normalization scheme: {scheme}")


class ImagePreprocessor:
    """
    Converts images into flat model input tensors.

    The normalization scheme comes from the CropProfile of the model being
    fed.

    Usage:
        preprocessor = ImagePreprocessor()
        image = preprocessor.load_image(base64_string)
        tensor = preprocessor.preprocess(image, profile)
    """

    def __init__(
        self,
        resample: Image.Resampling = Image.Resampling.BILINEAR,
        max_image_bytes: Optional[int] = None
    ):
        """
        Args:
            resample: PIL resampling filter used for resizing
            max_image_bytes: Reject encoded images larger than this
        """
        self.resample = resample
        self.max_image_bytes = max_image_bytes

    def load_image(self, data: Union[bytes, str]) -> Image.Image:
        """
        Decode an encoded image (raw bytes or base64 string).

        Raises:
            PreprocessError: If the data cannot be decoded as an image
        """
        if isinstance(data, str):
            # Remove data URL prefix if present
            if "," in data:
                data = data.split(",", 1)[1]
            try:
                data = base64.b64decode(data, validate=True)
            except (binascii.Error, ValueError) as e:
                raise PreprocessError(f"Invalid base64 image data: {e}") from e

        if not data:
            raise PreprocessError("Empty image data")
        if self.max_image_bytes is not None and len(data) > self.max_image_bytes:
            raise PreprocessError(
                f"Image exceeds {self.max_image_bytes} bytes ({len(data)} bytes)"
            )

        try:
            image = Image.open(io.BytesIO(data))
            image.load()
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
            raise PreprocessError(f"Could not decode image: {e}") from e
        return image

    def preprocess(self, image: ImageInput, profile: CropProfile) -> np.ndarray:
        """Build the input tensor for the profile's model."""
        return self.to_tensor(
            image,
            profile.input_width,
            profile.input_height,
            profile.normalization,
        )

    def to_tensor(
        self,
        image: ImageInput,
        target_width: int,
        target_height: int,
        scheme: NormalizationScheme = NormalizationScheme.SCALE_0_1
    ) -> np.ndarray:
        """
        Resample an image and flatten it into a normalized float32 tensor.

        Args:
            image: PIL image or HxWx3 uint8 array
            target_width: Output width in pixels
            target_height: Output height in pixels
            scheme: Normalization to apply

        Returns:
            1-D float32 array of length target_width * target_height * 3

        Raises:
            PreprocessError: On zero-size or malformed input
        """
        if target_width <= 0 or target_height <= 0:
            raise PreprocessError(f"Invalid target size {target_width}x{target_height}")

        image = self._as_pil(image)
        width, height = image.size
        if width <= 0 or height <= 0:
            raise PreprocessError(f"Zero-size image ({width}x{height})")

        # Convert to RGB if necessary
        if image.mode != "RGB":
            image = image.convert("RGB")

        if image.size != (target_width, target_height):
            image = image.resize((target_width, target_height), self.resample)

        pixels = np.asarray(image, dtype=np.float32)
        tensor = normalize(pixels, scheme).astype(np.float32)
        return tensor.reshape(-1)

    @staticmethod
    def _as_pil(image: ImageInput) -> Image.Image:
        if isinstance(image, Image.Image):
            return image
        if isinstance(image, np.ndarray):
            if image.ndim not in (2, 3) or image.size == 0:
                raise PreprocessError(f"Malformed image array with shape {image.shape}")
            try:
                return Image.fromarray(np.clip(image, 0, 255).astype(np.uint8))
            except (TypeError, ValueError) as e:
                raise PreprocessError(f"Malformed image array: {e}") from e
        raise PreprocessError(f"Unsupported image type: {type(image).__name__}")
