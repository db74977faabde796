"""
Tests for ImagePreprocessor.

Tests cover:
- Output size and layout
- Both normalization schemes
- Image decoding
- Malformed input
"""

import base64
import io

import numpy as np
import pytest
from PIL import Image

from leafcare.core.exceptions import PreprocessError
from leafcare.ml.crops import get_profile
from leafcare.ml.preprocessor import ImagePreprocessor
from leafcare.models.enums import NormalizationScheme


@pytest.fixture
def preprocessor():
    return ImagePreprocessor()


def encode(image: Image.Image, fmt: str = "PNG") -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


class TestToTensor:
    """Tensor layout and normalization."""

    def test_length_matches_target(self, preprocessor, black_image):
        tensor = preprocessor.to_tensor(black_image, 224, 224)

        assert tensor.dtype == np.float32
        assert tensor.shape == (224 * 224 * 3,)

    def test_non_square_target(self, preprocessor, black_image):
        tensor = preprocessor.to_tensor(black_image, 32, 16)
        assert tensor.shape == (32 * 16 * 3,)

    def test_row_major_channel_interleaved(self, preprocessor):
        # 2x2 image: top-left red, top-right green, bottom-left blue, bottom-right white
        img = Image.new("RGB", (2, 2))
        img.putpixel((0, 0), (255, 0, 0))
        img.putpixel((1, 0), (0, 255, 0))
        img.putpixel((0, 1), (0, 0, 255))
        img.putpixel((1, 1), (255, 255, 255))

        tensor = preprocessor.to_tensor(img, 2, 2, NormalizationScheme.SCALE_0_1)

        expected = [
            1.0, 0.0, 0.0,
            0.0, 1.0, 0.0,
            0.0, 0.0, 1.0,
            1.0, 1.0, 1.0,
        ]
        np.testing.assert_allclose(tensor, expected)

    def test_scale_0_1(self, preprocessor):
        img = Image.new("RGB", (4, 4), color=(255, 0, 51))
        tensor = preprocessor.to_tensor(img, 4, 4, NormalizationScheme.SCALE_0_1)

        np.testing.assert_allclose(tensor[:3], [1.0, 0.0, 0.2], rtol=1e-6)
        assert tensor.min() >= 0.0
        assert tensor.max() <= 1.0

    def test_center_128(self, preprocessor):
        img = Image.new("RGB", (4, 4), color=(0, 128, 255))
        tensor = preprocessor.to_tensor(img, 4, 4, NormalizationScheme.CENTER_128)

        np.testing.assert_allclose(tensor[:3], [-1.0, 0.0, 127.0 / 128.0], rtol=1e-6)

    def test_black_image_scale_0_1_is_zero(self, preprocessor, black_image):
        tensor = preprocessor.to_tensor(black_image, 224, 224)
        assert not tensor.any()

    def test_grayscale_converted_to_rgb(self, preprocessor):
        img = Image.new("L", (10, 10), color=255)
        tensor = preprocessor.to_tensor(img, 5, 5)

        assert tensor.shape == (5 * 5 * 3,)
        np.testing.assert_allclose(tensor, 1.0)

    def test_numpy_input(self, preprocessor):
        array = np.full((20, 30, 3), 255, dtype=np.uint8)
        tensor = preprocessor.to_tensor(array, 10, 10)
        np.testing.assert_allclose(tensor, 1.0)

    def test_preprocess_uses_profile_scheme(self, preprocessor, black_image):
        profile = get_profile("tomato")
        tensor = preprocessor.preprocess(black_image, profile)

        assert tensor.shape == (profile.input_width * profile.input_height * 3,)
        assert profile.normalization is NormalizationScheme.SCALE_0_1
        assert not tensor.any()


class TestMalformedInput:
    """Malformed images raise PreprocessError."""

    def test_zero_size_image(self, preprocessor):
        with pytest.raises(PreprocessError):
            preprocessor.to_tensor(Image.new("RGB", (0, 0)), 224, 224)

    def test_empty_array(self, preprocessor):
        with pytest.raises(PreprocessError):
            preprocessor.to_tensor(np.zeros((0, 0, 3), dtype=np.uint8), 224, 224)

    def test_invalid_target_size(self, preprocessor, black_image):
        with pytest.raises(PreprocessError):
            preprocessor.to_tensor(black_image, 0, 224)

    def test_unsupported_type(self, preprocessor):
        with pytest.raises(PreprocessError):
            preprocessor.to_tensor("not an image", 224, 224)


class TestLoadImage:
    """Decoding of encoded images."""

    def test_raw_bytes(self, preprocessor, leaf_image):
        image = preprocessor.load_image(encode(leaf_image))
        assert image.size == (256, 256)

    def test_base64_with_data_url_prefix(self, preprocessor, leaf_image):
        payload = base64.b64encode(encode(leaf_image, "JPEG")).decode("ascii")
        image = preprocessor.load_image(f"data:image/jpeg;base64,{payload}")
        assert image.size == (256, 256)

    def test_invalid_base64(self, preprocessor):
        with pytest.raises(PreprocessError):
            preprocessor.load_image("not_valid_base64!!")

    def test_not_an_image(self, preprocessor):
        with pytest.raises(PreprocessError):
            preprocessor.load_image(b"definitely not a png")

    def test_empty_bytes(self, preprocessor):
        with pytest.raises(PreprocessError):
            preprocessor.load_image(b"")

    def test_decompression_bomb(self, preprocessor, leaf_image, monkeypatch):
        data = encode(leaf_image)
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)

        with pytest.raises(PreprocessError):
            preprocessor.load_image(data)

    def test_size_limit(self, leaf_image):
        preprocessor = ImagePreprocessor(max_image_bytes=10)
        with pytest.raises(PreprocessError):
            preprocessor.load_image(encode(leaf_image))
