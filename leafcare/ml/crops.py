"""
Crop catalog.

One immutable CropProfile per supported crop, binding the crop to its
model artifact, input resolution and normalization scheme. The catalog is
consumed by the host for crop selection and by the pipeline for model
switching.

Iteration Point: add a crop by extending CropType, adding a profile here,
a label table in labels.py and a rule function in the remedy engine.
"""

from dataclasses import dataclass
from typing import Union

from leafcare.models.enums import CropCategory, CropType, NormalizationScheme

# Model artifact file names (one TFLite model per crop)
MODEL_APPLE = "Apple_model_unquant.tflite"
MODEL_TOMATO = "Tomato_model_unquant.tflite"
MODEL_POTATO = "Potato_model_unquant.tflite"
MODEL_MANGO = "Mango_model_unquant.tflite"
MODEL_GUAVA = "Guava_model_unquant.tflite"
MODEL_COTTON = "Cotton_model_unquant.tflite"

DEFAULT_INPUT_SIZE = (224, 224)


@dataclass(frozen=True)
class CropProfile:
    """
    Static descriptor of a supported crop.

    Attributes:
        crop: Stable crop identifier
        display_name: Human-readable name
        model_file: Artifact file name, resolved against the artifact directory
        category: Regulatory category used by the safety filter
        input_size: Model input resolution (width, height)
        normalization: Pixel normalization the model was trained with
    """
    crop: CropType
    display_name: str
    model_file: str
    category: CropCategory
    input_size: tuple[int, int] = DEFAULT_INPUT_SIZE
    normalization: NormalizationScheme = NormalizationScheme.SCALE_0_1

    @property
    def identifier(self) -> str:
        return self.crop.value

    @property
    def input_width(self) -> int:
        return self.input_size[0]

    @property
    def input_height(self) -> int:
        return self.input_size[1]


CROP_CATALOG: dict[CropType, CropProfile] = {
    CropType.APPLE: CropProfile(
        crop=CropType.APPLE,
        display_name="Apple",
        model_file=MODEL_APPLE,
        category=CropCategory.FRUIT,
    ),
    CropType.TOMATO: CropProfile(
        crop=CropType.TOMATO,
        display_name="Tomato",
        model_file=MODEL_TOMATO,
        category=CropCategory.VEGETABLE,
    ),
    CropType.POTATO: CropProfile(
        crop=CropType.POTATO,
        display_name="Potato",
        model_file=MODEL_POTATO,
        category=CropCategory.VEGETABLE,
    ),
    CropType.MANGO: CropProfile(
        crop=CropType.MANGO,
        display_name="Mango",
        model_file=MODEL_MANGO,
        category=CropCategory.FRUIT,
    ),
    CropType.GUAVA: CropProfile(
        crop=CropType.GUAVA,
        display_name="Guava",
        model_file=MODEL_GUAVA,
        category=CropCategory.FRUIT,
    ),
    CropType.COTTON: CropProfile(
        crop=CropType.COTTON,
        display_name="Cotton",
        model_file=MODEL_COTTON,
        category=CropCategory.FIBRE,
    ),
}

DEFAULT_CROP = CropType.TOMATO


def all_crops() -> list[CropProfile]:
    """All supported crop profiles in declaration order."""
    return [CROP_CATALOG[crop] for crop in CropType]


def get_profile(crop: Union[CropType, str]) -> CropProfile:
    """
    Look up a profile by crop identifier.

    Raises:
        ValueError: If the identifier does not name a supported crop
    """
    if not isinstance(crop, CropType):
        crop = CropType(str(crop).strip().lower())
    return CROP_CATALOG[crop]


def default_crop() -> CropProfile:
    """Profile selected when the host has no preference."""
    return CROP_CATALOG[DEFAULT_CROP]
