# ML module initialization
from leafcare.ml.base import DecodedOutput, LoadedModel, ModelInfo
from leafcare.ml.crops import CropProfile, all_crops, default_crop, get_profile
from leafcare.ml.inference import InferenceRunner, decode_scores
from leafcare.ml.labels import LabelTable, UNKNOWN_LABEL
from leafcare.ml.model_store import ModelStore
from leafcare.ml.preprocessor import ImagePreprocessor

__all__ = [
    "DecodedOutput",
    "LoadedModel",
    "ModelInfo",
    "CropProfile",
    "all_crops",
    "default_crop",
    "get_profile",
    "InferenceRunner",
    "decode_scores",
    "LabelTable",
    "UNKNOWN_LABEL",
    "ModelStore",
    "ImagePreprocessor",
]
