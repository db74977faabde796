"""
Per-crop label tables.

Each crop model emits one score per class; the class order below is the
order the models were trained with. Indices outside a table decode to
UNKNOWN_LABEL rather than failing.
"""

import logging
from typing import Optional

from leafcare.models.enums import CropType

logger = logging.getLogger(__name__)

UNKNOWN_LABEL = "Unknown"

CROP_LABELS: dict[CropType, tuple[str, ...]] = {
    CropType.APPLE: (
        "Apple Scab",
        "Black Rot",
        "Cedar Apple Rust",
        "Healthy",
    ),
    CropType.TOMATO: (
        "Bacterial Spot",
        "Early Blight",
        "Late Blight",
        "Leaf Mold",
        "Septoria Leaf Spot",
        "Yellow Leaf Curl Virus",
        "Mosaic Virus",
        "Healthy",
    ),
    CropType.POTATO: (
        "Early Blight",
        "Late Blight",
        "Healthy",
    ),
    CropType.MANGO: (
        "Anthracnose",
        "Bacterial Canker",
        "Die Back",
        "Powdery Mildew",
        "Sooty Mould",
        "Healthy",
    ),
    CropType.GUAVA: (
        "Anthracnose",
        "Canker",
        "Fruit Fly",
        "Styler End Rot",
        "Healthy",
    ),
    CropType.COTTON: (
        "Bacterial Blight",
        "Curl Virus",
        "Fusarium Wilt",
        "Healthy",
    ),
}


class LabelTable:
    """
    Index-to-name mapping for every crop model.

    Usage:
        labels = LabelTable()
        labels.get_label(CropType.TOMATO, 1)  # "Early Blight"
        labels.get_label(CropType.TOMATO, 99)  # "Unknown"
    """

    def __init__(self, labels: Optional[dict[CropType, tuple[str, ...]]] = None):
        self._labels = dict(labels if labels is not None else CROP_LABELS)

    def get_label(self, crop: CropType, index: int) -> str:
        table = self._labels.get(crop, ())
        if 0 <= index < len(table):
            return table[index]
        logger.debug(f"No label for index {index} of crop {crop.value}")
        return UNKNOWN_LABEL

    def num_classes(self, crop: CropType) -> int:
        return len(self._labels.get(crop, ()))

    def labels_for(self, crop: CropType) -> tuple[str, ...]:
        return self._labels.get(crop, ())
