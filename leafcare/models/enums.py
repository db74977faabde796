"""
Enumerations for the diagnosis system.

These enums provide type safety and clear documentation of valid values.
"""

from enum import Enum


class CropType(str, Enum):
    """Crops with a dedicated on-device disease model."""
    APPLE = "apple"
    TOMATO = "tomato"
    POTATO = "potato"
    MANGO = "mango"
    GUAVA = "guava"
    COTTON = "cotton"


class CropCategory(str, Enum):
    """Regulatory crop grouping used by the substance registry."""
    VEGETABLE = "vegetable"
    FRUIT = "fruit"
    FIBRE = "fibre"


class NormalizationScheme(str, Enum):
    """
    Pixel normalization applied before inference.

    The scheme must match the one the model was trained with; a mismatch
    does not raise, it only degrades accuracy.
    """
    SCALE_0_1 = "scale_0_1"      # value / 255.0
    CENTER_128 = "center_128"    # (value - 128.0) / 128.0


class ModelState(str, Enum):
    """Lifecycle of a loaded model handle."""
    UNLOADED = "unloaded"
    LOADING = "loading"
    LOADED = "loaded"
    RELEASED = "released"


class HealthStatus(str, Enum):
    """Plant health status classification."""
    HEALTHY = "Healthy"
    DISEASED = "Diseased"
    UNKNOWN = "Unknown"

    @classmethod
    def from_label(cls, label: str) -> "HealthStatus":
        """Derive status from a decoded disease label."""
        if not label or label == "Unknown":
            return cls.UNKNOWN
        if "healthy" in label.lower():
            return cls.HEALTHY
        return cls.DISEASED
