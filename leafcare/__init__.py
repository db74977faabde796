"""LeafCare: on-device crop disease diagnosis with safety-filtered remedies."""

__version__ = "0.1.0"
