"""Data synthesis for MELT documents."""

from .datapoints import fill_data_points, prepare, sample_value
from .fmm_model import ManifestError, SolutionManifest, build_model
from .geometry import build_sample

__all__ = [
    "ManifestError",
    "SolutionManifest",
    "build_model",
    "build_sample",
    "fill_data_points",
    "prepare",
    "sample_value",
]
