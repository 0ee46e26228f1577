"""Series matrix construction and core data structures."""

from .loaders import SeriesMatrixBuilder, ValidationResult, trim_to_full_periods
from .structs import ClusterAssignment, FeatureMatrix, SeriesMatrix, SSECurve

__all__ = [
    "SeriesMatrixBuilder",
    "ValidationResult",
    "trim_to_full_periods",
    "SeriesMatrix",
    "FeatureMatrix",
    "ClusterAssignment",
    "SSECurve",
]
