"""Seasonal clustering of panels of monthly time series.

Pipeline: SeriesMatrix -> FeatureExtractor (MSP or FeaClip) ->
ClusterCountSelector (SSE curve for elbow inspection) -> KMeansClusterer.
"""

from seasonal_clusters.data.structs import (
    ClusterAssignment,
    FeatureMatrix,
    SeriesMatrix,
    SSECurve,
)
from seasonal_clusters.features.extraction import FeatureExtractor
from seasonal_clusters.models.kmeans import KMeansClusterer
from seasonal_clusters.models.selection import ClusterCountSelector
from seasonal_clusters.utils.error_handling import (
    ClusteringError,
    InvalidClusterCountError,
    ShapeMismatchError,
)

__all__ = [
    "SeriesMatrix",
    "FeatureMatrix",
    "ClusterAssignment",
    "SSECurve",
    "FeatureExtractor",
    "KMeansClusterer",
    "ClusterCountSelector",
    "ClusteringError",
    "InvalidClusterCountError",
    "ShapeMismatchError",
]

__version__ = "0.1.0"
