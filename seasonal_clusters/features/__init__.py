"""Representation methods for turning series into feature vectors.

- Mean Seasonal Profile: phase-wise means, z-score normalized
- FeaClip: per-window clipping and run-length statistics
"""

from seasonal_clusters.features.extraction import FeatureExtractor
from seasonal_clusters.features.representations import (
    FEACLIP_FEATURES,
    REPRESENTATIONS,
    FeaClip,
    MeanSeasonalProfile,
)

__all__ = [
    "FeatureExtractor",
    "FeaClip",
    "MeanSeasonalProfile",
    "REPRESENTATIONS",
    "FEACLIP_FEATURES",
]
