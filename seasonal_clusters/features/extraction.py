"""
Feature extraction: SeriesMatrix -> FeatureMatrix with a chosen representation.
"""

from typing import Any, Dict, Optional
import logging

from seasonal_clusters.data.structs import FeatureMatrix, SeriesMatrix, names_of
from seasonal_clusters.features.representations import (
    REPRESENTATIONS,
    FeaClip,
    MeanSeasonalProfile,
)

logger = logging.getLogger(__name__)


class FeatureExtractor:
    """
    Converts every row of a SeriesMatrix into a fixed-length feature vector.
    """

    def __init__(
        self,
        method: str = "msp",
        period: Optional[int] = None,
        window: Optional[int] = None,
        drop_remainder: bool = False,
    ):
        """
        Initialize the extractor.

        Args:
            method: Representation method. Options:
                - "msp": Mean Seasonal Profile, z-score normalized
                - "feaclip": windowed clipping/run statistics
            period: Period length for "msp" (defaults to the matrix period)
            window: Window length for "feaclip" (defaults to the matrix period)
            drop_remainder: For "feaclip", drop a trailing partial window
                instead of raising ShapeMismatchError
        """
        if method not in REPRESENTATIONS:
            raise ValueError(
                f"Unknown representation method: {method} "
                f"(available: {sorted(REPRESENTATIONS)})"
            )
        self.method = method
        self.period = period
        self.window = window
        self.drop_remainder = drop_remainder

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "FeatureExtractor":
        """Build from the ``features`` section of a pipeline configuration."""
        return cls(
            method=config.get("method", "msp"),
            period=config.get("period"),
            window=config.get("window"),
            drop_remainder=config.get("drop_remainder", False),
        )

    def representation(self, matrix: SeriesMatrix):
        """Instantiate the representation for a given matrix."""
        if self.method == MeanSeasonalProfile.name:
            return MeanSeasonalProfile(period=self.period or matrix.period)
        return FeaClip(
            window=self.window or matrix.period,
            drop_remainder=self.drop_remainder,
        )

    def transform(self, matrix: SeriesMatrix) -> FeatureMatrix:
        """
        Extract features for every series.

        Args:
            matrix: Input series, all of the same length

        Returns:
            FeatureMatrix with the same row count and order as ``matrix``

        Raises:
            ShapeMismatchError: If the series length does not fit the
                representation's period or window
        """
        representation = self.representation(matrix)
        # every row shares one length, so the first name identifies the failure
        representation.check_length(matrix.names[0], matrix.n_steps)

        features, degenerate = representation.reduce(matrix.values)
        degenerate_rows = [int(i) for i in degenerate.nonzero()[0]]

        if degenerate_rows:
            logger.warning(
                f"{len(degenerate_rows)} of {matrix.n_series} series carry no "
                f"{self.method} signal (constant); their feature vectors are zero "
                f"or flat: {names_of(degenerate_rows, matrix.names)[:10]}",
                extra={"props": {"degenerate_rows": len(degenerate_rows)}},
            )

        result = FeatureMatrix(
            names=matrix.names,
            values=features,
            method=self.method,
            feature_names=representation.feature_names(matrix.n_steps),
            degenerate_rows=degenerate_rows,
        )
        logger.info(
            f"Extracted {self.method} features: {result.n_rows} x {result.n_features}"
        )
        return result

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(method='{self.method}', "
            f"period={self.period}, window={self.window})"
        )
