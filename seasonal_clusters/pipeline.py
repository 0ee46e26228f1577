"""
End-to-end clustering run: series matrix -> features -> SSE curve -> labels.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Tuple
import logging

import pandas as pd

from seasonal_clusters.data.loaders import SeriesMatrixBuilder
from seasonal_clusters.data.structs import (
    ClusterAssignment,
    FeatureMatrix,
    SeriesMatrix,
    SSECurve,
)
from seasonal_clusters.evaluation.metrics import (
    ClusterQuality,
    assemble_results,
    evaluate_clustering,
)
from seasonal_clusters.features.extraction import FeatureExtractor
from seasonal_clusters.models.kmeans import KMeansClusterer
from seasonal_clusters.models.selection import ClusterCountSelector
from seasonal_clusters.utils.config_manager import ConfigManager
from seasonal_clusters.utils.error_handling import (
    ClusteringError,
    InvalidClusterCountError,
    RecoveryContext,
)

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Artifacts of one clustering run."""
    features: FeatureMatrix
    curve: Optional[SSECurve]
    assignment: ClusterAssignment
    quality: ClusterQuality
    results: pd.DataFrame


class ClusteringPipeline:
    """
    Runs the three core components in sequence from one configuration.

    Choosing k is a human step: ``scan`` produces the SSE curve to inspect,
    ``run`` needs k either as an argument or as ``clustering.k`` in config.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize the pipeline.

        Args:
            config: Overrides merged onto the packaged defaults and validated
        """
        self.config_manager = ConfigManager()
        self.config = self.config_manager.load_pipeline_config(overrides=config)
        self.run_id = f"run_{datetime.now().strftime('%Y%m%d_%H%M%S')}"

        self.extractor = FeatureExtractor.from_config(self.config["features"])
        self.selector = ClusterCountSelector.from_config(self.config)
        clustering = self.config["clustering"]
        self.clusterer = KMeansClusterer(
            seed=clustering["seed"],
            max_iter=clustering["max_iter"],
            n_init=clustering["n_init"],
        )

    def load(self, path: str) -> SeriesMatrix:
        """Build the series matrix from a long-format CSV as configured."""
        data = self.config["data"]
        builder = SeriesMatrixBuilder(
            id_column=data["id_column"],
            date_column=data["date_column"],
            value_column=data["value_column"],
            period=data["period"],
        )
        return builder.load_csv(
            path,
            min_total=data.get("min_total"),
            trim=data.get("trim_to_full_periods", False),
        )

    def extract(self, matrix: SeriesMatrix) -> FeatureMatrix:
        return self._guarded("extract", self.extractor.transform, matrix)

    def scan(self, matrix: SeriesMatrix) -> Tuple[FeatureMatrix, SSECurve]:
        """
        Extract features and compute the SSE curve.

        The upper end of the scan is capped at the number of series.
        """
        features = self.extract(matrix)
        k_max = min(self.selector.k_max, features.n_rows)
        curve = self._guarded("scan", self.selector.scan, features, k_max=k_max)
        return features, curve

    def run(
        self,
        matrix: SeriesMatrix,
        k: Optional[int] = None,
        with_curve: bool = True,
    ) -> PipelineResult:
        """
        Full run with a chosen cluster count.

        Args:
            matrix: Input series
            k: Cluster count; falls back to ``clustering.k`` from config
            with_curve: Also compute the SSE curve for the report; skipped
                when ``selection.k_min`` exceeds the number of series

        Returns:
            PipelineResult

        Raises:
            InvalidClusterCountError: If no k is given or k is outside [1, N]
        """
        k = k if k is not None else self.config["clustering"].get("k")
        if k is None or not 1 <= k <= matrix.n_series:
            error = InvalidClusterCountError(k, matrix.n_series)
            logger.error(str(error))
            raise error

        if with_curve and self.selector.k_min > matrix.n_series:
            logger.warning(
                f"Skipping SSE curve: selection.k_min={self.selector.k_min} exceeds "
                f"the {matrix.n_series} series available"
            )
            with_curve = False

        if with_curve:
            features, curve = self.scan(matrix)
        else:
            features, curve = self.extract(matrix), None

        assignment = self._guarded("cluster", self.clusterer.fit, features, k)
        quality = evaluate_clustering(features, assignment)
        logger.info(
            f"Clustered {features.n_rows} series into k={k}: sizes {quality.sizes}, "
            f"SSE {quality.total_sse:.6g}",
            extra={"props": {"run_id": self.run_id, **quality.to_dict()}},
        )

        return PipelineResult(
            features=features,
            curve=curve,
            assignment=assignment,
            quality=quality,
            results=assemble_results(matrix, assignment),
        )

    def _guarded(self, step: str, func, *args, **kwargs):
        """Call a pipeline step, logging failure context before re-raising."""
        try:
            return func(*args, **kwargs)
        except ClusteringError as e:
            context = RecoveryContext.from_exception(self.run_id, e)
            logger.error(
                f"Step '{step}' failed: {e}",
                extra={"props": {"step": step, "recovery": context.to_dict()}},
            )
            raise

