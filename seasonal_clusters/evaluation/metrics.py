"""Cluster diagnostics and joining labels back onto the series."""

from dataclasses import dataclass
from typing import Any, Dict
import logging

import numpy as np
import pandas as pd
from sklearn.metrics import silhouette_score

from seasonal_clusters.data.structs import ClusterAssignment, FeatureMatrix, SeriesMatrix

logger = logging.getLogger(__name__)


@dataclass
class ClusterQuality:
    """Container for clustering diagnostics."""
    k: int
    sizes: Dict[int, int]
    cluster_sse: Dict[int, float]
    total_sse: float
    silhouette: float

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "k": self.k,
            "sizes": self.sizes,
            "cluster_sse": self.cluster_sse,
            "total_sse": self.total_sse,
            "silhouette": self.silhouette,
        }


def _check_aligned(names, assignment: ClusterAssignment) -> None:
    if tuple(names) != tuple(assignment.names):
        raise ValueError("Assignment rows are not aligned with the given matrix")


def evaluate_clustering(
    features: FeatureMatrix,
    assignment: ClusterAssignment,
) -> ClusterQuality:
    """
    Summarize a clustering run.

    The silhouette score is NaN when it is undefined (k = 1 or k = N).

    Args:
        features: Feature vectors the assignment was made on
        assignment: Result of KMeansClusterer.fit

    Returns:
        ClusterQuality
    """
    _check_aligned(features.names, assignment)
    X = features.values
    labels = assignment.labels

    cluster_sse: Dict[int, float] = {}
    for label in range(1, assignment.k + 1):
        rows = X[labels == label]
        cluster_sse[label] = float(((rows - rows.mean(axis=0)) ** 2).sum()) if len(rows) else 0.0

    if 2 <= assignment.k <= len(X) - 1:
        silhouette = float(silhouette_score(X, labels, metric="euclidean"))
    else:
        silhouette = float("nan")

    return ClusterQuality(
        k=assignment.k,
        sizes=assignment.sizes(),
        cluster_sse=cluster_sse,
        total_sse=float(sum(cluster_sse.values())),
        silhouette=silhouette,
    )


def cluster_profiles(
    features: FeatureMatrix,
    assignment: ClusterAssignment,
) -> pd.DataFrame:
    """
    Mean feature vector of each cluster.

    Returns:
        DataFrame indexed by cluster label, one column per feature
    """
    _check_aligned(features.names, assignment)
    frame = features.to_frame()
    frame["cluster"] = assignment.labels
    return frame.groupby("cluster").mean()


def assemble_results(
    matrix: SeriesMatrix,
    assignment: ClusterAssignment,
) -> pd.DataFrame:
    """
    Join cluster labels back onto the original series.

    Returns:
        Long DataFrame with columns series, step, date (when the matrix start
        is known), value and cluster
    """
    _check_aligned(matrix.names, assignment)
    n_steps = matrix.n_steps

    result = pd.DataFrame({
        "series": np.repeat(matrix.names, n_steps),
        "step": np.tile(np.arange(n_steps), matrix.n_series),
        "value": matrix.values.ravel(),
        "cluster": np.repeat(assignment.labels, n_steps),
    })
    if matrix.start is not None:
        result.insert(2, "date", np.tile(matrix.time_index.to_numpy(), matrix.n_series))
    return result
