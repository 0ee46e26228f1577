"""Cluster diagnostics, result assembly and plotting."""

from seasonal_clusters.evaluation.metrics import (
    ClusterQuality,
    assemble_results,
    cluster_profiles,
    evaluate_clustering,
)
from seasonal_clusters.evaluation.plots import (
    plot_cluster_profiles,
    plot_cluster_series,
    plot_elbow,
)

__all__ = [
    "ClusterQuality",
    "assemble_results",
    "cluster_profiles",
    "evaluate_clustering",
    "plot_cluster_profiles",
    "plot_cluster_series",
    "plot_elbow",
]
