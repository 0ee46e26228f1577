"""Plot helpers for elbow inspection and cluster review."""

from typing import Any

import matplotlib.pyplot as plt
import numpy as np
import seaborn as sns

from seasonal_clusters.data.structs import (
    ClusterAssignment,
    FeatureMatrix,
    SeriesMatrix,
    SSECurve,
)
from seasonal_clusters.evaluation.metrics import assemble_results, cluster_profiles


def plot_elbow(curve: SSECurve, ax=None, title: str = "Within-cluster SSE by k") -> Any:
    """
    Plot SSE against k for elbow inspection.

    Args:
        curve: Output of ClusterCountSelector.scan
        ax: Matplotlib axes (optional)
        title: Axes title

    Returns:
        Matplotlib axes object
    """
    if ax is None:
        _, ax = plt.subplots(figsize=(8, 5))

    ax.plot(curve.ks, curve.sse, "o-")
    ax.set_xticks(list(curve.ks))
    ax.set_xlabel("Number of clusters (k)")
    ax.set_ylabel("Total within-cluster SSE")
    ax.set_title(title)
    return ax


def plot_cluster_profiles(
    features: FeatureMatrix,
    assignment: ClusterAssignment,
    ax=None,
) -> Any:
    """
    Plot the mean feature vector of each cluster.

    For MSP features this is the mean normalized seasonal shape per cluster.

    Returns:
        Matplotlib axes object
    """
    profiles = cluster_profiles(features, assignment)
    if ax is None:
        _, ax = plt.subplots(figsize=(10, 5))

    sizes = assignment.sizes()
    positions = np.arange(features.n_features)
    for label, row in profiles.iterrows():
        ax.plot(positions, row.to_numpy(), marker=".", label=f"Cluster {label} (n={sizes[label]})")

    ax.set_xticks(positions)
    ax.set_xticklabels(features.feature_names, rotation=90, fontsize="small")
    ax.set_ylabel(f"Mean {features.method} feature value")
    ax.set_title(f"Cluster profiles, k={assignment.k}")
    ax.legend(loc="best", fontsize="small")
    return ax


def plot_cluster_series(
    matrix: SeriesMatrix,
    assignment: ClusterAssignment,
    normalize: bool = True,
    col_wrap: int = 3,
) -> sns.FacetGrid:
    """
    Plot every series, one panel per cluster.

    Args:
        matrix: Original series
        assignment: Labels aligned with ``matrix``
        normalize: Scale each series by its own mean so magnitudes are comparable
        col_wrap: Panels per row

    Returns:
        Seaborn FacetGrid
    """
    results = assemble_results(matrix, assignment)
    if normalize:
        means = results.groupby("series")["value"].transform("mean")
        results["value"] = (results["value"] / means.replace(0, np.nan)).fillna(0.0)

    x = "date" if "date" in results.columns else "step"
    grid = sns.relplot(
        data=results,
        x=x,
        y="value",
        units="series",
        estimator=None,
        col="cluster",
        col_wrap=min(col_wrap, assignment.k),
        kind="line",
        alpha=0.4,
        linewidth=0.8,
        height=3,
        aspect=1.6,
    )
    grid.set_axis_labels(x, "value / series mean" if normalize else "value")
    return grid
