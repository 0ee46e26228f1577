# 01_visitation_clustering.py
import marimo

__generated_with = "0.1.0"
app = marimo.App(width="medium")

@app.cell
def __():
    import marimo as mo
    from pathlib import Path
    import pandas as pd
    import matplotlib.pyplot as plt
    import sys

    # Add project root to path
    project_root = Path(__file__).parent.parent.resolve()
    if str(project_root) not in sys.path:
        sys.path.insert(0, str(project_root))

    # Import pipeline components
    from seasonal_clusters.pipeline import ClusteringPipeline
    from seasonal_clusters.evaluation.plots import (
        plot_cluster_profiles,
        plot_cluster_series,
        plot_elbow,
    )
    from seasonal_clusters.utils.logging_config import setup_logging

    mo.md("# Clustering Sites by Seasonal Visitation Pattern")
    return (ClusteringPipeline, Path, mo, pd, plot_cluster_profiles,
            plot_cluster_series, plot_elbow, plt, project_root, setup_logging, sys)


@app.cell
def __(mo):
    mo.md("## 1. Configuration")
    return


@app.cell
def __(setup_logging):
    CONFIG = {
        "data": {"min_total": 1.0},
        "selection": {"k_min": 1, "k_max": 10},
        "clustering": {"seed": 42, "n_init": 10},
        "logging": {"level": "INFO", "log_dir": "logs/clustering"},
    }
    DATA_PATH = "data/raw/monthly_visits.csv"

    setup_logging(
        log_level=CONFIG["logging"]["level"],
        log_dir=CONFIG["logging"]["log_dir"],
    )
    print("Configuration loaded.")
    return CONFIG, DATA_PATH


@app.cell
def __(mo):
    mo.md("## 2. Load Monthly Series")
    return


@app.cell
def __(CONFIG, ClusteringPipeline, DATA_PATH):
    msp_pipeline = ClusteringPipeline(CONFIG)
    feaclip_pipeline = ClusteringPipeline(dict(CONFIG, features={"method": "feaclip"}))

    matrix = msp_pipeline.load(DATA_PATH)
    print(f"Loaded {matrix.n_series} sites x {matrix.n_steps} months starting {matrix.start:%Y-%m}")
    return feaclip_pipeline, matrix, msp_pipeline


@app.cell
def __(mo):
    mo.md(
        """
        ## 3. Elbow Inspection

        Pick k where the SSE curve stops dropping sharply. The two
        representations are shown side by side.
        """
    )
    return


@app.cell
def __(feaclip_pipeline, matrix, msp_pipeline, plot_elbow, plt):
    msp_features, msp_curve = msp_pipeline.scan(matrix)
    feaclip_features, feaclip_curve = feaclip_pipeline.scan(matrix)

    fig, (ax_msp, ax_feaclip) = plt.subplots(1, 2, figsize=(14, 5))
    plot_elbow(msp_curve, ax=ax_msp, title="Mean seasonal profile")
    plot_elbow(feaclip_curve, ax=ax_feaclip, title="FeaClip")
    plt.tight_layout()
    plt.show()

    print("Relative SSE drop per extra cluster (MSP):")
    for k, drop in zip(msp_curve.ks[1:], msp_curve.relative_drops()):
        print(f"  k={k}: {drop:.1%}")
    return (ax_feaclip, ax_msp, feaclip_curve, feaclip_features, fig,
            msp_curve, msp_features)


@app.cell
def __(mo):
    mo.md("## 4. Cluster With the Chosen k")
    return


@app.cell
def __(matrix, msp_pipeline):
    # Chosen by eye from the elbow plot above
    CHOSEN_K = 4

    result = msp_pipeline.run(matrix, k=CHOSEN_K, with_curve=False)
    print(f"Cluster sizes: {result.quality.sizes}")
    print(f"Silhouette: {result.quality.silhouette:.3f}")
    return CHOSEN_K, result


@app.cell
def __(mo):
    mo.md("## 5. Review Clusters")
    return


@app.cell
def __(matrix, plot_cluster_profiles, plot_cluster_series, plt, result):
    plot_cluster_profiles(result.features, result.assignment)
    plt.show()

    grid = plot_cluster_series(matrix, result.assignment)
    plt.show()
    return grid,


if __name__ == "__main__":
    app.run()
