import logging

import numpy as np
import pandas as pd
import pytest

from seasonal_clusters.data.structs import SeriesMatrix, names_of
from seasonal_clusters.pipeline import ClusteringPipeline
from seasonal_clusters.utils.error_handling import (
    InvalidClusterCountError,
    ShapeMismatchError,
)


def _groups(assignment):
    """Map each site kind (summer, winter, flat) to the set of labels it received."""
    groups = {}
    for name, label in assignment.as_dict().items():
        groups.setdefault(name.split("_")[0], set()).add(label)
    return groups


def test_end_to_end_pipeline(visitation_csv, pipeline_config):
    """
    Test the full loop:
    1. Long CSV -> SeriesMatrix
    2. MSP features
    3. SSE curve over k = 1..6
    4. Clustering with the chosen k
    5. Diagnostics and results table
    """
    pipeline = ClusteringPipeline(pipeline_config)

    # 1. Load
    matrix = pipeline.load(str(visitation_csv))
    assert matrix.n_series == 9
    assert matrix.n_steps == 36
    assert matrix.start == pd.Timestamp("2016-01-01")

    # 2-3. Features and SSE curve
    features, curve = pipeline.scan(matrix)
    assert features.n_features == 12
    assert names_of(features.degenerate_rows, features.names) == ["flat_0", "flat_1", "flat_2"]
    assert curve.ks == (1, 2, 3, 4, 5, 6)
    # clear elbow at three seasonal regimes
    assert curve.sse_for(3) < 0.05 * curve.sse_for(2)

    # 4. Cluster
    result = pipeline.run(matrix, k=3)
    groups = _groups(result.assignment)
    assert all(len(labels) == 1 for labels in groups.values())
    assert len(set.union(*groups.values())) == 3
    # labels follow first appearance in sorted name order
    assert groups["flat"] == {1}

    # 5. Diagnostics
    assert result.quality.sizes == {1: 3, 2: 3, 3: 3}
    assert result.quality.silhouette > 0.9
    assert len(result.results) == 9 * 36
    assert set(result.results["cluster"]) == {1, 2, 3}


def test_pipeline_reproducible(visitation_csv, pipeline_config):
    pipeline = ClusteringPipeline(pipeline_config)
    matrix = pipeline.load(str(visitation_csv))

    first = pipeline.run(matrix, k=4, with_curve=False)
    second = ClusteringPipeline(pipeline_config).run(matrix, k=4, with_curve=False)
    np.testing.assert_array_equal(first.assignment.labels, second.assignment.labels)
    assert first.assignment.sse == second.assignment.sse
    assert first.curve is None


def test_feaclip_pipeline(visitation_csv, pipeline_config):
    config = dict(pipeline_config, features={"method": "feaclip", "window": 12})
    pipeline = ClusteringPipeline(config)
    matrix = pipeline.load(str(visitation_csv))

    result = pipeline.run(matrix, k=3)
    assert result.features.method == "feaclip"
    assert result.features.n_features == 3 * 8

    labels = result.assignment.as_dict()
    flat_labels = {labels[f"flat_{i}"] for i in range(3)}
    assert len(flat_labels) == 1
    seasonal = [label for name, label in labels.items() if not name.startswith("flat")]
    assert not flat_labels & set(seasonal)


def test_k_from_config(visitation_csv, pipeline_config):
    config = dict(pipeline_config, clustering={"k": 2, "seed": 7, "n_init": 5})
    pipeline = ClusteringPipeline(config)
    result = pipeline.run(pipeline.load(str(visitation_csv)), with_curve=False)
    assert result.assignment.k == 2


def test_missing_k(visitation_csv, pipeline_config):
    pipeline = ClusteringPipeline(pipeline_config)
    matrix = pipeline.load(str(visitation_csv))
    with pytest.raises(InvalidClusterCountError, match="No cluster count"):
        pipeline.run(matrix)


def test_invalid_k_fails_before_any_work(visitation_csv, pipeline_config, monkeypatch):
    pipeline = ClusteringPipeline(pipeline_config)
    matrix = pipeline.load(str(visitation_csv))

    def fail(*args, **kwargs):
        raise AssertionError("features should not be extracted")

    monkeypatch.setattr(pipeline.extractor, "transform", fail)
    with pytest.raises(InvalidClusterCountError) as excinfo:
        pipeline.run(matrix, k=10)
    assert excinfo.value.n_rows == 9


def test_shape_mismatch_is_logged(pipeline_config, caplog):
    matrix = SeriesMatrix(
        names=("short_a", "short_b"),
        values=np.arange(26.0).reshape(2, 13),
        start=pd.Timestamp("2020-01-01"),
    )
    pipeline = ClusteringPipeline(pipeline_config)

    with caplog.at_level(logging.ERROR, logger="seasonal_clusters.pipeline"):
        with pytest.raises(ShapeMismatchError) as excinfo:
            pipeline.run(matrix, k=1, with_curve=False)

    assert excinfo.value.series_name == "short_a"
    assert excinfo.value.actual == 13
    failures = [r for r in caplog.records if r.name == "seasonal_clusters.pipeline"]
    assert failures
    recovery = failures[-1].props["recovery"]
    assert recovery["exception_type"] == "ShapeMismatchError"
    assert recovery["attributes"]["actual"] == 13


@pytest.mark.parametrize("method, n_features", [("msp", 4), ("feaclip", 3 * 8)])
def test_representation_follows_series_period(pipeline_config, method, n_features):
    quarterly = np.tile([1.0, 5.0, 3.0, 2.0], 3)
    matrix = SeriesMatrix(
        names=("north", "south"),
        values=np.vstack([quarterly, 10.0 * quarterly[::-1]]),
        period=4,
    )
    pipeline = ClusteringPipeline(dict(pipeline_config, features={"method": method}))

    result = pipeline.run(matrix, k=2, with_curve=False)
    assert result.features.n_features == n_features


def test_curve_skipped_when_k_min_exceeds_series(mixed_matrix, pipeline_config, caplog):
    config = dict(pipeline_config, selection={"k_min": 5, "k_max": 8})
    pipeline = ClusteringPipeline(config)

    with caplog.at_level(logging.WARNING, logger="seasonal_clusters.pipeline"):
        result = pipeline.run(mixed_matrix, k=2)

    assert result.curve is None
    assert result.assignment.k == 2
    assert any("Skipping SSE curve" in r.getMessage() for r in caplog.records)
