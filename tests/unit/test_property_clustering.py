"""
Property-based tests for k-means and the cluster count scan.

For any feature matrix, a fixed seed reproduces the same clustering, k = 1
gives the total sum of squares, k = N on distinct rows gives zero SSE, and
invalid k values are rejected. The SSE curve never rises with k.
"""

import numpy as np
import pytest
from hypothesis import given, settings, strategies as st

from seasonal_clusters.data.structs import FeatureMatrix
from seasonal_clusters.models.kmeans import KMeansClusterer
from seasonal_clusters.models.selection import ClusterCountSelector
from seasonal_clusters.utils.error_handling import InvalidClusterCountError


@st.composite
def feature_matrices(draw, min_rows=1, max_rows=12, max_dim=4, distinct=False):
    """Small integer-valued feature matrices."""
    n_dim = draw(st.integers(min_value=1, max_value=max_dim))
    row = st.tuples(*[st.integers(min_value=-50, max_value=50)] * n_dim)
    rows = draw(st.lists(row, min_size=min_rows, max_size=max_rows, unique=distinct))
    return FeatureMatrix(
        names=tuple(f"row_{i}" for i in range(len(rows))),
        values=np.array(rows, dtype=float),
        method="test",
    )


@st.composite
def matrix_and_k(draw):
    features = draw(feature_matrices())
    k = draw(st.integers(min_value=1, max_value=features.n_rows))
    return features, k


@given(matrix_and_k(), st.integers(min_value=0, max_value=2**32 - 1))
@settings(max_examples=50, deadline=None)
def test_same_seed_same_result(data, seed):
    features, k = data
    first = KMeansClusterer(seed=seed, n_init=3).fit(features, k)
    second = KMeansClusterer(seed=seed, n_init=3).fit(features, k)

    np.testing.assert_array_equal(first.labels, second.labels)
    assert first.sse == second.sse


@given(matrix_and_k())
@settings(max_examples=50, deadline=None)
def test_assignment_shape(data):
    features, k = data
    result = KMeansClusterer(seed=1, n_init=2).fit(features, k)

    assert len(result.labels) == features.n_rows
    assert result.names == features.names
    assert set(result.labels) == set(range(1, k + 1))
    assert result.centroids.shape == (k, features.n_features)
    assert result.sse >= 0.0


@given(feature_matrices())
@settings(max_examples=50, deadline=None)
def test_single_cluster_is_total_sum_of_squares(features):
    result = KMeansClusterer(seed=0, n_init=1).fit(features, 1)
    X = features.values
    expected = ((X - X.mean(axis=0)) ** 2).sum()

    assert (result.labels == 1).all()
    assert result.sse == pytest.approx(expected, rel=1e-9, abs=1e-9)


@given(feature_matrices(distinct=True))
@settings(max_examples=50, deadline=None)
def test_one_cluster_per_distinct_row(features):
    result = KMeansClusterer(seed=0, n_init=1).fit(features, features.n_rows)

    assert result.sse == 0.0
    assert set(result.sizes().values()) == {1}


@given(feature_matrices(), st.sampled_from([0, 1]))
@settings(max_examples=30, deadline=None)
def test_out_of_range_k_rejected(features, offset):
    k = 0 if offset == 0 else features.n_rows + 1
    before = features.values.copy()
    with pytest.raises(InvalidClusterCountError):
        KMeansClusterer().fit(features, k)
    np.testing.assert_array_equal(features.values, before)


@given(feature_matrices(min_rows=2, distinct=True), st.integers(min_value=0, max_value=2**32 - 1))
@settings(max_examples=50, deadline=None)
def test_sse_curve_never_rises(features, seed):
    curve = ClusterCountSelector(k_min=1, k_max=features.n_rows, seed=seed, n_init=2).scan(features)

    assert curve.ks == tuple(range(1, features.n_rows + 1))
    for previous, current in zip(curve.sse, curve.sse[1:]):
        assert current <= previous
    assert curve.sse[-1] == 0.0
