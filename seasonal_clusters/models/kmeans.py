"""Deterministic k-means (Lloyd's algorithm) over feature vectors."""

from typing import Optional, Sequence, Tuple, Union
import logging

import numpy as np

from seasonal_clusters.data.structs import ClusterAssignment, FeatureMatrix
from seasonal_clusters.utils.error_handling import InvalidClusterCountError

logger = logging.getLogger(__name__)


def squared_distances(X: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    """Squared Euclidean distance of every row to every centroid, shape (N, k)."""
    diff = X[:, None, :] - centroids[None, :, :]
    return np.einsum("nkd,nkd->nk", diff, diff)


def assign_rows(distances: np.ndarray) -> np.ndarray:
    """Nearest centroid per row; exact ties go to the lower centroid index."""
    return distances.argmin(axis=1)


def cluster_means(X: np.ndarray, labels: np.ndarray, k: int) -> np.ndarray:
    """Mean of the rows in each cluster. Every cluster must be non-empty."""
    counts = np.bincount(labels, minlength=k)
    sums = np.zeros((k, X.shape[1]))
    np.add.at(sums, labels, X)
    return sums / counts[:, None]


def within_cluster_sse(X: np.ndarray, labels: np.ndarray, k: int) -> float:
    """Sum of squared distances of rows to the mean of their cluster."""
    diff = X - cluster_means(X, labels, k)[labels]
    return float(np.sum(diff * diff))


def fill_empty_clusters(labels: np.ndarray, distances: np.ndarray, k: int) -> np.ndarray:
    """
    Give every empty cluster one row.

    Empty clusters are handled in ascending order. Each takes the row that is
    farthest from its currently assigned centroid (lowest row index on ties),
    drawn only from clusters holding more than one row. Since k <= N such a
    donor always exists.
    """
    counts = np.bincount(labels, minlength=k)
    empty = np.flatnonzero(counts == 0)
    if not empty.size:
        return labels

    labels = labels.copy()
    own = distances[np.arange(len(labels)), labels]
    for j in empty:
        candidates = np.where(counts[labels] > 1, own, -np.inf)
        i = int(np.argmax(candidates))
        logger.debug(f"Cluster {j} empty; moving row {i} into it")
        counts[labels[i]] -= 1
        labels[i] = j
        counts[j] = 1
    return labels


def lloyd(
    X: np.ndarray,
    centroids: np.ndarray,
    max_iter: int,
) -> Tuple[np.ndarray, np.ndarray, int]:
    """
    Run Lloyd iterations from the given centroids.

    Stops when assignments no longer change or after ``max_iter`` updates.

    Returns:
        Tuple of (labels, centroids, iterations)
    """
    k = len(centroids)
    labels: Optional[np.ndarray] = None
    n_iter = 0
    for n_iter in range(1, max_iter + 1):
        distances = squared_distances(X, centroids)
        new_labels = fill_empty_clusters(assign_rows(distances), distances, k)
        if labels is not None and np.array_equal(new_labels, labels):
            break
        labels = new_labels
        centroids = cluster_means(X, labels, k)
    else:
        logger.debug(f"k-means stopped at max_iter={max_iter} without converging")
    return labels, centroids, n_iter


def canonical_labels(
    X: np.ndarray,
    labels: np.ndarray,
    k: int,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Renumber clusters 1..k by first appearance in row order.

    Returns:
        Tuple of (labels in [1, k], centroids ordered to match)
    """
    _, first_row = np.unique(labels, return_index=True)
    order = np.argsort(first_row)
    mapping = np.empty(k, dtype=int)
    mapping[order] = np.arange(k)
    return mapping[labels] + 1, cluster_means(X, labels, k)[order]


def split_farthest(X: np.ndarray, assignment: ClusterAssignment) -> np.ndarray:
    """
    Starting centroids for k + 1 clusters grown from a k-cluster result.

    The k centroids are kept and the row farthest from its own centroid
    (lowest row index on ties) becomes the extra one. Lloyd iterations from
    this start end with an SSE no higher than ``assignment.sse``.

    Returns:
        (k + 1, D) array of centroids
    """
    centroids = np.asarray(assignment.centroids, dtype=float)
    diff = X - centroids[assignment.labels - 1]
    farthest = int(np.argmax(np.einsum("nd,nd->n", diff, diff)))
    return np.vstack([centroids, X[farthest]])


class KMeansClusterer:
    """
    Partitions feature vectors into k groups with seeded, reproducible k-means.

    Initialization draws k distinct rows with ``numpy.random.default_rng(seed)``.
    ``n_init`` restarts are drawn from the same generator. An optional warm
    start (see ``split_farthest``) runs after them. The run with the lowest
    SSE wins (earliest start on ties). Identical inputs always give identical
    outputs.
    """

    def __init__(self, seed: int = 42, max_iter: int = 300, n_init: int = 10):
        """
        Initialize the clusterer.

        Args:
            seed: Seed for centroid initialization
            max_iter: Maximum Lloyd iterations per restart
            n_init: Number of seeded restarts
        """
        if max_iter < 1:
            raise ValueError(f"max_iter must be positive, got {max_iter}")
        if n_init < 1:
            raise ValueError(f"n_init must be positive, got {n_init}")
        self.seed = seed
        self.max_iter = max_iter
        self.n_init = n_init

    def fit(
        self,
        features: Union[FeatureMatrix, np.ndarray],
        k: int,
        init: Optional[np.ndarray] = None,
        names: Optional[Sequence[str]] = None,
        warm_start: Optional[np.ndarray] = None,
    ) -> ClusterAssignment:
        """
        Cluster the rows of ``features`` into k groups.

        Args:
            features: FeatureMatrix or (N, D) array
            k: Number of clusters, 1 <= k <= N
            init: Optional explicit (k, D) starting centroids; replaces the
                seeded restarts with a single run
            names: Row names when ``features`` is a plain array
            warm_start: Optional (k, D) centroids tried after the seeded
                restarts; the seeded draws are unaffected

        Returns:
            ClusterAssignment with labels in [1, k] and total SSE

        Raises:
            InvalidClusterCountError: If k is outside [1, N]
        """
        if isinstance(features, FeatureMatrix):
            X = np.asarray(features.values, dtype=float)
            names = features.names
        else:
            X = np.asarray(features, dtype=float)
            if X.ndim != 2:
                raise ValueError(f"features must be 2-dimensional, got shape {X.shape}")
            names = tuple(names) if names is not None else tuple(str(i) for i in range(len(X)))

        n_rows = X.shape[0]
        if isinstance(k, bool) or not isinstance(k, (int, np.integer)) or not 1 <= k <= n_rows:
            raise InvalidClusterCountError(k, n_rows)
        k = int(k)

        if init is not None:
            starts = [self._check_start(init, k, X, "init")]
        else:
            rng = np.random.default_rng(self.seed)
            starts = [
                X[rng.choice(n_rows, size=k, replace=False)]
                for _ in range(self.n_init)
            ]
        if warm_start is not None:
            starts.append(self._check_start(warm_start, k, X, "warm_start"))

        best: Optional[Tuple[float, np.ndarray, int]] = None
        for run, centroids in enumerate(starts):
            labels, _, n_iter = lloyd(X, centroids, self.max_iter)
            sse = within_cluster_sse(X, labels, k)
            logger.debug(f"k={k} restart {run}: sse={sse:.6g} after {n_iter} iterations")
            if best is None or sse < best[0]:
                best = (sse, labels, n_iter)

        sse, labels, n_iter = best
        labels, centroids = canonical_labels(X, labels, k)

        return ClusterAssignment(
            names=names,
            labels=labels,
            centroids=centroids,
            sse=sse,
            k=k,
            seed=self.seed,
            n_iter=n_iter,
        )

    @staticmethod
    def _check_start(centroids, k: int, X: np.ndarray, what: str) -> np.ndarray:
        start = np.array(centroids, dtype=float)
        if start.shape != (k, X.shape[1]):
            raise ValueError(
                f"{what} must have shape {(k, X.shape[1])}, got {start.shape}"
            )
        return start

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(seed={self.seed}, "
            f"max_iter={self.max_iter}, n_init={self.n_init})"
        )
