"""Cluster count scan: within-cluster SSE for a range of k."""

from typing import Any, Dict, Optional, Union
import logging

import numpy as np

from seasonal_clusters.data.structs import FeatureMatrix, SSECurve
from seasonal_clusters.models.kmeans import KMeansClusterer, split_farthest
from seasonal_clusters.utils.error_handling import InvalidClusterCountError

logger = logging.getLogger(__name__)


class ClusterCountSelector:
    """
    Runs k-means once per candidate k and records the total SSE.

    The output is the SSE-vs-k curve only. Picking k (the "elbow") is left to
    the caller; no knee detection is done here. Every k uses the same seed for
    its restarts, plus one extra start grown from the best k - 1 solution, so
    SSE never rises as k grows.
    """

    def __init__(
        self,
        k_min: int = 1,
        k_max: int = 10,
        seed: int = 42,
        max_iter: int = 300,
        n_init: int = 10,
    ):
        """
        Initialize the selector.

        Args:
            k_min: Smallest k to scan (1 is allowed and gives the total variance)
            k_max: Largest k to scan, inclusive
            seed: Seed reused for every k
            max_iter: Maximum Lloyd iterations per restart
            n_init: Seeded restarts per k
        """
        if k_min > k_max:
            raise ValueError(f"k_min ({k_min}) must not exceed k_max ({k_max})")
        self.k_min = k_min
        self.k_max = k_max
        self.clusterer = KMeansClusterer(seed=seed, max_iter=max_iter, n_init=n_init)

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "ClusterCountSelector":
        """Build from a full pipeline configuration (selection + clustering)."""
        selection = config.get("selection", {})
        clustering = config.get("clustering", {})
        return cls(
            k_min=selection.get("k_min", 1),
            k_max=selection.get("k_max", 10),
            seed=clustering.get("seed", 42),
            max_iter=clustering.get("max_iter", 300),
            n_init=clustering.get("n_init", 10),
        )

    def scan(
        self,
        features: Union[FeatureMatrix, np.ndarray],
        k_max: Optional[int] = None,
    ) -> SSECurve:
        """
        Compute the SSE curve over [k_min, k_max].

        Args:
            features: FeatureMatrix or (N, D) array; never modified
            k_max: Optional override of the configured upper bound

        Returns:
            SSECurve with one entry per scanned k

        Raises:
            InvalidClusterCountError: If the range leaves [1, N]; raised
                before any clustering is run
        """
        n_rows = features.n_rows if isinstance(features, FeatureMatrix) else len(features)
        upper = self.k_max if k_max is None else k_max
        if self.k_min < 1:
            raise InvalidClusterCountError(self.k_min, n_rows)
        if upper > n_rows or upper < self.k_min:
            raise InvalidClusterCountError(upper, n_rows)

        X = features.values if isinstance(features, FeatureMatrix) else np.asarray(features, dtype=float)
        ks = list(range(self.k_min, upper + 1))
        sse = []
        previous = None
        for k in ks:
            # growing the previous solution keeps the curve non-increasing
            warm_start = split_farthest(X, previous) if previous is not None else None
            assignment = self.clusterer.fit(features, k, warm_start=warm_start)
            previous = assignment
            sse.append(assignment.sse)
            logger.info(f"k={k}: within-cluster SSE {assignment.sse:.6g}")

        return SSECurve(ks=tuple(ks), sse=tuple(sse))
