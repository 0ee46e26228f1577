"""Core data structures for the clustering pipeline."""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd


def _frozen_copy(values, ndim: int, what: str) -> np.ndarray:
    arr = np.array(values, dtype=float, copy=True)
    if arr.ndim != ndim:
        raise ValueError(f"{what} must be {ndim}-dimensional, got shape {arr.shape}")
    arr.setflags(write=False)
    return arr


@dataclass(eq=False)
class SeriesMatrix:
    """
    Rectangular panel of N named series with T aligned time steps.

    Row order is the correspondence used by every downstream artifact;
    feature rows and cluster labels are aligned by row index.

    Attributes:
        names: Unique series names, one per row
        values: Array of shape (N, T) with no missing values
        period: Length of the seasonal period (12 for monthly data)
        start: Timestamp of the first column, if known
    """
    names: Tuple[str, ...]
    values: np.ndarray
    period: int = 12
    start: Optional[pd.Timestamp] = None

    def __post_init__(self):
        """Validate shape and contents; store a read-only copy."""
        self.names = tuple(str(n) for n in self.names)
        self.values = _frozen_copy(self.values, 2, "Series values")

        n_rows, _ = self.values.shape
        if n_rows < 1:
            raise ValueError("SeriesMatrix needs at least one series")
        if len(self.names) != n_rows:
            raise ValueError(
                f"Length mismatch: names ({len(self.names)}) vs rows ({n_rows})"
            )
        if len(set(self.names)) != len(self.names):
            duplicates = sorted(
                n for n in set(self.names) if self.names.count(n) > 1
            )
            raise ValueError(f"Series names must be unique, duplicated: {duplicates}")
        if not np.isfinite(self.values).all():
            raise ValueError("SeriesMatrix must not contain missing or infinite values")
        if self.period < 1:
            raise ValueError(f"period must be positive, got {self.period}")
        if self.start is not None:
            self.start = pd.Timestamp(self.start)

    @property
    def n_series(self) -> int:
        return self.values.shape[0]

    @property
    def n_steps(self) -> int:
        return self.values.shape[1]

    @property
    def time_index(self) -> pd.Index:
        """Monthly DatetimeIndex when ``start`` is known, else a step RangeIndex."""
        if self.start is None:
            return pd.RangeIndex(self.n_steps, name="step")
        return pd.date_range(self.start, periods=self.n_steps, freq="MS", name="date")

    def row(self, i: int) -> np.ndarray:
        return self.values[i]

    def index_of(self, name: str) -> int:
        return self.names.index(name)

    def to_frame(self) -> pd.DataFrame:
        """Wide DataFrame: one row per series, one column per time step."""
        return pd.DataFrame(
            self.values.copy(),
            index=pd.Index(self.names, name="series"),
            columns=self.time_index,
        )

    @classmethod
    def from_frame(
        cls,
        df: pd.DataFrame,
        period: int = 12,
        start: Optional[pd.Timestamp] = None,
    ) -> "SeriesMatrix":
        """
        Build from a wide DataFrame (rows = series, columns = time steps).

        If ``start`` is not given and the columns are datetimes, the first
        column is used as the start.
        """
        if start is None and isinstance(df.columns, pd.DatetimeIndex) and len(df.columns):
            start = df.columns[0]
        return cls(
            names=tuple(df.index.astype(str)),
            values=df.to_numpy(dtype=float),
            period=period,
            start=start,
        )


@dataclass(eq=False)
class FeatureMatrix:
    """
    N fixed-length feature vectors in SeriesMatrix row order.

    Attributes:
        names: Series names, same order as the source matrix
        values: Array of shape (N, D)
        method: Representation method that produced the vectors
        feature_names: D column labels
        degenerate_rows: Rows whose representation carries no signal
            (zero-variance profiles under MSP)
    """
    names: Tuple[str, ...]
    values: np.ndarray
    method: str
    feature_names: List[str] = field(default_factory=list)
    degenerate_rows: List[int] = field(default_factory=list)

    def __post_init__(self):
        self.names = tuple(self.names)
        self.values = _frozen_copy(self.values, 2, "Feature values")
        if len(self.names) != self.values.shape[0]:
            raise ValueError(
                f"Length mismatch: names ({len(self.names)}) vs rows ({self.values.shape[0]})"
            )
        if not self.feature_names:
            self.feature_names = [f"f{j}" for j in range(self.values.shape[1])]
        elif len(self.feature_names) != self.values.shape[1]:
            raise ValueError(
                f"Length mismatch: feature_names ({len(self.feature_names)}) "
                f"vs columns ({self.values.shape[1]})"
            )

    @property
    def n_rows(self) -> int:
        return self.values.shape[0]

    @property
    def n_features(self) -> int:
        return self.values.shape[1]

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            self.values.copy(),
            index=pd.Index(self.names, name="series"),
            columns=self.feature_names,
        )


@dataclass(eq=False)
class ClusterAssignment:
    """
    Result of one k-means run.

    Labels are in [1, k], numbered by first appearance in row order.

    Attributes:
        names: Series names in row order
        labels: Integer label per row
        centroids: Array of shape (k, D); row j-1 is the centroid of label j
        sse: Total within-cluster sum of squared distances
        k: Number of clusters
        seed: Seed the run was made with
        n_iter: Lloyd iterations of the winning restart
    """
    names: Tuple[str, ...]
    labels: np.ndarray
    centroids: np.ndarray
    sse: float
    k: int
    seed: Optional[int] = None
    n_iter: int = 0

    def __post_init__(self):
        self.names = tuple(self.names)
        labels = np.array(self.labels, dtype=int, copy=True)
        labels.setflags(write=False)
        self.labels = labels
        self.centroids = _frozen_copy(self.centroids, 2, "Centroids")
        if len(self.names) != len(self.labels):
            raise ValueError(
                f"Length mismatch: names ({len(self.names)}) vs labels ({len(self.labels)})"
            )

    def as_dict(self) -> Dict[str, int]:
        """Mapping of series name to cluster label."""
        return {name: int(label) for name, label in zip(self.names, self.labels)}

    def to_series(self) -> pd.Series:
        return pd.Series(
            self.labels, index=pd.Index(self.names, name="series"), name="cluster"
        )

    def sizes(self) -> Dict[int, int]:
        """Number of series per label, for labels 1..k."""
        counts = np.bincount(self.labels, minlength=self.k + 1)
        return {label: int(counts[label]) for label in range(1, self.k + 1)}

    def members(self, label: int) -> List[str]:
        return [n for n, lab in zip(self.names, self.labels) if lab == label]


@dataclass(eq=False)
class SSECurve:
    """
    Total within-cluster SSE for each scanned k.

    Purely diagnostic: the cluster count is chosen by the caller from this
    curve.
    """
    ks: Tuple[int, ...]
    sse: Tuple[float, ...]

    def __post_init__(self):
        self.ks = tuple(int(k) for k in self.ks)
        self.sse = tuple(float(s) for s in self.sse)
        if len(self.ks) != len(self.sse):
            raise ValueError(
                f"Length mismatch: ks ({len(self.ks)}) vs sse ({len(self.sse)})"
            )

    def __len__(self) -> int:
        return len(self.ks)

    def __iter__(self) -> Iterator[Tuple[int, float]]:
        return iter(zip(self.ks, self.sse))

    def as_pairs(self) -> List[Tuple[int, float]]:
        return list(self)

    def sse_for(self, k: int) -> float:
        try:
            return self.sse[self.ks.index(k)]
        except ValueError:
            raise KeyError(f"k={k} was not scanned (scanned {self.ks})") from None

    def relative_drops(self) -> List[float]:
        """
        Fractional SSE decrease from each k to the next scanned k.

        Entry i compares ks[i] with ks[i + 1]; 0.0 where the previous SSE
        is already zero.
        """
        drops = []
        for prev, nxt in zip(self.sse[:-1], self.sse[1:]):
            drops.append((prev - nxt) / prev if prev > 0 else 0.0)
        return drops

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({"k": list(self.ks), "sse": list(self.sse)})


def names_of(rows: Sequence[int], names: Sequence[str]) -> List[str]:
    """Series names for a list of row indices."""
    return [names[i] for i in rows]
