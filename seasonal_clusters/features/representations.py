"""Representation methods that reduce a series to a fixed-length vector.

Two methods are available:
- Mean Seasonal Profile (``msp``): phase-wise mean over all periods,
  z-score normalized with the population standard deviation.
- FeaClip (``feaclip``): per-window run statistics of the clipped
  (above/below window mean) series, scale invariant by construction.

Each method works on a whole (N, T) array at once and keeps row order.
"""

from dataclasses import dataclass
from typing import Dict, List, Tuple, Type
import logging

import numpy as np

from seasonal_clusters.utils.error_handling import ShapeMismatchError

logger = logging.getLogger(__name__)

# Relative tolerance under which a profile's standard deviation counts as zero
DEGENERATE_RTOL = 1e-12

FEACLIP_FEATURES = (
    "max_1",      # longest run above the window mean
    "sum_1",      # points above the window mean
    "max_0",      # longest run at or below the window mean
    "crossings",  # switches between above and below
    "f_0",        # length of a leading run below
    "l_0",        # length of a trailing run below
    "f_1",        # length of a leading run above
    "l_1",        # length of a trailing run above
)


def seasonal_profile(values: np.ndarray, period: int) -> np.ndarray:
    """Phase-wise mean of each row; ``values`` must hold whole periods."""
    n_rows, n_steps = values.shape
    return values.reshape(n_rows, n_steps // period, period).mean(axis=1)


def zscore_rows(profiles: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Z-score each row with its own mean and population standard deviation.

    Rows with (numerically) zero spread become zero vectors.

    Returns:
        Tuple of (normalized rows, boolean mask of degenerate rows)
    """
    mean = profiles.mean(axis=1, keepdims=True)
    std = profiles.std(axis=1, keepdims=True)
    degenerate = std[:, 0] <= DEGENERATE_RTOL * np.maximum(1.0, np.abs(mean[:, 0]))

    safe_std = np.where(degenerate[:, None], 1.0, std)
    normalized = (profiles - mean) / safe_std
    normalized[degenerate] = 0.0
    return normalized, degenerate


def clip(window: np.ndarray) -> np.ndarray:
    """1 where a point lies above the window mean, else 0."""
    if np.ptp(window) == 0:
        return np.zeros(len(window), dtype=int)
    return (window > window.mean()).astype(int)


def run_lengths(bits: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Run-length encoding of a 0/1 vector as (run values, run lengths)."""
    starts = np.concatenate(([0], np.flatnonzero(np.diff(bits)) + 1))
    lengths = np.diff(np.concatenate((starts, [len(bits)])))
    return bits[starts], lengths


def feaclip_window(window: np.ndarray) -> np.ndarray:
    """FeaClip statistics for one window, in FEACLIP_FEATURES order."""
    values, lengths = run_lengths(clip(window))
    ones = lengths[values == 1]
    zeros = lengths[values == 0]
    first_len, last_len = lengths[0], lengths[-1]

    return np.array([
        ones.max() if ones.size else 0,
        ones.sum(),
        zeros.max() if zeros.size else 0,
        len(lengths) - 1,
        first_len if values[0] == 0 else 0,
        last_len if values[-1] == 0 else 0,
        first_len if values[0] == 1 else 0,
        last_len if values[-1] == 1 else 0,
    ], dtype=float)


@dataclass
class MeanSeasonalProfile:
    """
    Mean Seasonal Profile representation.

    Averages observations by phase within the period (p, p+P, p+2P, ...)
    and z-scores the resulting P-length profile. Trend and year-to-year
    variation are collapsed; only the seasonal shape remains.
    """
    period: int = 12

    name = "msp"

    def __post_init__(self):
        if self.period < 1:
            raise ValueError(f"period must be positive, got {self.period}")

    def check_length(self, series_name: str, n_steps: int) -> None:
        if n_steps < self.period or n_steps % self.period:
            raise ShapeMismatchError(
                series_name,
                expected=f"a positive multiple of period {self.period}",
                actual=n_steps,
            )

    def feature_names(self, n_steps: int) -> List[str]:
        return [f"phase_{p + 1:02d}" for p in range(self.period)]

    def reduce(self, values: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Reduce an (N, T) array to (N, P) profiles.

        Returns:
            Tuple of (features, boolean mask of zero-variance rows)
        """
        return zscore_rows(seasonal_profile(values, self.period))


@dataclass
class FeaClip:
    """
    FeaClip representation.

    Splits each series into consecutive windows of ``window`` steps, clips
    every window at its own mean and describes the resulting 0/1 pattern
    with run statistics. Features depend only on the order of values
    relative to the window mean, so no normalization is applied.

    Attributes:
        window: Window length
        drop_remainder: Drop a trailing partial window instead of failing
    """
    window: int = 12
    drop_remainder: bool = False

    name = "feaclip"

    def __post_init__(self):
        if self.window < 2:
            raise ValueError(f"window must be at least 2, got {self.window}")

    def check_length(self, series_name: str, n_steps: int) -> None:
        if n_steps < self.window:
            raise ShapeMismatchError(
                series_name,
                expected=f"at least one window of {self.window}",
                actual=n_steps,
            )
        if n_steps % self.window and not self.drop_remainder:
            raise ShapeMismatchError(
                series_name,
                expected=f"a multiple of window {self.window}",
                actual=n_steps,
                detail="set drop_remainder to discard the trailing partial window",
            )

    def n_windows(self, n_steps: int) -> int:
        return n_steps // self.window

    def feature_names(self, n_steps: int) -> List[str]:
        return [
            f"w{w + 1}_{feature}"
            for w in range(self.n_windows(n_steps))
            for feature in FEACLIP_FEATURES
        ]

    def reduce(self, values: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Reduce an (N, T) array to (N, windows * 8) FeaClip blocks.

        Returns:
            Tuple of (features, boolean mask of rows that are constant in
            every window)
        """
        n_rows, n_steps = values.shape
        n_windows = self.n_windows(n_steps)
        usable = n_windows * self.window
        if usable != n_steps:
            logger.info(
                f"FeaClip dropping trailing {n_steps - usable} steps "
                f"(window {self.window})"
            )

        windows = values[:, :usable].reshape(n_rows, n_windows, self.window)
        features = np.empty((n_rows, n_windows * len(FEACLIP_FEATURES)))
        for i in range(n_rows):
            features[i] = np.concatenate([feaclip_window(w) for w in windows[i]])

        above = features[:, FEACLIP_FEATURES.index("sum_1")::len(FEACLIP_FEATURES)]
        flat = (above == 0).all(axis=1)
        return features, flat


REPRESENTATIONS: Dict[str, Type] = {
    MeanSeasonalProfile.name: MeanSeasonalProfile,
    FeaClip.name: FeaClip,
}
