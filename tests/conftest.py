"""Pytest configuration and shared fixtures."""

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

from seasonal_clusters.data.structs import SeriesMatrix


MONTHS = np.arange(12)
SUMMER_SHAPE = np.sin(2 * np.pi * (MONTHS - 3) / 12)   # peaks in July
WINTER_SHAPE = -SUMMER_SHAPE                            # peaks in January


@pytest.fixture
def mixed_matrix():
    """Two sinusoidal series of very different magnitude and two flat series."""
    sine = np.tile(SUMMER_SHAPE, 2)
    return SeriesMatrix(
        names=("big_park", "small_park", "flat_a", "flat_b"),
        values=np.vstack([
            1000.0 + 500.0 * sine,
            10.0 + 5.0 * sine,
            np.full(24, 250.0),
            np.full(24, 0.1),
        ]),
        period=12,
        start=pd.Timestamp("2015-01-01"),
    )


@pytest.fixture
def visitation_long_df():
    """
    Long-format monthly visits for 9 sites over 3 years.

    Three summer-peaking and three winter-peaking sites with a little noise,
    and three constant sites, each group spanning very different magnitudes.
    """
    rng = np.random.default_rng(42)
    dates = pd.date_range("2016-01-01", periods=36, freq="MS")
    shapes = {
        "summer": np.tile(SUMMER_SHAPE, 3),
        "winter": np.tile(WINTER_SHAPE, 3),
        "flat": np.zeros(36),
    }
    records = []
    for kind, shape in shapes.items():
        for i, scale in enumerate([50.0, 2_000.0, 80_000.0]):
            noise = rng.normal(0, 0.01, 36) if kind != "flat" else 0.0
            visits = scale * (2.0 + shape) * (1 + noise)
            for date, value in zip(dates, visits):
                records.append({
                    "site": f"{kind}_{i}",
                    "date": date + pd.Timedelta(days=14),
                    "visits": round(value, 2),
                })
    return pd.DataFrame(records)


@pytest.fixture
def visitation_csv(tmp_path, visitation_long_df):
    """The long-format fixture written to a CSV file."""
    path = tmp_path / "visits.csv"
    visitation_long_df.to_csv(path, index=False)
    return path


@pytest.fixture
def line_points():
    """Six 1-D points in three tight, well separated pairs."""
    return np.array([[0.0], [1.0], [10.0], [11.0], [20.0], [21.0]])


@pytest.fixture
def pipeline_config(tmp_path):
    """Configuration overrides for a small, fast pipeline run."""
    return {
        "selection": {"k_min": 1, "k_max": 6},
        "clustering": {"seed": 7, "n_init": 5},
        "logging": {"log_dir": str(tmp_path / "logs")},
    }
