"""Building a SeriesMatrix from tabular visitation data."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional
import logging

import numpy as np
import pandas as pd

from seasonal_clusters.data.structs import SeriesMatrix

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    """Result of input table validation."""
    is_valid: bool
    errors: List[str]
    warnings: List[str]
    missing_columns: List[str]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "is_valid": self.is_valid,
            "errors": self.errors,
            "warnings": self.warnings,
            "missing_columns": self.missing_columns,
        }


class SeriesMatrixBuilder:
    """
    Turns long-format records (entity, date, value) into a clean SeriesMatrix.

    Series with any missing month are dropped; they cannot be compared on
    the common monthly grid.
    """

    def __init__(
        self,
        id_column: str = "site",
        date_column: str = "date",
        value_column: str = "visits",
        period: int = 12,
    ):
        """
        Initialize the builder.

        Args:
            id_column: Column naming the entity each record belongs to
            date_column: Column with the observation date (any day in the month)
            value_column: Column with the observed count
            period: Seasonal period of the monthly data
        """
        self.id_column = id_column
        self.date_column = date_column
        self.value_column = value_column
        self.period = period
        self.dropped: List[str] = []

    def load_csv(
        self,
        path: str,
        min_total: Optional[float] = None,
        trim: bool = False,
        **read_kwargs,
    ) -> SeriesMatrix:
        """
        Load a long-format CSV file and build the matrix.

        Args:
            path: Path to the CSV file
            min_total: Drop series whose total is below this value
            trim: Trim to whole periods after building
            **read_kwargs: Passed through to ``pandas.read_csv``

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If required columns are missing
        """
        file_path = Path(path)
        if not file_path.exists():
            raise FileNotFoundError(f"CSV file not found: {path}")

        df = pd.read_csv(file_path, **read_kwargs)
        logger.info(f"Loaded {len(df)} rows from {path}")

        matrix = self.from_long(df, min_total=min_total)
        if trim:
            matrix = trim_to_full_periods(matrix)
        return matrix

    def validate_columns(self, df: pd.DataFrame) -> ValidationResult:
        """
        Check that the long-format table has the configured columns.

        Args:
            df: Long-format DataFrame

        Returns:
            ValidationResult with validation details
        """
        errors: List[str] = []
        warnings: List[str] = []
        missing = [
            col for col in (self.id_column, self.date_column, self.value_column)
            if col not in df.columns
        ]
        for col in missing:
            errors.append(f"Missing required column: {col}")

        if not missing:
            if not pd.api.types.is_numeric_dtype(df[self.value_column]):
                errors.append(
                    f"Column '{self.value_column}' has dtype "
                    f"'{df[self.value_column].dtype}', expected numeric"
                )
            if df[self.id_column].isnull().any():
                warnings.append(f"Rows without '{self.id_column}' will be ignored")

        return ValidationResult(
            is_valid=not errors,
            errors=errors,
            warnings=warnings,
            missing_columns=missing,
        )

    def from_long(
        self,
        df: pd.DataFrame,
        min_total: Optional[float] = None,
    ) -> SeriesMatrix:
        """
        Pivot long-format records onto a contiguous monthly grid.

        Dates are snapped to month starts and duplicate records for the same
        entity and month are summed. Series with a missing month anywhere on
        the grid are dropped.

        Args:
            df: Long-format DataFrame
            min_total: Drop series whose total is below this value

        Returns:
            SeriesMatrix with rows sorted by series name
        """
        result = self.validate_columns(df)
        for warning in result.warnings:
            logger.warning(warning)
        if not result.is_valid:
            raise ValueError(f"Input validation failed: {'; '.join(result.errors)}")

        records = df[[self.id_column, self.date_column, self.value_column]].dropna(
            subset=[self.id_column, self.date_column]
        )
        months = pd.to_datetime(records[self.date_column]).dt.to_period("M").dt.to_timestamp()
        records = records.assign(**{self.date_column: months})

        # min_count=1 keeps an all-NaN month as missing rather than 0
        wide = (
            records.groupby([self.id_column, self.date_column])[self.value_column]
            .sum(min_count=1)
            .unstack(self.date_column)
        )
        grid = pd.date_range(wide.columns.min(), wide.columns.max(), freq="MS")
        wide = wide.reindex(columns=grid)
        wide.index = wide.index.astype(str)

        return self.from_wide(wide, min_total=min_total)

    def from_wide(
        self,
        df: pd.DataFrame,
        min_total: Optional[float] = None,
        start: Optional[pd.Timestamp] = None,
    ) -> SeriesMatrix:
        """
        Build from a wide table (rows = entities, columns = time steps in order).

        Args:
            df: Wide DataFrame
            min_total: Drop series whose total is below this value
            start: Timestamp of the first column if the columns are not dates

        Returns:
            SeriesMatrix with rows sorted by series name
        """
        incomplete = df.index[df.isnull().any(axis=1)].astype(str).tolist()
        complete = df.drop(index=df.index[df.isnull().any(axis=1)])
        if incomplete:
            logger.warning(
                f"Dropping {len(incomplete)} series with missing values: {incomplete[:10]}"
                + (" ..." if len(incomplete) > 10 else "")
            )

        too_small: List[str] = []
        if min_total is not None and len(complete):
            totals = complete.sum(axis=1)
            too_small = complete.index[totals < min_total].astype(str).tolist()
            complete = complete[totals >= min_total]
            if too_small:
                logger.info(f"Dropping {len(too_small)} series with total below {min_total}")

        self.dropped = incomplete + too_small

        if complete.empty:
            raise ValueError("No complete series left after filtering")

        complete = complete.sort_index()
        matrix = SeriesMatrix.from_frame(complete, period=self.period, start=start)
        logger.info(
            f"Built series matrix with {matrix.n_series} series x {matrix.n_steps} steps"
        )
        return matrix


def trim_to_full_periods(matrix: SeriesMatrix) -> SeriesMatrix:
    """
    Trim a matrix to whole seasonal periods.

    When the start date is known, leading steps before the first January
    are dropped so that phase 0 is January; the trailing partial period is
    always dropped.

    Raises:
        ValueError: If less than one full period remains
    """
    lead = 0
    start = matrix.start
    if start is not None and matrix.period == 12:
        lead = (13 - start.month) % 12
        start = start + pd.DateOffset(months=lead)

    usable = matrix.n_steps - lead
    n_periods = usable // matrix.period
    if n_periods < 1:
        raise ValueError(
            f"Series of {matrix.n_steps} steps hold no full period of {matrix.period}"
        )

    end = lead + n_periods * matrix.period
    if lead or end != matrix.n_steps:
        logger.info(
            f"Trimming to {n_periods} full periods: dropped {lead} leading and "
            f"{matrix.n_steps - end} trailing steps"
        )

    return SeriesMatrix(
        names=matrix.names,
        values=np.asarray(matrix.values[:, lead:end]),
        period=matrix.period,
        start=start,
    )
