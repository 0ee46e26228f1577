"""Error types and failure context for the clustering pipeline."""

import logging
import time
import traceback
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class ClusteringError(ValueError):
    """Base class for invalid inputs or configuration passed to the core."""


class ShapeMismatchError(ClusteringError):
    """
    Series length is incompatible with a representation method.

    Attributes:
        series_name: Name of the offending series
        expected: Human readable description of the required length
        actual: Actual series length
    """

    def __init__(self, series_name: str, expected: str, actual: int, detail: str = ""):
        self.series_name = series_name
        self.expected = expected
        self.actual = actual
        message = (
            f"Series '{series_name}' has length {actual}, expected {expected}"
        )
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class InvalidClusterCountError(ClusteringError):
    """
    Requested cluster count is outside [1, N].

    Attributes:
        k: Requested cluster count (None when no k was given at all)
        n_rows: Number of feature rows available
    """

    def __init__(self, k: Optional[int], n_rows: int):
        self.k = k
        self.n_rows = n_rows
        if k is None:
            message = (
                "No cluster count given; choose k from the SSE curve "
                "and pass it explicitly"
            )
        else:
            message = f"Cluster count k={k} is outside [1, {n_rows}]"
        super().__init__(message)


@dataclass
class RecoveryContext:
    """Captures context of a failed pipeline step for debugging."""
    run_id: str
    timestamp: float = field(default_factory=time.time)
    exception_type: str = ""
    exception_message: str = ""
    stack_trace: str = ""
    local_variables: Dict[str, str] = field(default_factory=dict)
    attributes: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_exception(cls, run_id: str, exc: Exception) -> "RecoveryContext":
        """
        Create context from an exception.
        Captures locals from the frame where the exception was raised, plus
        the structured attributes carried by clustering errors.
        """
        stack_trace = "".join(traceback.format_tb(exc.__traceback__))

        locals_repr = {}
        if exc.__traceback__:
            ptr = exc.__traceback__
            while ptr.tb_next:
                ptr = ptr.tb_next
            for k, v in ptr.tb_frame.f_locals.items():
                try:
                    val_str = str(v)
                except Exception:
                    val_str = "<unprintable>"
                if len(val_str) > 500:
                    val_str = val_str[:500] + "..."
                locals_repr[k] = val_str

        attributes: Dict[str, Any] = {}
        if isinstance(exc, ShapeMismatchError):
            attributes = {
                "series_name": exc.series_name,
                "expected": exc.expected,
                "actual": exc.actual,
            }
        elif isinstance(exc, InvalidClusterCountError):
            attributes = {"k": exc.k, "n_rows": exc.n_rows}

        return cls(
            run_id=run_id,
            exception_type=type(exc).__name__,
            exception_message=str(exc),
            stack_trace=stack_trace,
            local_variables=locals_repr,
            attributes=attributes,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "run_id": self.run_id,
            "timestamp": self.timestamp,
            "exception_type": self.exception_type,
            "exception_message": self.exception_message,
            "stack_trace": self.stack_trace,
            "local_variables": self.local_variables,
            "attributes": self.attributes,
        }
