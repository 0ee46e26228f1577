"""Logging configuration for clustering runs."""

import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional


class JSONFormatter(logging.Formatter):
    """JSON-lines formatter; merges a ``props`` extra dict into the record."""

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record as a JSON string."""
        log_obj = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "funcName": record.funcName,
            "lineNo": record.lineno,
        }

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        props = getattr(record, "props", None)
        if isinstance(props, dict):
            log_obj.update(props)

        return json.dumps(log_obj, default=str)


def setup_logging(
    log_level: str = "INFO",
    log_dir: Optional[str] = "logs",
) -> None:
    """
    Setup logging for a clustering run.

    Args:
        log_level: Logging level (INFO, DEBUG, etc.)
        log_dir: Directory for the JSON-lines files. When None only the
            console handler is installed.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = []

    # Console handler (human readable)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    ))
    root_logger.addHandler(console_handler)

    if log_dir is not None:
        Path(log_dir).mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(Path(log_dir) / "app.jsonl")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)

        error_handler = logging.FileHandler(Path(log_dir) / "errors.jsonl")
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(error_handler)

    logging.info(f"Logging configured with level {log_level}")


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance."""
    return logging.getLogger(name)
