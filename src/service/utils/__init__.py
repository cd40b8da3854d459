"""Utility functions for the service layer."""

from src.service.utils.logging_utils import (
    log_column_error,
    log_column_warning,
    log_skipped_column,
)

__all__ = [
    "log_column_error",
    "log_column_warning",
    "log_skipped_column",
]
