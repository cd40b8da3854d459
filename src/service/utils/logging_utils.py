"""
Utility functions for logging per-column diagnostics.
"""
import logging
from typing import List

from src.service.diagnostics import Diagnostic, DiagnosticLevel


def log_skipped_column(
    logger: logging.Logger,
    diagnostics: List[Diagnostic],
    variable: str,
    reason: str,
) -> None:
    """
    Log a warning for a column that is ignored, and record it as a diagnostic.

    Args:
        logger: The logger instance to use for logging
        diagnostics: The diagnostics of the running phase, appended to in place
        variable: The name of the skipped column
        reason: Why the column is skipped

    Example:
        >>> logger = logging.getLogger(__name__)
        >>> log_skipped_column(logger, diagnostics, "age", "Input table does not have this column")
        # Logs: "Input table does not have this column: age. Ignoring it."
    """
    message = f"{reason}: {variable}. Ignoring it."
    logger.warning(message)
    diagnostics.append(Diagnostic(level=DiagnosticLevel.WARNING, message=message, variable=variable))


def log_column_error(
    logger: logging.Logger,
    diagnostics: List[Diagnostic],
    variable: str,
    error: Exception,
) -> None:
    """
    Log an error that aborted the processing of one column, and record it as a diagnostic.

    Args:
        logger: The logger instance to use for logging
        diagnostics: The diagnostics of the running phase, appended to in place
        variable: The name of the column whose processing was aborted
        error: The error raised while processing the column
    """
    message = f"Error processing column {variable}: {error}"
    logger.error(message)
    diagnostics.append(Diagnostic(level=DiagnosticLevel.ERROR, message=str(error), variable=variable))


def log_column_warning(
    logger: logging.Logger,
    diagnostics: List[Diagnostic],
    variable: str,
    message: str,
) -> None:
    """
    Log a warning about a column that is still processed, and record it as a diagnostic.

    Args:
        logger: The logger instance to use for logging
        diagnostics: The diagnostics of the running phase, appended to in place
        variable: The name of the column
        message: The warning message
    """
    logger.warning(f"{message} (column: {variable})")
    diagnostics.append(Diagnostic(level=DiagnosticLevel.WARNING, message=message, variable=variable))
