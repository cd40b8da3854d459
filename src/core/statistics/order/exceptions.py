"""Exceptions raised by the order statistics engine."""

from typing import Optional


class OrderStatisticsError(Exception):
    """
    Base class for per-column failures of the order statistics engine.

    The pipeline host catches these for one column at a time, so a failing
    variable never aborts the processing of the others.
    """

    def __init__(self, message: str, variable: Optional[str] = None):
        """
        Initialize OrderStatisticsError.

        Args:
            message: Detailed error message
            variable: Optional name of the column being processed
        """
        self.message = message
        self.variable = variable
        super().__init__(self.message)

    def __str__(self):
        if self.variable:
            return f"{self.message} (variable: {self.variable})"
        return self.message


class UnsupportedValueTypeError(OrderStatisticsError):
    """Raised when a column cannot be ordered, or its type does not match the model."""

    pass


class QuantileDerivationError(OrderStatisticsError):
    """Raised when a histogram is inconsistent with its own cumulative counts."""

    pass


class EmpiricalCDFError(OrderStatisticsError):
    """Raised when an empirical CDF does not integrate to one."""

    pass
