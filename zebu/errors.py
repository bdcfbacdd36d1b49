# File: zebu/errors.py
# Location: zebu/zebu/errors.py
"""
Exception classes for local association analysis.

Every error is raised synchronously at the offending call; a failed
estimation or significance call never returns a partial result.
"""

from typing import Dict, Optional


class ZebuError(Exception):
    """Base exception for all zebu errors."""

    def __init__(self, message: str, details: Optional[Dict] = None):
        """Initialize zebu error.

        Parameters
        ----------
        message : str
            Error message
        details : dict, optional
            Additional error details (variable name, measure, arity...)
        """
        super().__init__(message)
        self.details = details or {}

    def __reduce__(self):
        """Keep details when errors cross process boundaries."""
        return (self.__class__, (str(self), self.details))


class InvalidVariableError(ZebuError):
    """Raised when a variable is missing, has fewer than two categories, or holds unknown labels."""


class InsufficientDataError(ZebuError):
    """Raised when there are no observations, an unobserved category, or a non-finite aggregate."""


class InvalidMeasureError(ZebuError):
    """Raised for an unknown local association measure identifier."""

    def __init__(self, measure: str, available: list):
        """Initialize invalid measure error."""
        message = f"Measure '{measure}' is not available. Available measures: {', '.join(available)}"
        super().__init__(message, {"measure": measure, "available": list(available)})

    def __reduce__(self):
        """Custom pickling to handle multiprocessing correctly."""
        return (self.__class__, (self.details["measure"], self.details["available"]))


class UnsupportedArityError(ZebuError):
    """Raised when an operation requires a number of variables the result does not have."""

    def __init__(self, operation: str, required: int, actual: int):
        """Initialize unsupported arity error."""
        message = f"'{operation}' requires exactly {required} variables, got {actual}"
        super().__init__(message, {"operation": operation, "required": required, "actual": actual})

    def __reduce__(self):
        """Custom pickling to handle multiprocessing correctly."""
        return (
            self.__class__,
            (self.details["operation"], self.details["required"], self.details["actual"]),
        )


class UnsupportedMeasureError(ZebuError):
    """Raised when an operation is not valid for the measure of a result."""


class FieldNotAvailableError(ZebuError):
    """Raised when a significance field is requested before a significance test was run."""
