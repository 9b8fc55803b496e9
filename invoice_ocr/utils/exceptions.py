"""
Custom Exceptions Module.

This module defines the exceptions raised by the extraction engine. Soft
misses (a field or row that could not be extracted) are never exceptions;
they surface as the "N/A" sentinel or as an omitted line item. Exceptions
are reserved for hard failures: bad input handed to the engine, broken
configuration, or a programming error such as an unknown field name.

Exception Hierarchy:
    InvoiceExtractionError (base)
    ├── InputError
    │   └── InvalidInputError
    ├── ConfigurationError
    │   └── PatternLibraryError
    └── ExtractionError
        └── UnknownFieldError
"""


class InvoiceExtractionError(Exception):
    """
    Base exception for all extraction engine errors.

    Attributes:
        message: Human-readable error message.
        details: Optional dictionary with additional error details.
    """

    def __init__(self, message: str, details: dict = None):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# INPUT ERRORS
# =============================================================================

class InputError(InvoiceExtractionError):
    """Base exception for input handling errors."""
    pass


class InvalidInputError(InputError):
    """
    Raised when the engine is handed something other than OCR text.

    Example:
        >>> raise InvalidInputError(type(None).__name__)
    """

    def __init__(self, received_type: str):
        message = f"OCR text must be a string, got {received_type}"
        details = {"received_type": received_type}
        super().__init__(message, details)


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================

class ConfigurationError(InvoiceExtractionError):
    """Base exception for configuration errors."""
    pass


class PatternLibraryError(ConfigurationError):
    """Raised when a configured pattern or template cannot be loaded."""

    def __init__(self, entry: str, reason: str = None):
        message = f"Invalid pattern library entry: {entry}"
        details = {"entry": entry, "reason": reason}
        super().__init__(message, details)


# =============================================================================
# EXTRACTION ERRORS
# =============================================================================

class ExtractionError(InvoiceExtractionError):
    """Base exception for extraction errors."""
    pass


class UnknownFieldError(ExtractionError):
    """Raised when a caller asks for a field the engine does not know."""

    def __init__(self, field_name: str, known_fields: list):
        message = f"Unknown field: '{field_name}'"
        details = {"field": field_name, "known_fields": known_fields}
        super().__init__(message, details)


__all__ = [
    'InvoiceExtractionError',
    'InputError',
    'InvalidInputError',
    'ConfigurationError',
    'PatternLibraryError',
    'ExtractionError',
    'UnknownFieldError',
]
