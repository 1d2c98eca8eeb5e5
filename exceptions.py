"""Custom exceptions for Swiss Ephemeris API."""


class SwissEphAPIException(Exception):
    """Base exception for all API errors."""
    pass


class ChartCalculationError(SwissEphAPIException):
    """Raised when chart calculation fails."""
    pass


class ExternalCalculatorError(ChartCalculationError):
    """Raised when swetest fails or returns output with no usable structure."""

    def __init__(self, message: str, reason: str | None = None):
        super().__init__(message)
        self.reason = reason


class InvalidTimestampError(SwissEphAPIException):
    """Raised when a datetime string cannot be parsed into a UTC instant."""
    pass


class InvalidCoordinatesError(SwissEphAPIException):
    """Raised when coordinates are invalid."""
    pass
