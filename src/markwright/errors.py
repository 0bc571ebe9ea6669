"""markwright exception hierarchy.

Keep this module small and dependency-free: it is imported broadly across the
project and by tests. The transform itself never raises for malformed markup;
these errors belong to the configuration and file-handling layers.
"""


class MarkwrightError(Exception):
    """Base exception for all markwright errors."""


class MarkwrightConfigError(MarkwrightError):
    """Raised for invalid user configuration."""


class MarkwrightInputError(MarkwrightError):
    """Raised when an input document cannot be read or decoded."""
