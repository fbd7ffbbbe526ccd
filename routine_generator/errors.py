"""
Classified errors surfaced to callers of the routine generator.
"""

UNAUTHENTICATED = "unauthenticated"
INVALID_ARGUMENT = "invalid-argument"
ABORTED = "aborted"
INTERNAL = "internal"

ERROR_CODES = (UNAUTHENTICATED, INVALID_ARGUMENT, ABORTED, INTERNAL)


class RoutineError(Exception):
    """A single classified failure returned to the caller instead of a routine."""

    def __init__(self, code, message, details=None):
        if code not in ERROR_CODES:
            raise ValueError(f"Unknown error code: {code}")
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details

    def to_dict(self):
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self):
        return f"[{self.code}] {self.message}"


class ConfigurationError(RoutineError):
    """Missing credential or unusable configuration value."""

    def __init__(self, message, details=None):
        super().__init__(INTERNAL, message, details)
