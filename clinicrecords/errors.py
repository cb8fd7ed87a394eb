"""
Exception hierarchy shared by the mappers, services and front ends.

A lookup that finds nothing is not an error: it returns ``None``.
"""


class ClinicRecordsError(Exception):
    """Base exception for application errors."""

    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message)
        self.original_error = original_error

    @property
    def root_cause(self) -> Exception:
        """Innermost exception in the ``original_error`` chain (self if none)."""
        err = self
        while isinstance(err, ClinicRecordsError) and err.original_error is not None:
            err = err.original_error
        return err


class ValidationFailure(ClinicRecordsError, ValueError):
    """Raised when caller-supplied data violates a precondition."""
    pass


class StorageFailure(ClinicRecordsError):
    """Raised when a database round-trip fails."""
    pass


class ServiceFailure(ClinicRecordsError):
    """Raised by a service when a write could not be persisted."""
    pass
