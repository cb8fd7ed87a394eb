"""
Field length and presence checks.

Two entry points: ``length_warning`` is the
non-blocking check used while a form is being filled in, and
``validate_length`` is the blocking check applied when a domain object
is built or saved.
"""

from typing import Optional

from clinicrecords.errors import ValidationFailure


def exceeds_max_length(value: Optional[str], max_length: Optional[int]) -> bool:
    """True when *value* is longer than *max_length* (no limit when None)."""
    if value is None or max_length is None:
        return False
    return len(value) > max_length


def length_warning(value: Optional[str], max_length: Optional[int]) -> Optional[str]:
    """Return a warning message for an over-long value, or None when it fits."""
    if exceeds_max_length(value, max_length):
        return f"Text exceeds maximum length of {max_length} characters"
    return None


def validate_length(value: Optional[str], max_length: int, field_label: str) -> Optional[str]:
    """Return *value* unchanged, or raise ValidationFailure when it is too long."""
    if exceeds_max_length(value, max_length):
        raise ValidationFailure(
            f"{field_label} exceeds maximum length of {max_length} characters"
        )
    return value


def require_value(value, field_label: str):
    """Raise ValidationFailure when *value* is None or a blank string."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationFailure(f"{field_label} cannot be empty")
    return value
