"""
Field descriptors: the declarative unit behind both forms and filters.
"""

from dataclasses import dataclass
from typing import Any, List, Optional

TEXT = "text"
CHECKBOX = "checkbox"


@dataclass(frozen=True)
class FieldDescriptor:
    """One editable or filterable attribute of an entity."""
    label: str
    name: str                       # key in collected form data
    max_length: Optional[int] = None
    initial: Any = None
    kind: str = TEXT                # TEXT or CHECKBOX
    read_only: bool = False

    def default_value(self):
        """Value the field holds before the user touches it."""
        if self.kind == CHECKBOX:
            return bool(self.initial)
        return "" if self.initial is None else str(self.initial)


def label_for(name: str) -> str:
    """'first_name' -> 'First Name'."""
    return " ".join(part.capitalize() for part in name.split("_") if part)


def limit_label(label: str, max_length: Optional[int]) -> str:
    """Append the length limit to a label, e.g. 'Surname (max 50 chars)'."""
    if max_length is None:
        return label
    return f"{label} (max {max_length} chars)"


def text_field(label: str, name: str, initial: Any = None,
               max_length: Optional[int] = None, read_only: bool = False) -> FieldDescriptor:
    return FieldDescriptor(
        label=limit_label(label, max_length), name=name, max_length=max_length,
        initial=initial, kind=TEXT, read_only=read_only,
    )


def checkbox(label: str, name: str, selected: bool = False) -> FieldDescriptor:
    return FieldDescriptor(label=label, name=name, initial=selected, kind=CHECKBOX)


def filter_fields(*names: str) -> List[FieldDescriptor]:
    """Plain text descriptors for a filter form, labels derived from names."""
    return [FieldDescriptor(label=label_for(n), name=n) for n in names]
