"""
Toolkit-independent form engine.

A ``FormBuilder`` collects field descriptors in display order and builds a
``Form``.  The form holds the current value of every field, reports
over-long values as warnings, and on submit hands a ``{name: value}`` dict
to the save callback.  Length warnings never block the submit; enforcing
limits is the job of whoever turns the dict into a domain object.
"""

from typing import Any, Callable, Dict, List, Optional

from clinicrecords.errors import ValidationFailure
from clinicrecords.fields import CHECKBOX, FieldDescriptor, checkbox, text_field
from clinicrecords.filtering import collect_criteria
from clinicrecords.validation import length_warning

SaveAction = Callable[[Dict[str, Any]], None]


class Form:
    """A built form: field values, advisory warnings, submit and cancel."""

    def __init__(self, title: str, fields: List[FieldDescriptor], on_save: SaveAction,
                 save_label: str = "Save", cancel_label: str = "Cancel"):
        self.title = title
        self.fields = list(fields)
        self.save_label = save_label
        self.cancel_label = cancel_label
        self.closed = False
        self._on_save = on_save
        self._by_name = {f.name: f for f in self.fields}
        self._values = {f.name: f.default_value() for f in self.fields}

    def field(self, name: str) -> FieldDescriptor:
        try:
            return self._by_name[name]
        except KeyError:
            raise KeyError(f"Form '{self.title}' has no field '{name}'") from None

    def get_value(self, name: str):
        self.field(name)
        return self._values[name]

    def set_value(self, name: str, value) -> None:
        descriptor = self.field(name)
        if descriptor.read_only:
            raise ValueError(f"Field '{name}' is read-only")
        self._values[name] = value

    def warnings(self) -> Dict[str, str]:
        """Fields whose current value is longer than their limit."""
        out = {}
        for f in self.fields:
            if f.kind == CHECKBOX:
                continue
            msg = length_warning(str(self._values[f.name]), f.max_length)
            if msg:
                out[f.name] = msg
        return out

    def collect(self) -> Dict[str, Any]:
        """Current values keyed by field name: text trimmed, checkboxes as bool."""
        data = {}
        for f in self.fields:
            value = self._values[f.name]
            if f.kind == CHECKBOX:
                data[f.name] = bool(value)
            else:
                data[f.name] = "" if value is None else str(value).strip()
        return data

    def submit(self) -> Dict[str, Any]:
        """Collect the values and pass them to the save callback.

        The form closes only when the callback returns normally; if it
        raises, the exception propagates and the form stays open so the
        user can correct the input.
        """
        if self.closed:
            raise RuntimeError(f"Form '{self.title}' is already closed")
        data = self.collect()
        self._on_save(data)
        self.closed = True
        return data

    def cancel(self) -> None:
        self.closed = True


class FormBuilder:
    """Assemble a form from field descriptors in declaration order."""

    def __init__(self, title: str):
        self.title = title
        self._fields: List[FieldDescriptor] = []
        self._on_save: Optional[SaveAction] = None

    def add_field(self, descriptor: FieldDescriptor) -> "FormBuilder":
        if any(f.name == descriptor.name for f in self._fields):
            raise ValueError(f"Duplicate field name '{descriptor.name}'")
        self._fields.append(descriptor)
        return self

    def add_fields(self, descriptors) -> "FormBuilder":
        for d in descriptors:
            self.add_field(d)
        return self

    def add_text_field(self, label: str, name: str, initial: Any = "",
                       max_length: Optional[int] = None) -> "FormBuilder":
        return self.add_field(text_field(label, name, initial, max_length))

    def add_checkbox(self, label: str, name: str, selected: bool = False) -> "FormBuilder":
        return self.add_field(checkbox(label, name, selected))

    def on_save(self, action: SaveAction) -> "FormBuilder":
        self._on_save = action
        return self

    def build(self, on_save: Optional[SaveAction] = None, save_label: str = "Save",
              cancel_label: str = "Cancel") -> Form:
        action = on_save or self._on_save
        if action is None:
            raise ValueError("Save action must be defined")
        return Form(self.title, self._fields, action, save_label, cancel_label)


def build_filter_form(title: str, fields: List[FieldDescriptor],
                      on_filter: Callable[[Dict[str, str]], None]) -> Form:
    """A form whose submit passes only the non-blank values as filter criteria."""
    return (
        FormBuilder(title)
        .add_fields(fields)
        .build(lambda data: on_filter(collect_criteria(data)), save_label="Filter")
    )


def decode_form(data: Dict[str, Any], expected: List[str]) -> Dict[str, Any]:
    """Check that *data* has exactly the *expected* keys and return it."""
    missing = [k for k in expected if k not in data]
    unknown = sorted(k for k in data if k not in expected)
    if missing:
        raise ValidationFailure(f"Missing form fields: {', '.join(missing)}")
    if unknown:
        raise ValidationFailure(f"Unknown form fields: {', '.join(unknown)}")
    return data
