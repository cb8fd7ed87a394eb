"""
Unit tests for field descriptors and the form engine.
"""

from dataclasses import FrozenInstanceError

import pytest

from clinicrecords.errors import ValidationFailure
from clinicrecords.fields import (
    CHECKBOX, FieldDescriptor, checkbox, filter_fields, label_for, limit_label, text_field,
)
from clinicrecords.forms import FormBuilder, build_filter_form, decode_form


class Recorder:
    """Save callback that remembers what it was given."""
    def __init__(self, error=None):
        self.calls = []
        self.error = error

    def __call__(self, data):
        self.calls.append(data)
        if self.error:
            raise self.error


# ── Tests: field descriptors ─────────────────────────────────────────

def test_label_for_converts_snake_case():
    assert label_for("first_name") == "First Name"
    assert label_for("date_of_visit") == "Date Of Visit"
    assert label_for("email") == "Email"


def test_limit_label():
    assert limit_label("Surname", 50) == "Surname (max 50 chars)"
    assert limit_label("Dosage", None) == "Dosage"


def test_text_field_defaults():
    f = text_field("Surname", "surname", max_length=50)
    assert f.label == "Surname (max 50 chars)"
    assert f.default_value() == ""
    assert not f.read_only


def test_text_field_initial_is_stringified():
    assert text_field("Dosage", "dosage", 5).default_value() == "5"


def test_checkbox_default_value_is_bool():
    f = checkbox("Is Specialist", "is_specialist", True)
    assert f.kind == CHECKBOX
    assert f.default_value() is True


def test_filter_fields_derive_labels():
    fields = filter_fields("doctor_id", "first_name")
    assert [(f.label, f.name) for f in fields] == [("Doctor Id", "doctor_id"),
                                                    ("First Name", "first_name")]


def test_descriptor_is_immutable():
    f = FieldDescriptor(label="A", name="a")
    with pytest.raises(FrozenInstanceError):
        f.name = "b"


# ── Tests: FormBuilder ───────────────────────────────────────────────

def test_build_requires_save_action():
    with pytest.raises(ValueError, match="Save action must be defined"):
        FormBuilder("Add Doctor").add_text_field("First Name", "first_name").build()


def test_duplicate_field_names_rejected():
    builder = FormBuilder("Add Doctor").add_text_field("First Name", "first_name")
    with pytest.raises(ValueError, match="Duplicate field name 'first_name'"):
        builder.add_text_field("Again", "first_name")


def test_fields_keep_declaration_order():
    form = (
        FormBuilder("Add Doctor")
        .add_text_field("Doctor ID", "doctor_id")
        .add_text_field("Surname", "surname")
        .add_checkbox("Is Specialist", "is_specialist")
        .on_save(Recorder())
        .build()
    )
    assert [f.name for f in form.fields] == ["doctor_id", "surname", "is_specialist"]


# ── Tests: Form ──────────────────────────────────────────────────────

def test_submit_passes_values_by_name():
    saved = Recorder()
    form = FormBuilder("Add Doctor").add_text_field("First Name", "first_name").build(saved)
    form.set_value("first_name", "Ada")
    data = form.submit()
    assert saved.calls == [{"first_name": "Ada"}]
    assert data == {"first_name": "Ada"}
    assert form.closed


def test_collect_trims_text_and_casts_checkboxes():
    saved = Recorder()
    form = (
        FormBuilder("Add Patient")
        .add_text_field("Surname", "surname", initial="  Smith ")
        .add_checkbox("Is Insured", "is_insured")
        .build(saved)
    )
    form.set_value("is_insured", 1)
    form.submit()
    assert saved.calls == [{"surname": "Smith", "is_insured": True}]


def test_cancel_never_calls_save():
    saved = Recorder()
    form = FormBuilder("Add Doctor").add_text_field("First Name", "first_name").build(saved)
    form.set_value("first_name", "Ada")
    form.cancel()
    assert form.closed
    assert saved.calls == []


def test_length_warning_does_not_block_submit():
    saved = Recorder()
    form = FormBuilder("Add").add_text_field("Code", "code", max_length=3).build(saved)
    form.set_value("code", "ABCDEF")
    assert form.warnings() == {"code": "Text exceeds maximum length of 3 characters"}
    form.submit()
    assert saved.calls == [{"code": "ABCDEF"}]


def test_failed_save_keeps_form_open():
    saved = Recorder(error=ValidationFailure("Doctor ID cannot be empty"))
    form = FormBuilder("Add Doctor").add_text_field("Doctor ID", "doctor_id").build(saved)
    with pytest.raises(ValidationFailure):
        form.submit()
    assert not form.closed

    # the user corrects the value and tries again
    saved.error = None
    form.set_value("doctor_id", "D1")
    form.submit()
    assert form.closed


def test_submit_after_close_raises():
    form = FormBuilder("Add").add_text_field("Code", "code").build(Recorder())
    form.submit()
    with pytest.raises(RuntimeError):
        form.submit()


def test_read_only_field_rejects_changes():
    form = (
        FormBuilder("Edit Doctor")
        .add_field(text_field("Doctor ID", "doctor_id", "D1", read_only=True))
        .build(Recorder())
    )
    with pytest.raises(ValueError, match="read-only"):
        form.set_value("doctor_id", "D2")
    assert form.get_value("doctor_id") == "D1"


def test_unknown_field_raises_key_error():
    form = FormBuilder("Add").add_text_field("Code", "code").build(Recorder())
    with pytest.raises(KeyError):
        form.set_value("nope", "x")


# ── Tests: filter form ───────────────────────────────────────────────

def test_filter_form_passes_only_non_blank_criteria():
    seen = Recorder()
    form = build_filter_form("Advanced Filter", filter_fields("surname", "email"), seen)
    form.set_value("surname", " smi ")
    form.submit()
    assert seen.calls == [{"surname": "smi"}]
    assert form.save_label == "Filter"


# ── Tests: decode_form ───────────────────────────────────────────────

def test_decode_form_accepts_exact_keys():
    data = {"a": "1", "b": "2"}
    assert decode_form(data, ["a", "b"]) is data


def test_decode_form_rejects_missing_keys():
    with pytest.raises(ValidationFailure, match="Missing form fields: b"):
        decode_form({"a": "1"}, ["a", "b"])


def test_decode_form_rejects_unknown_keys():
    with pytest.raises(ValidationFailure, match="Unknown form fields: zzz"):
        decode_form({"a": "1", "zzz": "x"}, ["a"])
