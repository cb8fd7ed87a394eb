"""
Per-entity screens, independent of any UI toolkit.

A screen knows how to show its entity as a table, which form fields edit
it, how to turn submitted form data back into a domain object, and which
fields can be filtered.  The CLI and the REST API both drive these.
"""

from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

import pandas as pd

from clinicrecords import config
from clinicrecords.errors import ValidationFailure
from clinicrecords.fields import FieldDescriptor, checkbox, filter_fields, label_for, text_field
from clinicrecords.filtering import filter_items
from clinicrecords.forms import Form, FormBuilder, build_filter_form, decode_form
from clinicrecords.models import (
    Doctor, Drug, Insurance, InsuredPatient, Patient, Prescription, Specialist, Visit,
)
from clinicrecords.validation import require_value, validate_length


# ── Decoding helpers ─────────────────────────────────────────────────

def _text(data: Dict[str, Any], name: str) -> Optional[str]:
    """Trimmed text value; blank becomes None (absent)."""
    value = data[name]
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _int(data: Dict[str, Any], name: str) -> int:
    value = _text(data, name)
    require_value(value, label_for(name))
    try:
        return int(value)
    except ValueError:
        raise ValidationFailure(f"{label_for(name)} must be a whole number") from None


def _date(data: Dict[str, Any], name: str) -> date:
    value = data[name]
    if isinstance(value, date):
        return value
    value = _text(data, name)
    require_value(value, label_for(name))
    try:
        return datetime.strptime(value, config.DATE_FORMAT).date()
    except ValueError:
        raise ValidationFailure(
            f"{label_for(name)} must be a date in YYYY-MM-DD format"
        ) from None


def _fmt_date(value: Optional[date]) -> str:
    return value.strftime(config.DATE_FORMAT) if value else ""


class Screen:
    """Behaviour shared by every entity screen."""

    name = ""                   # plural key, e.g. "doctors"
    title = ""                  # singular display name
    columns: List[str] = []
    filter_names: List[str] = []

    def __init__(self, service):
        self.service = service

    # ── Table ────────────────────────────────────────────────────────

    def row(self, item) -> List[Any]:
        raise NotImplementedError

    def table(self, items) -> pd.DataFrame:
        return pd.DataFrame([self.row(i) for i in items], columns=self.columns)

    def load(self) -> list:
        return self.service.get_all()

    # ── Keys ─────────────────────────────────────────────────────────

    def key_of(self, item) -> Tuple[Any, ...]:
        return self.service.key_of(item)

    def parse_key(self, parts: List[str]) -> Tuple[Any, ...]:
        """Turn path/command segments into a key tuple."""
        if len(parts) != len(self.service.key_labels):
            raise ValidationFailure(
                f"{self.title} is identified by {', '.join(self.service.key_labels)}"
            )
        return tuple(parts)

    def get(self, key: Tuple[Any, ...]):
        return self.service.get_by_id(*key)

    # ── Forms ────────────────────────────────────────────────────────

    def form_fields(self, existing=None) -> List[FieldDescriptor]:
        raise NotImplementedError

    def form_names(self) -> List[str]:
        return [f.name for f in self.form_fields()]

    def from_form(self, data: Dict[str, Any]):
        """Build a domain object from collected form data."""
        raise NotImplementedError

    def _checked(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Reject mismatched keys, then enforce every length limit."""
        decode_form(data, self.form_names())
        for f in self.form_fields():
            if f.max_length is not None and isinstance(data[f.name], str):
                validate_length(data[f.name].strip(), f.max_length, label_for(f.name))
        return data

    def edit_form(self, existing=None, on_saved: Optional[Callable[[Any], None]] = None) -> Form:
        """Add form (existing is None) or edit form with the key fields read-only."""
        verb = "Add" if existing is None else "Edit"

        def save(data):
            entity = self.save(data, existing)
            if on_saved:
                on_saved(entity)

        return FormBuilder(f"{verb} {self.title}").add_fields(self.form_fields(existing)).build(save)

    def save(self, data: Dict[str, Any], existing=None):
        entity = self.from_form(data)
        if existing is None:
            self.service.add(entity)
        else:
            if self.key_of(entity) != self.key_of(existing):
                raise ValidationFailure(f"{self.title} identifier cannot be changed")
            self.service.update(entity)
        return entity

    def delete(self, item) -> None:
        self.service.delete(*self.key_of(item))

    # ── Filtering ────────────────────────────────────────────────────

    @property
    def accessors(self) -> Dict[str, Callable[[Any], Any]]:
        raise NotImplementedError

    def filter_form(self, on_filter: Callable[[Dict[str, str]], None]) -> Form:
        return build_filter_form("Advanced Filter", filter_fields(*self.filter_names), on_filter)

    def apply_filters(self, criteria: Dict[str, str]) -> list:
        return filter_items(self.load(), criteria, self.accessors)


def doctor_details_form(doctor: Doctor, title: str = "Doctor Details") -> Form:
    """Read-only view of a doctor; the specialization row only for specialists."""
    builder = FormBuilder(title)
    for name in ("doctor_id", "first_name", "surname", "address", "email", "hospital"):
        builder.add_field(text_field(label_for(name), name, getattr(doctor, name), read_only=True))
    if isinstance(doctor, Specialist):
        builder.add_field(
            text_field("Specialization", "specialization", doctor.specialization, read_only=True)
        )
    return builder.build(lambda data: None, save_label="Close")


class DoctorScreen(Screen):
    name = "doctors"
    title = "Doctor"
    columns = ["Doctor ID", "First Name", "Surname", "Address", "Email", "Hospital",
               "Specialization"]
    filter_names = ["doctor_id", "first_name", "surname", "address", "email", "hospital",
                    "specialization"]

    def row(self, d):
        spec = d.specialization if isinstance(d, Specialist) else ""
        return [d.doctor_id, d.first_name, d.surname, d.address, d.email, d.hospital, spec]

    def form_fields(self, existing=None):
        e = existing
        is_specialist = isinstance(e, Specialist)
        return [
            text_field("Doctor ID", "doctor_id", e.doctor_id if e else "",
                       config.DOCTOR_ID_MAX_LENGTH, read_only=e is not None),
            text_field("First Name", "first_name", e.first_name if e else "",
                       config.DOCTOR_FIRSTNAME_MAX_LENGTH),
            text_field("Surname", "surname", e.surname if e else "",
                       config.DOCTOR_SURNAME_MAX_LENGTH),
            text_field("Address", "address", e.address if e else "",
                       config.DOCTOR_ADDRESS_MAX_LENGTH),
            text_field("Email", "email", e.email if e else "", config.DOCTOR_EMAIL_MAX_LENGTH),
            text_field("Hospital", "hospital", e.hospital if e else "",
                       config.DOCTOR_HOSPITAL_MAX_LENGTH),
            checkbox("Is Specialist", "is_specialist", is_specialist),
            text_field("Specialization", "specialization",
                       e.specialization if is_specialist else "",
                       config.SPECIALIZATION_MAX_LENGTH),
        ]

    def _checked(self, data):
        if not data.get("is_specialist") and "specialization" in data:
            # the specialization box is disabled for plain doctors
            data = dict(data, specialization="")
        return super()._checked(data)

    def from_form(self, data):
        data = self._checked(data)
        doctor_id = require_value(_text(data, "doctor_id"), "Doctor ID")
        base = dict(
            doctor_id=doctor_id,
            first_name=_text(data, "first_name"),
            surname=_text(data, "surname"),
            address=_text(data, "address"),
            email=_text(data, "email"),
            hospital=_text(data, "hospital"),
        )
        if data["is_specialist"]:
            specialization = _text(data, "specialization")
            if specialization is None:
                raise ValidationFailure("Specialization cannot be empty for specialists")
            return Specialist(**base, specialization=specialization)
        return Doctor(**base)

    @property
    def accessors(self):
        return {
            "doctor_id": lambda d: d.doctor_id,
            "first_name": lambda d: d.first_name,
            "surname": lambda d: d.surname,
            "address": lambda d: d.address,
            "email": lambda d: d.email,
            "hospital": lambda d: d.hospital,
            "specialization": lambda d: d.specialization if isinstance(d, Specialist) else None,
        }


class PatientScreen(Screen):
    name = "patients"
    title = "Patient"
    columns = ["Patient ID", "First Name", "Surname", "Postcode", "Address", "Phone", "Email",
               "Insurance ID"]
    filter_names = ["patient_id", "first_name", "surname", "postcode", "address", "phone",
                    "email", "insurance_id"]

    def __init__(self, service, visit_service=None, doctor_service=None):
        super().__init__(service)
        self.visit_service = visit_service
        self.doctor_service = doctor_service

    def row(self, p):
        ins = p.insurance_id if isinstance(p, InsuredPatient) else ""
        return [p.patient_id, p.first_name, p.surname, p.postcode, p.address, p.phone, p.email,
                ins]

    def form_fields(self, existing=None):
        e = existing
        is_insured = isinstance(e, InsuredPatient)
        return [
            text_field("Patient ID", "patient_id", e.patient_id if e else "",
                       config.PATIENT_ID_MAX_LENGTH, read_only=e is not None),
            text_field("First Name", "first_name", e.first_name if e else "",
                       config.PATIENT_FIRSTNAME_MAX_LENGTH),
            text_field("Surname", "surname", e.surname if e else "",
                       config.PATIENT_SURNAME_MAX_LENGTH),
            text_field("Postcode", "postcode", e.postcode if e else "",
                       config.PATIENT_POSTCODE_MAX_LENGTH),
            text_field("Address", "address", e.address if e else "",
                       config.PATIENT_ADDRESS_MAX_LENGTH),
            text_field("Phone", "phone", e.phone if e else "", config.PATIENT_PHONE_MAX_LENGTH),
            text_field("Email", "email", e.email if e else "", config.PATIENT_EMAIL_MAX_LENGTH),
            checkbox("Is Insured", "is_insured", is_insured),
            text_field("Insurance ID", "insurance_id", e.insurance_id if is_insured else "",
                       config.INSURANCE_ID_MAX_LENGTH),
        ]

    def _checked(self, data):
        if not data.get("is_insured") and "insurance_id" in data:
            data = dict(data, insurance_id="")
        return super()._checked(data)

    def from_form(self, data):
        data = self._checked(data)
        patient_id = require_value(_text(data, "patient_id"), "Patient ID")
        base = dict(
            patient_id=patient_id,
            first_name=_text(data, "first_name"),
            surname=_text(data, "surname"),
            postcode=_text(data, "postcode"),
            address=_text(data, "address"),
            phone=_text(data, "phone"),
            email=_text(data, "email"),
        )
        if data["is_insured"]:
            insurance_id = _text(data, "insurance_id")
            if insurance_id is None:
                raise ValidationFailure("Insurance ID cannot be empty for insured patients")
            return InsuredPatient(**base, insurance_id=insurance_id)
        return Patient(**base)

    @property
    def accessors(self):
        return {
            "patient_id": lambda p: p.patient_id,
            "first_name": lambda p: p.first_name,
            "surname": lambda p: p.surname,
            "postcode": lambda p: p.postcode,
            "address": lambda p: p.address,
            "phone": lambda p: p.phone,
            "email": lambda p: p.email,
            "insurance_id": lambda p: p.insurance_id if isinstance(p, InsuredPatient) else None,
        }

    def primary_doctor(self, patient_id: str) -> Optional[Doctor]:
        """The doctor the patient visits most, or None (no visits or doctor gone)."""
        if self.visit_service is None or self.doctor_service is None:
            raise RuntimeError("Primary doctor lookup needs the visit and doctor services")
        doctor_id = self.visit_service.primary_doctor_id(patient_id)
        if doctor_id is None:
            return None
        return self.doctor_service.get_by_id(doctor_id)


class InsuranceScreen(Screen):
    name = "insurances"
    title = "Insurance"
    columns = ["Insurance ID", "Company", "Address", "Phone"]
    filter_names = ["insurance_id", "company", "address", "phone"]

    def row(self, i):
        return [i.insurance_id, i.company, i.address, i.phone]

    def form_fields(self, existing=None):
        e = existing
        return [
            text_field("Insurance ID", "insurance_id", e.insurance_id if e else "",
                       config.INSURANCE_ID_MAX_LENGTH, read_only=e is not None),
            text_field("Company", "company", e.company if e else "",
                       config.INSURANCE_COMPANY_MAX_LENGTH),
            text_field("Address", "address", e.address if e else "",
                       config.INSURANCE_ADDRESS_MAX_LENGTH),
            text_field("Phone", "phone", e.phone if e else "", config.INSURANCE_PHONE_MAX_LENGTH),
        ]

    def from_form(self, data):
        data = self._checked(data)
        return Insurance(
            insurance_id=require_value(_text(data, "insurance_id"), "Insurance ID"),
            company=_text(data, "company"),
            address=_text(data, "address"),
            phone=_text(data, "phone"),
        )

    @property
    def accessors(self):
        return {
            "insurance_id": lambda i: i.insurance_id,
            "company": lambda i: i.company,
            "address": lambda i: i.address,
            "phone": lambda i: i.phone,
        }


class DrugScreen(Screen):
    name = "drugs"
    title = "Drug"
    columns = ["Drug ID", "Name", "Side Effects", "Benefits"]
    filter_names = ["drug_id", "name", "side_effects", "benefits"]

    def row(self, d):
        return [d.drug_id, d.name, d.side_effects, d.benefits]

    def form_fields(self, existing=None):
        e = existing
        return [
            text_field("Drug ID", "drug_id", e.drug_id if e else "",
                       config.DRUG_ID_MAX_LENGTH, read_only=e is not None),
            text_field("Name", "name", e.name if e else "", config.DRUG_NAME_MAX_LENGTH),
            text_field("Side Effects", "side_effects", e.side_effects if e else "",
                       config.DRUG_SIDE_EFFECTS_MAX_LENGTH),
            text_field("Benefits", "benefits", e.benefits if e else "",
                       config.DRUG_BENEFITS_MAX_LENGTH),
        ]

    def from_form(self, data):
        data = self._checked(data)
        return Drug(
            drug_id=require_value(_text(data, "drug_id"), "Drug ID"),
            name=_text(data, "name"),
            side_effects=_text(data, "side_effects"),
            benefits=_text(data, "benefits"),
        )

    @property
    def accessors(self):
        return {
            "drug_id": lambda d: d.drug_id,
            "name": lambda d: d.name,
            "side_effects": lambda d: d.side_effects,
            "benefits": lambda d: d.benefits,
        }


class PrescriptionScreen(Screen):
    name = "prescriptions"
    title = "Prescription"
    columns = ["Prescription ID", "Date", "Drug ID", "Doctor ID", "Patient ID", "Dosage",
               "Duration", "Comment"]
    filter_names = ["prescription_id", "date_prescribed", "drug_id", "doctor_id", "patient_id",
                    "dosage", "duration", "comment"]

    def row(self, p):
        return [p.prescription_id, _fmt_date(p.date_prescribed), p.drug_id, p.doctor_id,
                p.patient_id, p.dosage, p.duration, p.comment]

    def form_fields(self, existing=None):
        e = existing
        return [
            text_field("Prescription ID", "prescription_id", e.prescription_id if e else "",
                       config.PRESCRIPTION_ID_MAX_LENGTH, read_only=e is not None),
            text_field("Date Prescribed (YYYY-MM-DD)", "date_prescribed",
                       _fmt_date(e.date_prescribed) if e else date.today().isoformat()),
            text_field("Drug ID", "drug_id", e.drug_id if e else "",
                       config.PRESCRIPTION_DRUG_ID_MAX_LENGTH),
            text_field("Doctor ID", "doctor_id", e.doctor_id if e else "",
                       config.PRESCRIPTION_DOCTOR_ID_MAX_LENGTH),
            text_field("Patient ID", "patient_id", e.patient_id if e else "",
                       config.PRESCRIPTION_PATIENT_ID_MAX_LENGTH),
            text_field("Dosage", "dosage", e.dosage if e else ""),
            text_field("Duration (days)", "duration", e.duration if e else ""),
            text_field("Comment", "comment", e.comment if e else "",
                       config.PRESCRIPTION_COMMENT_MAX_LENGTH),
        ]

    def from_form(self, data):
        data = self._checked(data)
        return Prescription(
            prescription_id=require_value(_text(data, "prescription_id"), "Prescription ID"),
            date_prescribed=_date(data, "date_prescribed"),
            dosage=_int(data, "dosage"),
            duration=_int(data, "duration"),
            comment=_text(data, "comment"),
            drug_id=require_value(_text(data, "drug_id"), "Drug ID"),
            doctor_id=require_value(_text(data, "doctor_id"), "Doctor ID"),
            patient_id=require_value(_text(data, "patient_id"), "Patient ID"),
        )

    @property
    def accessors(self):
        return {
            "prescription_id": lambda p: p.prescription_id,
            "date_prescribed": lambda p: _fmt_date(p.date_prescribed),
            "drug_id": lambda p: p.drug_id,
            "doctor_id": lambda p: p.doctor_id,
            "patient_id": lambda p: p.patient_id,
            "dosage": lambda p: str(p.dosage),
            "duration": lambda p: str(p.duration),
            "comment": lambda p: p.comment,
        }


class VisitScreen(Screen):
    name = "visits"
    title = "Visit"
    columns = ["Date of Visit", "Patient ID", "Doctor ID", "Symptoms", "Diagnosis"]
    filter_names = ["date_of_visit", "patient_id", "doctor_id", "symptoms", "diagnosis"]

    def row(self, v):
        return [_fmt_date(v.date_of_visit), v.patient_id, v.doctor_id, v.symptoms, v.diagnosis]

    def parse_key(self, parts):
        patient_id, doctor_id, visit_date = super().parse_key(parts)
        return patient_id, doctor_id, _date({"date_of_visit": visit_date}, "date_of_visit")

    def form_fields(self, existing=None):
        e = existing
        locked = e is not None
        return [
            text_field("Patient ID", "patient_id", e.patient_id if e else "",
                       config.VISIT_PATIENT_ID_MAX_LENGTH, read_only=locked),
            text_field("Doctor ID", "doctor_id", e.doctor_id if e else "",
                       config.VISIT_DOCTOR_ID_MAX_LENGTH, read_only=locked),
            text_field("Date of Visit (YYYY-MM-DD)", "date_of_visit",
                       _fmt_date(e.date_of_visit) if e else date.today().isoformat(),
                       read_only=locked),
            text_field("Symptoms", "symptoms", e.symptoms if e else "",
                       config.VISIT_SYMPTOMS_MAX_LENGTH),
            text_field("Diagnosis", "diagnosis", e.diagnosis if e else "",
                       config.VISIT_DIAGNOSIS_MAX_LENGTH),
        ]

    def from_form(self, data):
        data = self._checked(data)
        return Visit(
            patient_id=require_value(_text(data, "patient_id"), "Patient ID"),
            doctor_id=require_value(_text(data, "doctor_id"), "Doctor ID"),
            date_of_visit=_date(data, "date_of_visit"),
            symptoms=_text(data, "symptoms"),
            diagnosis=_text(data, "diagnosis"),
        )

    @property
    def accessors(self):
        return {
            "date_of_visit": lambda v: _fmt_date(v.date_of_visit),
            "patient_id": lambda v: v.patient_id,
            "doctor_id": lambda v: v.doctor_id,
            "symptoms": lambda v: v.symptoms,
            "diagnosis": lambda v: v.diagnosis,
        }


def build_screens(services: dict) -> Dict[str, Screen]:
    """Screens keyed by plural entity name, wired to the given services."""
    screens = [
        DoctorScreen(services["doctors"]),
        PatientScreen(services["patients"], services["visits"], services["doctors"]),
        InsuranceScreen(services["insurances"]),
        DrugScreen(services["drugs"]),
        PrescriptionScreen(services["prescriptions"]),
        VisitScreen(services["visits"]),
    ]
    return {s.name: s for s in screens}
