"""
Domain dataclasses used across the application.

Doctor and Patient each have one extended variant.  Both variants of a
hierarchy live in the same table; the extension column doubles as the
discriminator (see ``clinicrecords.mappers``).
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass
class Doctor:
    """A doctor record. ``hospital`` is the doctor's affiliation."""
    doctor_id: str
    first_name: Optional[str]
    surname: Optional[str]
    address: Optional[str]
    email: Optional[str]
    hospital: Optional[str]


@dataclass
class Specialist(Doctor):
    """A doctor with a specialization."""
    specialization: str


@dataclass
class Patient:
    """A patient record."""
    patient_id: str
    first_name: Optional[str]
    surname: Optional[str]
    postcode: Optional[str]
    address: Optional[str]
    phone: Optional[str]
    email: Optional[str]


@dataclass
class InsuredPatient(Patient):
    """A patient covered by an insurer."""
    insurance_id: str


@dataclass
class Insurance:
    insurance_id: str
    company: Optional[str]
    address: Optional[str]
    phone: Optional[str]


@dataclass
class Drug:
    drug_id: str
    name: Optional[str]
    side_effects: Optional[str]
    benefits: Optional[str]


@dataclass
class Prescription:
    prescription_id: str
    date_prescribed: date
    dosage: int
    duration: int              # days
    comment: Optional[str]
    drug_id: str
    doctor_id: str
    patient_id: str


@dataclass
class Visit:
    """A visit, identified by (patient_id, doctor_id, date_of_visit)."""
    patient_id: str
    doctor_id: str
    date_of_visit: date
    symptoms: Optional[str]
    diagnosis: Optional[str]
