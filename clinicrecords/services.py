"""
Entity services: validation in front of the mappers and the error policy.

Writes (add/update/delete) raise ``ServiceFailure`` wrapping the storage
error.  Reads (get_all/get_by_id and the lookups) print the error and
return an empty list or ``None`` instead.
"""

import sys
from typing import Any, List, Optional, Sequence, Tuple

from clinicrecords import config
from clinicrecords.errors import ServiceFailure, StorageFailure, ValidationFailure
from clinicrecords.mappers import (
    DoctorMapper, DrugMapper, InsuranceMapper, PatientMapper, PrescriptionMapper, VisitMapper,
)
from clinicrecords.models import Drug, InsuredPatient, Specialist
from clinicrecords.validation import require_value, validate_length

LengthRule = Tuple[str, Optional[str], int]   # (label, value, max length)


class EntityService:
    """CRUD orchestration shared by every entity."""

    entity_name = "entity"
    key_labels: Sequence[str] = ("ID",)

    def __init__(self, mapper, check_unique: bool = True):
        self.mapper = mapper
        self.check_unique = check_unique

    # ── Hooks ────────────────────────────────────────────────────────

    def key_of(self, entity) -> Tuple[Any, ...]:
        raise NotImplementedError

    def length_rules(self, entity) -> List[LengthRule]:
        return []

    def validate(self, entity) -> None:
        """Save-time checks; raises ValidationFailure."""
        for label, value, max_length in self.length_rules(entity):
            validate_length(value, max_length, label)

    def duplicate_message(self, key: Tuple[Any, ...]) -> str:
        return f"{self.title} ID already exists: {self._key_text(key)}"

    # ── Helpers ──────────────────────────────────────────────────────

    @property
    def title(self) -> str:
        return self.entity_name.capitalize()

    @staticmethod
    def _key_text(key: Tuple[Any, ...]) -> str:
        return ", ".join(str(k) for k in key)

    def _require_key(self, key: Tuple[Any, ...]) -> None:
        if len(key) != len(self.key_labels):
            raise ValidationFailure(
                f"{self.title} is identified by {', '.join(self.key_labels)}"
            )
        for label, value in zip(self.key_labels, key):
            require_value(value, label)

    def _require_entity(self, entity) -> Tuple[Any, ...]:
        if entity is None:
            raise ValidationFailure(f"{self.title} cannot be null")
        key = self.key_of(entity)
        self._require_key(key)
        self.validate(entity)
        return key

    def _log_error(self, action: str, detail: str, err: Exception) -> None:
        where = f": {detail}" if detail else ""
        print(f"[ERROR] Error {action} {self.entity_name}{where}: {err}", file=sys.stderr)

    def _log_ok(self, verb: str, key: Tuple[Any, ...]) -> None:
        print(f"[{self.entity_name}] {self.title} {verb} successfully: {self._key_text(key)}")

    # ── CRUD ─────────────────────────────────────────────────────────

    def add(self, entity) -> None:
        key = self._require_entity(entity)
        if self.check_unique and self.get_by_id(*key) is not None:
            raise ValidationFailure(self.duplicate_message(key))
        try:
            self.mapper.insert(entity)
        except StorageFailure as e:
            self._log_error("adding", self._key_text(key), e)
            raise ServiceFailure(f"Failed to add {self.entity_name}: {e}", e) from e
        self._log_ok("added", key)

    def get_all(self) -> list:
        try:
            return self.mapper.load_all()
        except StorageFailure as e:
            self._log_error("fetching", "", e)
            return []

    def get_by_id(self, *key):
        self._require_key(key)
        try:
            return self.mapper.load_by_id(*key)
        except StorageFailure as e:
            self._log_error("fetching", self._key_text(key), e)
            return None

    def update(self, entity) -> None:
        key = self._require_entity(entity)
        try:
            self.mapper.update(entity)
        except StorageFailure as e:
            self._log_error("updating", self._key_text(key), e)
            raise ServiceFailure(f"Failed to update {self.entity_name}: {e}", e) from e
        self._log_ok("updated", key)

    def delete(self, *key) -> None:
        self._require_key(key)
        try:
            self.mapper.delete(*key)
        except StorageFailure as e:
            self._log_error("deleting", self._key_text(key), e)
            raise ServiceFailure(f"Failed to delete {self.entity_name}: {e}", e) from e
        self._log_ok("deleted", key)


class DoctorService(EntityService):
    entity_name = "doctor"
    key_labels = ("Doctor ID",)

    def key_of(self, doctor):
        return (doctor.doctor_id,)

    def length_rules(self, doctor):
        rules = [
            ("Doctor ID", doctor.doctor_id, config.DOCTOR_ID_MAX_LENGTH),
            ("First name", doctor.first_name, config.DOCTOR_FIRSTNAME_MAX_LENGTH),
            ("Surname", doctor.surname, config.DOCTOR_SURNAME_MAX_LENGTH),
            ("Address", doctor.address, config.DOCTOR_ADDRESS_MAX_LENGTH),
            ("Email", doctor.email, config.DOCTOR_EMAIL_MAX_LENGTH),
            ("Hospital", doctor.hospital, config.DOCTOR_HOSPITAL_MAX_LENGTH),
        ]
        if isinstance(doctor, Specialist):
            rules.append(("Specialization", doctor.specialization, config.SPECIALIZATION_MAX_LENGTH))
        return rules

    def validate(self, doctor):
        if isinstance(doctor, Specialist):
            require_value(doctor.specialization, "Specialization")
        super().validate(doctor)


class PatientService(EntityService):
    entity_name = "patient"
    key_labels = ("Patient ID",)

    def key_of(self, patient):
        return (patient.patient_id,)

    def length_rules(self, patient):
        rules = [
            ("Patient ID", patient.patient_id, config.PATIENT_ID_MAX_LENGTH),
            ("First name", patient.first_name, config.PATIENT_FIRSTNAME_MAX_LENGTH),
            ("Surname", patient.surname, config.PATIENT_SURNAME_MAX_LENGTH),
            ("Postcode", patient.postcode, config.PATIENT_POSTCODE_MAX_LENGTH),
            ("Address", patient.address, config.PATIENT_ADDRESS_MAX_LENGTH),
            ("Email", patient.email, config.PATIENT_EMAIL_MAX_LENGTH),
            ("Phone", patient.phone, config.PATIENT_PHONE_MAX_LENGTH),
        ]
        if isinstance(patient, InsuredPatient):
            rules.append(("Insurance ID", patient.insurance_id, config.INSURANCE_ID_MAX_LENGTH))
        return rules

    def validate(self, patient):
        if isinstance(patient, InsuredPatient):
            require_value(patient.insurance_id, "Insurance ID")
        super().validate(patient)

    def duplicate_message(self, key):
        return f"Patient with ID {self._key_text(key)} already exists"


class InsuranceService(EntityService):
    entity_name = "insurance"
    key_labels = ("Insurance ID",)

    def key_of(self, insurance):
        return (insurance.insurance_id,)

    def length_rules(self, insurance):
        return [
            ("Insurance ID", insurance.insurance_id, config.INSURANCE_ID_MAX_LENGTH),
            ("Company name", insurance.company, config.INSURANCE_COMPANY_MAX_LENGTH),
            ("Address", insurance.address, config.INSURANCE_ADDRESS_MAX_LENGTH),
            ("Phone", insurance.phone, config.INSURANCE_PHONE_MAX_LENGTH),
        ]


class DrugService(EntityService):
    entity_name = "drug"
    key_labels = ("Drug ID",)

    def key_of(self, drug):
        return (drug.drug_id,)

    def length_rules(self, drug):
        return [
            ("Drug ID", drug.drug_id, config.DRUG_ID_MAX_LENGTH),
            ("Drug name", drug.name, config.DRUG_NAME_MAX_LENGTH),
            ("Benefits", drug.benefits, config.DRUG_BENEFITS_MAX_LENGTH),
            ("Side effects", drug.side_effects, config.DRUG_SIDE_EFFECTS_MAX_LENGTH),
        ]

    def _search(self, column: str, term: Optional[str], label: str) -> List[Drug]:
        if term is None:
            raise ValidationFailure(f"{label} cannot be null")
        try:
            return self.mapper.search(column, term)
        except StorageFailure as e:
            self._log_error("fetching", f"{label.lower()} '{term}'", e)
            return []

    def find_by_name(self, name: str) -> List[Drug]:
        return self._search("drug_name", name, "Drug name")

    def find_by_side_effects(self, side_effects: str) -> List[Drug]:
        return self._search("side_effects", side_effects, "Side effects")

    def find_by_benefits(self, benefits: str) -> List[Drug]:
        return self._search("benefits", benefits, "Benefits")


class PrescriptionService(EntityService):
    entity_name = "prescription"
    key_labels = ("Prescription ID",)

    def key_of(self, prescription):
        return (prescription.prescription_id,)

    def length_rules(self, p):
        return [
            ("Prescription ID", p.prescription_id, config.PRESCRIPTION_ID_MAX_LENGTH),
            ("Drug ID", p.drug_id, config.PRESCRIPTION_DRUG_ID_MAX_LENGTH),
            ("Doctor ID", p.doctor_id, config.PRESCRIPTION_DOCTOR_ID_MAX_LENGTH),
            ("Patient ID", p.patient_id, config.PRESCRIPTION_PATIENT_ID_MAX_LENGTH),
            ("Comment", p.comment, config.PRESCRIPTION_COMMENT_MAX_LENGTH),
        ]


class VisitService(EntityService):
    entity_name = "visit"
    key_labels = ("Patient ID", "Doctor ID", "Visit date")

    def key_of(self, visit):
        return (visit.patient_id, visit.doctor_id, visit.date_of_visit)

    def length_rules(self, visit):
        return [
            ("Doctor ID", visit.doctor_id, config.VISIT_DOCTOR_ID_MAX_LENGTH),
            ("Patient ID", visit.patient_id, config.VISIT_PATIENT_ID_MAX_LENGTH),
            ("Diagnosis", visit.diagnosis, config.VISIT_DIAGNOSIS_MAX_LENGTH),
            ("Symptoms", visit.symptoms, config.VISIT_SYMPTOMS_MAX_LENGTH),
        ]

    def duplicate_message(self, key):
        patient_id, doctor_id, visit_date = key
        return (
            f"Visit already exists for patient: {patient_id}, "
            f"doctor: {doctor_id}, date: {visit_date}"
        )

    def primary_doctor_id(self, patient_id: str) -> Optional[str]:
        """Doctor the patient has visited most often, or None without visits."""
        require_value(patient_id, "Patient ID")
        try:
            return self.mapper.primary_doctor_id(patient_id)
        except StorageFailure as e:
            self._log_error("fetching primary doctor for", patient_id, e)
            return None


def build_services(engine) -> dict:
    """One service per entity, keyed by the plural name used by the front ends."""
    return {
        "doctors": DoctorService(DoctorMapper(engine)),
        "patients": PatientService(PatientMapper(engine)),
        "insurances": InsuranceService(InsuranceMapper(engine)),
        "drugs": DrugService(DrugMapper(engine)),
        "prescriptions": PrescriptionService(PrescriptionMapper(engine)),
        "visits": VisitService(VisitMapper(engine)),
    }
