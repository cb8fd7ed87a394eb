"""
Fill the clinic records database with fake data.

    DB_URI=sqlite:///clinic.db python scripts/seed_data.py
"""

import random
from datetime import date, timedelta

from faker import Faker

from clinicrecords.database import create_schema, init_engine
from clinicrecords.errors import ClinicRecordsError
from clinicrecords.models import (
    Doctor, Drug, Insurance, InsuredPatient, Patient, Prescription, Specialist, Visit,
)
from clinicrecords.services import build_services

# --------------------------------------------------------------------
# CONFIG
# --------------------------------------------------------------------
NUM_DOCTORS = 12
NUM_INSURERS = 4
NUM_PATIENTS = 40
NUM_DRUGS = 15
VISITS_PER_PATIENT = (0, 5)            # min, max
PRESCRIPTIONS_PER_PATIENT = (0, 3)

SPECIALIZATIONS = [
    "Cardiology", "Dermatology", "Neurology", "Oncology", "Paediatrics", "Psychiatry",
]
SYMPTOMS = ["Headache", "Fever", "Cough", "Rash", "Back pain", "Fatigue", "Dizziness"]
DIAGNOSES = ["Migraine", "Influenza", "Bronchitis", "Eczema", "Sprain", "Anaemia"]

# --------------------------------------------------------------------
# SETUP
# --------------------------------------------------------------------
fake = Faker("en_GB")
random.seed(42)
Faker.seed(42)


# --------------------------------------------------------------------
# HELPERS
# --------------------------------------------------------------------
def random_bool(p_true=0.5):
    return random.random() < p_true


def random_date_within(days_back=365):
    return date.today() - timedelta(days=random.randint(0, days_back))


def make_doctors():
    doctors = []
    for i in range(1, NUM_DOCTORS + 1):
        base = dict(
            doctor_id=f"D{i:03d}",
            first_name=fake.first_name(),
            surname=fake.last_name(),
            address=fake.street_address(),
            email=fake.email(),
            hospital=f"{fake.city()} General Hospital",
        )
        if random_bool(0.4):
            doctors.append(Specialist(**base, specialization=random.choice(SPECIALIZATIONS)))
        else:
            doctors.append(Doctor(**base))
    return doctors


def make_insurers():
    return [
        Insurance(
            insurance_id=f"INS{i:02d}",
            company=fake.company(),
            address=fake.street_address(),
            phone=fake.phone_number(),
        )
        for i in range(1, NUM_INSURERS + 1)
    ]


def make_patients(insurers):
    patients = []
    for i in range(1, NUM_PATIENTS + 1):
        base = dict(
            patient_id=f"P{i:03d}",
            first_name=fake.first_name(),
            surname=fake.last_name(),
            postcode=fake.postcode(),
            address=fake.street_address(),
            phone=fake.phone_number(),
            email=fake.email(),
        )
        if random_bool(0.6):
            patients.append(
                InsuredPatient(**base, insurance_id=random.choice(insurers).insurance_id)
            )
        else:
            patients.append(Patient(**base))
    return patients


def make_drugs():
    return [
        Drug(
            drug_id=f"DR{i:03d}",
            name=fake.unique.word().capitalize() + random.choice(["ol", "ine", "amab", "pril"]),
            side_effects=", ".join(fake.words(nb=2)),
            benefits=fake.sentence(nb_words=6),
        )
        for i in range(1, NUM_DRUGS + 1)
    ]


def make_visits(patients, doctors):
    visits = []
    for p in patients:
        seen = set()
        for _ in range(random.randint(*VISITS_PER_PATIENT)):
            doctor = random.choice(doctors)
            day = random_date_within()
            if (doctor.doctor_id, day) in seen:
                continue
            seen.add((doctor.doctor_id, day))
            visits.append(Visit(
                patient_id=p.patient_id,
                doctor_id=doctor.doctor_id,
                date_of_visit=day,
                symptoms=random.choice(SYMPTOMS),
                diagnosis=random.choice(DIAGNOSES),
            ))
    return visits


def make_prescriptions(patients, doctors, drugs):
    prescriptions = []
    n = 0
    for p in patients:
        for _ in range(random.randint(*PRESCRIPTIONS_PER_PATIENT)):
            n += 1
            prescriptions.append(Prescription(
                prescription_id=f"RX{n:04d}",
                date_prescribed=random_date_within(),
                dosage=random.choice([1, 2, 5, 10, 20, 50]),
                duration=random.randint(3, 30),
                comment=fake.sentence(nb_words=5),
                drug_id=random.choice(drugs).drug_id,
                doctor_id=random.choice(doctors).doctor_id,
                patient_id=p.patient_id,
            ))
    return prescriptions


# --------------------------------------------------------------------
# MAIN
# --------------------------------------------------------------------
def seed(engine):
    create_schema(engine)
    services = build_services(engine)

    doctors = make_doctors()
    insurers = make_insurers()
    patients = make_patients(insurers)
    drugs = make_drugs()

    batches = [
        ("doctors", doctors),
        ("insurances", insurers),
        ("patients", patients),
        ("drugs", drugs),
        ("visits", make_visits(patients, doctors)),
        ("prescriptions", make_prescriptions(patients, doctors, drugs)),
    ]
    for name, items in batches:
        added = 0
        for item in items:
            try:
                services[name].add(item)
                added += 1
            except ClinicRecordsError as e:
                print(f"[seed] Skipped {name} row: {e}")
        print(f"[seed] {name}: {added} inserted")


def main():
    seed(init_engine())
    print("[seed] Done.")


if __name__ == "__main__":
    main()
