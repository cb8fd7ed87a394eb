"""
Database engine initialisation, schema creation and schema introspection.
"""

import sys
from typing import List, Optional

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.pool import NullPool

from clinicrecords import config
from clinicrecords.config import get_env

# Table and column names are the storage contract of the mappers.
SCHEMA_STATEMENTS = [
    f"""
    CREATE TABLE IF NOT EXISTS insurance (
        insurance_id   VARCHAR({config.INSURANCE_ID_MAX_LENGTH}) PRIMARY KEY,
        company        VARCHAR({config.INSURANCE_COMPANY_MAX_LENGTH}),
        address        VARCHAR({config.INSURANCE_ADDRESS_MAX_LENGTH}),
        phone          VARCHAR({config.INSURANCE_PHONE_MAX_LENGTH})
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS doctor (
        doctor_id      VARCHAR({config.DOCTOR_ID_MAX_LENGTH}) PRIMARY KEY,
        first_name     VARCHAR({config.DOCTOR_FIRSTNAME_MAX_LENGTH}),
        surname        VARCHAR({config.DOCTOR_SURNAME_MAX_LENGTH}),
        address        VARCHAR({config.DOCTOR_ADDRESS_MAX_LENGTH}),
        email          VARCHAR({config.DOCTOR_EMAIL_MAX_LENGTH}),
        hospital       VARCHAR({config.DOCTOR_HOSPITAL_MAX_LENGTH}),
        specialization VARCHAR({config.SPECIALIZATION_MAX_LENGTH}) NULL
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS patient (
        patient_id     VARCHAR({config.PATIENT_ID_MAX_LENGTH}) PRIMARY KEY,
        first_name     VARCHAR({config.PATIENT_FIRSTNAME_MAX_LENGTH}),
        surname        VARCHAR({config.PATIENT_SURNAME_MAX_LENGTH}),
        postcode       VARCHAR({config.PATIENT_POSTCODE_MAX_LENGTH}),
        address        VARCHAR({config.PATIENT_ADDRESS_MAX_LENGTH}),
        phone          VARCHAR({config.PATIENT_PHONE_MAX_LENGTH}),
        email          VARCHAR({config.PATIENT_EMAIL_MAX_LENGTH}),
        insurance_id   VARCHAR({config.INSURANCE_ID_MAX_LENGTH}) NULL
                       REFERENCES insurance (insurance_id)
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS drug (
        drug_id        VARCHAR({config.DRUG_ID_MAX_LENGTH}) PRIMARY KEY,
        drug_name      VARCHAR({config.DRUG_NAME_MAX_LENGTH}),
        side_effects   VARCHAR({config.DRUG_SIDE_EFFECTS_MAX_LENGTH}),
        benefits       VARCHAR({config.DRUG_BENEFITS_MAX_LENGTH})
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS prescription (
        prescription_id VARCHAR({config.PRESCRIPTION_ID_MAX_LENGTH}) PRIMARY KEY,
        date_prescribed DATE NOT NULL,
        dosage          INTEGER,
        duration        INTEGER,
        comment         VARCHAR({config.PRESCRIPTION_COMMENT_MAX_LENGTH}),
        drug_id         VARCHAR({config.PRESCRIPTION_DRUG_ID_MAX_LENGTH}) REFERENCES drug (drug_id),
        doctor_id       VARCHAR({config.PRESCRIPTION_DOCTOR_ID_MAX_LENGTH}) REFERENCES doctor (doctor_id),
        patient_id      VARCHAR({config.PRESCRIPTION_PATIENT_ID_MAX_LENGTH}) REFERENCES patient (patient_id)
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS visit (
        patient_id     VARCHAR({config.VISIT_PATIENT_ID_MAX_LENGTH}) REFERENCES patient (patient_id),
        doctor_id      VARCHAR({config.VISIT_DOCTOR_ID_MAX_LENGTH}) REFERENCES doctor (doctor_id),
        date_of_visit  DATE NOT NULL,
        symptoms       VARCHAR({config.VISIT_SYMPTOMS_MAX_LENGTH}),
        diagnosis      VARCHAR({config.VISIT_DIAGNOSIS_MAX_LENGTH}),
        PRIMARY KEY (patient_id, doctor_id, date_of_visit)
    )
    """,
]


def init_engine(db_uri: Optional[str] = None):
    """Create a SQLAlchemy engine and verify the connection.

    ``NullPool`` gives every mapper call a fresh connection that is closed
    when the call returns.
    """
    db_uri = db_uri or get_env("DB_URI")
    engine = create_engine(db_uri, echo=config.DB_ECHO, future=True, poolclass=NullPool)
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        print("ERROR: could not connect to DB:", e, file=sys.stderr)
        sys.exit(1)
    print("[init] Connected to DB.")
    return engine


def create_schema(engine) -> None:
    """Create any missing tables."""
    with engine.begin() as conn:
        for stmt in SCHEMA_STATEMENTS:
            conn.execute(text(stmt))
    print("[init] Schema ready.")


def build_schema_summary(engine) -> str:
    """Describe tables and their columns, one line per table."""
    insp = inspect(engine)
    tables: List[str] = insp.get_table_names()
    lines = []
    for t in sorted(tables):
        cols = insp.get_columns(t)
        col_desc = ", ".join(f"{c['name']} {str(c['type'])}" for c in cols)
        lines.append(f"Table {t}({col_desc})")
    return "\n".join(lines)
