"""
Centralised configuration constants and environment helpers.
"""

import os
import sys

from dotenv import load_dotenv

load_dotenv()

# ── Database ─────────────────────────────────────────────────────────
DB_ECHO = os.getenv("DB_ECHO", "false").strip().lower() == "true"

# ── Presentation ─────────────────────────────────────────────────────
MAX_PREVIEW_ROWS = 20
DATE_FORMAT = "%Y-%m-%d"

# ── Field length limits (characters) ─────────────────────────────────
PATIENT_ID_MAX_LENGTH = 50
PATIENT_FIRSTNAME_MAX_LENGTH = 50
PATIENT_SURNAME_MAX_LENGTH = 50
PATIENT_POSTCODE_MAX_LENGTH = 15
PATIENT_ADDRESS_MAX_LENGTH = 100
PATIENT_EMAIL_MAX_LENGTH = 100
PATIENT_PHONE_MAX_LENGTH = 20

DOCTOR_ID_MAX_LENGTH = 50
DOCTOR_FIRSTNAME_MAX_LENGTH = 50
DOCTOR_SURNAME_MAX_LENGTH = 50
DOCTOR_ADDRESS_MAX_LENGTH = 100
DOCTOR_EMAIL_MAX_LENGTH = 50
DOCTOR_HOSPITAL_MAX_LENGTH = 100
SPECIALIZATION_MAX_LENGTH = 50

INSURANCE_ID_MAX_LENGTH = 50
INSURANCE_COMPANY_MAX_LENGTH = 100
INSURANCE_ADDRESS_MAX_LENGTH = 100
INSURANCE_PHONE_MAX_LENGTH = 20

DRUG_ID_MAX_LENGTH = 50
DRUG_NAME_MAX_LENGTH = 50
DRUG_BENEFITS_MAX_LENGTH = 150
DRUG_SIDE_EFFECTS_MAX_LENGTH = 150

PRESCRIPTION_ID_MAX_LENGTH = 100
PRESCRIPTION_DRUG_ID_MAX_LENGTH = 50
PRESCRIPTION_DOCTOR_ID_MAX_LENGTH = 50
PRESCRIPTION_PATIENT_ID_MAX_LENGTH = 50
PRESCRIPTION_COMMENT_MAX_LENGTH = 200

VISIT_DOCTOR_ID_MAX_LENGTH = 100
VISIT_PATIENT_ID_MAX_LENGTH = 100
VISIT_SYMPTOMS_MAX_LENGTH = 200
VISIT_DIAGNOSIS_MAX_LENGTH = 200

# ── API server ───────────────────────────────────────────────────────
DEFAULT_API_HOST = "0.0.0.0"
DEFAULT_API_PORT = 8000


def get_env(name: str) -> str:
    """Return an environment variable or exit with an error message."""
    value = os.getenv(name)
    if not value:
        print(f"ERROR: env var {name} is not set", file=sys.stderr)
        sys.exit(1)
    return value
