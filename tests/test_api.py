"""
Tests for the REST API using the Flask test client and a temporary
SQLite database.
"""

import pytest

from clinicrecords.api.app import create_app
from clinicrecords.database import init_engine


@pytest.fixture
def client(tmp_path):
    engine = init_engine(f"sqlite:///{tmp_path / 'clinic.db'}")
    app = create_app(engine)
    app.config["TESTING"] = True
    return app.test_client()


SPECIALIST = {
    "doctor_id": "D1", "first_name": "Grace", "surname": "Hopper",
    "hospital": "St Mary", "is_specialist": True, "specialization": "Cardiology",
}


def post(client, entity, body):
    return client.post(f"/api/{entity}", json=body)


# ── Tests: health / info ─────────────────────────────────────────────

def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.get_json()["checks"]["database"] is True


def test_index_lists_entities(client):
    data = client.get("/").get_json()
    assert "doctors" in data["entities"]
    assert "visits" in data["entities"]


def test_unknown_entity(client):
    assert client.get("/api/nurses").status_code == 404


def test_fields_describe_the_form(client):
    data = client.get("/api/doctors/fields").get_json()
    names = [f["name"] for f in data["fields"]]
    assert names[0] == "doctor_id"
    assert "is_specialist" in names
    assert "specialization" in data["filters"]


# ── Tests: create / read ─────────────────────────────────────────────

def test_create_and_get_specialist(client):
    resp = post(client, "doctors", SPECIALIST)
    assert resp.status_code == 201
    record = resp.get_json()["record"]
    assert record["type"] == "Specialist"
    assert record["specialization"] == "Cardiology"

    got = client.get("/api/doctors/D1").get_json()["record"]
    assert got == record


def test_create_rejects_over_long_value(client):
    resp = post(client, "doctors", dict(SPECIALIST, surname="x" * 51))
    assert resp.status_code == 400
    assert "Surname exceeds maximum length of 50" in resp.get_json()["details"]


def test_create_duplicate_is_bad_request(client):
    post(client, "doctors", SPECIALIST)
    resp = post(client, "doctors", SPECIALIST)
    assert resp.status_code == 400
    assert resp.get_json()["details"] == "Doctor ID already exists: D1"


def test_create_unknown_field_is_bad_request(client):
    resp = post(client, "doctors", dict(SPECIALIST, bogus="x"))
    assert resp.status_code == 400
    assert "bogus" in resp.get_json()["details"]


def test_create_requires_json(client):
    resp = client.post("/api/doctors", data="doctor_id=D1")
    assert resp.status_code == 400


def test_checkbox_accepts_string_values(client):
    resp = post(client, "patients", {
        "patient_id": "P1", "surname": "Turing", "is_insured": "true", "insurance_id": "INS1",
    })
    assert resp.status_code == 201
    assert resp.get_json()["record"]["type"] == "InsuredPatient"


def test_get_missing_record(client):
    assert client.get("/api/doctors/D404").status_code == 404


def test_bad_integer_is_bad_request(client):
    resp = post(client, "prescriptions", {
        "prescription_id": "RX1", "date_prescribed": "2024-05-01", "drug_id": "X1",
        "doctor_id": "D1", "patient_id": "P1", "dosage": "lots", "duration": "7",
    })
    assert resp.status_code == 400
    assert resp.get_json()["details"] == "Dosage must be a whole number"


# ── Tests: list / filter ─────────────────────────────────────────────

def test_list_with_filters(client):
    post(client, "doctors", SPECIALIST)
    post(client, "doctors", {"doctor_id": "D2", "surname": "Lovelace"})

    data = client.get("/api/doctors").get_json()
    assert data["count"] == 2

    data = client.get("/api/doctors?specialization=card").get_json()
    assert [r["doctor_id"] for r in data["records"]] == ["D1"]

    data = client.get("/api/doctors?surname=LOVE").get_json()
    assert [r["doctor_id"] for r in data["records"]] == ["D2"]


def test_list_unknown_filter_is_bad_request(client):
    resp = client.get("/api/doctors?shoe_size=9")
    assert resp.status_code == 400
    assert "shoe_size" in resp.get_json()["details"]


# ── Tests: update / delete ───────────────────────────────────────────

def test_update_demotes_and_ignores_key_change(client):
    post(client, "doctors", SPECIALIST)
    resp = client.put("/api/doctors/D1", json={"doctor_id": "D9", "is_specialist": False})
    assert resp.status_code == 200
    record = resp.get_json()["record"]
    assert record["type"] == "Doctor"
    assert record["doctor_id"] == "D1"
    assert "specialization" not in record
    assert client.get("/api/doctors/D9").status_code == 404


def test_update_missing_record(client):
    assert client.put("/api/doctors/D404", json={"surname": "X"}).status_code == 404


def test_delete(client):
    post(client, "doctors", SPECIALIST)
    assert client.delete("/api/doctors/D1").status_code == 200
    assert client.get("/api/doctors/D1").status_code == 404


# ── Tests: visits and primary doctor ─────────────────────────────────

def test_visit_composite_key_routes(client):
    resp = post(client, "visits", {
        "patient_id": "P1", "doctor_id": "D1", "date_of_visit": "2024-03-01",
        "symptoms": "Cough",
    })
    assert resp.status_code == 201
    got = client.get("/api/visits/P1/D1/2024-03-01")
    assert got.status_code == 200
    assert got.get_json()["record"]["symptoms"] == "Cough"
    assert client.get("/api/visits/P1/D1").status_code == 400


def test_primary_doctor(client):
    post(client, "doctors", SPECIALIST)
    post(client, "doctors", {"doctor_id": "D2", "surname": "Lovelace"})
    for doctor_id, day in [("D1", "2024-01-01"), ("D1", "2024-02-01"), ("D2", "2024-03-01")]:
        post(client, "visits", {"patient_id": "P1", "doctor_id": doctor_id,
                                "date_of_visit": day})

    resp = client.get("/api/patients/P1/primary-doctor")
    assert resp.status_code == 200
    assert resp.get_json()["doctor"]["doctor_id"] == "D1"

    assert client.get("/api/patients/P2/primary-doctor").status_code == 404
