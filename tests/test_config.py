"""
Unit tests for configuration helpers and the error hierarchy.
"""

import pytest

from clinicrecords.config import get_env
from clinicrecords.errors import (
    ClinicRecordsError, ServiceFailure, StorageFailure, ValidationFailure,
)


# ── Tests: get_env ───────────────────────────────────────────────────

def test_get_env_ok(monkeypatch):
    monkeypatch.setenv("DB_URI", "sqlite:///clinic.db")
    assert get_env("DB_URI") == "sqlite:///clinic.db"


def test_get_env_missing_exits(monkeypatch, capsys):
    monkeypatch.delenv("MISSING_ENV", raising=False)
    with pytest.raises(SystemExit) as e:
        get_env("MISSING_ENV")
    assert e.value.code == 1
    err = capsys.readouterr().err
    assert "ERROR: env var MISSING_ENV is not set" in err


def test_get_env_empty_value_exits(monkeypatch):
    monkeypatch.setenv("EMPTY_ENV", "")
    with pytest.raises(SystemExit):
        get_env("EMPTY_ENV")


# ── Tests: errors ────────────────────────────────────────────────────

def test_validation_failure_is_value_error():
    err = ValidationFailure("bad input")
    assert isinstance(err, ValueError)
    assert isinstance(err, ClinicRecordsError)
    assert str(err) == "bad input"


def test_root_cause_walks_the_chain():
    low = RuntimeError("disk full")
    storage = StorageFailure("Could not insert into doctor: disk full", low)
    service = ServiceFailure(f"Failed to add doctor: {storage}", storage)
    assert service.root_cause is low


def test_root_cause_without_original_is_self():
    err = StorageFailure("boom")
    assert err.root_cause is err
