"""
Tests for the interactive CLI commands, driven by scripted answers.
"""

import pytest

from clinicrecords.cli import Quit, fill_form, run_command
from clinicrecords.database import create_schema, init_engine
from clinicrecords.screens import build_screens
from clinicrecords.services import build_services


def scripted(*answers):
    """An input() replacement that replays *answers* in order."""
    it = iter(answers)
    return lambda prompt="": next(it)


@pytest.fixture
def engine(tmp_path):
    eng = init_engine(f"sqlite:///{tmp_path / 'clinic.db'}")
    create_schema(eng)
    return eng


@pytest.fixture
def screens(engine):
    return build_screens(build_services(engine))


# ── Tests: fill_form ─────────────────────────────────────────────────

def test_fill_form_add_and_list(screens, capsys):
    screen = screens["insurances"]
    ask = scripted("INS1", "Acme Health", "1 High St", "0800 123", "s")
    assert run_command(screen, "add", ask=ask)
    assert screen.get(("INS1",)).company == "Acme Health"

    run_command(screen, "list")
    out = capsys.readouterr().out
    assert "Saved." in out
    assert "Acme Health" in out


def test_fill_form_cancel_saves_nothing(screens):
    screen = screens["insurances"]
    form = screen.edit_form()
    assert not fill_form(form, scripted("INS1", "", "", "", "c"))
    assert screen.load() == []


def test_fill_form_retry_after_error(screens, capsys):
    screen = screens["doctors"]
    # blank ID first, then corrected on the second pass
    ask = scripted("", "Ada", "", "", "", "", "", "", "s",
                   "y",
                   "D1", "", "", "", "", "", "", "", "s")
    assert fill_form(screen.edit_form(), ask)
    assert "[ERROR] Doctor ID cannot be empty" in capsys.readouterr().out
    assert screen.get(("D1",)).first_name == "Ada"


# ── Tests: commands ──────────────────────────────────────────────────

def test_edit_keeps_blank_answers(screens):
    screen = screens["insurances"]
    run_command(screen, "add", ask=scripted("INS1", "Acme", "1 High St", "", "s"))
    run_command(screen, "edit INS1", ask=scripted("Acme Plus", "", "", "s"))
    ins = screen.get(("INS1",))
    assert (ins.company, ins.address) == ("Acme Plus", "1 High St")


def test_edit_missing_record(screens, capsys):
    run_command(screens["insurances"], "edit NOPE")
    assert "No insurance found for NOPE" in capsys.readouterr().out


def test_delete_asks_for_confirmation(screens):
    screen = screens["insurances"]
    run_command(screen, "add", ask=scripted("INS1", "Acme", "", "", "s"))
    run_command(screen, "delete INS1", ask=scripted("n"))
    assert screen.get(("INS1",)) is not None
    run_command(screen, "delete INS1", ask=scripted("y"))
    assert screen.get(("INS1",)) is None


def test_filter_command(screens, capsys):
    screen = screens["insurances"]
    run_command(screen, "add", ask=scripted("INS1", "Acme", "", "", "s"))
    run_command(screen, "add", ask=scripted("INS2", "Zenith", "", "", "s"))
    capsys.readouterr()
    run_command(screen, "filter", ask=scripted("", "zen", "", "", "s"))
    out = capsys.readouterr().out
    assert "1 record(s)" in out
    assert "Zenith" in out


def test_primary_only_on_patients(screens, capsys):
    run_command(screens["doctors"], "primary P1")
    assert "only available on the patients screen" in capsys.readouterr().out
    run_command(screens["patients"], "primary P1")
    assert "No primary doctor found for patient P1" in capsys.readouterr().out


def test_bad_visit_key_prints_error(screens, capsys):
    run_command(screens["visits"], "edit P1 D1")
    assert "[ERROR] Visit is identified by" in capsys.readouterr().out


def test_schema_command(screens, engine, capsys):
    run_command(screens["doctors"], "schema", engine)
    assert "Table visit(" in capsys.readouterr().out


def test_back_and_quit(screens):
    assert run_command(screens["doctors"], "back") is False
    with pytest.raises(Quit):
        run_command(screens["doctors"], "quit")
