"""
Flask route handlers for the REST API.

Every entity screen is exposed under ``/api/<entity>``.  Writes go through
the same form engine the CLI uses, so the request body of ``POST``/``PUT``
is a ``{field name: value}`` object as listed by ``/api/<entity>/fields``.
"""

import sys
import traceback
from dataclasses import asdict
from datetime import date
from functools import wraps

from flask import jsonify, request
from sqlalchemy import text as sa_text

from clinicrecords.errors import ClinicRecordsError, ServiceFailure, ValidationFailure
from clinicrecords.fields import CHECKBOX
from clinicrecords.screens import PatientScreen


def record_json(item) -> dict:
    """A domain object as JSON: its fields plus its concrete type name."""
    out = {"type": type(item).__name__}
    for name, value in asdict(item).items():
        out[name] = value.isoformat() if isinstance(value, date) else value
    return out


def handle_errors(f):
    """Translate application exceptions into JSON error responses."""
    @wraps(f)
    def decorated(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except (ValidationFailure, KeyError, ValueError) as e:
            message = e.args[0] if isinstance(e, KeyError) and e.args else str(e)
            return jsonify({"success": False, "error": "Invalid request",
                            "details": message}), 400
        except ServiceFailure as e:
            print(f"[ERROR] {e}", file=sys.stderr)
            return jsonify({"success": False, "error": "Could not save changes",
                            "details": str(e), "cause": str(e.root_cause)}), 500
        except ClinicRecordsError as e:
            print(f"[ERROR] {e}", file=sys.stderr)
            traceback.print_exc()
            return jsonify({"success": False, "error": "Internal server error",
                            "details": str(e)}), 500
    return decorated


def _json_body() -> dict:
    if not request.is_json:
        raise ValidationFailure("Content-Type must be application/json")
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationFailure("Request body must be a JSON object")
    return data


def _fill(form, body: dict) -> None:
    """Copy request values into a form; read-only fields keep their value."""
    for name, value in body.items():
        field = form.field(name)
        if field.read_only:
            continue
        if field.kind == CHECKBOX and isinstance(value, str):
            value = value.strip().lower() in {"true", "1", "yes", "y", "on"}
        form.set_value(name, value)


def register_routes(app, engine, screens):
    """Register all API routes on the Flask *app*."""

    def _screen(entity):
        screen = screens.get(entity)
        if screen is None:
            return None, (jsonify({"success": False, "error": f"Unknown entity '{entity}'"}), 404)
        return screen, None

    def _lookup(screen, key_path):
        key = screen.parse_key(key_path.split("/"))
        item = screen.get(key)
        if item is None:
            return None, (jsonify({"success": False,
                                   "error": f"{screen.title} not found: {key_path}"}), 404)
        return item, None

    # ── Health / info ────────────────────────────────────────────────

    @app.route("/", methods=["GET"])
    def index():
        return jsonify({
            "service": "Clinic Records API",
            "version": "1.0.0",
            "status": "running",
            "entities": sorted(screens),
            "health": "/health",
        })

    @app.route("/health", methods=["GET"])
    def health():
        checks = {"database": False}
        try:
            with engine.connect() as conn:
                conn.execute(sa_text("SELECT 1"))
            checks["database"] = True
        except Exception as e:
            print(f"[ERROR] Health check failed: {e}", file=sys.stderr)

        healthy = all(checks.values())
        return jsonify({
            "status": "healthy" if healthy else "unhealthy",
            "checks": checks,
        }), 200 if healthy else 503

    # ── Entities ─────────────────────────────────────────────────────

    @app.route("/api/<entity>", methods=["GET"])
    @handle_errors
    def list_records(entity):
        screen, err = _screen(entity)
        if err:
            return err
        criteria = request.args.to_dict()
        items = screen.apply_filters(criteria) if criteria else screen.load()
        return jsonify({
            "success": True,
            "count": len(items),
            "columns": screen.columns,
            "records": [record_json(i) for i in items],
        }), 200

    @app.route("/api/<entity>/fields", methods=["GET"])
    def list_fields(entity):
        screen, err = _screen(entity)
        if err:
            return err
        return jsonify({
            "success": True,
            "fields": [
                {"name": f.name, "label": f.label, "kind": f.kind,
                 "max_length": f.max_length, "initial": f.default_value()}
                for f in screen.form_fields()
            ],
            "filters": screen.filter_names,
        }), 200

    @app.route("/api/<entity>", methods=["POST"])
    @handle_errors
    def create_record(entity):
        screen, err = _screen(entity)
        if err:
            return err
        body = _json_body()
        saved = []
        form = screen.edit_form(on_saved=saved.append)
        _fill(form, body)
        warnings = form.warnings()
        form.submit()
        return jsonify({
            "success": True,
            "record": record_json(saved[0]),
            "warnings": warnings,
        }), 201

    @app.route("/api/<entity>/<path:key>", methods=["GET"])
    @handle_errors
    def get_record(entity, key):
        screen, err = _screen(entity)
        if err:
            return err
        item, err = _lookup(screen, key)
        if err:
            return err
        return jsonify({"success": True, "record": record_json(item)}), 200

    @app.route("/api/<entity>/<path:key>", methods=["PUT"])
    @handle_errors
    def update_record(entity, key):
        screen, err = _screen(entity)
        if err:
            return err
        item, err = _lookup(screen, key)
        if err:
            return err
        body = _json_body()
        saved = []
        form = screen.edit_form(item, on_saved=saved.append)
        _fill(form, body)
        warnings = form.warnings()
        form.submit()
        return jsonify({
            "success": True,
            "record": record_json(saved[0]),
            "warnings": warnings,
        }), 200

    @app.route("/api/<entity>/<path:key>", methods=["DELETE"])
    @handle_errors
    def delete_record(entity, key):
        screen, err = _screen(entity)
        if err:
            return err
        item, err = _lookup(screen, key)
        if err:
            return err
        screen.delete(item)
        return jsonify({"success": True, "message": f"{screen.title} deleted"}), 200

    @app.route("/api/patients/<patient_id>/primary-doctor", methods=["GET"])
    @handle_errors
    def primary_doctor(patient_id):
        screen = screens.get("patients")
        if not isinstance(screen, PatientScreen):
            return jsonify({"success": False, "error": "Patients are not available"}), 404
        doctor = screen.primary_doctor(patient_id)
        if doctor is None:
            return jsonify({
                "success": False,
                "error": f"No primary doctor found for patient {patient_id}",
            }), 404
        return jsonify({"success": True, "doctor": record_json(doctor)}), 200

    # ── Error handlers ───────────────────────────────────────────────

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({"error": "Endpoint not found", "message": str(e)}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({"error": "Method not allowed", "message": str(e)}), 405

    @app.errorhandler(500)
    def internal_error(e):
        return jsonify({"error": "Internal server error", "message": str(e)}), 500
