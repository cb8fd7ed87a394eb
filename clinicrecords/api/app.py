"""
Flask application factory and server entry-point.
"""

import os
import sys
import traceback

from flask import Flask
from flask_cors import CORS

from clinicrecords.config import DEFAULT_API_HOST, DEFAULT_API_PORT
from clinicrecords.database import create_schema, init_engine
from clinicrecords.screens import build_screens
from clinicrecords.services import build_services
from clinicrecords.api.routes import register_routes


def create_app(engine=None):
    """Build and return a fully configured Flask application.

    An already created *engine* (tests pass one bound to a temporary
    SQLite file) skips the connection setup.
    """
    app = Flask(__name__)
    CORS(app)

    # ── Initialise shared resources ──────────────────────────────────
    try:
        if engine is None:
            print("[init] Initializing database connection...")
            engine = init_engine()
        create_schema(engine)
        screens = build_screens(build_services(engine))
        print("[init] API server ready")
    except Exception as e:
        print(f"[FATAL] Failed to initialize: {e}", file=sys.stderr)
        traceback.print_exc()
        sys.exit(1)

    # ── Register routes ──────────────────────────────────────────────
    register_routes(app, engine, screens)

    return app


def main():
    """Run the development server."""
    print("=" * 60)
    print("Clinic Records - REST API Server")
    print("=" * 60)

    app = create_app()

    host = os.getenv("API_HOST", DEFAULT_API_HOST)
    port = int(os.getenv("API_PORT", str(DEFAULT_API_PORT)))
    debug = os.getenv("FLASK_ENV") == "development"

    print(f"\n[server] Starting Flask API on {host}:{port}")
    print(f"[server] Debug mode: {debug}")
    print("[server] CORS enabled: True")
    print("\nAPI Endpoints:")
    print(f"  - GET    http://{host}:{port}/api/<entity>")
    print(f"  - GET    http://{host}:{port}/api/<entity>/fields")
    print(f"  - POST   http://{host}:{port}/api/<entity>")
    print(f"  - GET    http://{host}:{port}/api/<entity>/<key>")
    print(f"  - PUT    http://{host}:{port}/api/<entity>/<key>")
    print(f"  - DELETE http://{host}:{port}/api/<entity>/<key>")
    print(f"  - GET    http://{host}:{port}/api/patients/<id>/primary-doctor")
    print(f"  - GET    http://{host}:{port}/health")
    print("\n" + "=" * 60)

    app.run(host=host, port=port, debug=debug, threaded=True)


if __name__ == "__main__":
    main()
