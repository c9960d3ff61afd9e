from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Any, Mapping, Optional

from dotenv import load_dotenv
from flask import Flask
from flask_cors import CORS

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .common.web import ok, register_error_handlers
from .container import build_container
from .database.bootstrap import apply_schema, list_tables
from .leaves.controller import register as register_leaves
from .notifications.controller import register as register_notifications
from .payroll.controller import register as register_payroll
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[3] / "database" / "schema.sql"


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _load_settings(overrides: Optional[Mapping[str, Any]]) -> tuple[str, dict]:
    settings_module = get_settings_module()
    module = importlib.import_module(settings_module)
    settings = {name: getattr(module, name) for name in dir(module) if name.isupper()}
    settings.update(overrides or {})
    return settings_module, settings


def create_app(overrides: Optional[Mapping[str, Any]] = None) -> Flask:
    load_dotenv(override=False)
    settings_module, settings = _load_settings(overrides)
    configure_logging(settings.get("LOG_LEVEL", "INFO"))

    app = Flask(__name__)
    app.secret_key = settings["SECRET_KEY"]
    app.config["DEBUG"] = bool(settings.get("DEBUG", False))
    app.config["TESTING"] = bool(settings.get("TESTING", False))

    backend = str(settings.get("STORE_BACKEND", "mysql")).lower()
    db_config = dict(settings.get("DB_CONFIG") or {})
    logger.info("Starting HRMS (settings=%s, backend=%s)", settings_module, backend)

    if backend == "mysql" and settings.get("AUTO_INIT_DB"):
        apply_schema(db_config, schema_path=SCHEMA_PATH)
        logger.info("Schema ready (tables=%s)", len(list_tables(db_config)))

    container = build_container(
        backend=backend,
        db_config=db_config,
        jwt_secret=settings.get("JWT_SECRET") or settings["SECRET_KEY"],
        jwt_expire_days=int(settings.get("JWT_EXPIRE_DAYS", 7)),
        frontend_url=settings.get("FRONTEND_URL", "http://localhost:5173"),
        seed_demo=bool(settings.get("SEED_DEMO_USERS", False)),
    )
    app.extensions["hrms.container"] = container

    CORS(app, resources={r"/api/*": {"origins": settings.get("CORS_ORIGINS") or "*"}}, supports_credentials=True)
    register_error_handlers(app)

    register_users(app, container)
    register_attendance(app, container)
    register_leaves(app, container)
    register_payroll(app, container)
    register_notifications(app, container)

    @app.route("/api/health", methods=["GET"])
    def health():
        database = "n/a"
        if container.conn is not None:
            try:
                database = "connected" if container.conn.ping() else "disconnected"
            except Exception:
                logger.warning("Database ping failed", exc_info=True)
                database = "disconnected"
        return ok({"status": "OK", "backend": container.backend, "database": database})

    return app
