from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, redirect, url_for

from config import get_settings_module

from .admin.controller import register as register_admin
from .attendance.controller import register as register_attendance
from .common.logging_setup import configure_logging
from .container import Container, build_container
from .core.constants import DASHBOARD_TICK_SECONDS, RESET_BATCH_SIZE
from .core.enums import StoreBackend
from .database.bootstrap import apply_schema, list_tables
from .database.connection import DBConfig
from .reports.controller import register as register_reports

logger = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).resolve().parents[3]


def create_app(overrides: Optional[dict] = None, *, container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(
        __name__,
        template_folder=str(REPO_ROOT / "templates"),
        static_folder=str(REPO_ROOT / "static"),
    )

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    overrides = dict(overrides or {})

    def setting(name: str, default=None):
        return overrides.get(name, getattr(settings, name, default))

    configure_logging(setting("LOG_LEVEL", "INFO"))

    app.secret_key = setting("SECRET_KEY")
    db_config = setting("DB_CONFIG", {})
    backend = str(setting("STORE_BACKEND", StoreBackend.MYSQL.value)).lower()
    app.config["DEBUG"] = bool(setting("DEBUG", False))
    app.config["TESTING"] = bool(setting("TESTING", False))
    app.config["DASHBOARD_TICK_SECONDS"] = float(setting("DASHBOARD_TICK_SECONDS", DASHBOARD_TICK_SECONDS))

    logger.info("settings=%s backend=%s", settings_module, backend)
    if backend == StoreBackend.MYSQL.value:
        logger.info("db=%s", DBConfig.from_mapping(db_config).describe())

    if backend == StoreBackend.MYSQL.value and bool(setting("AUTO_INIT_DB", False)):
        apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
        logger.info("schema ready (tables=%d)", len(list_tables(db_config)))

    container = container or build_container(
        db_config=db_config,
        backend=backend,
        batch_size=int(setting("RESET_BATCH_SIZE", RESET_BATCH_SIZE)),
    )
    app.extensions["office_hours"] = container

    if bool(setting("AUTO_SEED_DB", False)):
        container.admin_service.seed_leaders()
    if bool(setting("SWEEP_ON_START", True)):
        result = container.midnight_sweep.run()
        logger.info("startup sweep closed %d session(s)", result.closed_count)

    @app.route("/", endpoint="index")
    def index():
        return redirect(url_for("kiosk"))

    register_attendance(app, container)
    register_reports(app, container)
    register_admin(app, container)

    return app
