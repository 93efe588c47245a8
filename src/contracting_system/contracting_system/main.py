from __future__ import annotations

import importlib
import logging
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask, session

from config import get_settings_module

from .common.logging_utils import configure_logging
from .database.bootstrap import apply_schema, list_tables

from .container import build_container
from .auth.controller import register as register_auth
from .tenants.controller import register as register_tenants
from .setup.controller import register as register_setup
from .workers.controller import register as register_workers
from .attendance.controller import register as register_attendance
from .payments.controller import register as register_payments

logger = logging.getLogger(__name__)


def create_app() -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    logger.info(
        "settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
        apply_schema(db_config, schema_path=schema_path)
        logger.info("schema ready (tables=%d)", len(list_tables(db_config)))

    container = build_container(
        db_config=db_config,
        session_store=lambda: session,
        setup_check_retries=int(getattr(settings, "SETUP_CHECK_RETRIES", 3)),
        setup_check_delay_seconds=float(getattr(settings, "SETUP_CHECK_DELAY_SECONDS", 0.5)),
        payment_fanout_workers=int(getattr(settings, "PAYMENT_FANOUT_WORKERS", 8)),
    )

    # The setup gate must run before any other request hook or view.
    register_setup(app, container)
    register_auth(app, container)
    register_tenants(app, container)
    register_workers(app, container)
    register_attendance(app, container)
    register_payments(app, container)

    return app
