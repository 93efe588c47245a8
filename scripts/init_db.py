"""Apply database/schema.sql and report the setup state of the target database."""

from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.contracting_system.contracting_system.common.logging_utils import configure_logging
from src.contracting_system.contracting_system.database.bootstrap import apply_schema, list_tables
from src.contracting_system.contracting_system.database.connection import DBConfig, DatabaseConnection
from src.contracting_system.contracting_system.settings.mysql_settings_repository import MySQLSystemSettingsRepository
from src.contracting_system.contracting_system.settings.service import SystemSettingsService

logger = logging.getLogger("init_db")


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    db_config = dict(settings.DB_CONFIG)

    apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
    tables = list_tables(db_config)

    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))
    completed = SystemSettingsService(MySQLSystemSettingsRepository(conn)).is_setup_completed()
    logger.info(
        "Applied schema.sql -> %s@%s:%s/%s (tables=%d, setup_completed=%s)",
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
        len(tables),
        completed,
    )


if __name__ == "__main__":
    main()
