from __future__ import annotations

import importlib
from pathlib import Path

from dotenv import load_dotenv

from attendance_analytics.config import get_settings_module
from attendance_analytics.config.logging import configure_logging
from attendance_analytics.database.bootstrap import apply_schema, list_tables
from attendance_analytics.database.connection import DBConfig, DatabaseConnection


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    configure_logging(level=getattr(settings, "LOG_LEVEL", "INFO"))

    conn = DatabaseConnection(DBConfig.from_dict(settings.DB_CONFIG))
    cfg = conn.config

    schema_path = Path(__file__).resolve().parents[1] / "database" / "schema.sql"
    apply_schema(conn, schema_path=schema_path)
    tables = list_tables(conn)
    print(f"OK: Applied schema.sql -> {cfg.user}@{cfg.host}:{cfg.port}/{cfg.database} (tables={len(tables)})")


if __name__ == "__main__":
    main()
