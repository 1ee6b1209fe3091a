from __future__ import annotations

import importlib
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from .activities.controller import register as register_activities
from .attendance.controller import register as register_attendance
from .config import get_settings_module
from .config.logging import configure_logging, get_logger
from .container import Container, build_container
from .database.bootstrap import apply_schema, list_tables
from .leave.controller import register as register_leave
from .reports.controller import register as register_reports

logger = get_logger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[3] / "database" / "schema.sql"


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        fmt=getattr(settings, "LOG_FORMAT", "standard"),
    )

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    if container is None:
        container = build_container(settings=settings)
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "starting with settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(container.conn, schema_path=SCHEMA_PATH)
            logger.info("schema ready (tables=%d)", len(list_tables(container.conn)))

    app.extensions["attendance_container"] = container

    register_attendance(app, container)
    register_reports(app, container)
    register_activities(app, container)
    register_leave(app, container)

    return app
