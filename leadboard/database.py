"""
Database engine for maintenance tasks.
The running service talks to the REST API; a direct connection is only
needed to apply migrations.
"""
from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from leadboard.core.exceptions import ConfigurationError


def get_engine(database_url: Optional[str]) -> Engine:
    if not database_url:
        raise ConfigurationError("DATABASE_URL is not configured.")
    return create_engine(
        database_url,
        pool_pre_ping=True,
        echo=False,
    )


def database_health(engine: Engine) -> dict[str, Any]:
    """
    Return structured database health details.
    """
    try:
        with engine.connect() as connection:
            result = connection.execute(
                text(
                    "SELECT current_database() AS database_name, "
                    "current_user AS database_user, "
                    "version() AS server_version"
                )
            ).mappings().one()

        return {
            "ok": True,
            "database": str(result["database_name"]),
            "user": str(result["database_user"]),
            "server_version": str(result["server_version"]),
        }
    except SQLAlchemyError as exc:
        return {
            "ok": False,
            "error": str(exc),
        }
