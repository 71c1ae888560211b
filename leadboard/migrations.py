"""
Clean-slate migration for a fresh production start.

1. Deletes every row from the data tables (structure is kept).
2. Seeds the single superadmin user (idempotent upsert keyed by id).
3. Adds the tables to the realtime publication.
4. (Re)installs one read policy per table.
"""
from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import delete, text
from sqlalchemy.dialects import postgresql
from sqlalchemy.engine import Connection

from leadboard.config import Settings
from leadboard.models import Base
from leadboard.seeds import admin_upsert

logger = logging.getLogger(__name__)

PUBLICATION = "supabase_realtime"

# Children before parents.
CLEARED_TABLES = (
    "notes",
    "handle_customer_data",
    "leads",
    "targets",
    "packages",
    "products",
    "users",
)

PUBLISHED_TABLES = (
    "users",
    "products",
    "packages",
    "leads",
    "notes",
    "targets",
    "handle_customer_data",
)

_LEAD_VISIBLE_TO_CALLER = """EXISTS (
      SELECT 1 FROM users
      WHERE id = auth.uid()
      AND (
        role = 'superadmin' OR
        (role = 'admin' AND id = leads.assigned_to) OR
        role = 'hc'
      )
    )"""

_NOTE_VISIBLE_TO_CALLER = """EXISTS (
      SELECT 1 FROM leads l
      JOIN users u ON u.id = auth.uid()
      WHERE l.id = notes.lead_id
      AND (
        u.role = 'superadmin' OR
        (u.role = 'admin' AND u.id = l.assigned_to) OR
        u.role = 'hc'
      )
    )"""

_HANDLER_ROLES_ONLY = """EXISTS (
      SELECT 1 FROM users
      WHERE id = auth.uid()
      AND role IN ('superadmin', 'hc')
    )"""

READ_POLICIES: dict[str, str] = {
    "users": "true",
    "products": "true",
    "packages": "true",
    "leads": _LEAD_VISIBLE_TO_CALLER,
    "notes": _NOTE_VISIBLE_TO_CALLER,
    "targets": "true",
    "handle_customer_data": _HANDLER_ROLES_ONLY,
}


def policy_name(table: str) -> str:
    return f"Enable real-time for {table}"


def _known(table: str) -> str:
    if table not in Base.metadata.tables:
        raise ValueError(f"Unknown table: {table}")
    return table


def delete_statements() -> list:
    return [delete(Base.metadata.tables[_known(table)]) for table in CLEARED_TABLES]


def publication_statement(table: str):
    return text(f"ALTER PUBLICATION {PUBLICATION} ADD TABLE {_known(table)}")


def policy_statements(table: str) -> list:
    name = policy_name(_known(table))
    return [
        text(f'DROP POLICY IF EXISTS "{name}" ON {table}'),
        text(f'CREATE POLICY "{name}" ON {table}\n  FOR SELECT USING ({READ_POLICIES[table]})'),
    ]


def published_tables(connection: Connection) -> set[str]:
    rows = connection.execute(
        text("SELECT tablename FROM pg_publication_tables WHERE pubname = :pubname"),
        {"pubname": PUBLICATION},
    )
    return {row[0] for row in rows}


def render_sql(settings: Settings) -> str:
    """The whole migration as a SQL script, for review or dry runs."""
    dialect = postgresql.dialect()
    statements = [*delete_statements(), admin_upsert(settings)]
    statements += [publication_statement(table) for table in PUBLISHED_TABLES]
    for table in READ_POLICIES:
        statements += policy_statements(table)
    rendered = [str(stmt.compile(dialect=dialect, compile_kwargs={"literal_binds": True})) for stmt in statements]
    return ";\n\n".join(rendered) + ";\n"


def apply_clean_slate(connection: Connection, settings: Settings) -> dict[str, Any]:
    """Run the migration on an open connection. The caller owns the transaction."""
    cleared = {}
    for table, stmt in zip(CLEARED_TABLES, delete_statements()):
        cleared[table] = connection.execute(stmt).rowcount
        logger.info("Cleared %s (%s rows)", table, cleared[table])

    connection.execute(admin_upsert(settings))
    logger.info("Seeded superadmin user %s", settings.admin_user_id)

    already = published_tables(connection)
    added = []
    for table in PUBLISHED_TABLES:
        if table in already:
            logger.info("%s already in %s", table, PUBLICATION)
            continue
        connection.execute(publication_statement(table))
        added.append(table)

    for table in READ_POLICIES:
        for stmt in policy_statements(table):
            connection.execute(stmt)
    logger.info("Installed %s read policies", len(READ_POLICIES))

    return {
        "cleared": cleared,
        "seeded_user": settings.admin_user_id,
        "published": added,
        "policies": [policy_name(table) for table in READ_POLICIES],
    }
