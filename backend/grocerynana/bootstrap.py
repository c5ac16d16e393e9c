"""Scratch table used to prove the migration runner can write to the store.

The table is created behind an existence check, so creating it twice is
harmless. The sentinel insert is deliberately unguarded: the bootstrap is
meant to run exactly once per fresh database, and a second insert fails on
the primary key.
"""

from __future__ import annotations

from sqlalchemy import Connection, func, inspect, insert, select
from sqlalchemy.schema import CreateTable

from .models import MigrationTestRecord

SENTINEL_ID = 1

bootstrap_table = MigrationTestRecord.__table__


def create_bootstrap_table(connection: Connection) -> bool:
    """Create the table if it is missing. Returns True when it was created."""
    if inspect(connection).has_table(bootstrap_table.name):
        return False
    # Another process may create it between the check and this statement.
    connection.execute(CreateTable(bootstrap_table, if_not_exists=True))
    return True


def insert_sentinel(connection: Connection) -> None:
    connection.execute(insert(bootstrap_table).values(id=SENTINEL_ID))


def apply_bootstrap(connection: Connection) -> bool:
    created = create_bootstrap_table(connection)
    insert_sentinel(connection)
    return created


def count_bootstrap_records(connection: Connection) -> int:
    return connection.execute(select(func.count()).select_from(bootstrap_table)).scalar_one()


def fetch_bootstrap_records(connection: Connection) -> list[dict[str, object]]:
    rows = connection.execute(
        select(bootstrap_table.c.id, bootstrap_table.c.created_at).order_by(bootstrap_table.c.id)
    ).mappings().all()
    return [dict(row) for row in rows]
