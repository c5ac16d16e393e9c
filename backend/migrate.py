from __future__ import annotations

import sys

from grocerynana.bootstrap import count_bootstrap_records
from grocerynana.db import check_db_connection, get_db
from grocerynana.logging_utils import configure_logging
from grocerynana.migrations import MigrationError, current_revision, run_migrations


if __name__ == "__main__":
    configure_logging()
    try:
        run_migrations()
    except MigrationError as exc:
        print(exc, file=sys.stderr)
        sys.exit(1)
    check_db_connection()
    with get_db() as session:
        sentinel_rows = count_bootstrap_records(session.connection())
    print(f"Migrations complete. Current revision: {current_revision()}. Sentinel rows: {sentinel_rows}")
