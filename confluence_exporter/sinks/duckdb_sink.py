"""Embedded DuckDB output: one row per page, upserted by uid."""

import logging
import os
from typing import Optional

import duckdb

from confluence_exporter.models import ConvertedPage

from .base import Sink
from .errors import SinkError

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_FILE = 'confluence.duckdb'
TABLE_NAME = 'pages'

CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS {table} (
    uid VARCHAR PRIMARY KEY,
    title VARCHAR,
    body VARCHAR,
    link VARCHAR
)
"""

UPSERT_SQL = f"INSERT OR REPLACE INTO {TABLE_NAME} (uid, title, body, link) VALUES (?, ?, ?, ?)"


class DuckDBSink(Sink):
    """Stores converted pages in a DuckDB `pages` table.

    Saving the same uid twice leaves one row holding the latest content.
    Databases created by earlier versions (a `pages` table without a
    primary key, possibly holding duplicate uids) are migrated in place on
    initialize: duplicates collapse to the most recently inserted row.
    """

    def __init__(self, database_path: str):
        self.database_path = database_path
        self._connection: Optional[duckdb.DuckDBPyConnection] = None

    def initialize(self) -> None:
        if self._connection is not None:
            return

        directory = os.path.dirname(self.database_path)
        try:
            if directory:
                os.makedirs(directory, exist_ok=True)
            self._connection = duckdb.connect(self.database_path)
        except (OSError, duckdb.Error) as e:
            raise SinkError(self.database_path, 'connect', str(e)) from e

        try:
            if self._needs_migration():
                self._migrate_legacy_table()
            self._connection.execute(CREATE_TABLE_SQL.format(table=TABLE_NAME))
        except duckdb.Error as e:
            self.close()
            raise SinkError(self.database_path, 'initialize', str(e)) from e

        logger.debug(f"DuckDB sink ready at {self.database_path}")

    def save_page(self, page: ConvertedPage, scope_key: str) -> None:
        self.initialize()
        record = page.to_record()
        try:
            self._connection.execute(
                UPSERT_SQL,
                [record['uid'], record['title'], record['body'], record['link']],
            )
        except duckdb.Error as e:
            raise SinkError(self.database_path, 'upsert', f"page '{page.title}': {e}") from e

    def close(self) -> None:
        if self._connection is None:
            return
        try:
            self._connection.close()
        except duckdb.Error as e:
            raise SinkError(self.database_path, 'close', str(e)) from e
        finally:
            self._connection = None

    def _needs_migration(self) -> bool:
        """True when a `pages` table exists without a primary key."""
        exists = self._connection.execute(
            "SELECT count(*) FROM information_schema.tables WHERE table_name = ?",
            [TABLE_NAME],
        ).fetchone()[0]
        if not exists:
            return False

        primary_keys = self._connection.execute(
            "SELECT count(*) FROM duckdb_constraints() "
            "WHERE table_name = ? AND constraint_type = 'PRIMARY KEY'",
            [TABLE_NAME],
        ).fetchone()[0]
        return primary_keys == 0

    def _migrate_legacy_table(self) -> None:
        scratch = f"{TABLE_NAME}_migrated"
        logger.info(f"Migrating legacy '{TABLE_NAME}' table in {self.database_path}")

        self._connection.execute("BEGIN TRANSACTION")
        try:
            self._connection.execute(f"DROP TABLE IF EXISTS {scratch}")
            # rowid order is insertion order, so arg_max keeps the latest row
            self._connection.execute(
                f"CREATE TABLE {scratch} AS "
                f"SELECT uid, arg_max(title, rowid) AS title, arg_max(body, rowid) AS body, "
                f"arg_max(link, rowid) AS link "
                f"FROM {TABLE_NAME} WHERE uid IS NOT NULL GROUP BY uid"
            )
            self._connection.execute(f"DROP TABLE {TABLE_NAME}")
            self._connection.execute(CREATE_TABLE_SQL.format(table=TABLE_NAME))
            self._connection.execute(
                f"INSERT INTO {TABLE_NAME} (uid, title, body, link) "
                f"SELECT uid, title, body, link FROM {scratch}"
            )
            self._connection.execute(f"DROP TABLE {scratch}")
            self._connection.execute("COMMIT")
        except duckdb.Error:
            self._connection.execute("ROLLBACK")
            raise
